"""
Batch controller: segments every image of a directory at several granularities.
"""

import enum
import multiprocessing
from contextlib import closing
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import List, Optional

from loguru import logger
from tqdm import tqdm

from .exceptions import SegmentationError
from .traditional import ScaleResult, SuperpixelSegmenterFactory, count_superpixels, relabel_connected_superpixels
from .utils.data_loader import ImageRecord, ImageSource
from .utils.output import ImageWriter, OutputRouter
from .utils.timing import BatchTimingSummary, Timer, TimingRecord, append_runtime_log


class BatchState(enum.Enum):
    IDLE = 'idle'
    ENUMERATING = 'enumerating'
    SEGMENTING = 'segmenting'
    ENFORCING_CONNECTIVITY = 'enforcing_connectivity'
    WRITING = 'writing'
    TIMING_RECORDED = 'timing_recorded'
    REPORTING = 'reporting'
    DONE = 'done'


@dataclass
class ImageResult:
    """Outcome of one image's pipeline."""
    record: ImageRecord
    success: bool
    timing: Optional[TimingRecord] = None
    superpixels: List[int] = field(default_factory=list)
    disconnected: List[int] = field(default_factory=list)
    artifacts: List[Path] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class BatchReport:
    """Summary of a finished batch run."""
    total: int
    results: List[ImageResult]
    summary: BatchTimingSummary
    runtime_log: Optional[Path] = None
    cancelled: bool = False

    @property
    def processed(self):
        return sum(1 for result in self.results if result.success)

    @property
    def failed(self):
        return sum(1 for result in self.results if not result.success)


def process_image(record, segmenter, superpixels, writer, on_stage=None):
    """
    Run the full pipeline for a single image.

    Segmentation failures (including images that cannot be decoded) are
    reported in the result rather than raised, so the batch can continue.
    Only the segmentation call itself is timed.

    Args:
        record: ImageRecord of the image to process
        segmenter: BaseSuperpixelSegmenter instance
        superpixels: Requested numbers of superpixels
        writer: ImageWriter for the image's artifacts
        on_stage: Optional callback receiving each BatchState as it is entered

    Returns:
        ImageResult
    """
    def enter(stage):
        if on_stage is not None:
            on_stage(stage)

    enter(BatchState.SEGMENTING)
    try:
        image = ImageSource.load_image(record)
        with Timer() as timer:
            scale_results = segmenter.segment(image, superpixels)
    except SegmentationError as e:
        logger.error(f"Skipping {record.identifier}: {e}")
        return ImageResult(record, success=False, error=str(e))

    enter(BatchState.ENFORCING_CONNECTIVITY)
    enforced = []
    disconnected = []
    for result in scale_results:
        labels, unconnected = relabel_connected_superpixels(result.labels)
        enforced.append(ScaleResult(result.superpixels, labels, count_superpixels(labels)))
        disconnected.append(unconnected)

    enter(BatchState.WRITING)
    artifacts, errors = writer.write(record, image, enforced)

    return ImageResult(
        record,
        success=not errors,
        timing=timer.record,
        superpixels=[result.achieved for result in enforced],
        disconnected=disconnected,
        artifacts=artifacts,
        error='; '.join(errors) or None,
    )


class SuperpixelBatch:
    """
    Segments every image of the input directory at each requested granularity.

    Images are processed one after another, or by a process pool when more
    than one worker is configured. Timing is accumulated and the runtime log
    appended only here, in the controlling process.
    """

    def __init__(self, config, segmenter=None):
        """
        Initialize the batch.

        Args:
            config (RunConfiguration): Settings for the run.
            segmenter (BaseSuperpixelSegmenter, optional): Segmenter to use instead
                of the one the factory builds for config.method.
        """
        self.config = config
        self.segmenter = segmenter
        self.state = BatchState.IDLE
        self._cancelled = False

        self.output_router = OutputRouter(config.output_dir, config.superpixels)
        self.vis_router = OutputRouter(config.vis_dir, config.superpixels)
        self.writer = ImageWriter(
            self.output_router,
            self.vis_router,
            prefix=config.prefix,
            summary_dir=config.summary_dir,
            strict=config.strict_writes,
        )

    def cancel(self):
        """Stop after the image currently being processed."""
        self._cancelled = True

    def _set_state(self, state):
        self.state = state

    def _build_segmenter(self):
        if self.segmenter is not None:
            return self.segmenter
        factory = SuperpixelSegmenterFactory(self.config.method_config, self.config.segmenter_parameters())
        return factory.create(self.config.method)

    def run(self):
        """
        Process the whole batch.

        Returns:
            BatchReport

        Raises:
            ConfigurationError: Before any image is processed, if the
                configuration, the input directory or an output directory is unusable.
            WriteError: Only with strict_writes, on the first failed write.
        """
        config = self.config
        self.state = BatchState.IDLE
        config.validate()
        segmenter = self._build_segmenter()

        self.state = BatchState.ENUMERATING
        source = ImageSource(config.input_dir, config.extensions, config.recursive)
        self.writer.ensure_directories()

        total = len(source)
        logger.info(f"Processing {total} images at {list(config.superpixels)} superpixels with '{config.method}'")

        summary = BatchTimingSummary()
        results = []
        runtime_log = None
        cancelled = False
        try:
            with closing(self._iter_results(source, segmenter)) as stream:
                progress = tqdm(stream, total=total, desc="Processing", disable=not config.verbose)
                for index, result in enumerate(progress, 1):
                    results.append(result)
                    if result.timing is not None:
                        summary.add(result.timing)
                        self.state = BatchState.TIMING_RECORDED
                        if config.verbose:
                            self._log_progress(index, total, result, summary)
                    if self._cancelled and index < total:
                        logger.warning(f"Batch cancelled after {index}/{total} images")
                        cancelled = True
                        break
        finally:
            self.state = BatchState.REPORTING
            runtime_log = self._report(summary)

        report = BatchReport(total, results, summary, runtime_log, cancelled)
        logger.success(f"Done: {report.processed}/{total} images")
        self.state = BatchState.DONE
        return report

    def _iter_results(self, source, segmenter):
        superpixels = list(self.config.superpixels)
        if self.config.workers <= 1:
            for record in source:
                yield process_image(record, segmenter, superpixels, self.writer, on_stage=self._set_state)
            return

        process_fn = partial(process_image, segmenter=segmenter, superpixels=superpixels, writer=self.writer)
        with multiprocessing.Pool(processes=self.config.workers) as pool:
            yield from pool.imap(process_fn, source.records)

    def _log_progress(self, index, total, result, summary):
        logger.info(
            f"{index}/{total}: {result.superpixels} superpixels "
            f"({result.timing.cpu:.3f}/{summary.average_cpu:.3f} - {result.timing.wall:.3f}/{summary.average_wall:.3f}) "
            f"{sum(result.disconnected)} not connected"
        )

    def _report(self, summary):
        if summary.count == 0:
            logger.info("No image was segmented; runtime log left unchanged")
            return None

        if self.config.verbose:
            logger.info(f"Average time: {summary.average_cpu:g} - {summary.average_wall:g}.")

        if not self.output_router.enabled:
            return None
        path = self.output_router.runtime_log_path(self.config.prefix)
        append_runtime_log(path, summary)
        return path
