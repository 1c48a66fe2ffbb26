from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from conftest import FixedSegmenter, StripeSegmenter
from superpixel_batch import (
    BatchState,
    ConfigurationError,
    RunConfiguration,
    SuperpixelBatch,
    WriteError,
    process_image,
)
from superpixel_batch.utils.data_loader import ImageSource
from superpixel_batch.utils.output import ImageWriter, OutputRouter


def _tree(root: Path) -> list[str]:
    return sorted(path.relative_to(root).as_posix() for path in root.rglob("*") if path.is_file())


def test_two_images_two_granularities(tmp_path: Path, image_dir: Path) -> None:
    output = tmp_path / "out"
    config = RunConfiguration(
        input_dir=str(image_dir),
        output_dir=str(output),
        superpixels=(100, 400),
        min_segment_size=4,
    )

    batch = SuperpixelBatch(config)
    report = batch.run()

    assert _tree(output) == ["100/a.csv", "100/b.csv", "400/a.csv", "400/b.csv", "runtime.txt"]
    assert len((output / "runtime.txt").read_text().splitlines()) == 1
    assert report.processed == 2
    assert report.failed == 0
    assert report.summary.count == 2
    assert batch.state is BatchState.DONE


def test_label_files_match_image_dimensions(tmp_path: Path, image_dir: Path) -> None:
    output = tmp_path / "out"
    config = RunConfiguration(input_dir=str(image_dir), output_dir=str(output), superpixels=(4,))

    SuperpixelBatch(config, segmenter=StripeSegmenter()).run()

    labels = np.loadtxt(output / "4" / "a.csv", delimiter=",", dtype=np.int64)
    assert labels.shape == (32, 32)
    assert np.unique(labels).tolist() == [0, 1, 2, 3]


def test_repeated_runs_accumulate_runtime_history(tmp_path: Path, image_dir: Path) -> None:
    output = tmp_path / "out"
    config = RunConfiguration(input_dir=str(image_dir), output_dir=str(output), superpixels=(4,), prefix="run_")

    SuperpixelBatch(config, segmenter=StripeSegmenter()).run()
    SuperpixelBatch(config, segmenter=StripeSegmenter()).run()

    assert (output / "4" / "run_a.csv").is_file()
    lines = (output / "run_runtime.txt").read_text().splitlines()
    assert len(lines) == 2
    assert all(len(line.split()) == 2 for line in lines)


def test_empty_input_directory(tmp_path: Path) -> None:
    images = tmp_path / "images"
    images.mkdir()
    output = tmp_path / "out"
    output.mkdir()
    (output / "runtime.txt").write_text("0.5 0.6\n")
    config = RunConfiguration(input_dir=str(images), output_dir=str(output), superpixels=(100,))

    report = SuperpixelBatch(config).run()

    assert report.total == 0
    assert report.results == []
    assert report.runtime_log is None
    assert (output / "runtime.txt").read_text() == "0.5 0.6\n"


def test_missing_input_directory_aborts_before_creating_anything(tmp_path: Path) -> None:
    output = tmp_path / "out"
    vis = tmp_path / "vis"
    config = RunConfiguration(
        input_dir=str(tmp_path / "missing"),
        output_dir=str(output),
        vis_dir=str(vis),
        superpixels=(100,),
    )

    with pytest.raises(ConfigurationError):
        SuperpixelBatch(config).run()

    assert not output.exists()
    assert not vis.exists()


def test_invalid_configuration_aborts(tmp_path: Path, image_dir: Path) -> None:
    output = tmp_path / "out"
    config = RunConfiguration(input_dir=str(image_dir), output_dir=str(output), superpixels=(0,))

    with pytest.raises(ConfigurationError):
        SuperpixelBatch(config).run()
    assert not output.exists()


def test_undecodable_image_is_skipped(tmp_path: Path, make_image) -> None:
    images = tmp_path / "images"
    make_image(images / "a.png")
    make_image(images / "b.png")
    (images / "c.png").write_bytes(b"\x89PNG garbage")
    output = tmp_path / "out"
    config = RunConfiguration(input_dir=str(images), output_dir=str(output), superpixels=(4,))

    report = SuperpixelBatch(config, segmenter=StripeSegmenter()).run()

    assert report.total == 3
    assert report.processed == 2
    assert report.failed == 1
    assert report.summary.count == 2
    assert _tree(output) == ["4/a.csv", "4/b.csv", "runtime.txt"]
    failed = [result for result in report.results if not result.success]
    assert failed[0].record.stem == "c"
    assert failed[0].timing is None


def test_visualizations_are_written(tmp_path: Path, image_dir: Path) -> None:
    vis = tmp_path / "vis"
    config = RunConfiguration(input_dir=str(image_dir), vis_dir=str(vis), superpixels=(2, 8))

    report = SuperpixelBatch(config, segmenter=StripeSegmenter()).run()

    assert _tree(vis) == ["2/a.png", "2/b.png", "8/a.png", "8/b.png"]
    # No output directory, so no runtime log either
    assert report.runtime_log is None


def test_disconnected_labels_are_split_before_writing(tmp_path: Path, image_dir: Path) -> None:
    labels = np.zeros((32, 32), dtype=np.int32)
    labels[:, 10:20] = 1
    output = tmp_path / "out"
    config = RunConfiguration(input_dir=str(image_dir), output_dir=str(output), superpixels=(3,))

    report = SuperpixelBatch(config, segmenter=FixedSegmenter(labels)).run()

    assert report.results[0].disconnected == [1]
    assert report.results[0].superpixels == [3]
    written = np.loadtxt(output / "3" / "a.csv", delimiter=",", dtype=np.int64)
    assert np.unique(written).tolist() == [0, 1, 2]
    assert written[0, 0] == 0 and written[0, 15] == 1 and written[0, 25] == 2


def test_write_failure_is_recorded_and_batch_continues(tmp_path: Path, image_dir: Path) -> None:
    output = tmp_path / "out"
    config = RunConfiguration(input_dir=str(image_dir), output_dir=str(output), superpixels=(4,))
    batch = SuperpixelBatch(config, segmenter=StripeSegmenter())
    # Only the base directory exists, so every label write fails
    batch.writer.ensure_directories = lambda: output.mkdir(parents=True, exist_ok=True)

    report = batch.run()

    assert report.failed == 2
    assert all(result.error for result in report.results)
    # Segmentation itself succeeded, so timing was still recorded
    assert report.summary.count == 2
    assert (output / "runtime.txt").is_file()


def test_strict_writes_abort_the_batch(tmp_path: Path, image_dir: Path) -> None:
    output = tmp_path / "out"
    config = RunConfiguration(input_dir=str(image_dir), output_dir=str(output), superpixels=(4,), strict_writes=True)
    segmenter = StripeSegmenter()
    batch = SuperpixelBatch(config, segmenter=segmenter)
    batch.writer.ensure_directories = lambda: output.mkdir(parents=True, exist_ok=True)

    with pytest.raises(WriteError):
        batch.run()
    assert segmenter.calls == 1


def test_cancel_stops_after_current_image(tmp_path: Path, image_dir: Path) -> None:
    config = RunConfiguration(input_dir=str(image_dir), output_dir=str(tmp_path / "out"), superpixels=(4,))
    segmenter = StripeSegmenter()
    batch = SuperpixelBatch(config, segmenter=segmenter)
    segmenter.on_segment = batch.cancel

    report = batch.run()

    assert report.cancelled
    assert len(report.results) == 1
    assert segmenter.calls == 1


def test_cancel_closes_the_result_stream_before_reporting(tmp_path: Path, image_dir: Path) -> None:
    config = RunConfiguration(input_dir=str(image_dir), output_dir=str(tmp_path / "out"), superpixels=(4,), workers=2)
    batch = SuperpixelBatch(config, segmenter=StripeSegmenter())
    closed_in = []

    def results(source, segmenter):
        try:
            for record in source:
                batch.cancel()
                yield process_image(record, segmenter, [4], batch.writer)
        finally:
            closed_in.append(batch.state)

    batch._iter_results = results
    report = batch.run()

    assert report.cancelled
    assert len(report.results) == 1
    assert closed_in == [BatchState.TIMING_RECORDED]


def test_process_image_walks_the_stages(tmp_path: Path, image_dir: Path) -> None:
    router = OutputRouter(tmp_path / "out", [4])
    writer = ImageWriter(router, OutputRouter("", [4]))
    writer.ensure_directories()
    record = ImageSource(image_dir)[0]
    stages = []

    result = process_image(record, StripeSegmenter(), [4], writer, on_stage=stages.append)

    assert stages == [BatchState.SEGMENTING, BatchState.ENFORCING_CONNECTIVITY, BatchState.WRITING]
    assert result.success
    assert result.timing is not None
    assert result.artifacts == [tmp_path / "out" / "4" / "a.csv"]


def test_worker_pool_matches_sequential_output(tmp_path: Path, image_dir: Path) -> None:
    sequential = tmp_path / "sequential"
    pooled = tmp_path / "pooled"
    common = dict(input_dir=str(image_dir), superpixels=(4, 16), min_segment_size=4)

    SuperpixelBatch(RunConfiguration(output_dir=str(sequential), **common)).run()
    report = SuperpixelBatch(RunConfiguration(output_dir=str(pooled), workers=2, **common)).run()

    assert report.processed == 2
    assert [result.record.stem for result in report.results] == ["a", "b"]
    assert _tree(pooled) == _tree(sequential)
    for name in ["4/a.csv", "16/b.csv"]:
        assert (pooled / name).read_text() == (sequential / name).read_text()
