"""
Output routing and artifact writing.

Label maps go to <output_dir>/<superpixels>/<prefix><stem>.csv and contour
overlays to <vis_dir>/<superpixels>/<prefix><stem>.png. Every artifact is
written to a temporary sibling first and moved into place, so a finished
artifact is never observed half-written.
"""

import os
from pathlib import Path

import cv2
import numpy as np
from loguru import logger

from configs.default_config import (
    CONTOUR_COLOR,
    CSV_DELIMITER,
    LABEL_EXTENSION,
    RUNTIME_LOG_NAME,
    VISUALIZATION_EXTENSION,
)
from ..exceptions import DirectoryCreationError, WriteError
from .visualization import draw_contours, save_scale_overview


def artifact_path(base_dir, superpixels, prefix, stem, extension):
    """Path of one artifact: base_dir/<superpixels>/<prefix><stem>.<extension>."""
    return Path(base_dir) / str(superpixels) / f"{prefix}{stem}.{extension}"


class OutputRouter:
    """
    Maps (image, granularity) pairs to artifact paths below one base directory.

    A router with an empty base directory is disabled: it creates nothing and
    must not be asked for paths.
    """

    def __init__(self, base_dir, superpixels=()):
        self.base_dir = Path(base_dir) if base_dir else None
        self.superpixels = tuple(dict.fromkeys(int(count) for count in superpixels))

    @property
    def enabled(self):
        return self.base_dir is not None

    def ensure_directories(self):
        """
        Create the base directory and one subdirectory per granularity.

        Returns:
            list of Path: The granularity directories (empty when disabled).

        Raises:
            DirectoryCreationError: If a directory cannot be created.
        """
        if not self.enabled:
            return []

        directories = [self.base_dir] + [self.base_dir / str(count) for count in self.superpixels]
        for directory in directories:
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise DirectoryCreationError(f"Cannot create output directory {directory}: {e}") from e
        return directories[1:]

    def artifact_path(self, superpixels, prefix, stem, extension):
        if not self.enabled:
            raise RuntimeError("Output router is disabled; no artifact paths are available")
        return artifact_path(self.base_dir, superpixels, prefix, stem, extension)

    def runtime_log_path(self, prefix=''):
        if not self.enabled:
            raise RuntimeError("Output router is disabled; no runtime log is written")
        return self.base_dir / f"{prefix}{RUNTIME_LOG_NAME}"


def _temporary_path(path):
    return path.with_name(f".{path.stem}.partial{path.suffix}")


def _discard(path):
    try:
        path.unlink()
    except FileNotFoundError:
        pass


def write_label_csv(path, labels, delimiter=CSV_DELIMITER):
    """
    Write a label map as a plain integer grid, one image row per line, no header.

    Raises:
        WriteError: On any I/O failure.
    """
    path = Path(path)
    temporary = _temporary_path(path)
    try:
        np.savetxt(temporary, np.asarray(labels), fmt='%d', delimiter=delimiter)
        os.replace(temporary, path)
    except OSError as e:
        _discard(temporary)
        raise WriteError(path, f"Failed to write label file ({e})") from e
    return path


def write_image(path, image):
    """
    Write an image with OpenCV; the format follows the file extension.

    Raises:
        WriteError: If OpenCV cannot encode or write the file.
    """
    path = Path(path)
    temporary = _temporary_path(path)
    try:
        success = cv2.imwrite(str(temporary), image)
    except cv2.error as e:
        raise WriteError(path, f"Failed to encode image ({e})") from e
    if not success:
        _discard(temporary)
        raise WriteError(path, "Failed to write image")

    try:
        os.replace(temporary, path)
    except OSError as e:
        _discard(temporary)
        raise WriteError(path, f"Failed to move image into place ({e})") from e
    return path


def write_contour_image(path, image, labels, color=CONTOUR_COLOR):
    """Draw superpixel contours over the image and write the overlay."""
    return write_image(path, draw_contours(image, labels, color))


class ImageWriter:
    """
    Writes all artifacts of one image.

    Label files and contour overlays are attempted independently. A failed
    write skips the remaining artifacts of that kind for the image; with
    strict=True it is raised instead and aborts the batch.
    """

    def __init__(self, output_router, vis_router, prefix='', summary_dir=None, strict=False,
                 contour_color=CONTOUR_COLOR):
        self.output_router = output_router
        self.vis_router = vis_router
        self.prefix = prefix
        self.summary_dir = Path(summary_dir) if summary_dir else None
        self.strict = strict
        self.contour_color = contour_color

    def ensure_directories(self):
        """Create every enabled output location before the first image is processed."""
        self.output_router.ensure_directories()
        self.vis_router.ensure_directories()
        if self.summary_dir is not None:
            try:
                self.summary_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise DirectoryCreationError(f"Cannot create summary directory {self.summary_dir}: {e}") from e

    def write(self, record, image, scale_results):
        """
        Write label files, contour overlays and the overview figure for one image.

        Args:
            record (ImageRecord): The source image record.
            image (numpy.ndarray): The decoded source image.
            scale_results (list of ScaleResult): Connectivity-enforced label maps.

        Returns:
            tuple: (list of written paths, list of error messages)
        """
        written = []
        errors = []

        if self.output_router.enabled:
            self._attempt(errors, written, self._label_files(record, scale_results))
        if self.vis_router.enabled:
            self._attempt(errors, written, self._contour_images(record, image, scale_results))
        if self.summary_dir is not None and scale_results:
            self._attempt(errors, written, self._overview(record, image, scale_results))

        return written, errors

    def _label_files(self, record, scale_results):
        for result in scale_results:
            path = self.output_router.artifact_path(result.superpixels, self.prefix, record.stem, LABEL_EXTENSION)
            yield write_label_csv(path, result.labels)

    def _contour_images(self, record, image, scale_results):
        for result in scale_results:
            path = self.vis_router.artifact_path(result.superpixels, self.prefix, record.stem, VISUALIZATION_EXTENSION)
            yield write_contour_image(path, image, result.labels, self.contour_color)

    def _overview(self, record, image, scale_results):
        path = self.summary_dir / f"{self.prefix}{record.stem}.{VISUALIZATION_EXTENSION}"
        yield save_scale_overview(image, scale_results, path, self.contour_color)

    def _attempt(self, errors, written, writes):
        try:
            for path in writes:
                written.append(path)
        except WriteError as e:
            if self.strict:
                raise
            logger.error(f"Write failed, skipping remaining artifacts of this kind: {e}")
            errors.append(str(e))
