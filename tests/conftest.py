from __future__ import annotations

from pathlib import Path
import sys

import cv2
import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from superpixel_batch.traditional.base import BaseSuperpixelSegmenter


class StripeSegmenter(BaseSuperpixelSegmenter):
    """Splits the image into vertical stripes, one per requested superpixel (up to the width)."""

    name = "stripes"

    def __init__(self, config=None, on_segment=None):
        super().__init__(config)
        self.on_segment = on_segment
        self.calls = 0

    def segment(self, image, superpixels):
        self.validate(image, superpixels)
        self.calls += 1
        if self.on_segment is not None:
            self.on_segment()
        height, width = image.shape[:2]
        maps = {}
        for count in superpixels:
            columns = np.arange(width) * min(int(count), width) // width
            maps[int(count)] = np.tile(columns, (height, 1))
        return self.postprocess(maps, superpixels)


class FixedSegmenter(BaseSuperpixelSegmenter):
    """Returns the same label map for every granularity."""

    name = "fixed"

    def __init__(self, labels, config=None):
        super().__init__(config)
        self.labels = np.asarray(labels, dtype=np.int32)

    def segment(self, image, superpixels):
        self.validate(image, superpixels)
        return self.postprocess({int(count): self.labels for count in superpixels}, superpixels)


def quadrant_image(size: int = 32) -> np.ndarray:
    """BGR image with red, green, blue and white quadrants."""
    half = size // 2
    image = np.zeros((size, size, 3), dtype=np.uint8)
    image[:half, :half] = (0, 0, 255)
    image[:half, half:] = (0, 255, 0)
    image[half:, :half] = (255, 0, 0)
    image[half:, half:] = (255, 255, 255)
    return image


@pytest.fixture
def make_image():
    def _make(path: Path, size: int = 32) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        assert cv2.imwrite(str(path), quadrant_image(size))
        return path
    return _make


@pytest.fixture
def image_dir(tmp_path: Path, make_image) -> Path:
    directory = tmp_path / "images"
    make_image(directory / "a.jpg")
    make_image(directory / "b.png")
    return directory


def noisy_discs_image(height: int = 160, width: int = 200, seed: int = 7) -> np.ndarray:
    """BGR image of coloured discs on a flat background, with per-pixel Gaussian noise."""
    rng = np.random.default_rng(seed)
    image = np.full((height, width, 3), 60, dtype=np.uint8)
    for _ in range(8):
        center = (int(rng.integers(20, width - 20)), int(rng.integers(20, height - 20)))
        radius = int(rng.integers(10, 30))
        color = tuple(int(v) for v in rng.integers(80, 240, size=3))
        cv2.circle(image, center, radius, color, -1)
    noise = rng.normal(0, 12, image.shape)
    return np.clip(image + noise, 0, 255).astype(np.uint8)
