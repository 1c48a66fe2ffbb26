"""
Base class for all superpixel segmentation algorithms.
"""

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass

import cv2
import numpy as np

from ..exceptions import ConfigurationError, SegmentationError
from .connectivity import count_superpixels


class ColorChannel(enum.IntFlag):
    """Colour spaces a segmenter may draw its feature channels from."""
    NONE = 0
    RGB = 1
    HSV = 2
    LAB = 4
    ALL = RGB | HSV | LAB


@dataclass
class ScaleResult:
    """A label map paired with the granularity that produced it."""
    superpixels: int
    labels: np.ndarray
    achieved: int


class BaseSuperpixelSegmenter(ABC):
    """Base class that all superpixel segmentation algorithms should inherit from."""

    name = None

    def __init__(self, config=None):
        """
        Initialize the segmenter.

        Args:
            config (dict, optional): Configuration parameters for the segmenter.
                split_threshold (float): Minimum split score a segment needs to be split.
                bins (int): Number of histogram bins per channel.
                min_segment_size (int): Minimum size of segments in pixels.
                channels (ColorChannel): Colour spaces to build features from.
                blur (bool): Whether to blur the feature channels.
        """
        self.config = config or {}
        self.split_threshold = float(self.config.get('split_threshold', 0.0))
        self.bins = int(self.config.get('bins', 32))
        self.min_segment_size = int(self.config.get('min_segment_size', 64))
        self.channels = ColorChannel(self.config.get('channels', ColorChannel.ALL))
        self.blur = bool(self.config.get('blur', False))

        if not self.channels:
            raise ConfigurationError("At least one colour channel (rgb, hsv, lab) must be enabled")
        if self.bins < 2:
            raise ConfigurationError(f"Number of histogram bins must be at least 2, got {self.bins}")
        if self.min_segment_size < 1:
            raise ConfigurationError(f"Minimum segment size must be positive, got {self.min_segment_size}")
        if self.split_threshold < 0:
            raise ConfigurationError(f"Split threshold must be non-negative, got {self.split_threshold}")

    @abstractmethod
    def segment(self, image, superpixels):
        """
        Segment the input image once per requested number of superpixels.

        Args:
            image (numpy.ndarray): Input BGR or grayscale image.
            superpixels (sequence of int): Requested numbers of superpixels.

        Returns:
            list of ScaleResult: One result per requested granularity, in request order.

        Raises:
            SegmentationError: If the image cannot be segmented.
        """
        pass

    def validate(self, image, superpixels):
        """Check the image and granularities before any computation starts."""
        if image is None:
            raise SegmentationError("No image data (image could not be decoded)")
        if not isinstance(image, np.ndarray) or image.ndim not in (2, 3) or image.size == 0:
            raise SegmentationError(f"Expected a non-empty 2-D or 3-D image, got shape {getattr(image, 'shape', None)}")
        for count in superpixels:
            if int(count) < 1:
                raise SegmentationError(f"Number of superpixels must be positive, got {count}")

    def to_bgr(self, image):
        """Bring grayscale and BGRA images to 3-channel 8-bit BGR."""
        if image.dtype != np.uint8:
            image = cv2.normalize(image, None, alpha=0, beta=255, norm_type=cv2.NORM_MINMAX, dtype=cv2.CV_8U)
        if image.ndim == 2 or image.shape[2] == 1:
            return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
        if image.shape[2] == 4:
            return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
        return image

    def preprocess(self, image):
        """
        Build the feature stack for the enabled colour spaces.

        Args:
            image (numpy.ndarray): Input image.

        Returns:
            numpy.ndarray: Float32 array of shape (H, W, C) with every channel scaled to [0, 1].
        """
        bgr = self.to_bgr(image)
        features = []
        if self.channels & ColorChannel.RGB:
            features.append(bgr.astype(np.float32) / 255.0)
        if self.channels & ColorChannel.HSV:
            hsv = cv2.cvtColor(bgr, cv2.COLOR_BGR2HSV).astype(np.float32)
            # OpenCV stores 8-bit hue in [0, 180)
            hsv[..., 0] /= 180.0
            hsv[..., 1:] /= 255.0
            features.append(hsv)
        if self.channels & ColorChannel.LAB:
            features.append(cv2.cvtColor(bgr, cv2.COLOR_BGR2LAB).astype(np.float32) / 255.0)
        stacked = np.concatenate(features, axis=2)

        if self.blur:
            stacked = self._blur(stacked)
        return np.clip(stacked, 0.0, 1.0)

    def _blur(self, features):
        kernel_size = int(self.config.get('blur_kernel_size', 5))
        if kernel_size % 2 == 0:
            kernel_size += 1
        sigma = float(self.config.get('blur_sigma', 0.0))
        blurred = np.empty_like(features)
        for c in range(features.shape[2]):
            blurred[..., c] = cv2.GaussianBlur(features[..., c], (kernel_size, kernel_size), sigma)
        return blurred

    def postprocess(self, label_maps, superpixels):
        """
        Pair each label map with the granularity that requested it.

        Args:
            label_maps (dict): Label map per distinct granularity.
            superpixels (sequence of int): Granularities in request order.

        Returns:
            list of ScaleResult: One entry per requested granularity.
        """
        results = []
        for count in superpixels:
            labels = label_maps[int(count)].astype(np.int32, copy=False)
            results.append(ScaleResult(int(count), labels, count_superpixels(labels)))
        return results
