"""
Factory class for creating and managing superpixel segmentation algorithms.
"""

from ..exceptions import ConfigurationError
from .hhts import HHTSSegmenter
from .slic import SlicSegmenter


class SuperpixelSegmenterFactory:
    """
    Factory class for creating superpixel segmentation algorithms.

    Every enabled method is constructed up front with its own configuration
    merged with the parameters shared by all methods, so invalid parameters
    are reported before any image is read.
    """

    SEGMENTERS = {
        'hhts': HHTSSegmenter,
        'slic': SlicSegmenter,
    }

    def __init__(self, config=None, parameters=None):
        """
        Initialize the factory with the configuration.

        Args:
            config (dict, optional): Per-method configuration, keyed by method
                name ('hhts', 'slic'), each with an optional 'enable' flag.
            parameters (dict, optional): Parameters shared by every method
                (split_threshold, bins, min_segment_size, channels, blur).
        """
        self.config = config or {}
        self.parameters = parameters or {}
        self.segmenters = {}

        self._init_segmenters()

    def _init_segmenters(self):
        """Initialize all enabled segmentation methods based on config."""
        for name, segmenter_class in self.SEGMENTERS.items():
            method_config = self.config.get(name, {})
            if method_config.get('enable', True):
                self.segmenters[name] = segmenter_class({**method_config, **self.parameters})

    def available(self):
        """Names of the enabled segmentation methods."""
        return sorted(self.segmenters)

    def create(self, method):
        """
        Get the segmenter for a method.

        Raises:
            ConfigurationError: If the method is unknown or disabled.
        """
        if method not in self.segmenters:
            raise ConfigurationError(
                f"Method '{method}' not available or not enabled (available: {', '.join(self.available())})"
            )
        return self.segmenters[method]

    def segment(self, image, superpixels, method='hhts'):
        """
        Segment the image with the specified method.

        Args:
            image (numpy.ndarray): The input image to segment.
            superpixels (sequence of int): Requested numbers of superpixels.
            method (str): The method to use ('hhts' or 'slic').

        Returns:
            list of ScaleResult: One result per requested granularity.
        """
        return self.create(method).segment(image, superpixels)
