"""
Superpixel segmentation algorithms and connectivity enforcement.
"""

from .base import BaseSuperpixelSegmenter, ColorChannel, ScaleResult
from .connectivity import count_superpixels, relabel_connected_superpixels
from .hhts import HHTSSegmenter
from .slic import SlicSegmenter
from .factory import SuperpixelSegmenterFactory


__all__ = [
    'BaseSuperpixelSegmenter',
    'ColorChannel',
    'ScaleResult',
    'HHTSSegmenter',
    'SlicSegmenter',
    'SuperpixelSegmenterFactory',
    'count_superpixels',
    'relabel_connected_superpixels',
]
