"""
Multi-scale batch superpixel segmentation.
"""

from .config import RunConfiguration
from .exceptions import (
    ConfigurationError,
    DirectoryCreationError,
    InputDirectoryError,
    SegmentationError,
    SuperpixelBatchError,
    WriteError
)
from .pipeline import BatchReport, BatchState, ImageResult, SuperpixelBatch, process_image

__version__ = '0.1.0'

__all__ = [
    'RunConfiguration',
    'SuperpixelBatch',
    'BatchReport',
    'BatchState',
    'ImageResult',
    'process_image',
    'SuperpixelBatchError',
    'ConfigurationError',
    'InputDirectoryError',
    'DirectoryCreationError',
    'SegmentationError',
    'WriteError'
]
