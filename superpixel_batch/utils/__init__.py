"""
Utility functions for the batch superpixel package.
"""

from .data_loader import ImageRecord, ImageSource, list_images
from .output import (
    ImageWriter,
    OutputRouter,
    artifact_path,
    write_contour_image,
    write_label_csv
)
from .timing import (
    BatchTimingSummary,
    Timer,
    TimingRecord,
    append_runtime_log,
    start_timer,
    stop_timer
)
from .visualization import colorize_labels, draw_contours, save_scale_overview
from .log_config import configure_logging

__all__ = [
    'ImageRecord',
    'ImageSource',
    'list_images',
    'ImageWriter',
    'OutputRouter',
    'artifact_path',
    'write_contour_image',
    'write_label_csv',
    'BatchTimingSummary',
    'Timer',
    'TimingRecord',
    'append_runtime_log',
    'start_timer',
    'stop_timer',
    'colorize_labels',
    'draw_contours',
    'save_scale_overview',
    'configure_logging'
]
