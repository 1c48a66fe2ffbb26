"""
Run configuration for one batch.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

from configs.default_config import (
    BATCH_CONFIG,
    DEFAULT_BINS,
    DEFAULT_METHOD,
    DEFAULT_MIN_SEGMENT_SIZE,
    DEFAULT_SPLIT_THRESHOLD,
    IMAGE_EXTENSIONS,
    OUTPUT_DIR,
    OUTPUT_PREFIX,
    RECURSIVE_SEARCH,
    SUMMARY_DIR,
    SUPERPIXEL_CONFIG,
    VISUALIZATION_DIR,
)
from .exceptions import ConfigurationError
from .traditional.base import ColorChannel


@dataclass(frozen=True)
class RunConfiguration:
    """Read-only settings shared by every image of a batch run."""
    input_dir: str
    output_dir: str = OUTPUT_DIR
    vis_dir: str = VISUALIZATION_DIR
    superpixels: Tuple[int, ...] = ()
    split_threshold: float = DEFAULT_SPLIT_THRESHOLD
    bins: int = DEFAULT_BINS
    min_segment_size: int = DEFAULT_MIN_SEGMENT_SIZE
    channels: ColorChannel = ColorChannel.ALL
    blur: bool = False
    prefix: str = OUTPUT_PREFIX
    verbose: bool = False
    method: str = DEFAULT_METHOD
    workers: int = BATCH_CONFIG['workers']
    recursive: bool = RECURSIVE_SEARCH
    strict_writes: bool = BATCH_CONFIG['strict_writes']
    extensions: Tuple[str, ...] = IMAGE_EXTENSIONS
    summary_dir: str = SUMMARY_DIR
    log_file: Optional[str] = None
    method_config: dict = field(default_factory=lambda: dict(SUPERPIXEL_CONFIG), compare=False)

    def __post_init__(self):
        # Accept lists from callers but keep the stored value immutable
        object.__setattr__(self, 'superpixels', tuple(self.superpixels))
        object.__setattr__(self, 'extensions', tuple(self.extensions))
        object.__setattr__(self, 'channels', ColorChannel(self.channels))

    def validate(self):
        """
        Check every value before the batch touches the filesystem.

        Raises:
            ConfigurationError: On the first invalid value.
        """
        if not self.input_dir:
            raise ConfigurationError("No input directory given")
        for count in self.superpixels:
            if isinstance(count, bool) or not isinstance(count, int) or count < 1:
                raise ConfigurationError(f"Numbers of superpixels must be positive integers, got {count!r}")
        if self.split_threshold < 0:
            raise ConfigurationError(f"Split threshold must be non-negative, got {self.split_threshold}")
        if self.bins < 2:
            raise ConfigurationError(f"Number of histogram bins must be at least 2, got {self.bins}")
        if self.min_segment_size < 1:
            raise ConfigurationError(f"Minimum segment size must be positive, got {self.min_segment_size}")
        if not self.channels:
            raise ConfigurationError("At least one colour channel (rgb, hsv, lab) must be enabled")
        if self.workers < 1:
            raise ConfigurationError(f"Number of workers must be at least 1, got {self.workers}")
        if not self.extensions:
            raise ConfigurationError("No image extensions given")

    def segmenter_parameters(self):
        """Parameters shared by all segmentation methods."""
        return {
            'split_threshold': self.split_threshold,
            'bins': self.bins,
            'min_segment_size': self.min_segment_size,
            'channels': self.channels,
            'blur': self.blur,
        }

    @classmethod
    def from_args(cls, args):
        """Build a configuration from parsed command line arguments."""
        channels = ColorChannel.NONE
        if not args.nrgb:
            channels |= ColorChannel.RGB
        if not args.nhsv:
            channels |= ColorChannel.HSV
        if not args.nlab:
            channels |= ColorChannel.LAB

        return cls(
            input_dir=args.input or '',
            output_dir=args.csv,
            vis_dir=args.vis,
            superpixels=tuple(args.superpixels or ()),
            split_threshold=args.splitThreshold,
            bins=args.bins,
            min_segment_size=args.minSize,
            channels=channels,
            blur=args.blur,
            prefix=args.prefix,
            verbose=args.wordy,
            method=args.method,
            workers=args.workers,
            recursive=args.recursive,
            strict_writes=args.strict_writes,
            summary_dir=args.summary,
            log_file=args.log_file,
        )
