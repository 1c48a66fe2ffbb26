"""
Exception hierarchy for the batch superpixel pipeline.

Configuration errors are fatal and raised before any image is processed.
Segmentation and write errors are scoped to a single image.
"""


class SuperpixelBatchError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(SuperpixelBatchError):
    """Invalid run configuration, missing input directory or unusable output location."""


class InputDirectoryError(ConfigurationError):
    """The input path does not exist or is not a directory."""


class DirectoryCreationError(ConfigurationError):
    """An output directory could not be created."""


class SegmentationError(SuperpixelBatchError):
    """Decoding or segmenting a single image failed."""


class WriteError(SuperpixelBatchError):
    """Writing a single output artifact failed."""

    def __init__(self, path, message):
        super().__init__(f"{message}: {path}")
        self.path = path
