"""
Image discovery and loading for batch superpixel segmentation.
"""

import os
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Sequence, Union

import cv2
import numpy as np
from loguru import logger

from configs.default_config import IMAGE_EXTENSIONS
from ..exceptions import InputDirectoryError, SegmentationError


@dataclass(frozen=True)
class ImageRecord:
    """One enumerated image: its identifier (the full path string) and its path."""
    identifier: str
    path: Path

    @property
    def stem(self) -> str:
        return self.path.stem


def _normalize_extensions(extensions: Union[str, Sequence[str]]) -> List[str]:
    extensions = [extensions] if isinstance(extensions, str) else list(extensions)
    return [ext.lower() if ext.startswith('.') else f'.{ext.lower()}' for ext in extensions]


def list_images(
    input_dir: Union[str, Path],
    extensions: Union[str, Sequence[str]] = IMAGE_EXTENSIONS,
    recursive: bool = False
) -> List[ImageRecord]:
    """
    Find all image files with the given extensions in a directory.

    Args:
        input_dir: Directory to search
        extensions: Accepted file extensions, matched case-insensitively
        recursive: Whether to search subdirectories as well

    Returns:
        Records sorted by full path string

    Raises:
        InputDirectoryError: If input_dir does not exist or is not a directory
    """
    root = Path(input_dir)
    if not root.is_dir():
        raise InputDirectoryError(f"Image directory not found: {input_dir}")

    accepted = set(_normalize_extensions(extensions))
    records = []
    for dirpath, dirnames, filenames in os.walk(root):
        if not recursive:
            dirnames.clear()
        for filename in filenames:
            path = Path(dirpath, filename)
            if path.suffix.lower() in accepted and path.is_file():
                records.append(ImageRecord(str(path), path))

    records.sort(key=lambda record: record.identifier)
    return records


class ImageSource:
    """
    Ordered source of images for a batch run.

    Enumerates the input directory once on construction; images are decoded
    lazily, one at a time, when requested.
    """

    def __init__(
        self,
        image_dir: Union[str, Path],
        image_ext: Union[str, Sequence[str]] = IMAGE_EXTENSIONS,
        recursive: bool = False
    ):
        """
        Initialize the image source.

        Args:
            image_dir: Directory containing the images
            image_ext: File extensions to consider for images
            recursive: Whether to search directories recursively

        Raises:
            InputDirectoryError: If image_dir is not a directory
        """
        self.image_dir = image_dir
        self.image_ext = _normalize_extensions(image_ext)
        self.recursive = recursive

        self.records = list_images(image_dir, self.image_ext, recursive)
        self._warn_duplicate_stems()

    def _warn_duplicate_stems(self):
        """Images sharing a stem are written to the same artifact paths."""
        stems = Counter(record.stem for record in self.records)
        for stem, count in stems.items():
            if count > 1:
                logger.warning(f"{count} images share the stem '{stem}'; their outputs will overwrite each other")

    def __len__(self) -> int:
        """Get the number of images found."""
        return len(self.records)

    def __getitem__(self, idx: int) -> ImageRecord:
        """Get the record at the given index."""
        if idx < 0 or idx >= len(self):
            raise IndexError(f"Index {idx} out of range for image source of size {len(self)}")
        return self.records[idx]

    def __iter__(self) -> Iterator[ImageRecord]:
        return iter(self.records)

    @staticmethod
    def load_image(record: ImageRecord) -> np.ndarray:
        """
        Decode an image.

        Raises:
            SegmentationError: If the file cannot be decoded
        """
        image = cv2.imread(str(record.path), cv2.IMREAD_COLOR)
        if image is None or image.size == 0:
            raise SegmentationError(f"Failed to load image: {record.path}")
        return image

    def get_image_paths(self) -> List[str]:
        """Get list of all image paths."""
        return [record.identifier for record in self.records]
