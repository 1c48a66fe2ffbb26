from __future__ import annotations

from pathlib import Path

import pytest
from loguru import logger

from superpixel_batch.exceptions import ConfigurationError, InputDirectoryError, SegmentationError
from superpixel_batch.utils.data_loader import ImageSource, list_images


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"not really an image")
    return path


def test_list_images_sorted_and_case_insensitive(tmp_path: Path) -> None:
    _touch(tmp_path / "b.png")
    _touch(tmp_path / "a.JPG")
    _touch(tmp_path / "notes.txt")
    _touch(tmp_path / "sub" / "c.png")

    records = list_images(tmp_path)

    assert [record.path.name for record in records] == ["a.JPG", "b.png"]
    assert [record.identifier for record in records] == sorted(record.identifier for record in records)
    assert records[0].stem == "a"


def test_list_images_recursive(tmp_path: Path) -> None:
    _touch(tmp_path / "b.png")
    _touch(tmp_path / "sub" / "c.png")
    (tmp_path / "folder.png").mkdir()

    records = list_images(tmp_path, recursive=True)

    assert [record.path.relative_to(tmp_path).as_posix() for record in records] == ["b.png", "sub/c.png"]


def test_list_images_custom_extensions(tmp_path: Path) -> None:
    _touch(tmp_path / "a.png")
    _touch(tmp_path / "b.bmp")

    records = list_images(tmp_path, extensions=["BMP"])

    assert [record.path.name for record in records] == ["b.bmp"]


def test_empty_directory_is_not_an_error(tmp_path: Path) -> None:
    assert list_images(tmp_path) == []


def test_missing_directory_raises(tmp_path: Path) -> None:
    with pytest.raises(InputDirectoryError):
        list_images(tmp_path / "missing")
    with pytest.raises(ConfigurationError):
        list_images(_touch(tmp_path / "file.png"))


def test_image_source_indexing_and_loading(image_dir: Path) -> None:
    source = ImageSource(image_dir)

    assert len(source) == 2
    assert [record.stem for record in source] == ["a", "b"]
    assert source.get_image_paths() == [record.identifier for record in source]
    assert source.load_image(source[1]).shape == (32, 32, 3)
    with pytest.raises(IndexError):
        source[2]


def test_undecodable_image_raises_segmentation_error(tmp_path: Path) -> None:
    _touch(tmp_path / "broken.png")
    source = ImageSource(tmp_path)

    with pytest.raises(SegmentationError):
        source.load_image(source[0])


def test_same_stem_with_different_extensions_is_reported(tmp_path: Path) -> None:
    _touch(tmp_path / "a.jpg")
    _touch(tmp_path / "a.png")
    messages = []
    handler = logger.add(messages.append, level="WARNING", format="{message}")
    try:
        source = ImageSource(tmp_path)
    finally:
        logger.remove(handler)

    assert len(source) == 2
    assert any("share the stem 'a'" in message for message in messages)
