from __future__ import annotations

import os

import pytest
from loguru import logger

from mailsweep.core.exceptions import NotFoundError, ReferenceLoadError
from mailsweep.vision.references import ReferenceImageSet


def test_load_missing_directory_raises_not_found(tmp_path) -> None:
    with pytest.raises(NotFoundError, match="not found"):
        ReferenceImageSet.load(tmp_path / "missing")


def test_not_found_is_a_file_not_found_error(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        ReferenceImageSet.load(tmp_path / "missing")


def test_load_empty_directory_returns_empty_set(tmp_path) -> None:
    references = ReferenceImageSet.load(tmp_path)

    assert len(references) == 0
    assert not references
    assert references.sizes == ()


def test_load_keeps_only_image_files_in_name_order(images_dir) -> None:
    references = ReferenceImageSet.load(images_dir)

    assert [ref.name for ref in references] == ["banner.png", "coupon.PNG", "photo.jpeg"]
    assert references[0].source_path == os.path.join(str(images_dir), "banner.png")
    assert references.sizes == ((40, 20), (30, 30), (16, 12))


def test_load_keeps_raw_bytes_and_decoded_raster(images_dir) -> None:
    banner = ReferenceImageSet.load(images_dir)[0]

    assert banner.raw == (images_dir / "banner.png").read_bytes()
    assert banner.width == 40
    assert banner.height == 20
    assert banner.stem == "banner"
    assert tuple(banner.decoded.pixels[0, 0]) == (255, 0, 0, 255)


def test_loading_twice_gives_identical_sets(images_dir) -> None:
    first = ReferenceImageSet.load(images_dir)
    second = ReferenceImageSet.load(images_dir)

    assert first.sizes == second.sizes
    for a, b in zip(first, second):
        assert a.raw == b.raw
        assert a.decoded.tobytes() == b.decoded.tobytes()


def test_undecodable_file_is_skipped(images_dir) -> None:
    (images_dir / "broken.png").write_bytes(b"definitely not a png")

    references = ReferenceImageSet.load(images_dir)

    assert "broken.png" not in [ref.name for ref in references]
    assert len(references) == 3


def test_unreadable_file_raises_load_error(images_dir, monkeypatch) -> None:
    real_open = open

    def failing_open(path, mode="r", *args, **kwargs):
        if str(path).endswith("banner.png") and "b" in mode:
            raise PermissionError("permission denied")
        return real_open(path, mode, *args, **kwargs)

    monkeypatch.setattr("builtins.open", failing_open)

    with pytest.raises(ReferenceLoadError, match="banner.png"):
        ReferenceImageSet.load(images_dir)


def test_load_logs_directory_names_verbatim(tmp_path) -> None:
    directory = tmp_path / "refs{0}"
    directory.mkdir()
    lines: list[str] = []
    sink_id = logger.add(lines.append, format="{message}", level="INFO")
    try:
        ReferenceImageSet.load(directory)
    finally:
        logger.remove(sink_id)

    assert lines[0] == f"Loading reference images from {directory}\n"
    assert lines[-1] == f"No reference images found in {directory}\n"
