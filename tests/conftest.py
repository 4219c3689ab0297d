from __future__ import annotations

import os

# Keep test runs from writing rotating log files.
os.environ.setdefault("LOG_TO_FILE", "false")

import pytest  # noqa: E402

from tests.helpers import png_bytes, solid_pixels  # noqa: E402


@pytest.fixture
def images_dir(tmp_path):
    """Reference directory with two PNGs, one JPEG and some noise files."""
    directory = tmp_path / "images"
    directory.mkdir()
    (directory / "banner.png").write_bytes(png_bytes(solid_pixels(40, 20, (255, 0, 0))))
    (directory / "coupon.PNG").write_bytes(png_bytes(solid_pixels(30, 30, (0, 0, 255))))
    (directory / "photo.jpeg").write_bytes(png_bytes(solid_pixels(16, 12, (0, 200, 0)), fmt="JPEG"))
    (directory / "notes.txt").write_text("not an image")
    (directory / "nested.png").mkdir()
    return directory
