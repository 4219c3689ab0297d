from __future__ import annotations

import io

import numpy as np
from PIL import Image

from mailsweep.core.exceptions import CaptureError
from mailsweep.vision.models import BoundingBox, RasterImage


def solid_pixels(width: int, height: int, rgb: tuple[int, int, int], alpha: int = 255) -> np.ndarray:
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[..., :3] = rgb
    pixels[..., 3] = alpha
    return pixels


def solid_raster(width: int, height: int, rgb: tuple[int, int, int] = (0, 0, 0)) -> RasterImage:
    return RasterImage.from_array(solid_pixels(width, height, rgb))


def png_bytes(pixels: np.ndarray, fmt: str = "PNG") -> bytes:
    image = Image.fromarray(pixels)
    if fmt == "JPEG":
        image = image.convert("RGB")
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


class FakeElement:
    """Stand-in for a page element handle."""

    def __init__(
        self,
        name: str,
        bbox: BoundingBox | None,
        screenshot: bytes | None = None,
        capture_error: bool = False,
    ) -> None:
        self.name = name
        self.bbox = bbox
        self.screenshot = screenshot
        self.capture_error = capture_error

    def __repr__(self) -> str:
        return f"FakeElement({self.name!r})"


def element_for(name: str, pixels: np.ndarray, bbox: BoundingBox | None = None) -> FakeElement:
    """Element whose box equals the raster size and whose screenshot is *pixels*."""
    height, width = pixels.shape[:2]
    return FakeElement(name, bbox or BoundingBox(width=width, height=height), png_bytes(pixels))


class FakePage:
    """In-memory implementation of the page automation surface."""

    def __init__(self, elements: list[FakeElement]) -> None:
        self.elements = elements
        self.enumerate_calls = 0
        self.wait_calls: list[int] = []
        self.screenshot_calls: list[str] = []

    async def enumerate_image_elements(self) -> list[FakeElement]:
        self.enumerate_calls += 1
        return list(self.elements)

    async def wait_for_images(self, timeout_ms: int) -> None:
        self.wait_calls.append(timeout_ms)

    async def bounding_box(self, element: FakeElement) -> BoundingBox | None:
        return element.bbox

    async def screenshot(self, element: FakeElement) -> bytes:
        self.screenshot_calls.append(element.name)
        if element.capture_error or element.screenshot is None:
            raise CaptureError(f"cannot capture {element.name}")
        return element.screenshot

    async def evaluate(self, script: str, arg=None):
        return None
