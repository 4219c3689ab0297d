"""Image codec adapter: encoded bytes <-> :class:`RasterImage`."""

from __future__ import annotations

import io

import numpy as np  # type: ignore
from PIL import Image, UnidentifiedImageError

from ..core.exceptions import DecodeError
from .models import RasterImage


def decode_image(data: bytes) -> RasterImage:
    """Decode PNG/JPEG bytes into an RGBA raster.

    Raises:
        DecodeError: If the bytes are empty, truncated or not an image.
    """
    if not data:
        raise DecodeError("cannot decode an empty image buffer")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            rgba = img.convert("RGBA")
    except (UnidentifiedImageError, OSError, EOFError, ValueError) as exc:
        raise DecodeError(f"invalid image data: {exc}") from exc

    try:
        return RasterImage.from_array(np.asarray(rgba, dtype=np.uint8))
    except ValueError as exc:
        raise DecodeError(f"invalid image data: {exc}") from exc


def encode_png(image: RasterImage) -> bytes:
    """Encode a raster as PNG bytes."""
    buffer = io.BytesIO()
    Image.fromarray(np.asarray(image.pixels)).save(buffer, format="PNG")
    return buffer.getvalue()


def crop_image(image: RasterImage, width: int, height: int) -> RasterImage:
    """Truncate *image* to ``width x height`` anchored at the top-left origin."""
    if width > image.width or height > image.height:
        raise ValueError(
            f"cannot crop {image.width}x{image.height} to larger {width}x{height}"
        )
    if (width, height) == image.size:
        return image
    return RasterImage.from_array(image.pixels[:height, :width])
