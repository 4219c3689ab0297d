"""Pixel-level comparison between a candidate and a reference raster.

Colour distance is measured in YIQ space with the perceptual weighting used by
pixelmatch; pixels whose difference only comes from anti-aliasing are not
counted as mismatched.
"""

from __future__ import annotations

from typing import Optional, Union

import numpy as np  # type: ignore
from loguru import logger

from ..core.exceptions import DecodeError
from ..core.logger import log
from .codec import crop_image, decode_image
from .debug import DiagnosticsSink
from .models import ComparisonOutcome, MatchReason, RasterImage

DEFAULT_SIZE_TOLERANCE_PX = 5

# Maximum possible YIQ delta between two pixels (black vs. white).
MAX_YIQ_DELTA = 35215.0

# Neighbour offsets (dx, dy), x outer / y inner.
_NEIGHBOURS = tuple((dx, dy) for dx in (-1, 0, 1) for dy in (-1, 0, 1) if (dx, dy) != (0, 0))
_DX = np.array([dx for dx, _ in _NEIGHBOURS])
_DY = np.array([dy for _, dy in _NEIGHBOURS])

ImageSource = Union[RasterImage, bytes]


# ------------------------------------------------------------------
# Colour helpers
# ------------------------------------------------------------------


def _blend_white(pixels: np.ndarray) -> np.ndarray:
    """Composite RGBA samples over white and return float RGB."""
    rgb = pixels[..., :3].astype(np.float64)
    alpha = pixels[..., 3:4].astype(np.float64) / 255.0
    return 255.0 + (rgb - 255.0) * alpha


def _luma(rgb: np.ndarray) -> np.ndarray:
    return rgb[..., 0] * 0.29889531 + rgb[..., 1] * 0.58662247 + rgb[..., 2] * 0.11448223


def _yiq_delta(rgb_a: np.ndarray, rgb_b: np.ndarray) -> np.ndarray:
    """Squared perceptual distance between two float RGB arrays."""
    y = _luma(rgb_a) - _luma(rgb_b)
    i = (
        (rgb_a[..., 0] - rgb_b[..., 0]) * 0.59597799
        - (rgb_a[..., 1] - rgb_b[..., 1]) * 0.27417610
        - (rgb_a[..., 2] - rgb_b[..., 2]) * 0.32180189
    )
    q = (
        (rgb_a[..., 0] - rgb_b[..., 0]) * 0.21147017
        - (rgb_a[..., 1] - rgb_b[..., 1]) * 0.52261711
        + (rgb_a[..., 2] - rgb_b[..., 2]) * 0.31114694
    )
    return 0.5053 * y * y + 0.299 * i * i + 0.1957 * q * q


# ------------------------------------------------------------------
# Anti-aliasing detection
# ------------------------------------------------------------------


def _shifted(padded: np.ndarray, dx: int, dy: int, height: int, width: int) -> np.ndarray:
    return padded[1 + dy : 1 + dy + height, 1 + dx : 1 + dx + width]


def _edge_mask(height: int, width: int) -> np.ndarray:
    edge = np.zeros((height, width), dtype=bool)
    edge[0, :] = edge[-1, :] = True
    edge[:, 0] = edge[:, -1] = True
    return edge


def _many_siblings(pixels: np.ndarray) -> np.ndarray:
    """True where more than two neighbours (border counts as one) are identical."""
    height, width = pixels.shape[:2]
    padded = np.pad(pixels.astype(np.int16), ((1, 1), (1, 1), (0, 0)), constant_values=-1)
    count = _edge_mask(height, width).astype(np.int32)
    for dx, dy in _NEIGHBOURS:
        count += np.all(_shifted(padded, dx, dy, height, width) == pixels, axis=2)
    return count > 2


def _antialiased(
    pixels: np.ndarray,
    siblings: np.ndarray,
    other_siblings: np.ndarray,
) -> np.ndarray:
    """Per-pixel mask of pixels in *pixels* that look like anti-aliasing.

    A pixel qualifies when at most two of its neighbours share its brightness,
    it has both a darker and a brighter neighbour, and the darkest or the
    brightest of those sits inside a flat region in both images.
    """
    height, width = pixels.shape[:2]
    luma = _luma(_blend_white(pixels))
    padded = np.pad(luma, 1, constant_values=np.nan)

    deltas = np.stack([luma - _shifted(padded, dx, dy, height, width) for dx, dy in _NEIGHBOURS])
    valid = ~np.isnan(deltas)
    zeroes = _edge_mask(height, width).astype(np.int32) + np.sum(valid & (deltas == 0), axis=0)
    filled = np.where(valid, deltas, 0.0)

    rows, cols = np.indices((height, width))

    def _flat_at(index: np.ndarray) -> np.ndarray:
        ys = np.clip(rows + _DY[index], 0, height - 1)
        xs = np.clip(cols + _DX[index], 0, width - 1)
        return siblings[ys, xs] & other_siblings[ys, xs]

    darkest = filled.min(axis=0)
    brightest = filled.max(axis=0)
    flat = _flat_at(filled.argmin(axis=0)) | _flat_at(filled.argmax(axis=0))
    return (zeroes <= 2) & (darkest < 0) & (brightest > 0) & flat


def count_mismatched_pixels(
    image_a: RasterImage,
    image_b: RasterImage,
    pixel_threshold: float = 0.1,
    include_antialiasing: bool = False,
) -> int:
    """Count pixels whose colour distance exceeds *pixel_threshold*.

    Args:
        image_a: First raster.
        image_b: Second raster, same size as *image_a*.
        pixel_threshold: Tolerance in ``[0, 1]``; smaller is stricter.
        include_antialiasing: Count anti-aliased pixels as mismatched too.

    Returns:
        Number of mismatched pixels.
    """
    if image_a.size != image_b.size:
        raise ValueError(f"image sizes do not match: {image_a.size} vs {image_b.size}")

    a = np.asarray(image_a.pixels)
    b = np.asarray(image_b.pixels)
    max_delta = MAX_YIQ_DELTA * pixel_threshold * pixel_threshold

    differs = np.any(a != b, axis=2)
    delta = _yiq_delta(_blend_white(a), _blend_white(b))
    mismatched = differs & (delta > max_delta)
    if include_antialiasing or not mismatched.any():
        return int(np.count_nonzero(mismatched))

    siblings_a = _many_siblings(a)
    siblings_b = _many_siblings(b)
    antialiased = _antialiased(a, siblings_a, siblings_b) | _antialiased(b, siblings_b, siblings_a)
    return int(np.count_nonzero(mismatched & ~antialiased))


# ------------------------------------------------------------------
# Comparator
# ------------------------------------------------------------------


class PixelComparator:
    """Compare candidate rasters against a reference and decide match / no match."""

    def __init__(
        self,
        threshold: float = 0.8,
        pixel_threshold: float = 0.1,
        size_tolerance_px: int = DEFAULT_SIZE_TOLERANCE_PX,
        diagnostics: Optional[DiagnosticsSink] = None,
    ) -> None:
        self.threshold = threshold
        self.pixel_threshold = pixel_threshold
        self.size_tolerance_px = size_tolerance_px
        self.diagnostics = diagnostics

    def compare(
        self,
        candidate: ImageSource,
        reference: ImageSource,
        reference_id: str = "reference",
    ) -> ComparisonOutcome:
        """Compare *candidate* with *reference*.

        Rasters more than ``size_tolerance_px`` apart in either dimension are
        rejected without pixel work. Smaller differences are reconciled by
        truncating both rasters to the common size from the top-left origin.
        Decode failures are reported as ``parse_error`` instead of raised.
        """
        try:
            candidate_image = self._as_raster(candidate)
            reference_image = self._as_raster(reference)

            width_diff = abs(candidate_image.width - reference_image.width)
            height_diff = abs(candidate_image.height - reference_image.height)
            if width_diff > self.size_tolerance_px or height_diff > self.size_tolerance_px:
                return ComparisonOutcome(matched=False, match_rate=0.0, reason=MatchReason.SIZE_MISMATCH)

            width = min(candidate_image.width, reference_image.width)
            height = min(candidate_image.height, reference_image.height)
            left = crop_image(candidate_image, width, height)
            right = crop_image(reference_image, width, height)

            mismatched = count_mismatched_pixels(left, right, self.pixel_threshold)
        except (DecodeError, ValueError) as exc:
            logger.warning(f"Matching error against {reference_id}: {exc}")
            return ComparisonOutcome(matched=False, match_rate=0.0, reason=MatchReason.PARSE_ERROR)

        total = width * height
        match_rate = 1 - mismatched / total
        log.log_match_attempt(reference_id, match_rate, width, height, mismatched)

        matched = match_rate >= self.threshold
        if not matched and self.diagnostics is not None:
            # SinkResult ignored; the sink logs its own failures.
            self.diagnostics.record_failed_match(candidate_image, reference_id, match_rate)

        return ComparisonOutcome(
            matched=matched,
            match_rate=match_rate,
            reason=MatchReason.SUCCESS if matched else MatchReason.LOW_MATCH_RATE,
            mismatched_pixels=mismatched,
            compared_size=(width, height),
        )

    @staticmethod
    def _as_raster(source: ImageSource) -> RasterImage:
        if isinstance(source, RasterImage):
            return source
        return decode_image(source)
