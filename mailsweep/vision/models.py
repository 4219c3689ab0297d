"""Data models for the image matching subsystem."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import numpy as np  # type: ignore


@dataclass(frozen=True, eq=False)
class RasterImage:
    """Decoded RGBA image stored row-major as a ``(height, width, 4)`` uint8 array."""

    width: int
    height: int
    pixels: np.ndarray

    def __post_init__(self) -> None:
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"pixels must be uint8, got {self.pixels.dtype}")
        if self.pixels.shape != (self.height, self.width, 4):
            raise ValueError(
                f"pixels shape {self.pixels.shape} does not match {self.width}x{self.height} RGBA"
            )
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"raster must not be empty, got {self.width}x{self.height}")
        self.pixels.setflags(write=False)

    @classmethod
    def from_array(cls, pixels: np.ndarray) -> RasterImage:
        """Wrap an ``(h, w, 4)`` array, copying it so the raster owns its buffer."""
        array = np.ascontiguousarray(pixels, dtype=np.uint8).copy()
        if array.ndim != 3:
            raise ValueError(f"expected a 3-dimensional array, got {array.ndim} dimensions")
        return cls(width=int(array.shape[1]), height=int(array.shape[0]), pixels=array)

    @property
    def size(self) -> tuple[int, int]:
        """``(width, height)`` in pixels."""
        return self.width, self.height

    def tobytes(self) -> bytes:
        """Raw RGBA samples; length is always ``width * height * 4``."""
        return self.pixels.tobytes()


@dataclass(slots=True, frozen=True)
class BoundingBox:
    """Rendered element rectangle in CSS pixels as reported by the page."""

    width: float
    height: float
    x: float = 0.0
    y: float = 0.0

    def area(self) -> float:
        """Area in CSS pixels."""
        return self.width * self.height

    def is_empty(self) -> bool:
        """True when the element has no laid-out area."""
        return self.width == 0 or self.height == 0


@dataclass(slots=True, frozen=True)
class CandidateElement:
    """Borrowed page element handle together with its bounding box at scan time."""

    handle: Any
    bbox: BoundingBox


@dataclass(slots=True, frozen=True)
class Candidate:
    """A size-plausible on-page image and its decoded element screenshot."""

    element: CandidateElement
    image: RasterImage
    screenshot: bytes


class MatchReason(str, Enum):
    """Why a single comparison ended the way it did."""

    SIZE_MISMATCH = "size_mismatch"
    LOW_MATCH_RATE = "low_match_rate"
    PARSE_ERROR = "parse_error"
    SUCCESS = "success"


@dataclass(slots=True, frozen=True)
class ComparisonOutcome:
    """Result of comparing one candidate raster with one reference raster."""

    matched: bool
    match_rate: float
    reason: MatchReason
    mismatched_pixels: int = 0
    compared_size: Optional[tuple[int, int]] = None


@dataclass(slots=True, frozen=True)
class MatchResult:
    """Outcome of searching a page for any reference image."""

    found: bool
    element: Optional[CandidateElement] = None
    reference_path: Optional[str] = None
    match_rate: float = 0.0

    @classmethod
    def not_found(cls) -> MatchResult:
        return cls(found=False)
