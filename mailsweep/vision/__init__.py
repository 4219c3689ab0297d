"""Image matching for mailsweep.

This sub-package decides whether a rendered page shows one of a set of
reference images: it loads the references, pre-filters on-page images by
size, compares element screenshots pixel by pixel and reports the first hit.
"""

from .comparator import PixelComparator, count_mismatched_pixels
from .debug import DiagnosticsSink, SinkResult
from .matcher import ImageMatcher, MatcherSettings, find_target_image
from .models import (
    BoundingBox,
    Candidate,
    CandidateElement,
    ComparisonOutcome,
    MatchReason,
    MatchResult,
    RasterImage,
)
from .page import PageSurface, PlaywrightPageSurface
from .references import ReferenceImage, ReferenceImageSet
from .scanner import CandidateScanner, is_potential_match

__all__ = [
    "BoundingBox",
    "Candidate",
    "CandidateElement",
    "CandidateScanner",
    "ComparisonOutcome",
    "DiagnosticsSink",
    "ImageMatcher",
    "MatchReason",
    "MatchResult",
    "MatcherSettings",
    "PageSurface",
    "PixelComparator",
    "PlaywrightPageSurface",
    "RasterImage",
    "ReferenceImage",
    "ReferenceImageSet",
    "SinkResult",
    "count_mismatched_pixels",
    "find_target_image",
    "is_potential_match",
]
