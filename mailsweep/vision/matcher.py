"""Match decision policy: is any reference image present on the page?"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from loguru import logger

from ..core.config import Config
from ..utils.performance import measure
from .comparator import DEFAULT_SIZE_TOLERANCE_PX, PixelComparator
from .debug import DiagnosticsSink
from .models import MatchResult
from .page import PageSurface
from .references import ReferenceImageSet
from .scanner import DEFAULT_IMAGE_LOAD_TIMEOUT_MS, DEFAULT_SIZE_TOLERANCE_RATIO, CandidateScanner


@dataclass(slots=True, frozen=True)
class MatcherSettings:
    """Thresholds and tolerances for one :class:`ImageMatcher`."""

    threshold: float = 0.8
    pixel_threshold: float = 0.1
    size_tolerance_ratio: float = DEFAULT_SIZE_TOLERANCE_RATIO
    size_tolerance_px: int = DEFAULT_SIZE_TOLERANCE_PX
    image_load_timeout_ms: int = DEFAULT_IMAGE_LOAD_TIMEOUT_MS

    def __post_init__(self) -> None:
        if not 0 <= self.threshold <= 1:
            raise ValueError(f"threshold must be between 0 and 1, got {self.threshold}")
        if not 0 <= self.pixel_threshold <= 1:
            raise ValueError(f"pixel_threshold must be between 0 and 1, got {self.pixel_threshold}")
        if self.size_tolerance_ratio < 0 or self.size_tolerance_px < 0:
            raise ValueError("size tolerances must not be negative")
        if self.image_load_timeout_ms <= 0:
            raise ValueError("image_load_timeout_ms must be positive")

    @classmethod
    def from_config(cls, cfg: Config) -> MatcherSettings:
        return cls(
            threshold=cfg.image_match_threshold,
            pixel_threshold=cfg.pixel_match_threshold,
            size_tolerance_ratio=cfg.size_tolerance_ratio,
            size_tolerance_px=cfg.size_tolerance_px,
            image_load_timeout_ms=cfg.image_load_timeout_ms,
        )


class ImageMatcher:
    """Search a rendered page for the first element matching any reference image.

    Candidates are visited in DOM order and references in set order; the first
    pair whose match rate reaches ``settings.threshold`` wins and scanning stops.
    """

    def __init__(
        self,
        settings: Optional[MatcherSettings] = None,
        diagnostics: Optional[DiagnosticsSink] = None,
    ) -> None:
        self.settings = settings or MatcherSettings()
        self.scanner = CandidateScanner(
            size_tolerance_ratio=self.settings.size_tolerance_ratio,
            image_load_timeout_ms=self.settings.image_load_timeout_ms,
        )
        self.comparator = PixelComparator(
            threshold=self.settings.threshold,
            pixel_threshold=self.settings.pixel_threshold,
            size_tolerance_px=self.settings.size_tolerance_px,
            diagnostics=diagnostics,
        )

    @classmethod
    def from_config(cls, cfg: Config) -> ImageMatcher:
        """Build a matcher whose diagnostics follow the configured debug directory."""
        sink = DiagnosticsSink(cfg.debug_dir, enabled=cfg.save_failed_matches)
        return cls(MatcherSettings.from_config(cfg), diagnostics=sink)

    async def find_target_image(self, page: PageSurface, references: ReferenceImageSet) -> MatchResult:
        """Return the first matching element on *page*, or ``found=False``."""
        if not references:
            logger.info("No reference images registered, skipping page scan")
            return MatchResult.not_found()

        logger.info(f"Searching page for {len(references)} reference images")
        with measure("find_target_image"):
            candidates = self.scanner.scan(page, references)
            try:
                async for candidate in candidates:
                    for reference in references:
                        outcome = self.comparator.compare(
                            candidate.image, reference.decoded, reference.source_path
                        )
                        if outcome.matched:
                            logger.success(f"Matched {reference.name} ({outcome.match_rate:.2%})")
                            return MatchResult(
                                found=True,
                                element=candidate.element,
                                reference_path=reference.source_path,
                                match_rate=outcome.match_rate,
                            )
            finally:
                await candidates.aclose()

        logger.info("No reference image found on page")
        return MatchResult.not_found()


async def find_target_image(
    page: PageSurface,
    references: ReferenceImageSet,
    threshold: float = 0.8,
    pixel_threshold: float = 0.1,
    diagnostics: Optional[DiagnosticsSink] = None,
) -> MatchResult:
    """Search *page* for any of *references* with the given thresholds."""
    settings = MatcherSettings(threshold=threshold, pixel_threshold=pixel_threshold)
    return await ImageMatcher(settings, diagnostics=diagnostics).find_target_image(page, references)
