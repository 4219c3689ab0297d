"""Candidate scanning: find on-page images worth a pixel comparison."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterable
from dataclasses import dataclass

from loguru import logger

from ..core.exceptions import CaptureError, DecodeError
from .codec import decode_image
from .models import BoundingBox, Candidate, CandidateElement
from .page import PageSurface
from .references import ReferenceImageSet

DEFAULT_SIZE_TOLERANCE_RATIO = 0.5
DEFAULT_IMAGE_LOAD_TIMEOUT_MS = 1000


def is_potential_match(
    bbox: BoundingBox,
    sizes: Iterable[tuple[int, int]],
    tolerance_ratio: float = DEFAULT_SIZE_TOLERANCE_RATIO,
) -> bool:
    """Return True if *bbox* lies within +/- *tolerance_ratio* of any reference size.

    The bounding box is the CSS-rendered size, which can differ from the
    native raster size, so both bounds are inclusive.
    """
    for width, height in sizes:
        width_min = width * (1 - tolerance_ratio)
        width_max = width * (1 + tolerance_ratio)
        height_min = height * (1 - tolerance_ratio)
        height_max = height * (1 + tolerance_ratio)
        if width_min <= bbox.width <= width_max and height_min <= bbox.height <= height_max:
            return True
    return False


@dataclass(slots=True)
class ScanStats:
    """Counters for one scan, reported when the scan is closed."""

    elements: int = 0
    not_visible: int = 0
    skipped_by_size: int = 0
    capture_failures: int = 0
    decode_failures: int = 0
    candidates: int = 0


class CandidateScanner:
    """Yield size-plausible image elements of a page as decoded screenshots."""

    def __init__(
        self,
        size_tolerance_ratio: float = DEFAULT_SIZE_TOLERANCE_RATIO,
        image_load_timeout_ms: int = DEFAULT_IMAGE_LOAD_TIMEOUT_MS,
    ) -> None:
        self.size_tolerance_ratio = size_tolerance_ratio
        self.image_load_timeout_ms = image_load_timeout_ms
        self.last_stats = ScanStats()

    async def scan(self, page: PageSurface, references: ReferenceImageSet) -> AsyncIterator[Candidate]:
        """Lazily produce candidates in DOM order.

        The sequence reflects the page at call time and cannot be restarted.
        Elements without a box, with zero area or outside the size pre-filter
        are skipped before any screenshot is taken. Capture and decode
        failures skip that single element.
        """
        stats = ScanStats()
        self.last_stats = stats
        sizes = references.sizes

        elements = await page.enumerate_image_elements()
        stats.elements = len(elements)
        logger.info(f"Found {stats.elements} image elements on page")

        # Lazy-loaded images may still be in flight in headless mode.
        await page.wait_for_images(self.image_load_timeout_ms)

        try:
            for element in elements:
                bbox = await page.bounding_box(element)
                if bbox is None or bbox.is_empty():
                    stats.not_visible += 1
                    continue

                if not is_potential_match(bbox, sizes, self.size_tolerance_ratio):
                    stats.skipped_by_size += 1
                    continue

                try:
                    screenshot = await page.screenshot(element)
                except CaptureError as exc:
                    stats.capture_failures += 1
                    logger.debug(f"Skipping element, screenshot failed: {exc}")
                    continue

                try:
                    image = decode_image(screenshot)
                except DecodeError as exc:
                    stats.decode_failures += 1
                    logger.debug(f"Skipping element, screenshot not decodable: {exc}")
                    continue

                stats.candidates += 1
                yield Candidate(
                    element=CandidateElement(handle=element, bbox=bbox),
                    image=image,
                    screenshot=screenshot,
                )
        finally:
            if stats.skipped_by_size:
                logger.info(f"Skipped {stats.skipped_by_size} images by size pre-filter")
            logger.debug(f"Scan finished: {stats}")
