"""Page automation surface consumed by the image matcher.

The matcher never talks to Playwright directly; it goes through
:class:`PageSurface` so tests can drive it with an in-memory fake.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from playwright.async_api import ElementHandle, Page
from playwright.async_api import Error as PlaywrightError

from ..core.exceptions import BrowserError, CaptureError
from .models import BoundingBox

# Resolves once every matched image has fired load/error or the per-image timeout elapsed.
WAIT_FOR_IMAGES_SCRIPT = """
({ selector, timeoutMs }) => Promise.all(
  Array.from(document.querySelectorAll(selector)).map(
    (img) => new Promise((resolve) => {
      if (img.complete) {
        resolve(true);
        return;
      }
      img.addEventListener('load', () => resolve(true));
      img.addEventListener('error', () => resolve(true));
      setTimeout(() => resolve(true), timeoutMs);
    })
  )
)
"""


class PageSurface(Protocol):
    """Capabilities the image matcher needs from a rendered page."""

    async def enumerate_image_elements(self) -> Sequence[Any]:
        """Return handles for every image element in DOM order; raises :class:`BrowserError`."""
        ...

    async def wait_for_images(self, timeout_ms: int) -> None:
        """Wait until each image has loaded, failed, or *timeout_ms* elapsed."""
        ...

    async def bounding_box(self, element: Any) -> Optional[BoundingBox]:
        """Return the rendered box of *element*, or None when not laid out."""
        ...

    async def screenshot(self, element: Any) -> bytes:
        """Return a PNG screenshot of *element*; raises :class:`CaptureError`."""
        ...

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        """Run *script* in the page and return its result; raises :class:`BrowserError`."""
        ...


class PlaywrightPageSurface:
    """:class:`PageSurface` backed by a ``playwright.async_api.Page``."""

    def __init__(self, page: Page, selector: str = "img") -> None:
        self.page = page
        self.selector = selector

    async def enumerate_image_elements(self) -> list[ElementHandle]:
        try:
            return await self.page.query_selector_all(self.selector)
        except PlaywrightError as exc:
            raise BrowserError(f"Failed to list {self.selector} elements: {exc.message}") from exc

    async def wait_for_images(self, timeout_ms: int) -> None:
        await self.evaluate(WAIT_FOR_IMAGES_SCRIPT, {"selector": self.selector, "timeoutMs": timeout_ms})

    async def bounding_box(self, element: ElementHandle) -> Optional[BoundingBox]:
        try:
            box = await element.bounding_box()
        except PlaywrightError:
            # Detached since enumeration.
            return None
        if box is None:
            return None
        return BoundingBox(width=box["width"], height=box["height"], x=box["x"], y=box["y"])

    async def screenshot(self, element: ElementHandle) -> bytes:
        try:
            return await element.screenshot(type="png")
        except PlaywrightError as exc:
            raise CaptureError(f"Element screenshot failed: {exc.message}") from exc

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        try:
            return await self.page.evaluate(script, arg)
        except PlaywrightError as exc:
            raise BrowserError(f"Page script failed: {exc.message}") from exc
