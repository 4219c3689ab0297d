"""Vision debugging helpers: persist candidates that failed to match."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from loguru import logger

from ..utils.file_utils import ensure_directory, get_iso_timestamp
from .codec import encode_png
from .models import RasterImage


@dataclass(slots=True, frozen=True)
class SinkResult:
    """Outcome of a best-effort diagnostics write."""

    saved: bool
    path: Optional[Path] = None
    error: Optional[str] = None


def failed_match_filename(reference_id: str, match_rate: float, timestamp: str) -> str:
    """Return ``failed_<timestamp>_rate<0-100>_<reference stem>.png``."""
    stem = os.path.splitext(os.path.basename(reference_id))[0]
    rate = int(round(match_rate * 100))
    return f"failed_{timestamp}_rate{rate}_{stem}.png"


class DiagnosticsSink:
    """Write non-matching candidate rasters to a debug directory.

    Never raises: every failure is logged and reported in the returned
    :class:`SinkResult`, which callers are free to ignore.
    """

    def __init__(
        self,
        debug_dir: str | Path = "./debug",
        enabled: bool = True,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.debug_dir = Path(debug_dir)
        self.enabled = enabled
        self._clock = clock

    def record_failed_match(
        self,
        image: RasterImage,
        reference_id: str,
        match_rate: float,
    ) -> SinkResult:
        if not self.enabled:
            return SinkResult(saved=False)

        try:
            now = self._clock() if self._clock else None
            filename = failed_match_filename(reference_id, match_rate, get_iso_timestamp(now))
            ensure_directory(self.debug_dir)
            path = self.debug_dir / filename
            path.write_bytes(encode_png(image))
        except Exception as exc:
            logger.warning(f"Failed to save unmatched image for {reference_id}: {exc}")
            return SinkResult(saved=False, error=str(exc))

        logger.debug(f"Saved unmatched image: {filename}")
        return SinkResult(saved=True, path=path)
