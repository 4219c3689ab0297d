"""Reference image loading.

A reference set is read once per run from a directory of PNG/JPEG files and is
shared read-only by every match attempt afterwards. Each entry keeps the raw
encoded bytes next to the decoded raster so sizes are known before any page is
scanned.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import overload

from loguru import logger

from ..core.exceptions import DecodeError, NotFoundError, ReferenceLoadError
from ..utils.file_utils import is_image_file
from .codec import decode_image
from .models import RasterImage


@dataclass(frozen=True, eq=False)
class ReferenceImage:
    """A target image together with its decoded raster."""

    source_path: str
    raw: bytes
    decoded: RasterImage

    @property
    def name(self) -> str:
        """File name without directory, e.g. ``banner.png``."""
        return os.path.basename(self.source_path)

    @property
    def stem(self) -> str:
        """File name without directory or extension."""
        return os.path.splitext(self.name)[0]

    @property
    def width(self) -> int:
        return self.decoded.width

    @property
    def height(self) -> int:
        return self.decoded.height


class ReferenceImageSet(Sequence[ReferenceImage]):
    """Ordered, immutable collection of :class:`ReferenceImage`."""

    def __init__(self, images: Iterable[ReferenceImage] = ()) -> None:
        self._images: tuple[ReferenceImage, ...] = tuple(images)

    @classmethod
    def load(cls, source: str | Path) -> ReferenceImageSet:
        """Load every PNG/JPEG file found directly inside *source*.

        Files are visited in name order. An existing directory without any
        qualifying file yields an empty set. Files that cannot be decoded are
        skipped with a warning since they could never match.

        Args:
            source: Directory holding the reference images.

        Returns:
            The loaded reference set.

        Raises:
            NotFoundError: If *source* does not exist.
            ReferenceLoadError: If a qualifying file cannot be read.
        """
        directory = str(source)
        logger.info(f"Loading reference images from {directory}")

        if not os.path.exists(directory):
            raise NotFoundError(f"Reference image directory not found: {directory}")

        images: list[ReferenceImage] = []
        for fname in sorted(os.listdir(directory)):
            path = os.path.join(directory, fname)
            if not is_image_file(fname) or not os.path.isfile(path):
                continue
            try:
                with open(path, "rb") as f:
                    raw = f.read()
            except OSError as exc:
                raise ReferenceLoadError(f"Failed to read reference image {path}: {exc}") from exc

            try:
                decoded = decode_image(raw)
            except DecodeError as exc:
                logger.warning(f"Failed to decode reference image {path}: {exc}")
                continue

            images.append(ReferenceImage(source_path=path, raw=raw, decoded=decoded))
            logger.debug(f"  - loaded {fname} ({decoded.width}x{decoded.height})")

        if not images:
            logger.warning(f"No reference images found in {directory}")
        else:
            logger.info(f"Loaded {len(images)} reference images")
        return cls(images)

    @property
    def sizes(self) -> tuple[tuple[int, int], ...]:
        """Decoded ``(width, height)`` of every reference, in set order."""
        return tuple(image.decoded.size for image in self._images)

    @overload
    def __getitem__(self, index: int) -> ReferenceImage: ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[ReferenceImage]: ...

    def __getitem__(self, index):
        return self._images[index]

    def __len__(self) -> int:
        return len(self._images)

    def __iter__(self) -> Iterator[ReferenceImage]:
        return iter(self._images)

    def __repr__(self) -> str:
        names = ", ".join(image.name for image in self._images)
        return f"ReferenceImageSet([{names}])"
