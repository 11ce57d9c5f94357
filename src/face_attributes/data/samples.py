"""Raw (filename, bytes) samples read from disk."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

from loguru import logger
from pydantic import BaseModel

from face_attributes.data.utils import IMAGE_EXTENSIONS, get_files


class RawSample(BaseModel, frozen=True):
    """An undecoded image plus the filename its label is parsed from."""

    filename: str
    data: bytes

    @classmethod
    def from_path(cls, path: Path) -> RawSample:
        return cls(filename=path.name, data=path.read_bytes())


def iter_raw_samples(
    root: Path, extensions: tuple[str, ...] = IMAGE_EXTENSIONS
) -> Iterator[RawSample]:
    """Yield samples for every image under ``root`` in sorted path order.

    Files are read lazily, one per ``next()``, so a consumer that stops
    early never touches the remaining files.
    """
    paths = get_files(root, extensions)
    logger.debug(f"Found {len(paths)} image file(s) under {root}")
    for path in paths:
        yield RawSample.from_path(path)
