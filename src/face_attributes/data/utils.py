"""Utility functions for the data pipeline."""

from pathlib import Path

IMAGE_EXTENSIONS: tuple[str, ...] = (".jpg", ".jpeg", ".png", ".bmp", ".gif", ".webp")


def get_files(
    root: Path, extensions: tuple[str, ...] = IMAGE_EXTENSIONS
) -> list[Path]:
    """Recursively find files matching extensions under root.

    Args:
        root: Directory to search recursively.
        extensions: Tuple of lowercase extensions including dot.
            Defaults to common image formats.

    Returns:
        Sorted list of matching file paths.
    """
    return sorted(
        p for p in root.rglob("*") if p.is_file() and p.suffix.lower() in extensions
    )
