"""Shared pytest fixtures for face_attributes tests."""

import io
from collections.abc import Callable
from pathlib import Path

import pytest
from PIL import Image

from face_attributes.data.samples import RawSample


def make_image_bytes(
    size: tuple[int, int] = (64, 48),
    color: tuple[int, int, int] = (120, 60, 200),
    fmt: str = "PNG",
    mode: str = "RGB",
) -> bytes:
    fill: int | tuple[int, ...] = color
    if mode in ("L", "P"):
        fill = color[0]
    elif mode == "RGBA":
        fill = (*color, 255)
    img = Image.new(mode, size, color=fill)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture()
def image_bytes() -> Callable[..., bytes]:
    """Factory for encoded solid-colour test images."""
    return make_image_bytes


@pytest.fixture()
def labelled_samples() -> list[RawSample]:
    """Six labelled samples covering both genders and several races.

    Filenames follow the ``<age>_<gender>_<race>_<timestamp>.jpg.chip.jpg``
    convention used by UTKFace.
    """
    labels = [(25, 0, 0), (37, 1, 2), (8, 0, 1), (61, 1, 3), (44, 0, 4), (19, 1, 0)]
    return [
        RawSample(
            filename=f"{age}_{gender}_{race}_2017010{i}.jpg.chip.jpg",
            data=make_image_bytes(color=(age * 3 % 256, 40 * race, 100 + 50 * gender)),
        )
        for i, (age, gender, race) in enumerate(labels)
    ]


@pytest.fixture()
def face_dir(tmp_path: Path, labelled_samples: list[RawSample]) -> Path:
    """Directory of labelled images plus one unlabelled image and a text file."""
    root = tmp_path / "faces"
    (root / "nested").mkdir(parents=True)
    for i, sample in enumerate(labelled_samples):
        target = root / "nested" if i % 2 else root
        (target / sample.filename).write_bytes(sample.data)
    (root / "no_label.png").write_bytes(make_image_bytes())
    (root / "README.txt").write_text("not an image")
    return root
