"""Decode raw image bytes into normalized model-ready tensors."""

from __future__ import annotations

import io

import torch
from loguru import logger
from PIL import Image, UnidentifiedImageError

from face_attributes.errors import ImageDecodeError
from face_attributes.transforms.conversion import StretchResizeToHWC

IMAGE_SIZE = 128

_transforms: dict[int, StretchResizeToHWC] = {}


def load_image(image_bytes: bytes) -> Image.Image:
    """Decode bytes into an RGB PIL image.

    EXIF orientation is ignored.

    Raises:
        ImageDecodeError: the bytes are not a decodable image.
    """
    try:
        img = Image.open(io.BytesIO(image_bytes))
        img.load()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise ImageDecodeError(f"cannot decode image ({len(image_bytes)} bytes): {e}") from e
    return img.convert("RGB")


def normalize_image(img: Image.Image, image_size: int = IMAGE_SIZE) -> torch.Tensor:
    """Stretch-resize an already decoded RGB image to ``(image_size, image_size, 3)``."""
    transform = _transforms.get(image_size)
    if transform is None:
        transform = _transforms[image_size] = StretchResizeToHWC(image_size)
    tensor: torch.Tensor = transform(img)
    logger.trace(f"Normalized {img.size[0]}x{img.size[1]} image to {tuple(tensor.shape)}")
    return tensor


def normalize(image_bytes: bytes, image_size: int = IMAGE_SIZE) -> torch.Tensor:
    """Decode and stretch-resize an image to ``(image_size, image_size, 3)`` in ``[0, 1]``."""
    return normalize_image(load_image(image_bytes), image_size)


def to_model_input(image: torch.Tensor) -> torch.Tensor:
    """Add the leading batch dimension: ``(H, W, C)`` -> ``(1, H, W, C)``."""
    if image.ndim != 3:
        raise ValueError(f"expected a (H, W, C) tensor, got shape {tuple(image.shape)}")
    return image.unsqueeze(0)
