"""Image preprocessing: bytes -> fixed-size HWC float tensors."""

from face_attributes.transforms.conversion import StretchResizeToHWC
from face_attributes.transforms.normalize import (
    IMAGE_SIZE,
    load_image,
    normalize,
    normalize_image,
    to_model_input,
)

__all__ = [
    "IMAGE_SIZE",
    "StretchResizeToHWC",
    "load_image",
    "normalize",
    "normalize_image",
    "to_model_input",
]
