"""Face attribute inference."""

from face_attributes.inference.base import BaseFaceAttributeInferencer
from face_attributes.inference.decoder import decode, extract_values
from face_attributes.inference.model_inferencer import FaceAttributeInferencer

__all__ = [
    "BaseFaceAttributeInferencer",
    "FaceAttributeInferencer",
    "decode",
    "extract_values",
]
