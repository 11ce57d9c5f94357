"""Face attribute model implementations."""

from face_attributes.models.base import BaseFaceAttributeModel
from face_attributes.models.cnn import FaceCNNModel
from face_attributes.models.resnet import ResNet18FaceAttributeModel

__all__ = [
    "BaseFaceAttributeModel",
    "FaceCNNModel",
    "ResNet18FaceAttributeModel",
]
