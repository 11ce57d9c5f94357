"""ResNet18 face attribute model."""

from __future__ import annotations

from typing import Any

import torch
import torchvision.models as tv_models

from face_attributes.labels import LABEL_VECTOR_SIZE
from face_attributes.models.base import BaseFaceAttributeModel
from face_attributes.utils.hydra import register

# ImageNet statistics expected by the pretrained backbone; inputs arrive in [0, 1].
IMAGENET_MEAN: list[float] = [0.485, 0.456, 0.406]
IMAGENET_STD: list[float] = [0.229, 0.224, 0.225]


@register(name="resnet18")
class ResNet18FaceAttributeModel(BaseFaceAttributeModel):
    """ResNet18 backbone with ImageNet pretrained weights.

    fc replaced with Linear(512, 8).  ImageNet normalization is applied
    inside the model so callers keep feeding ``[0, 1]`` channel-last tensors.
    Pass pretrained=False in tests to skip the ~44MB weight download.
    """

    mean: torch.Tensor
    std: torch.Tensor

    def __init__(self, pretrained: bool = True, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        weights = tv_models.ResNet18_Weights.DEFAULT if pretrained else None
        backbone = tv_models.resnet18(weights=weights)
        backbone.fc = torch.nn.Linear(backbone.fc.in_features, LABEL_VECTOR_SIZE)
        self.model = backbone
        self.register_buffer("mean", torch.tensor(IMAGENET_MEAN).view(1, 3, 1, 1))
        self.register_buffer("std", torch.tensor(IMAGENET_STD).view(1, 3, 1, 1))

    def forward_logits(self, images: torch.Tensor) -> torch.Tensor:
        x = (images.permute(0, 3, 1, 2) - self.mean) / self.std
        return self.model(x)  # type: ignore[no-any-return]
