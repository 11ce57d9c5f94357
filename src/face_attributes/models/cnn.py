"""Small convolutional network trained from scratch."""

from __future__ import annotations

from typing import Any

import torch
from torch import nn

from face_attributes.labels import LABEL_VECTOR_SIZE
from face_attributes.models.base import BaseFaceAttributeModel
from face_attributes.utils.hydra import register


def _conv_block(in_channels: int, out_channels: int) -> nn.Sequential:
    return nn.Sequential(
        nn.Conv2d(in_channels, out_channels, kernel_size=3, padding=1),
        nn.BatchNorm2d(out_channels),
        nn.ReLU(inplace=True),
        nn.MaxPool2d(kernel_size=2),
    )


@register(name="face_cnn")
class FaceCNNModel(BaseFaceAttributeModel):
    """Three conv/pool blocks followed by a dense head with 8 outputs.

    Accepts channel-last ``(B, H, W, 3)`` input of any spatial size;
    global average pooling makes the head independent of ``H`` and ``W``.

    Args:
        channels: Output channels of each conv block.
        hidden_units: Width of the dense layer before the output.
        dropout: Dropout rate before the output layer.
    """

    def __init__(
        self,
        channels: tuple[int, ...] | list[int] = (32, 64, 128),
        hidden_units: int = 128,
        dropout: float = 0.5,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        channels = list(channels)
        blocks = []
        in_channels = 3
        for out_channels in channels:
            blocks.append(_conv_block(in_channels, out_channels))
            in_channels = out_channels
        self.features = nn.Sequential(*blocks, nn.AdaptiveAvgPool2d(1), nn.Flatten())
        self.head = nn.Sequential(
            nn.Linear(in_channels, hidden_units),
            nn.ReLU(inplace=True),
            nn.Dropout(dropout),
            nn.Linear(hidden_units, LABEL_VECTOR_SIZE),
        )

    def forward_logits(self, images: torch.Tensor) -> torch.Tensor:
        # (B, H, W, C) -> (B, C, H, W)
        x = images.permute(0, 3, 1, 2)
        return self.head(self.features(x))  # type: ignore[no-any-return]
