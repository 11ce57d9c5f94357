"""Resize + float conversion transform producing channel-last tensors."""

from __future__ import annotations

from typing import Any

import torch
from torchvision.transforms import v2


class StretchResizeToHWC(v2.Transform):
    """Stretch a PIL image to ``size x size`` and return a ``(H, W, C)`` float32 tensor.

    The aspect ratio is not preserved: no letterboxing and no cropping.
    Values are scaled from ``[0, 255]`` to ``[0.0, 1.0]``.

    Args:
        size: Output height and width in pixels.
    """

    def __init__(self, size: int = 128) -> None:
        super().__init__()
        if size <= 0:
            raise ValueError(f"size must be positive, got {size}")
        self.size = size
        self._pipeline = v2.Compose(
            [
                v2.Resize((size, size), antialias=True),
                v2.ToImage(),
                v2.ToDtype(torch.float32, scale=True),
            ]
        )

    def forward(self, *inputs: Any) -> Any:
        chw = self._pipeline(*inputs)
        # Drop the tv_tensors.Image wrapper before permuting to channel-last.
        return chw.as_subclass(torch.Tensor).permute(1, 2, 0).contiguous()
