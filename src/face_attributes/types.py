"""Type aliases and TypedDicts for face_attributes inter-module contracts."""

from typing import TypedDict

import torch


class FaceBatch(TypedDict):
    """A single batch from a face attribute DataLoader.

    images: Float tensor of shape (B, H, W, 3), values in [0, 1].
    labels: Float tensor of shape (B, 8): [age/100, gender one-hot, race one-hot].
    """

    images: torch.Tensor
    labels: torch.Tensor
