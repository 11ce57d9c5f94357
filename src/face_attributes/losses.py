"""Loss functions for face attribute training."""

from __future__ import annotations

from typing import NamedTuple

import torch
import torch.nn as nn
import torch.nn.functional as F

from face_attributes.labels import AGE_SLICE, GENDER_SLICE, RACE_SLICE


class FocalLoss(nn.Module):
    """Focal loss for handling class imbalance.

    Focal loss down-weights well-classified examples, focusing training
    on hard negatives.  When ``gamma=0`` this reduces to cross-entropy
    with optional label smoothing.

    Parameters
    ----------
    gamma:
        Focusing parameter.  Higher values increase focus on hard examples.
    label_smoothing:
        Label smoothing factor in ``[0, 1)``.
    """

    def __init__(self, gamma: float = 2.0, label_smoothing: float = 0.0) -> None:
        super().__init__()
        self.gamma = gamma
        self.label_smoothing = label_smoothing

    def forward(self, logits: torch.Tensor, targets: torch.Tensor) -> torch.Tensor:
        ce_loss = F.cross_entropy(
            logits,
            targets,
            label_smoothing=self.label_smoothing,
            reduction="none",
        )
        pt = torch.exp(-ce_loss)
        return (((1.0 - pt) ** self.gamma) * ce_loss).mean()


class LossBreakdown(NamedTuple):
    total: torch.Tensor
    age: torch.Tensor
    gender: torch.Tensor
    race: torch.Tensor


def build_classification_loss(
    name: str, label_smoothing: float = 0.0, focal_gamma: float = 2.0
) -> nn.Module:
    """Factory for the categorical heads' loss: ``"cross_entropy"`` or ``"focal"``."""
    if name == "cross_entropy":
        return nn.CrossEntropyLoss(label_smoothing=label_smoothing)
    if name == "focal":
        return FocalLoss(gamma=focal_gamma, label_smoothing=label_smoothing)
    msg = f"Unknown loss function: {name!r}. Use 'cross_entropy' or 'focal'."
    raise ValueError(msg)


class FaceAttributeLoss(nn.Module):
    """Weighted sum of age regression and gender/race classification losses.

    Operates on raw 8-unit logits (age unactivated, gender and race as
    pre-softmax scores) against 8-element label vectors.  One-hot targets
    are converted to class indices with ``argmax``.

    Parameters
    ----------
    classification_loss:
        ``"cross_entropy"`` or ``"focal"``, used for both categorical heads.
    age_weight, gender_weight, race_weight:
        Per-head multipliers in the total.
    """

    def __init__(
        self,
        classification_loss: str = "cross_entropy",
        age_weight: float = 1.0,
        gender_weight: float = 1.0,
        race_weight: float = 1.0,
        label_smoothing: float = 0.0,
        focal_gamma: float = 2.0,
    ) -> None:
        super().__init__()
        self.age_weight = age_weight
        self.gender_weight = gender_weight
        self.race_weight = race_weight
        self.gender_loss = build_classification_loss(
            classification_loss, label_smoothing, focal_gamma
        )
        self.race_loss = build_classification_loss(
            classification_loss, label_smoothing, focal_gamma
        )

    def forward(self, logits: torch.Tensor, labels: torch.Tensor) -> LossBreakdown:
        age = F.mse_loss(logits[:, AGE_SLICE], labels[:, AGE_SLICE])
        gender = self.gender_loss(
            logits[:, GENDER_SLICE], labels[:, GENDER_SLICE].argmax(dim=1)
        )
        race = self.race_loss(
            logits[:, RACE_SLICE], labels[:, RACE_SLICE].argmax(dim=1)
        )
        total = (
            self.age_weight * age
            + self.gender_weight * gender
            + self.race_weight * race
        )
        return LossBreakdown(total=total, age=age, gender=gender, race=race)
