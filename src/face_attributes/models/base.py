"""Base LightningModule for all face attribute models."""

from __future__ import annotations

from typing import Any

import lightning as L
import torch
from torch.optim.lr_scheduler import CosineAnnealingLR, LinearLR, SequentialLR
from torchmetrics import MeanAbsoluteError
from torchmetrics.classification import MulticlassAccuracy

from face_attributes.labels import (
    AGE_SCALE,
    AGE_SLICE,
    GENDER_SLICE,
    LABEL_VECTOR_SIZE,
    NUM_GENDERS,
    NUM_RACES,
    RACE_SLICE,
)
from face_attributes.losses import FaceAttributeLoss, LossBreakdown
from face_attributes.types import FaceBatch


class BaseFaceAttributeModel(L.LightningModule):
    """Abstract base for face attribute models.

    Subclasses implement :meth:`forward_logits`, mapping a channel-last
    image batch ``(B, H, W, 3)`` to raw ``(B, 8)`` scores.  :meth:`forward`
    turns those into the decodable output vector
    ``[age/100, softmax(gender), softmax(race)]``; age is left unactivated
    so ages above 100 remain representable.
    """

    def __init__(
        self,
        learning_rate: float = 1e-3,
        weight_decay: float = 1e-4,
        warmup_epochs: int = 1,
        warmup_start_factor: float = 1e-2,
        cosine_eta_min_factor: float = 0.05,
        classification_loss: str = "cross_entropy",
        age_loss_weight: float = 1.0,
        label_smoothing: float = 0.0,
        focal_gamma: float = 2.0,
    ) -> None:
        super().__init__()
        self.save_hyperparameters()

        self.loss_fn = FaceAttributeLoss(
            classification_loss=classification_loss,
            age_weight=age_loss_weight,
            label_smoothing=label_smoothing,
            focal_gamma=focal_gamma,
        )

        # One metric set per split; update in step, compute+reset in epoch_end.
        self.train_age_mae = MeanAbsoluteError()
        self.train_gender_acc = MulticlassAccuracy(num_classes=NUM_GENDERS, average="micro")
        self.train_race_acc = MulticlassAccuracy(num_classes=NUM_RACES, average="micro")
        self.val_age_mae = MeanAbsoluteError()
        self.val_gender_acc = MulticlassAccuracy(num_classes=NUM_GENDERS, average="micro")
        self.val_race_acc = MulticlassAccuracy(num_classes=NUM_RACES, average="micro")

    def forward_logits(self, images: torch.Tensor) -> torch.Tensor:
        raise NotImplementedError

    def forward(self, images: torch.Tensor) -> torch.Tensor:
        return self.activate(self.forward_logits(images))

    @staticmethod
    def activate(logits: torch.Tensor) -> torch.Tensor:
        """Raw ``(B, 8)`` scores -> decodable output vectors."""
        return torch.cat(
            [
                logits[:, AGE_SLICE],
                logits[:, GENDER_SLICE].softmax(dim=1),
                logits[:, RACE_SLICE].softmax(dim=1),
            ],
            dim=1,
        )

    @staticmethod
    def _check_output(logits: torch.Tensor) -> None:
        if logits.ndim != 2 or logits.shape[1] != LABEL_VECTOR_SIZE:
            raise ValueError(
                f"model must output (B, {LABEL_VECTOR_SIZE}), got {tuple(logits.shape)}"
            )

    def _shared_step(
        self, batch: FaceBatch, split: str
    ) -> tuple[torch.Tensor, LossBreakdown]:
        images, labels = batch["images"], batch["labels"]
        logits = self.forward_logits(images)
        self._check_output(logits)
        losses: LossBreakdown = self.loss_fn(logits, labels)

        age_mae = getattr(self, f"{split}_age_mae")
        gender_acc = getattr(self, f"{split}_gender_acc")
        race_acc = getattr(self, f"{split}_race_acc")
        age_mae.update(
            logits[:, 0].detach() * AGE_SCALE, labels[:, 0] * AGE_SCALE
        )
        gender_acc.update(
            logits[:, GENDER_SLICE].detach(), labels[:, GENDER_SLICE].argmax(dim=1)
        )
        race_acc.update(
            logits[:, RACE_SLICE].detach(), labels[:, RACE_SLICE].argmax(dim=1)
        )
        return logits, losses

    def training_step(self, batch: FaceBatch, batch_idx: int) -> torch.Tensor:
        _, losses = self._shared_step(batch, "train")
        batch_size = batch["images"].shape[0]
        self.log(
            "train/loss",
            losses.total,
            on_step=True,
            on_epoch=True,
            prog_bar=True,
            batch_size=batch_size,
        )
        self.log("train/age_loss", losses.age, on_epoch=True, batch_size=batch_size)
        self.log("train/gender_loss", losses.gender, on_epoch=True, batch_size=batch_size)
        self.log("train/race_loss", losses.race, on_epoch=True, batch_size=batch_size)
        # Logged as metric objects so epoch values exist before callbacks run.
        for name in ("age_mae", "gender_acc", "race_acc"):
            self.log(
                f"train/{name}",
                getattr(self, f"train_{name}"),
                on_step=False,
                on_epoch=True,
                batch_size=batch_size,
            )
        return losses.total

    def validation_step(self, batch: FaceBatch, batch_idx: int) -> None:
        _, losses = self._shared_step(batch, "val")
        self.log(
            "val/loss",
            losses.total,
            on_step=False,
            on_epoch=True,
            prog_bar=True,
            batch_size=batch["images"].shape[0],
        )

    def on_validation_epoch_end(self) -> None:
        self.log("val/age_mae", self.val_age_mae.compute(), prog_bar=True)
        self.log("val/gender_acc", self.val_gender_acc.compute())
        self.log("val/race_acc", self.val_race_acc.compute())
        self.val_age_mae.reset()
        self.val_gender_acc.reset()
        self.val_race_acc.reset()

    def configure_optimizers(self) -> dict[str, Any]:  # type: ignore[override]
        optimizer = torch.optim.AdamW(
            self.parameters(),
            lr=self.hparams["learning_rate"],
            weight_decay=self.hparams["weight_decay"],
        )
        max_epochs = (
            (self.trainer.max_epochs or 100) if self._trainer else 100
        )
        warmup = int(self.hparams["warmup_epochs"])
        cosine_epochs = max(1, max_epochs - warmup)
        eta_min = (
            self.hparams["learning_rate"]
            * self.hparams["cosine_eta_min_factor"]
        )

        cosine_sched = CosineAnnealingLR(
            optimizer,
            T_max=cosine_epochs,
            eta_min=eta_min,
        )
        if warmup <= 0:
            scheduler: torch.optim.lr_scheduler.LRScheduler = cosine_sched
        else:
            warmup_sched = LinearLR(
                optimizer,
                start_factor=self.hparams["warmup_start_factor"],
                end_factor=1.0,
                total_iters=warmup,
            )
            scheduler = SequentialLR(
                optimizer,
                schedulers=[warmup_sched, cosine_sched],
                milestones=[warmup],
            )
        return {
            "optimizer": optimizer,
            "lr_scheduler": {"scheduler": scheduler, "interval": "epoch"},
        }
