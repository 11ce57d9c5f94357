"""Per-epoch progress events and cooperative cancellation."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field

import lightning as L
import torch
from loguru import logger


class CancellationToken:
    """Thread-safe flag checked by the trainer between epochs."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass(frozen=True)
class EpochResult:
    """Metrics at the end of one training epoch.

    epoch: Zero-based epoch index.
    total_epochs: Configured number of epochs.
    metrics: Scalar metrics logged so far this epoch, e.g. ``"train/loss_epoch"``.
    """

    epoch: int
    total_epochs: int
    metrics: dict[str, float] = field(default_factory=dict)

    @property
    def loss(self) -> float | None:
        return self.metrics.get("train/loss_epoch", self.metrics.get("train/loss"))

    def status(self) -> str:
        """One-line progress message."""
        parts = [f"Epoch {self.epoch + 1}/{self.total_epochs}"]
        loss = self.loss
        if loss is not None:
            parts.append(f"loss={loss:.4f}")
        val_loss = self.metrics.get("val/loss")
        if val_loss is not None:
            parts.append(f"val_loss={val_loss:.4f}")
        return " ".join(parts)


class EpochEventCallback(L.Callback):
    """Publish an :class:`EpochResult` after every training epoch.

    Validation for the epoch has already run when the event is built, so
    ``val/*`` metrics are included when a validation split exists.  After
    emitting, a cancelled token stops the trainer before the next epoch.

    Args:
        emit: Receives each event; may block to apply backpressure.
        token: Optional cancellation token.
    """

    def __init__(
        self,
        emit: Callable[[EpochResult], None],
        token: CancellationToken | None = None,
    ) -> None:
        super().__init__()
        self.emit = emit
        self.token = token

    @staticmethod
    def _scalar_metrics(metrics: dict[str, object]) -> dict[str, float]:
        scalars: dict[str, float] = {}
        for key, value in metrics.items():
            if isinstance(value, torch.Tensor) and value.numel() == 1:
                scalars[key] = float(value.item())
            elif isinstance(value, int | float):
                scalars[key] = float(value)
        return scalars

    def on_train_epoch_end(
        self, trainer: L.Trainer, pl_module: L.LightningModule
    ) -> None:
        event = EpochResult(
            epoch=trainer.current_epoch,
            total_epochs=trainer.max_epochs or 0,
            metrics=self._scalar_metrics(dict(trainer.callback_metrics)),
        )
        self.emit(event)
        if self.token is not None and self.token.cancelled:
            logger.info(f"Training cancelled after epoch {trainer.current_epoch + 1}")
            trainer.should_stop = True
