"""Redraws loss, age MAE and accuracy curves to PNG after each epoch."""

from __future__ import annotations

from pathlib import Path

import lightning as L
import matplotlib
import matplotlib.pyplot as plt
from loguru import logger

_TRACKED: list[tuple[str, tuple[str, ...]]] = [
    ("train_loss", ("train/loss_epoch", "train/loss")),
    ("val_loss", ("val/loss",)),
    ("train_age_mae", ("train/age_mae",)),
    ("val_age_mae", ("val/age_mae",)),
    ("train_gender_acc", ("train/gender_acc",)),
    ("val_gender_acc", ("val/gender_acc",)),
    ("train_race_acc", ("train/race_acc",)),
    ("val_race_acc", ("val/race_acc",)),
]


class TrainingHistoryCallback(L.Callback):
    """Plot and save training curves after every epoch.

    Overwrites three PNG files under ``<output_dir>/training_history``:
    ``loss_history.png``, ``age_mae_history.png`` and ``accuracy_history.png``.

    Args:
        output_dir: Root directory for saved plots.
    """

    def __init__(self, output_dir: str = "outputs") -> None:
        super().__init__()
        self.output_dir = Path(output_dir) / "training_history"
        self.history: dict[str, list[float | None]] = {key: [] for key, _ in _TRACKED}
        self.epochs: list[int] = []

    def on_train_epoch_end(
        self, trainer: L.Trainer, pl_module: L.LightningModule
    ) -> None:
        """Collect metrics and redraw the plots."""
        self.epochs.append(trainer.current_epoch)
        metrics = trainer.callback_metrics
        for key, names in _TRACKED:
            val = next((metrics[n] for n in names if n in metrics), None)
            self.history[key].append(val.item() if val is not None else None)

        try:
            self._plot_metrics()
        except Exception as e:
            logger.error(f"Failed to plot training history: {e}")

    def _plot_series(
        self,
        filename: str,
        title: str,
        ylabel: str,
        series: list[tuple[str, str, str]],
    ) -> None:
        fig, ax = plt.subplots(figsize=(10, 6))
        for key, label, marker in series:
            values = self.history[key]
            if any(v is not None for v in values):
                ax.plot(
                    self.epochs,
                    values,  # type: ignore[arg-type]
                    label=label,
                    marker=marker,
                )
        ax.set_title(title)
        ax.set_xlabel("Epoch")
        ax.set_ylabel(ylabel)
        ax.legend()
        ax.grid(True, linestyle="--", alpha=0.7)
        fig.tight_layout()
        fig.savefig(self.output_dir / filename, dpi=150)
        plt.close(fig)

    def _plot_metrics(self) -> None:
        matplotlib.use("Agg")
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self._plot_series(
            "loss_history.png",
            "Training and Validation Loss",
            "Loss",
            [("train_loss", "Train Loss", "o"), ("val_loss", "Val Loss", "s")],
        )
        self._plot_series(
            "age_mae_history.png",
            "Age Mean Absolute Error",
            "Years",
            [("train_age_mae", "Train", "o"), ("val_age_mae", "Val", "s")],
        )
        self._plot_series(
            "accuracy_history.png",
            "Gender and Race Accuracy",
            "Accuracy",
            [
                ("train_gender_acc", "Train Gender", "o"),
                ("val_gender_acc", "Val Gender", "s"),
                ("train_race_acc", "Train Race", "^"),
                ("val_race_acc", "Val Race", "v"),
            ],
        )
        logger.debug(f"Training history plots updated in {self.output_dir}")
