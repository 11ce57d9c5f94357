"""Reports model size and the output-vector layout when fitting starts."""

from __future__ import annotations

from pathlib import Path
from typing import NamedTuple

import lightning as L
import orjson
from loguru import logger
from rich import box
from rich.console import Console
from rich.table import Table

from face_attributes.labels import label_layout


class ParameterStats(NamedTuple):
    total: int
    trainable: int
    size_mb: float


def parameter_stats(module: L.LightningModule) -> ParameterStats:
    params = list(module.parameters())
    n_bytes = sum(t.numel() * t.element_size() for t in [*params, *module.buffers()])
    return ParameterStats(
        total=sum(p.numel() for p in params),
        trainable=sum(p.numel() for p in params if p.requires_grad),
        size_mb=n_bytes / 2**20,
    )


def write_label_layout(save_path: Path) -> None:
    """Persist the output vector layout so predictions can be decoded offline."""
    save_path.parent.mkdir(parents=True, exist_ok=True)
    save_path.write_bytes(orjson.dumps(label_layout(), option=orjson.OPT_INDENT_2))
    logger.info(f"Saved label_layout.json to {save_path}")


class ModelInfoCallback(L.Callback):
    """Print a summary table of the model and its 8-value output at fit start.

    Also writes ``label_layout.json`` into ``output_dir``; a failure to
    write it is logged and does not stop training.
    """

    def __init__(self, output_dir: str = "outputs") -> None:
        super().__init__()
        self.output_dir = Path(output_dir)

    def on_fit_start(self, trainer: L.Trainer, pl_module: L.LightningModule) -> None:
        stats = parameter_stats(pl_module)
        layout = label_layout()
        name = type(pl_module).__name__

        table = Table(title=f"{name} summary", box=box.SIMPLE_HEAVY, header_style="bold cyan")
        table.add_column("Item")
        table.add_column("Value", justify="right")
        table.add_row("Parameters", f"{stats.total:,}")
        table.add_row("Trainable", f"{stats.trainable:,}")
        table.add_row("Size", f"{stats.size_mb:.2f} MB")
        table.add_row("Epochs", str(trainer.max_epochs))
        table.add_row("Age slot", f"[{layout['age']['index']}] x{layout['age']['scale']:g}")
        for head in ("gender", "race"):
            classes = ", ".join(layout[head]["idx_to_class"].values())
            table.add_row(f"{head.title()} slots", f"[{layout[head]['offset']}:] {classes}")
        Console().print(table)

        logger.info(
            f"{name}: {stats.total:,} params ({stats.trainable:,} trainable), "
            f"{stats.size_mb:.2f} MB"
        )

        try:
            write_label_layout(self.output_dir / "label_layout.json")
        except OSError as e:
            logger.warning(f"Could not write label_layout.json: {e}")
