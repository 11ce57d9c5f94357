"""LightningDataModule over an in-memory assembled batch."""

from __future__ import annotations

import math

import lightning as L
import torch
from loguru import logger
from torch.utils.data import DataLoader, TensorDataset

from face_attributes.config import FitConfig
from face_attributes.data.assembler import AssembledBatch
from face_attributes.errors import EmptyBatchError
from face_attributes.types import FaceBatch


class FaceAttributeDataModule(L.LightningDataModule):
    """Serve an :class:`AssembledBatch` to the Lightning trainer.

    The trailing ``validation_split`` fraction of the batch is held out for
    validation, before any shuffling: train gets the first
    ``floor(N * (1 - validation_split))`` rows, validation the rest.  The
    training rows are reshuffled every epoch.

    Args:
        batch: Assembled images and labels.  Tensors are shared, not copied.
        config: Fit parameters (batch size, split, worker settings).
    """

    def __init__(self, batch: AssembledBatch, config: FitConfig | None = None) -> None:
        super().__init__()
        self._batch = batch
        self._config = config or FitConfig()
        self._train_dataset: TensorDataset | None = None
        self._val_dataset: TensorDataset | None = None

    @property
    def split_index(self) -> int:
        """Number of leading rows used for training.

        When the split would leave no training rows (tiny batches), every
        row trains and validation is skipped.
        """
        split = math.floor(len(self._batch) * (1.0 - self._config.validation_split))
        return split if split > 0 else len(self._batch)

    @property
    def has_validation(self) -> bool:
        return self.split_index < len(self._batch)

    def setup(self, stage: str | None = None) -> None:
        """Split the batch into train/validation datasets.

        Raises:
            EmptyBatchError: the batch has no rows at all.
        """
        if self._train_dataset is not None:
            return
        if len(self._batch) == 0:
            raise EmptyBatchError("Batch has no samples to train on", dropped=self._batch.dropped)
        split = self.split_index
        if not self.has_validation and self._config.validation_split > 0:
            logger.warning(
                f"validation_split={self._config.validation_split} leaves no training "
                f"rows out of {len(self._batch)}; training on all rows without validation"
            )
        images, labels = self._batch.images, self._batch.labels
        self._train_dataset = TensorDataset(images[:split], labels[:split])
        self._val_dataset = TensorDataset(images[split:], labels[split:])
        logger.info(
            f"Setup fit: train={len(self._train_dataset)}, "
            f"val={len(self._val_dataset)} samples"
        )

    def teardown(self, stage: str | None = None) -> None:
        self._train_dataset = None
        self._val_dataset = None

    @staticmethod
    def _collate_fn(items: list[tuple[torch.Tensor, torch.Tensor]]) -> FaceBatch:
        """Collate (image, label) tuples into a FaceBatch dict."""
        images = torch.stack([item[0] for item in items])
        labels = torch.stack([item[1] for item in items])
        return {"images": images, "labels": labels}

    def _loader(self, dataset: TensorDataset | None, shuffle: bool) -> DataLoader[tuple[torch.Tensor, ...]]:
        if dataset is None:
            raise RuntimeError("Call setup('fit') first")
        return DataLoader(
            dataset,
            batch_size=self._config.batch_size,
            shuffle=shuffle,
            num_workers=self._config.num_workers,
            persistent_workers=self._config.persistent_workers,
            collate_fn=self._collate_fn,
        )

    def train_dataloader(self) -> DataLoader[tuple[torch.Tensor, ...]]:
        return self._loader(self._train_dataset, shuffle=True)

    def val_dataloader(self) -> DataLoader[tuple[torch.Tensor, ...]]:
        """May be empty; the session disables validation in that case."""
        return self._loader(self._val_dataset, shuffle=False)
