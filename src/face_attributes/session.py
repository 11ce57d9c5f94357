"""Training / prediction session.

A session owns one model and serializes the operations run against it:
a training run and a prediction cannot overlap, and overlapping calls
fail fast with :class:`SessionBusyError` instead of queueing.

Usage::

    session = TrainingSession(FaceCNNModel(), SessionConfig())
    for event in session.train(iter_raw_samples(data_root)):
        print(event.status())
    result = session.predict(Path("face.jpg").read_bytes())
"""

from __future__ import annotations

import queue
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import cast

import lightning as L
from loguru import logger

from face_attributes.callbacks.epoch_events import (
    CancellationToken,
    EpochEventCallback,
    EpochResult,
)
from face_attributes.config import SessionConfig
from face_attributes.data.assembler import AssembledBatch, assemble
from face_attributes.data.datamodule import FaceAttributeDataModule
from face_attributes.data.samples import RawSample
from face_attributes.errors import SessionBusyError
from face_attributes.inference.model_inferencer import FaceAttributeInferencer
from face_attributes.models.base import BaseFaceAttributeModel
from face_attributes.models.cnn import FaceCNNModel
from face_attributes.schemas.prediction import PredictionResult

_FIT_DONE = object()


@dataclass(frozen=True)
class AssemblySummary:
    """What the last training run was given."""

    samples: int
    dropped: int


class TrainingSession:
    """Session-scoped state for training and predicting with one model.

    Args:
        model: Model to train; a fresh :class:`FaceCNNModel` when omitted.
        config: Assembly and fit parameters.
        callbacks: Extra Lightning callbacks attached to every training run.
    """

    def __init__(
        self,
        model: BaseFaceAttributeModel | None = None,
        config: SessionConfig | None = None,
        callbacks: list[L.Callback] | None = None,
    ) -> None:
        self.model = model if model is not None else FaceCNNModel()
        self.config = config or SessionConfig()
        self.callbacks = list(callbacks or [])
        self.last_assembly: AssemblySummary | None = None
        self.last_prediction: PredictionResult | None = None
        self._lock = threading.Lock()
        self._trainer: L.Trainer | None = None

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @property
    def trained(self) -> bool:
        return self._trainer is not None

    @contextmanager
    def _exclusive(self, action: str) -> Iterator[None]:
        if not self._lock.acquire(blocking=False):
            raise SessionBusyError(f"Cannot {action}: another operation is running")
        try:
            yield
        finally:
            self._lock.release()

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------

    def train(
        self,
        samples: Iterable[RawSample],
        token: CancellationToken | None = None,
    ) -> Iterator[EpochResult]:
        """Assemble ``samples`` and train, yielding one event per epoch.

        Nothing happens until the first ``next()``; that call assembles
        the batch (raising ``EmptyBatchError``, ``ImageDecodeError`` or
        ``LabelRangeError`` there) and starts fitting.  The sequence ends
        after the last epoch, or after the current epoch once ``token`` is
        cancelled.  Closing the generator early cancels as well.  Engine
        errors are re-raised unchanged once fitting stops.
        """
        with self._exclusive("train"):
            batch = assemble(
                samples,
                limit=self.config.assembly.sample_limit,
                image_size=self.config.assembly.image_size,
            )
            self.last_assembly = AssemblySummary(samples=len(batch), dropped=batch.dropped)
            try:
                yield from self._fit(batch, token or CancellationToken())
            finally:
                batch.release()

    def _fit(
        self, batch: AssembledBatch, token: CancellationToken
    ) -> Iterator[EpochResult]:
        fit_cfg = self.config.fit
        if fit_cfg.seed is not None:
            L.seed_everything(fit_cfg.seed, workers=True)

        datamodule = FaceAttributeDataModule(batch, fit_cfg)
        datamodule.setup("fit")

        # maxsize=1: the trainer runs at most one epoch ahead of the consumer.
        events: queue.Queue[object] = queue.Queue(maxsize=1)
        trainer = L.Trainer(
            max_epochs=fit_cfg.epochs,
            accelerator=fit_cfg.accelerator,
            devices=1,
            callbacks=[EpochEventCallback(events.put, token), *self.callbacks],
            logger=False,
            enable_checkpointing=False,
            enable_progress_bar=fit_cfg.enable_progress_bar,
            enable_model_summary=False,
            num_sanity_val_steps=0,
            limit_val_batches=1.0 if datamodule.has_validation else 0,
            default_root_dir=self.config.output_dir,
        )
        failure: list[Exception] = []

        def _run() -> None:
            try:
                trainer.fit(self.model, datamodule=datamodule)
            except Exception as e:
                failure.append(e)
            finally:
                events.put(_FIT_DONE)

        worker = threading.Thread(target=_run, name="face-attributes-fit", daemon=True)
        worker.start()
        try:
            while True:
                item = events.get()
                if item is _FIT_DONE:
                    break
                event = cast(EpochResult, item)
                logger.info(event.status())
                yield event
        finally:
            if worker.is_alive():
                token.cancel()
                while events.get() is not _FIT_DONE:
                    pass
            worker.join()
            # An early close still leaves updated weights behind.
            if not failure:
                self._trainer = trainer

        if failure:
            logger.error(f"Training failed: {failure[0]}")
            raise failure[0]

    def save_checkpoint(self, path: str | Path) -> Path:
        """Write a Lightning checkpoint of the trained model."""
        if self._trainer is None:
            raise RuntimeError("Nothing to save: train the session first")
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with self._exclusive("save checkpoint"):
            self._trainer.save_checkpoint(path)
        logger.info(f"Saved checkpoint to {path}")
        return path

    # ------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------

    def predict(self, image_bytes: bytes) -> PredictionResult:
        """Predict attributes for one image with the session's model."""
        with self._exclusive("predict"):
            inferencer = FaceAttributeInferencer(
                self.model, image_size=self.config.assembly.image_size
            )
            result = inferencer.predict(image_bytes)
            self.last_prediction = result
            return result
