"""Training callbacks for face_attributes."""

from face_attributes.callbacks.epoch_events import (
    CancellationToken,
    EpochEventCallback,
    EpochResult,
)
from face_attributes.callbacks.model_info import ModelInfoCallback
from face_attributes.callbacks.plotting import TrainingHistoryCallback

__all__ = [
    "CancellationToken",
    "EpochEventCallback",
    "EpochResult",
    "ModelInfoCallback",
    "TrainingHistoryCallback",
]
