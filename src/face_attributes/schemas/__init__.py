"""Prediction schemas."""

from face_attributes.schemas.prediction import (
    Gender,
    PredictionInfo,
    PredictionRecord,
    PredictionResult,
    Race,
)

__all__ = [
    "Gender",
    "PredictionInfo",
    "PredictionRecord",
    "PredictionResult",
    "Race",
]
