"""Decode raw model output vectors into predictions."""

from __future__ import annotations

from collections.abc import Sequence

import torch

from face_attributes.labels import decode_label
from face_attributes.schemas.prediction import PredictionResult


def extract_values(output: torch.Tensor | Sequence[float]) -> list[float]:
    """Copy a single output vector out of the engine as plain floats.

    Accepts ``(8,)`` or ``(1, 8)`` tensors; the tensor itself is not retained.
    """
    if isinstance(output, torch.Tensor):
        if output.ndim == 2 and output.shape[0] == 1:
            output = output[0]
        if output.ndim != 1:
            raise ValueError(f"expected a single output vector, got shape {tuple(output.shape)}")
        return [float(v) for v in output.detach().cpu().tolist()]
    return [float(v) for v in output]


def decode(raw_output: torch.Tensor | Sequence[float]) -> PredictionResult:
    """Decode one model output vector.

    Raises:
        LabelVectorError: fewer than 8 values.
    """
    return decode_label(extract_values(raw_output))
