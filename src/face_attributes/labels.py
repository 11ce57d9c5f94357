"""Filename label parsing and label-vector encoding/decoding.

Label vectors have 8 elements::

    [age / 100, gender_onehot(2), race_onehot(5)]

Age is not clamped, so ages outside 0..100 produce values outside ``[0, 1]``.
Decoding rounds age to the nearest integer year, which makes
encode -> decode -> encode lossy for fractional ages (37.6 -> 0.376 -> 38 -> 0.38).
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import torch
from loguru import logger

from face_attributes.errors import LabelParseError, LabelRangeError, LabelVectorError
from face_attributes.schemas.prediction import (
    Gender,
    LabelTriple,
    PredictionResult,
    Race,
)

AGE_SCALE = 100.0
NUM_GENDERS = len(Gender)
NUM_RACES = len(Race)
LABEL_VECTOR_SIZE = 1 + NUM_GENDERS + NUM_RACES

AGE_SLICE = slice(0, 1)
GENDER_SLICE = slice(1, 1 + NUM_GENDERS)
RACE_SLICE = slice(1 + NUM_GENDERS, LABEL_VECTOR_SIZE)

__all__ = [
    "AGE_SCALE",
    "LABEL_VECTOR_SIZE",
    "LabelTriple",
    "decode_label",
    "encode_label",
    "label_layout",
    "parse_label",
    "parse_label_strict",
]


def parse_label_strict(filename: str) -> LabelTriple:
    """Parse ``<age>_<gender>_<race>[_<anything>].<ext>``.

    Only the basename is considered; fields after the third are ignored.

    Raises:
        LabelParseError: fewer than 3 fields, or a non-integer field.
    """
    stem = Path(filename).name.rsplit(".", 1)[0]
    parts = stem.split("_")
    if len(parts) < 3:
        raise LabelParseError(f"{filename!r}: expected at least 3 '_'-separated fields")
    try:
        age, gender, race = (int(p) for p in parts[:3])
    except ValueError as e:
        raise LabelParseError(f"{filename!r}: non-integer label field ({e})") from e
    return LabelTriple(age=age, gender=gender, race=race)


def parse_label(filename: str) -> LabelTriple | None:
    """Lenient variant of :func:`parse_label_strict` returning ``None`` on failure."""
    try:
        return parse_label_strict(filename)
    except LabelParseError as e:
        logger.debug(f"Unparseable label: {e}")
        return None


def encode_label(triple: LabelTriple) -> torch.Tensor:
    """Encode a label triple into a float32 vector of shape ``(8,)``.

    Raises:
        LabelRangeError: race code outside ``0..4``.
    """
    if not 0 <= triple.race < NUM_RACES:
        raise LabelRangeError(
            f"race code {triple.race} outside 0..{NUM_RACES - 1}"
        )
    vector = torch.zeros(LABEL_VECTOR_SIZE, dtype=torch.float32)
    vector[0] = triple.age / AGE_SCALE
    # Any gender code other than 0 encodes as the second class.
    vector[GENDER_SLICE.start + (0 if triple.gender == 0 else 1)] = 1.0
    vector[RACE_SLICE.start + triple.race] = 1.0
    return vector


def _to_floats(vector: Sequence[float] | torch.Tensor) -> list[float]:
    if isinstance(vector, torch.Tensor):
        return [float(v) for v in vector.detach().flatten().tolist()]
    return [float(v) for v in vector]


def decode_label(vector: Sequence[float] | torch.Tensor) -> PredictionResult:
    """Decode an 8-element vector (label or model output) into attributes.

    Raises:
        LabelVectorError: fewer than 8 elements.
    """
    values = _to_floats(vector)
    if len(values) < LABEL_VECTOR_SIZE:
        raise LabelVectorError(
            f"expected at least {LABEL_VECTOR_SIZE} values, got {len(values)}"
        )
    # Half-up rounding, so 36.5 -> 37 rather than banker's 36.
    age = math.floor(values[0] * AGE_SCALE + 0.5)
    gender = Gender.MALE if values[1] > values[2] else Gender.FEMALE
    race_scores = values[RACE_SLICE]
    race_idx = max(range(NUM_RACES), key=race_scores.__getitem__)
    return PredictionResult(age=age, gender=gender, race=list(Race)[race_idx])


def label_layout() -> dict[str, Any]:
    """Describe the label vector layout for artifacts shipped with a model."""
    return {
        "vector_size": LABEL_VECTOR_SIZE,
        "age": {"index": AGE_SLICE.start, "scale": AGE_SCALE},
        "gender": {
            "offset": GENDER_SLICE.start,
            "idx_to_class": {str(g.code): g.value for g in Gender},
        },
        "race": {
            "offset": RACE_SLICE.start,
            "idx_to_class": {str(r.code): r.value for r in Race},
        },
    }
