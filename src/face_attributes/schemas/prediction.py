"""Label and prediction schemas.

The categorical code order is fixed: gender code 0 is ``Male``; race codes
0..4 are ``White, Black, Asian, Indian, Others``.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class Gender(StrEnum):
    MALE = "Male"
    FEMALE = "Female"

    @property
    def code(self) -> int:
        return 0 if self is Gender.MALE else 1


class Race(StrEnum):
    WHITE = "White"
    BLACK = "Black"
    ASIAN = "Asian"
    INDIAN = "Indian"
    OTHERS = "Others"

    @property
    def code(self) -> int:
        return list(Race).index(self)


class LabelTriple(BaseModel, frozen=True):
    """Raw label fields as embedded in a filename.

    No range validation: ``age`` may be negative or above 100 and the
    gender/race codes are taken as-is.  Range problems surface when the
    triple is encoded.
    """

    age: float
    gender: int
    race: int


class PredictionResult(BaseModel, frozen=True):
    """Human-readable attributes decoded from an 8-element output vector."""

    age: int
    gender: Gender
    race: Race

    def to_label(self) -> LabelTriple:
        """Map back to filename codes, e.g. to re-encode a decoded result."""
        return LabelTriple(age=self.age, gender=self.gender.code, race=self.race.code)


class PredictionInfo(BaseModel):
    """Provenance of a prediction record."""

    model_source: str
    image_width: int | None = None
    image_height: int | None = None
    created_at: str = Field(default_factory=lambda: datetime.now(tz=UTC).isoformat())


class PredictionRecord(BaseModel):
    """One image's prediction, as written to disk by ``PredictionWriter``.

    ``ground_truth`` is filled when the image filename carries a parseable
    label prefix.
    """

    filename: str
    info: PredictionInfo
    raw_output: list[float]
    prediction: PredictionResult
    ground_truth: LabelTriple | None = None
