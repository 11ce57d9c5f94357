"""Pydantic frozen configuration models for face_attributes."""

from pydantic import BaseModel, Field, field_validator, model_validator


class AssemblyConfig(BaseModel, frozen=True):
    """How raw samples are turned into a training batch."""

    image_size: int = Field(default=128, ge=1)
    sample_limit: int = Field(default=100, ge=1)


class FitConfig(BaseModel, frozen=True):
    """Engine fit parameters.

    All fields are validated at construction time. Instances are frozen.
    """

    epochs: int = Field(default=10, ge=1)
    batch_size: int = Field(default=32, ge=1)
    validation_split: float = 0.2
    num_workers: int = Field(default=0, ge=0)
    persistent_workers: bool = False
    accelerator: str = "auto"
    enable_progress_bar: bool = False
    seed: int | None = 42

    @field_validator("validation_split")
    @classmethod
    def _split_in_range(cls, v: float) -> float:
        if not 0.0 <= v < 1.0:
            raise ValueError(f"validation_split must be in [0, 1), got {v}")
        return v

    @model_validator(mode="after")
    def _persistent_workers_requires_workers(self) -> "FitConfig":
        """persistent_workers=True with num_workers=0 is rejected by DataLoader."""
        if self.persistent_workers and self.num_workers == 0:
            # Use object.__setattr__ because model is frozen
            object.__setattr__(self, "persistent_workers", False)
        return self


class SessionConfig(BaseModel, frozen=True):
    """Everything a ``TrainingSession`` needs besides the model itself."""

    assembly: AssemblyConfig = AssemblyConfig()
    fit: FitConfig = FitConfig()
    output_dir: str = "outputs"
