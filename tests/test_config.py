"""Unit tests for face_attributes.config and face_attributes.types."""

import pytest
import torch
from pydantic import ValidationError

from face_attributes.config import AssemblyConfig, FitConfig, SessionConfig
from face_attributes.types import FaceBatch


class TestAssemblyConfig:
    def test_defaults(self) -> None:
        cfg = AssemblyConfig()
        assert cfg.image_size == 128
        assert cfg.sample_limit == 100

    def test_rejects_non_positive_limit(self) -> None:
        with pytest.raises(ValidationError):
            AssemblyConfig(sample_limit=0)


class TestFitConfig:
    def test_defaults(self) -> None:
        cfg = FitConfig()
        assert cfg.epochs == 10
        assert cfg.batch_size == 32
        assert cfg.validation_split == pytest.approx(0.2)
        assert cfg.num_workers == 0
        assert cfg.accelerator == "auto"

    def test_frozen_raises_on_mutation(self) -> None:
        cfg = FitConfig()
        with pytest.raises(ValidationError):
            cfg.epochs = 3  # type: ignore[misc]

    @pytest.mark.parametrize("split", [-0.1, 1.0, 1.5])
    def test_validation_split_out_of_range(self, split: float) -> None:
        with pytest.raises(ValidationError, match="validation_split"):
            FitConfig(validation_split=split)

    def test_zero_split_allowed(self) -> None:
        assert FitConfig(validation_split=0.0).validation_split == 0.0

    def test_persistent_workers_auto_corrected_when_num_workers_zero(self) -> None:
        cfg = FitConfig(num_workers=0, persistent_workers=True)
        assert cfg.persistent_workers is False

    def test_persistent_workers_preserved_when_num_workers_nonzero(self) -> None:
        cfg = FitConfig(num_workers=2, persistent_workers=True)
        assert cfg.persistent_workers is True


class TestSessionConfig:
    def test_nested_from_dict(self) -> None:
        cfg = SessionConfig(
            assembly={"sample_limit": 20},  # type: ignore[arg-type]
            fit={"epochs": 2, "batch_size": 4},  # type: ignore[arg-type]
            output_dir="/tmp/out",
        )
        assert cfg.assembly.sample_limit == 20
        assert cfg.assembly.image_size == 128
        assert cfg.fit.epochs == 2
        assert cfg.output_dir == "/tmp/out"


class TestFaceBatchType:
    def test_typed_dict_keys(self) -> None:
        batch: FaceBatch = {
            "images": torch.zeros(4, 128, 128, 3),
            "labels": torch.zeros(4, 8),
        }
        assert batch["images"].shape == (4, 128, 128, 3)
        assert batch["labels"].shape == (4, 8)
