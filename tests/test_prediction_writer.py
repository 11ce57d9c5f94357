"""Tests for PredictionWriter."""

from __future__ import annotations

import json
from pathlib import Path

from face_attributes.io.prediction import PredictionWriter
from face_attributes.schemas.prediction import (
    Gender,
    LabelTriple,
    PredictionInfo,
    PredictionRecord,
    PredictionResult,
    Race,
)


def _make_record(filename: str = "37_1_2_001.jpg") -> PredictionRecord:
    return PredictionRecord(
        filename=filename,
        info=PredictionInfo(model_source="test.ckpt", image_width=200, image_height=200),
        raw_output=[0.36, 0.2, 0.8, 0.0, 0.1, 0.7, 0.1, 0.1],
        prediction=PredictionResult(age=36, gender=Gender.FEMALE, race=Race.ASIAN),
        ground_truth=LabelTriple(age=37, gender=1, race=2),
    )


class TestPredictionWriter:
    def test_write_creates_file(self, tmp_path: Path) -> None:
        writer = PredictionWriter(tmp_path / "out")
        out_path = writer.write(_make_record())
        assert out_path.exists()
        assert out_path.name == "37_1_2_001.json"

    def test_write_valid_json(self, tmp_path: Path) -> None:
        writer = PredictionWriter(tmp_path / "out")
        data = json.loads(writer.write(_make_record()).read_text())
        assert data["prediction"] == {"age": 36, "gender": "Female", "race": "Asian"}
        assert data["ground_truth"]["race"] == 2
        assert data["info"]["model_source"] == "test.ckpt"
        assert len(data["raw_output"]) == 8

    def test_ground_truth_optional(self, tmp_path: Path) -> None:
        record = _make_record("face.png").model_copy(update={"ground_truth": None})
        data = json.loads(PredictionWriter(tmp_path).write(record).read_text())
        assert data["ground_truth"] is None

    def test_write_creates_output_dir(self, tmp_path: Path) -> None:
        deep_dir = tmp_path / "a" / "b" / "c"
        assert PredictionWriter(deep_dir).write(_make_record()).exists()
