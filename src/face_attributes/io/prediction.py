"""Prediction record writer using orjson."""

from __future__ import annotations

from pathlib import Path

import orjson

from face_attributes.schemas.prediction import PredictionRecord


class PredictionWriter:
    """Write one JSON file per image prediction using orjson.

    Output files are named ``{image_stem}.json`` inside ``output_dir``.
    """

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = output_dir
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def write(self, record: PredictionRecord) -> Path:
        """Write a single record to disk. Returns the output path."""
        stem = Path(record.filename).stem
        out_path = self.output_dir / f"{stem}.json"
        data = orjson.dumps(record.model_dump(mode="json"), option=orjson.OPT_INDENT_2)
        out_path.write_bytes(data)
        return out_path
