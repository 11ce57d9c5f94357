#!/usr/bin/env python3
"""Predict age, gender and race for face images with a trained checkpoint.

Writes one JSON record per image and prints a summary table.  When an
image filename carries an ``<age>_<gender>_<race>_`` prefix, it is kept as
ground truth in the record and used for the accuracy summary.

Usage::

    # Single image
    python scripts/predict_faces.py \\
        --checkpoint outputs/checkpoints/last.ckpt \\
        --images face.jpg

    # Directory, ResNet18 checkpoint
    python scripts/predict_faces.py \\
        --checkpoint outputs/checkpoints/last.ckpt \\
        --model resnet18 \\
        --images data/UTKFace/test \\
        --output-dir outputs/predictions
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from loguru import logger
from rich.console import Console
from rich.table import Table
from tqdm import tqdm

from face_attributes.data.utils import get_files
from face_attributes.errors import FaceAttributesError
from face_attributes.inference.decoder import decode
from face_attributes.inference.model_inferencer import FaceAttributeInferencer
from face_attributes.io.prediction import PredictionWriter
from face_attributes.labels import parse_label
from face_attributes.models import FaceCNNModel, ResNet18FaceAttributeModel
from face_attributes.models.base import BaseFaceAttributeModel
from face_attributes.schemas.prediction import PredictionInfo, PredictionRecord
from face_attributes.transforms.normalize import load_image

MODELS: dict[str, type[BaseFaceAttributeModel]] = {
    "face_cnn": FaceCNNModel,
    "resnet18": ResNet18FaceAttributeModel,
}


def collect_images(path: Path) -> list[Path]:
    if path.is_file():
        return [path]
    if path.is_dir():
        return get_files(path)
    logger.error(f"No such file or directory: {path}")
    sys.exit(1)


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.split("\n")[0])
    parser.add_argument("--checkpoint", type=Path, required=True)
    parser.add_argument("--images", type=Path, required=True)
    parser.add_argument("--model", choices=sorted(MODELS), default="face_cnn")
    parser.add_argument("--output-dir", type=Path, default=Path("outputs/predictions"))
    parser.add_argument("--image-size", type=int, default=128)
    parser.add_argument("--device", default=None)
    parser.add_argument("--limit", type=int, default=None)
    args = parser.parse_args()

    paths = collect_images(args.images)
    if args.limit is not None:
        paths = paths[: args.limit]
    if not paths:
        logger.error(f"No images found under {args.images}")
        sys.exit(1)

    inferencer = FaceAttributeInferencer.from_checkpoint(
        args.checkpoint,
        model_cls=MODELS[args.model],
        image_size=args.image_size,
        device=args.device,
    )
    writer = PredictionWriter(args.output_dir)

    table = Table(title="Predictions")
    for column in ("File", "Age", "Gender", "Race", "Truth"):
        table.add_column(column)

    gender_hits = race_hits = labelled = written = 0
    abs_age_error = 0.0
    for path in tqdm(paths, desc="predict"):
        data = path.read_bytes()
        try:
            image = load_image(data)
            raw = inferencer.predict_raw_image(image)
        except FaceAttributesError as e:
            logger.error(f"{path.name}: {e}")
            continue
        result = decode(raw)
        truth = parse_label(path.name)
        writer.write(
            PredictionRecord(
                filename=path.name,
                info=PredictionInfo(
                    model_source=str(args.checkpoint),
                    image_width=image.width,
                    image_height=image.height,
                ),
                raw_output=raw,
                prediction=result,
                ground_truth=truth,
            )
        )
        written += 1
        truth_text = ""
        if truth is not None:
            expected = result.to_label()
            labelled += 1
            gender_hits += int((truth.gender != 0) == (expected.gender != 0))
            race_hits += int(truth.race == expected.race)
            abs_age_error += abs(truth.age - result.age)
            truth_text = f"{truth.age:g}/{truth.gender}/{truth.race}"
        table.add_row(
            path.name, str(result.age), result.gender.value, result.race.value, truth_text
        )

    console = Console()
    console.print(table)
    if labelled:
        console.print(
            f"Labelled images: {labelled} | "
            f"age MAE: {abs_age_error / labelled:.2f} | "
            f"gender acc: {gender_hits / labelled:.2%} | "
            f"race acc: {race_hits / labelled:.2%}"
        )
    logger.info(f"Wrote {written} prediction record(s) to {args.output_dir}")


if __name__ == "__main__":
    main()
