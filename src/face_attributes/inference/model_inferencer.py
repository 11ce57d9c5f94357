"""Inference with an in-memory or checkpointed Lightning model."""

from __future__ import annotations

from pathlib import Path

import torch
from loguru import logger
from PIL import Image

from face_attributes.inference.base import BaseFaceAttributeInferencer
from face_attributes.inference.decoder import decode, extract_values
from face_attributes.models.base import BaseFaceAttributeModel
from face_attributes.models.cnn import FaceCNNModel
from face_attributes.schemas.prediction import PredictionResult
from face_attributes.transforms.normalize import (
    IMAGE_SIZE,
    load_image,
    normalize,
    normalize_image,
    to_model_input,
)


def _auto_device() -> str:
    if torch.cuda.is_available():
        return "cuda"
    if hasattr(torch.backends, "mps") and torch.backends.mps.is_available():
        return "mps"
    return "cpu"


class FaceAttributeInferencer(BaseFaceAttributeInferencer):
    """Predict age, gender and race with a :class:`BaseFaceAttributeModel`.

    Input and output tensors live only for the duration of one call; the
    extracted floats are all that survives it.

    Args:
        model: Trained model.  Switched to eval mode.
        image_size: Must match the size the model was trained on.
        device: Device string.  Defaults to the model's current device.
    """

    def __init__(
        self,
        model: BaseFaceAttributeModel,
        image_size: int = IMAGE_SIZE,
        device: str | torch.device | None = None,
    ) -> None:
        self.model = model
        self.image_size = image_size
        if device is not None:
            self.model.to(device)
        self.device = self.model.device

    @classmethod
    def from_checkpoint(
        cls,
        checkpoint_path: str | Path,
        model_cls: type[BaseFaceAttributeModel] = FaceCNNModel,
        image_size: int = IMAGE_SIZE,
        device: str | None = None,
    ) -> FaceAttributeInferencer:
        """Load a Lightning checkpoint written by ``TrainingSession.save_checkpoint``."""
        device = device or _auto_device()
        logger.info(f"Loading {model_cls.__name__} from {checkpoint_path} on {device}")
        model = model_cls.load_from_checkpoint(str(checkpoint_path), map_location=device)
        return cls(model, image_size=image_size, device=device)

    def predict_raw(self, image_bytes: bytes) -> list[float]:
        """Single image inference, returning the raw 8-element output vector."""
        return self.predict_raw_image(load_image(image_bytes))

    def predict_raw_image(self, img: Image.Image) -> list[float]:
        """Like :meth:`predict_raw` for an image that is already decoded."""
        image = to_model_input(normalize_image(img, self.image_size)).to(self.device)
        self.model.eval()
        with torch.inference_mode():
            output = self.model(image)
        values = extract_values(output)
        del image, output
        return values

    def predict(self, image_bytes: bytes) -> PredictionResult:
        return decode(self.predict_raw(image_bytes))

    def predict_batch(self, images: list[bytes]) -> list[PredictionResult]:
        """Batched inference: stack normalized images into one forward pass."""
        if not images:
            return []
        batch = torch.stack([normalize(data, self.image_size) for data in images])
        self.model.eval()
        with torch.inference_mode():
            outputs = self.model(batch.to(self.device))
        results = [decode(extract_values(row)) for row in outputs]
        del batch, outputs
        return results
