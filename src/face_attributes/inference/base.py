"""Abstract base class for face attribute inferencers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from face_attributes.schemas.prediction import PredictionResult


class BaseFaceAttributeInferencer(ABC):
    """Base class for face attribute inferencers.

    Inputs are undecoded image bytes; every implementation applies the same
    normalization as training.
    """

    @abstractmethod
    def predict(self, image_bytes: bytes) -> PredictionResult:
        """Run inference on a single image.

        Raises:
            ImageDecodeError: the bytes are not an image.
        """

    def predict_batch(self, images: list[bytes]) -> list[PredictionResult]:
        """Run inference on several images, one result per input."""
        return [self.predict(image) for image in images]
