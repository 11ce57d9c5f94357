"""Tests for the prediction decoder and model-backed inferencer."""

from __future__ import annotations

from collections.abc import Callable

import pytest
import torch

from face_attributes.errors import ImageDecodeError, LabelVectorError
from face_attributes.inference import (
    BaseFaceAttributeInferencer,
    FaceAttributeInferencer,
    decode,
    extract_values,
)
from face_attributes.models import FaceCNNModel
from face_attributes.schemas.prediction import Gender, PredictionResult, Race
from face_attributes.transforms import load_image


class TestDecode:
    def test_decodes_sequence(self) -> None:
        result = decode([0.52, 0.1, 0.9, 0.0, 0.0, 0.0, 0.0, 1.0])
        assert result == PredictionResult(age=52, gender=Gender.FEMALE, race=Race.OTHERS)

    def test_decodes_batched_tensor_row(self) -> None:
        out = torch.tensor([[0.3, 0.9, 0.1, 0.0, 0.8, 0.1, 0.05, 0.05]])
        result = decode(out)
        assert result.age == 30
        assert result.gender is Gender.MALE
        assert result.race is Race.BLACK

    def test_short_vector_raises(self) -> None:
        with pytest.raises(LabelVectorError):
            decode([0.3, 1.0, 0.0])

    def test_extract_values_rejects_batches(self) -> None:
        with pytest.raises(ValueError, match="single output"):
            extract_values(torch.zeros(2, 8))

    def test_extract_values_plain_floats(self) -> None:
        values = extract_values(torch.tensor([1.5, 2.0]))
        assert values == [1.5, 2.0]
        assert all(type(v) is float for v in values)


@pytest.fixture()
def inferencer() -> FaceAttributeInferencer:
    torch.manual_seed(0)
    model = FaceCNNModel(channels=(4, 8), hidden_units=8)
    return FaceAttributeInferencer(model, device="cpu")


class TestFaceAttributeInferencer:
    def test_is_base_inferencer(self, inferencer: FaceAttributeInferencer) -> None:
        assert isinstance(inferencer, BaseFaceAttributeInferencer)

    def test_predict_returns_result(
        self, inferencer: FaceAttributeInferencer, image_bytes: Callable[..., bytes]
    ) -> None:
        result = inferencer.predict(image_bytes(size=(90, 120)))
        assert isinstance(result, PredictionResult)
        assert isinstance(result.age, int)

    def test_predict_raw_is_eight_floats(
        self, inferencer: FaceAttributeInferencer, image_bytes: Callable[..., bytes]
    ) -> None:
        raw = inferencer.predict_raw(image_bytes())
        assert len(raw) == 8
        assert sum(raw[1:3]) == pytest.approx(1.0, abs=1e-5)

    def test_predict_raw_image_skips_decoding(
        self,
        inferencer: FaceAttributeInferencer,
        image_bytes: Callable[..., bytes],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        data = image_bytes(size=(60, 40), color=(120, 30, 200))
        expected = inferencer.predict_raw(data)
        image = load_image(data)

        def _no_decode(_: bytes) -> None:
            raise AssertionError("image decoded twice")

        monkeypatch.setattr("face_attributes.inference.model_inferencer.load_image", _no_decode)
        assert inferencer.predict_raw_image(image) == expected

    def test_predict_batch_matches_single(
        self, inferencer: FaceAttributeInferencer, image_bytes: Callable[..., bytes]
    ) -> None:
        images = [image_bytes(color=(10, 20, 30)), image_bytes(color=(200, 100, 0))]
        assert inferencer.predict_batch(images) == [inferencer.predict(i) for i in images]

    def test_predict_batch_empty(self, inferencer: FaceAttributeInferencer) -> None:
        assert inferencer.predict_batch([]) == []

    def test_undecodable_image(self, inferencer: FaceAttributeInferencer) -> None:
        with pytest.raises(ImageDecodeError):
            inferencer.predict(b"definitely not a jpeg")

    def test_model_left_in_eval_mode(
        self, inferencer: FaceAttributeInferencer, image_bytes: Callable[..., bytes]
    ) -> None:
        inferencer.predict(image_bytes())
        assert not inferencer.model.training
