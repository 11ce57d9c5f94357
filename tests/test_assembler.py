"""Tests for batch assembly, raw sample discovery and tensor scopes."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
import torch

from face_attributes.data import (
    AssembledBatch,
    RawSample,
    TensorScope,
    assemble,
    iter_raw_samples,
)
from face_attributes.data.utils import get_files
from face_attributes.errors import EmptyBatchError, ImageDecodeError, LabelRangeError


class TestAssemble:
    def test_shapes_and_alignment(self, labelled_samples: list[RawSample]) -> None:
        batch = assemble(labelled_samples)
        assert isinstance(batch, AssembledBatch)
        assert len(batch) == 6
        assert batch.images.shape == (6, 128, 128, 3)
        assert batch.labels.shape == (6, 8)
        assert batch.dropped == 0
        assert batch.filenames == [s.filename for s in labelled_samples]
        # Row 1 is 37_1_2: female, Asian.
        assert torch.allclose(batch.labels[1], torch.tensor([0.37, 0, 1, 0, 0, 1, 0, 0]))

    def test_unparseable_filenames_dropped_and_counted(
        self, labelled_samples: list[RawSample], image_bytes: Callable[..., bytes]
    ) -> None:
        junk = [
            RawSample(filename="holiday.jpg", data=image_bytes()),
            RawSample(filename="x_y_z_w.jpg", data=image_bytes()),
        ]
        batch = assemble([junk[0], *labelled_samples[:3], junk[1]])
        assert len(batch) == 3
        assert batch.dropped == 2
        assert "holiday.jpg" not in batch.filenames

    def test_dropped_sample_bytes_never_decoded(
        self, labelled_samples: list[RawSample]
    ) -> None:
        """An unparseable filename is skipped before its bytes are looked at."""
        bad = RawSample(filename="unlabelled.jpg", data=b"garbage")
        batch = assemble([bad, *labelled_samples])
        assert batch.dropped == 1

    def test_all_unparseable_raises_empty_batch(
        self, image_bytes: Callable[..., bytes]
    ) -> None:
        samples = [RawSample(filename=f"img{i}.jpg", data=image_bytes()) for i in range(4)]
        with pytest.raises(EmptyBatchError) as exc_info:
            assemble(samples)
        assert exc_info.value.dropped == 4

    def test_no_samples_raises_empty_batch(self) -> None:
        with pytest.raises(EmptyBatchError):
            assemble([])

    def test_limit_caps_consumed_samples(self, image_bytes: Callable[..., bytes]) -> None:
        data = image_bytes(size=(8, 8))
        samples = [
            RawSample(filename=f"{i % 90}_0_{i % 5}_{i:03d}.jpg", data=data)
            for i in range(150)
        ]
        batch = assemble(samples, limit=100)
        assert len(batch) == 100
        assert batch.filenames == [s.filename for s in samples[:100]]

    def test_limit_counts_dropped_samples(self, image_bytes: Callable[..., bytes]) -> None:
        data = image_bytes(size=(8, 8))
        samples = [
            RawSample(filename=f"{i}_0_0_x.jpg" if i % 2 else f"bad{i}.jpg", data=data)
            for i in range(150)
        ]
        batch = assemble(samples, limit=100)
        assert len(batch) + batch.dropped == 100
        assert len(batch) == 50

    def test_limit_never_pulls_extra_items(self, image_bytes: Callable[..., bytes]) -> None:
        data = image_bytes(size=(8, 8))
        pulled = 0

        def _source() -> Iterator[RawSample]:
            nonlocal pulled
            for i in range(150):
                pulled += 1
                yield RawSample(filename=f"20_1_1_{i}.jpg", data=data)

        assemble(_source(), limit=100)
        assert pulled == 100

    def test_default_limit_is_100(self, image_bytes: Callable[..., bytes]) -> None:
        data = image_bytes(size=(4, 4))
        samples = [RawSample(filename=f"30_0_0_{i}.jpg", data=data) for i in range(120)]
        assert len(assemble(samples)) == 100

    def test_decode_error_aborts(self, labelled_samples: list[RawSample]) -> None:
        bad = RawSample(filename="30_0_1_corrupt.jpg", data=b"not an image")
        with pytest.raises(ImageDecodeError):
            assemble([*labelled_samples, bad])

    def test_race_out_of_range_aborts(self, image_bytes: Callable[..., bytes]) -> None:
        samples = [
            RawSample(filename="30_0_1_ok.jpg", data=image_bytes()),
            RawSample(filename="30_0_5_bad.jpg", data=image_bytes()),
        ]
        with pytest.raises(LabelRangeError):
            assemble(samples)

    def test_invalid_limit(self, labelled_samples: list[RawSample]) -> None:
        with pytest.raises(ValueError, match="limit"):
            assemble(labelled_samples, limit=0)

    def test_release_drops_tensors(self, labelled_samples: list[RawSample]) -> None:
        batch = assemble(labelled_samples)
        batch.release()
        assert batch.images.numel() == 0
        assert batch.labels.numel() == 0


class TestTensorScope:
    def test_stack_and_release(self) -> None:
        with TensorScope() as scope:
            for i in range(3):
                scope.track(torch.full((2,), float(i)))
            stacked = scope.stack()
            assert len(scope) == 3
        assert stacked.shape == (3, 2)
        assert len(scope) == 0

    def test_released_on_error(self) -> None:
        scope = TensorScope()
        with pytest.raises(RuntimeError, match="boom"), scope:
            scope.track(torch.zeros(1))
            raise RuntimeError("boom")
        assert len(scope) == 0

    def test_track_after_release_raises(self) -> None:
        scope = TensorScope()
        scope.release()
        with pytest.raises(RuntimeError, match="released"):
            scope.track(torch.zeros(1))


class TestRawSamples:
    def test_iter_raw_samples_finds_images_recursively(
        self, face_dir: Path, labelled_samples: list[RawSample]
    ) -> None:
        samples = list(iter_raw_samples(face_dir))
        names = {s.filename for s in samples}
        assert names == {s.filename for s in labelled_samples} | {"no_label.png"}

    def test_from_path_reads_bytes(self, tmp_path: Path) -> None:
        path = tmp_path / "20_0_0_a.jpg"
        path.write_bytes(b"abc")
        sample = RawSample.from_path(path)
        assert sample.filename == "20_0_0_a.jpg"
        assert sample.data == b"abc"

    def test_assemble_from_directory(self, face_dir: Path) -> None:
        batch = assemble(iter_raw_samples(face_dir))
        assert len(batch) == 6
        assert batch.dropped == 1

    def test_get_files_sorted_and_case_insensitive(self, tmp_path: Path) -> None:
        (tmp_path / "b.JPG").touch()
        (tmp_path / "a.png").touch()
        (tmp_path / "c.txt").touch()
        result = get_files(tmp_path)
        assert [p.name for p in result] == ["a.png", "b.JPG"]
