"""Assemble raw samples into aligned (images, labels) training tensors."""

from __future__ import annotations

import itertools
from collections.abc import Iterable
from dataclasses import dataclass, field

import torch
from loguru import logger

from face_attributes.data.samples import RawSample
from face_attributes.data.scope import TensorScope
from face_attributes.errors import EmptyBatchError
from face_attributes.labels import encode_label, parse_label
from face_attributes.transforms.normalize import IMAGE_SIZE, normalize

DEFAULT_SAMPLE_LIMIT = 100


@dataclass
class AssembledBatch:
    """Stacked training tensors plus bookkeeping about what was skipped.

    images: Float tensor of shape (N, H, W, 3), values in [0, 1].
    labels: Float tensor of shape (N, 8).
    filenames: Source filename of each row, in order.
    dropped: Samples skipped because their filename carried no label.
    """

    images: torch.Tensor
    labels: torch.Tensor
    filenames: list[str] = field(default_factory=list)
    dropped: int = 0

    def __len__(self) -> int:
        return int(self.images.shape[0])

    def release(self) -> None:
        """Drop the batch tensors once the engine no longer needs them."""
        self.images = torch.empty(0)
        self.labels = torch.empty(0)


def assemble(
    samples: Iterable[RawSample],
    limit: int = DEFAULT_SAMPLE_LIMIT,
    image_size: int = IMAGE_SIZE,
) -> AssembledBatch:
    """Build a training batch from at most ``limit`` samples.

    Samples whose filename does not parse are skipped and counted in
    ``AssembledBatch.dropped``.  Image decode failures and out-of-range
    race codes are not recoverable and abort the whole batch.

    Args:
        samples: Raw samples; consumed lazily, never beyond ``limit``.
        limit: Maximum number of samples to consume (parsed or not).
        image_size: Output image height and width.

    Raises:
        ImageDecodeError: a retained sample's bytes are not an image.
        LabelRangeError: a retained sample has a race code outside 0..4.
        EmptyBatchError: every consumed sample was dropped, or none were given.
    """
    if limit < 1:
        raise ValueError(f"limit must be >= 1, got {limit}")

    filenames: list[str] = []
    dropped = 0
    with TensorScope() as image_scope, TensorScope() as label_scope:
        for sample in itertools.islice(samples, limit):
            triple = parse_label(sample.filename)
            if triple is None:
                dropped += 1
                continue
            image_scope.track(normalize(sample.data, image_size))
            label_scope.track(encode_label(triple))
            filenames.append(sample.filename)

        if not filenames:
            raise EmptyBatchError(
                f"No usable samples: {dropped} filename(s) without an "
                "<age>_<gender>_<race> label prefix",
                dropped=dropped,
            )
        images = image_scope.stack()
        labels = label_scope.stack()

    if dropped:
        logger.warning(f"Skipped {dropped} sample(s) with unparseable filenames")
    logger.info(
        f"Assembled batch: {len(filenames)} sample(s), "
        f"images={tuple(images.shape)}, labels={tuple(labels.shape)}"
    )
    return AssembledBatch(
        images=images, labels=labels, filenames=filenames, dropped=dropped
    )
