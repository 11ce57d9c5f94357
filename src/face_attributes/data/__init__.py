"""Data pipeline for face_attributes."""

from face_attributes.data.assembler import AssembledBatch, assemble
from face_attributes.data.datamodule import FaceAttributeDataModule
from face_attributes.data.samples import RawSample, iter_raw_samples
from face_attributes.data.scope import TensorScope

__all__ = [
    "AssembledBatch",
    "FaceAttributeDataModule",
    "RawSample",
    "TensorScope",
    "assemble",
    "iter_raw_samples",
]
