"""Exception hierarchy for face_attributes.

Engine failures (PyTorch / Lightning) are never wrapped here; they reach the
caller unchanged.
"""

from __future__ import annotations


class FaceAttributesError(Exception):
    """Base class for all pipeline errors."""


class LabelParseError(FaceAttributesError, ValueError):
    """Filename does not carry a ``<age>_<gender>_<race>`` label prefix."""


class ImageDecodeError(FaceAttributesError, ValueError):
    """Byte stream is not a decodable image."""


class LabelRangeError(FaceAttributesError, IndexError):
    """Categorical label code outside its one-hot domain."""


class LabelVectorError(FaceAttributesError, ValueError):
    """Output vector is too short to decode."""


class EmptyBatchError(FaceAttributesError, ValueError):
    """No usable samples survived assembly.

    Args:
        message: Human-readable reason.
        dropped: Number of samples skipped because their filename
            could not be parsed.
    """

    def __init__(self, message: str, dropped: int = 0) -> None:
        super().__init__(message)
        self.dropped = dropped


class SessionBusyError(FaceAttributesError, RuntimeError):
    """A training or prediction call is already running on this session."""
