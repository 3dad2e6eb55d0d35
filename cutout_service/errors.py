"""Typed failures raised by the refinement engine and its service shell."""

from __future__ import annotations


class RefinementError(ValueError):
    """Base class for input problems that abort a refinement call."""


class DimensionMismatch(RefinementError):
    """A probability or alpha buffer does not match the image it refines."""

    def __init__(self, expected: tuple, actual: tuple):
        self.expected = tuple(expected)
        self.actual = tuple(actual)
        super().__init__(f"buffer shape {self.actual} does not match image shape {self.expected}")


class EmptyMask(RefinementError):
    """The segmentation oracle found no subject in the image."""

    def __init__(self, message: str = "No subject detected in image"):
        super().__init__(message)


NoSubjectDetected = EmptyMask


class InvalidImage(RefinementError):
    """Image bytes could not be decoded or the buffer layout is unusable."""


class OracleUnavailable(RuntimeError):
    """The segmentation model could not be loaded."""
