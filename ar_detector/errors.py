"""
Exceptions raised by the detection pipeline.

Only `ModelInitializationError` is meant to reach the caller of a running
pipeline; per-frame failures are logged and degrade to an empty result.
"""

from __future__ import annotations

from typing import Optional


class DetectorError(Exception):
    """Base exception for detection errors."""


class InvalidInputError(DetectorError):
    """Raised when an image array or raw output tensor has an unexpected shape."""

    def __init__(self, message: str, shape: Optional[tuple] = None):
        self.shape = shape
        super().__init__(message)


class ImageDecodeError(DetectorError):
    """Raised when encoded image bytes cannot be decoded to a bitmap."""

    def __init__(self, num_bytes: int, reason: str = "unsupported or corrupt image data"):
        self.num_bytes = num_bytes
        self.reason = reason
        super().__init__(f"Could not decode image ({num_bytes} bytes): {reason}")


class ModelInitializationError(DetectorError):
    """Raised when the model asset is missing or the inference engine fails to load."""

    def __init__(self, model_path: str, reason: str):
        self.model_path = model_path
        self.reason = reason
        super().__init__(f"Failed to initialize model '{model_path}': {reason}")
