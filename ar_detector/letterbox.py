from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import cv2
import numpy as np

from .errors import InvalidInputError


@dataclass(frozen=True)
class LetterboxConfig:
    size: int = 640
    color: Tuple[int, int, int] = (0, 0, 0)

    def __post_init__(self) -> None:
        if self.size <= 0:
            raise ValueError("size must be > 0")
        color = tuple(self.color)
        if len(color) != 3 or not all(isinstance(c, int) and 0 <= c <= 255 for c in color):
            raise ValueError("color must be three integers in [0, 255]")
        object.__setattr__(self, "color", color)


@dataclass(frozen=True)
class LetterboxGeometry:
    scale: float
    resized_size: Tuple[int, int]
    pad: Tuple[int, int]


@dataclass(frozen=True)
class LetterboxResult:
    image: np.ndarray
    scale: float
    pad: Tuple[int, int]
    resized_size: Tuple[int, int]


def letterbox_geometry(width: int, height: int, size: int) -> LetterboxGeometry:
    """
    Scale and padding that fit a `width` x `height` image into a `size` square.

    The odd pixel of an uneven padding goes to the right/bottom edge.
    """

    if width <= 0 or height <= 0:
        raise InvalidInputError(f"Image has no pixels: {width}x{height}", (height, width))
    if size <= 0:
        raise ValueError("size must be > 0")

    scale = min(size / width, size / height)
    new_w = max(1, int(round(width * scale)))
    new_h = max(1, int(round(height * scale)))
    return LetterboxGeometry(
        scale=scale,
        resized_size=(new_w, new_h),
        pad=((size - new_w) // 2, (size - new_h) // 2),
    )


def letterbox(
    image: np.ndarray,
    size: int = 640,
    color: Tuple[int, int, int] = (0, 0, 0),
) -> LetterboxResult:
    """
    Resize `image` to fit a `size` x `size` square without cropping and pad the rest.

    Returns:
        image: padded (size, size, C) image
        scale: uniform resize factor applied to both axes
        pad: (pad_x, pad_y) offset of the resized image inside the square (left/top)
        resized_size: (new_w, new_h) before padding
    """

    if image is None or not hasattr(image, "shape") or image.ndim != 3:
        raise InvalidInputError(
            f"Expected image shape (H, W, C), got {getattr(image, 'shape', None)}",
            getattr(image, "shape", None),
        )

    h, w = image.shape[:2]
    geom = letterbox_geometry(w, h, size)
    new_w, new_h = geom.resized_size
    pad_x, pad_y = geom.pad

    if (w, h) != (new_w, new_h):
        # Area averaging when shrinking keeps fine detail from aliasing away.
        interpolation = cv2.INTER_AREA if geom.scale < 1.0 else cv2.INTER_LINEAR
        image = cv2.resize(image, (new_w, new_h), interpolation=interpolation)

    padded = cv2.copyMakeBorder(
        image,
        pad_y,
        size - new_h - pad_y,
        pad_x,
        size - new_w - pad_x,
        cv2.BORDER_CONSTANT,
        value=color,
    )

    return LetterboxResult(image=padded, scale=geom.scale, pad=geom.pad, resized_size=geom.resized_size)
