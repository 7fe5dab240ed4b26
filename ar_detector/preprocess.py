from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Tuple

import cv2
import numpy as np

from .errors import ImageDecodeError, InvalidInputError
from .letterbox import LetterboxConfig, letterbox

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreprocessResult:
    """
    Channel-planar tensor plus the geometry needed to invert the letterbox.

    `tensor` is flat float32 of length 3 * N * N laid out as all red values, then all
    green, then all blue; pixel (x, y) of channel c sits at c * N * N + y * N + x.
    """

    tensor: np.ndarray
    input_size: int
    scale: float
    pad: Tuple[int, int]
    resized_size: Tuple[int, int]
    orig_size: Tuple[int, int]

    @property
    def pad_x(self) -> int:
        return self.pad[0]

    @property
    def pad_y(self) -> int:
        return self.pad[1]

    def as_nchw(self) -> np.ndarray:
        n = self.input_size
        return self.tensor.reshape(1, 3, n, n)


def decode_image(image_bytes: bytes) -> np.ndarray:
    """
    Decode JPEG/PNG bytes to an RGB (H, W, 3) uint8 array.

    Any advisory width/height reported alongside the bytes is irrelevant here: the
    dimensions always come from the decoded bitmap.
    """

    if not image_bytes:
        raise ImageDecodeError(0, "empty buffer")
    buf = np.frombuffer(image_bytes, dtype=np.uint8)
    bgr = cv2.imdecode(buf, cv2.IMREAD_COLOR)
    if bgr is None:
        raise ImageDecodeError(len(image_bytes))
    return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)


def preprocess_image(image_rgb: np.ndarray, cfg: LetterboxConfig = LetterboxConfig()) -> PreprocessResult:
    if image_rgb is None or not hasattr(image_rgb, "shape"):
        raise InvalidInputError("image_rgb must be a NumPy array (RGB).")
    if image_rgb.ndim != 3 or image_rgb.shape[2] != 3:
        raise InvalidInputError(
            f"Expected image shape (H, W, 3), got {getattr(image_rgb, 'shape', None)}", image_rgb.shape
        )

    orig_h, orig_w = image_rgb.shape[:2]
    lb = letterbox(image_rgb, size=cfg.size, color=cfg.color)
    logger.debug(
        "Letterboxed %dx%d -> %dx%d, scale=%.4f, pad=%s",
        orig_w,
        orig_h,
        lb.resized_size[0],
        lb.resized_size[1],
        lb.scale,
        lb.pad,
    )

    # HWC uint8 -> CHW float in [0, 1], flattened plane by plane
    chw = np.transpose(lb.image.astype(np.float32) / 255.0, (2, 0, 1))
    tensor = np.ascontiguousarray(chw).reshape(-1)

    return PreprocessResult(
        tensor=tensor,
        input_size=cfg.size,
        scale=lb.scale,
        pad=lb.pad,
        resized_size=lb.resized_size,
        orig_size=(orig_w, orig_h),
    )
