"""
Capture orientation shared by the capture side and the display mapper.

A frame captured in portrait is rotated before detection, so the detector sees
an image whose axes are swapped relative to the decoded bitmap. The same
`CaptureOrientation` value drives both the rotation and the display-time scale
swap, so the two cannot drift apart.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Tuple

import cv2
import numpy as np


class CaptureOrientation(IntEnum):
    ROTATE_0 = 0
    ROTATE_90 = 90
    ROTATE_180 = 180
    ROTATE_270 = 270

    @property
    def swaps_axes(self) -> bool:
        return self in (CaptureOrientation.ROTATE_90, CaptureOrientation.ROTATE_270)

    def rotated_size(self, width: int, height: int) -> Tuple[int, int]:
        return (height, width) if self.swaps_axes else (width, height)


_CV2_ROTATIONS = {
    CaptureOrientation.ROTATE_90: cv2.ROTATE_90_CLOCKWISE,
    CaptureOrientation.ROTATE_180: cv2.ROTATE_180,
    CaptureOrientation.ROTATE_270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}


def rotate_for_capture(image: np.ndarray, orientation: CaptureOrientation) -> np.ndarray:
    """Rotate a decoded frame clockwise by `orientation` degrees."""
    orientation = CaptureOrientation(orientation)
    if orientation is CaptureOrientation.ROTATE_0:
        return image
    return cv2.rotate(image, _CV2_ROTATIONS[orientation])
