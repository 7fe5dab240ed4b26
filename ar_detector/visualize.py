from __future__ import annotations

from functools import lru_cache
from typing import Iterable, Tuple, Union

import cv2
import numpy as np

from .errors import InvalidInputError
from .types import Detection, DetectionResult

_FONT = cv2.FONT_HERSHEY_SIMPLEX
_TEXT_RGB = (255, 255, 255)
# Successive class ids land far apart on the hue wheel.
_HUE_STEP = 0.618033988749895


@lru_cache(maxsize=256)
def color_for_class_id(class_id: int) -> Tuple[int, int, int]:
    """Stable, saturated RGB colour for a class id."""
    hue = int(((class_id * _HUE_STEP) % 1.0) * 180) % 180
    hsv = np.array([[[hue, 220, 255]]], dtype=np.uint8)
    r, g, b = cv2.cvtColor(hsv, cv2.COLOR_HSV2RGB)[0, 0]
    return int(r), int(g), int(b)


def _caption(det: Union[Detection, DetectionResult], show_score: bool) -> str:
    name = det.label or str(det.class_id)
    return f"{name} {det.confidence:.2f}" if show_score else name


def _clamped_corners(det, width: int, height: int) -> Tuple[int, int, int, int]:
    x1, y1 = det.x, det.y
    x2, y2 = det.x + det.width, det.y + det.height
    xs = np.clip(np.rint([x1, x2]), 0, width - 1).astype(int)
    ys = np.clip(np.rint([y1, y2]), 0, height - 1).astype(int)
    return int(xs[0]), int(ys[0]), int(xs[1]), int(ys[1])


def _put_caption(canvas: np.ndarray, text: str, anchor: Tuple[int, int], color, font_scale: float, thickness: int) -> None:
    h, w = canvas.shape[:2]
    x, y = anchor
    (tw, th), baseline = cv2.getTextSize(text, _FONT, font_scale, thickness)
    box_h = th + baseline
    # Above the box when there is room, otherwise tucked inside its top edge.
    top = y - box_h if y - box_h >= 0 else y
    bottom = min(top + box_h, h - 1)
    cv2.rectangle(canvas, (x, top), (min(x + tw, w - 1), bottom), color, thickness=cv2.FILLED)
    cv2.putText(canvas, text, (x, min(top + th, h - 1)), _FONT, font_scale, _TEXT_RGB, thickness, cv2.LINE_AA)


def draw_detections(
    image_rgb: np.ndarray,
    detections: Iterable[Union[Detection, DetectionResult]],
    *,
    show_score: bool = True,
    box_thickness: int = 2,
    font_scale: float = 0.5,
    font_thickness: int = 1,
) -> np.ndarray:
    """
    Return a copy of ``image_rgb`` with one outlined box and caption per detection.

    Coordinates are taken as pixels of ``image_rgb``; anything outside is clamped.
    """

    if not isinstance(image_rgb, np.ndarray):
        raise InvalidInputError("image_rgb must be a NumPy array (RGB).")
    if image_rgb.ndim != 3 or image_rgb.shape[2] != 3:
        raise InvalidInputError(f"Expected image shape (H, W, 3), got {image_rgb.shape}", image_rgb.shape)

    canvas = image_rgb.copy()
    height, width = canvas.shape[:2]
    for det in detections:
        x1, y1, x2, y2 = _clamped_corners(det, width, height)
        color = color_for_class_id(det.class_id)
        cv2.rectangle(canvas, (x1, y1), (x2, y2), color, thickness=box_thickness)
        _put_caption(canvas, _caption(det, show_score), (x1, y1), color, font_scale, font_thickness)
    return canvas
