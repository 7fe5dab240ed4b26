from __future__ import annotations

from typing import Iterable, List, Tuple

from .orientation import CaptureOrientation
from .types import DetectionResult, ScreenRect


def display_scale(
    result: DetectionResult,
    display_width: float,
    display_height: float,
    orientation: CaptureOrientation = CaptureOrientation.ROTATE_90,
) -> Tuple[float, float]:
    """
    Per-axis factors from detection space to display space.

    With a 90/270 degree capture the detector worked on the rotated frame, whose
    width is the source height, so the source dimensions are swapped here.
    """

    src_w = result.source_image_width
    src_h = result.source_image_height
    if src_w <= 0 or src_h <= 0:
        raise ValueError(f"Invalid source image size: {src_w}x{src_h}")
    if CaptureOrientation(orientation).swaps_axes:
        return display_width / src_h, display_height / src_w
    return display_width / src_w, display_height / src_h


def map_to_display(
    result: DetectionResult,
    display_width: float,
    display_height: float,
    orientation: CaptureOrientation = CaptureOrientation.ROTATE_90,
) -> ScreenRect:
    scale_x, scale_y = display_scale(result, display_width, display_height, orientation)
    return ScreenRect(
        x=result.x * scale_x,
        y=result.y * scale_y,
        width=result.width * scale_x,
        height=result.height * scale_y,
    )


def map_all_to_display(
    results: Iterable[DetectionResult],
    display_width: float,
    display_height: float,
    orientation: CaptureOrientation = CaptureOrientation.ROTATE_90,
) -> List[ScreenRect]:
    return [map_to_display(r, display_width, display_height, orientation) for r in results]
