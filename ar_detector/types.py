from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Detection:
    """
    Labeled box with a top-left origin.

    The coordinate space depends on the stage: model-input pixels while decoding,
    original-image pixels once the decoder has rescaled it.
    """

    x: float
    y: float
    width: float
    height: float
    confidence: float
    class_id: int
    label: str = ""

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.x, self.y, self.x + self.width, self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height


@dataclass(frozen=True)
class DetectionResult:
    """
    Detection handed to the presentation layer.

    `source_image_width`/`source_image_height` are the decoded frame dimensions,
    before any capture rotation was applied.
    """

    x: float
    y: float
    width: float
    height: float
    confidence: float
    class_id: int
    label: str
    source_image_width: int
    source_image_height: int

    @classmethod
    def from_detection(cls, det: Detection, source_width: int, source_height: int) -> "DetectionResult":
        return cls(
            x=det.x,
            y=det.y,
            width=det.width,
            height=det.height,
            confidence=det.confidence,
            class_id=det.class_id,
            label=det.label,
            source_image_width=int(source_width),
            source_image_height=int(source_height),
        )


@dataclass(frozen=True)
class ScreenRect:
    x: float
    y: float
    width: float
    height: float
