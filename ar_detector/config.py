from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from .letterbox import LetterboxConfig
from .nms import NMSConfig
from .orientation import CaptureOrientation
from .postprocess import BoxMapping, DecoderConfig, PostprocessConfig


@dataclass(frozen=True)
class DetectorConfig:
    model: Optional[str] = None
    metadata: Optional[str] = None
    input_size: int = 640
    conf_threshold: float = 0.25
    iou_threshold: float = 0.45
    num_classes: int = 80
    num_predictions: int = 8400
    max_detections: Optional[int] = None
    box_mapping: BoxMapping = BoxMapping.LETTERBOX
    capture_rotation: CaptureOrientation = CaptureOrientation.ROTATE_90
    onnx_providers: Optional[Tuple[str, ...]] = None
    pad_color: Tuple[int, int, int] = (0, 0, 0)

    def __post_init__(self) -> None:
        if self.input_size < 32:
            raise ValueError("input_size must be >= 32")
        try:
            object.__setattr__(self, "box_mapping", BoxMapping(self.box_mapping))
        except ValueError as exc:
            raise ValueError(f"box_mapping must be one of {[m.value for m in BoxMapping]}") from exc
        try:
            object.__setattr__(self, "capture_rotation", CaptureOrientation(self.capture_rotation))
        except ValueError as exc:
            raise ValueError("capture_rotation must be 0, 90, 180 or 270") from exc
        if self.onnx_providers is not None:
            object.__setattr__(self, "onnx_providers", tuple(self.onnx_providers))
        # Validate thresholds and sizes of the nested configs.
        self.postprocess_config()
        self.letterbox_config()

    def letterbox_config(self) -> LetterboxConfig:
        return LetterboxConfig(size=self.input_size, color=tuple(self.pad_color))

    def decoder_config(self) -> DecoderConfig:
        return DecoderConfig(
            input_size=self.input_size,
            num_classes=self.num_classes,
            num_predictions=self.num_predictions,
            conf_threshold=self.conf_threshold,
            box_mapping=self.box_mapping,
        )

    def postprocess_config(self) -> PostprocessConfig:
        return PostprocessConfig(
            decoder=self.decoder_config(),
            nms=NMSConfig(iou_threshold=self.iou_threshold, max_detections=self.max_detections),
        )


def _require_number(payload: Dict[str, Any], key: str) -> float:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _require_int(payload: Dict[str, Any], key: str) -> int:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def _require_str(payload: Dict[str, Any], key: str) -> str:
    value = payload[key]
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{key} must be a non-empty string")
    return value


def load_detector_config(path: Union[str, Path]) -> DetectorConfig:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Detector config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid detector config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Detector config must be a JSON object")

    str_keys = {"model", "metadata", "box_mapping"}
    int_keys = {"input_size", "num_classes", "num_predictions", "max_detections", "capture_rotation"}
    float_keys = {"conf_threshold", "iou_threshold"}
    allowed = str_keys | int_keys | float_keys | {"onnx_providers", "pad_color"}

    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown detector config keys: {unknown}")

    kwargs: Dict[str, Any] = {}
    for key, value in payload.items():
        if value is None:
            continue
        if key in str_keys:
            kwargs[key] = _require_str(payload, key)
        elif key in int_keys:
            kwargs[key] = _require_int(payload, key)
        elif key in float_keys:
            kwargs[key] = _require_number(payload, key)
        elif key == "onnx_providers":
            if isinstance(value, str):
                value = [p.strip() for p in value.split(",") if p.strip()]
            if not isinstance(value, list) or not value or not all(isinstance(p, str) and p for p in value):
                raise ValueError("onnx_providers must be a non-empty string or list of strings")
            kwargs[key] = tuple(value)
        elif key == "pad_color":
            if not isinstance(value, list) or len(value) != 3 or any(isinstance(c, bool) or not isinstance(c, int) for c in value):
                raise ValueError("pad_color must be a list of three integers")
            kwargs[key] = tuple(value)

    return DetectorConfig(**kwargs)
