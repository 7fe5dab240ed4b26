"""
On-device YOLO object detection core.

Turns an encoded camera frame into labeled boxes: letterbox preprocessing,
output decoding, per-class NMS and display-space mapping. Inference runtimes are
optional and only imported by the backend that needs them.
"""

from .config import DetectorConfig, load_detector_config
from .display import map_all_to_display, map_to_display
from .errors import DetectorError, ImageDecodeError, InvalidInputError, ModelInitializationError
from .labels import COCO_LABEL_TABLE, COCO_LABELS, LabelTable, load_class_names
from .letterbox import LetterboxConfig, letterbox, letterbox_geometry
from .nms import NMSConfig, iou, nms, non_max_suppression
from .orientation import CaptureOrientation, rotate_for_capture
from .postprocess import BoxMapping, DecoderConfig, OutputDecoder, PostprocessConfig, YoloPostprocessor
from .preprocess import PreprocessResult, decode_image, preprocess_image
from .runtime import DetectionPipeline, Detector, load_pipeline, load_pipeline_from_config, resolve_path
from .types import Detection, DetectionResult, ScreenRect
from .visualize import draw_detections

__all__ = [
    "DetectorConfig",
    "load_detector_config",
    "map_all_to_display",
    "map_to_display",
    "DetectorError",
    "ImageDecodeError",
    "InvalidInputError",
    "ModelInitializationError",
    "COCO_LABEL_TABLE",
    "COCO_LABELS",
    "LabelTable",
    "load_class_names",
    "LetterboxConfig",
    "letterbox",
    "letterbox_geometry",
    "NMSConfig",
    "iou",
    "nms",
    "non_max_suppression",
    "CaptureOrientation",
    "rotate_for_capture",
    "BoxMapping",
    "DecoderConfig",
    "OutputDecoder",
    "PostprocessConfig",
    "YoloPostprocessor",
    "PreprocessResult",
    "decode_image",
    "preprocess_image",
    "DetectionPipeline",
    "Detector",
    "load_pipeline",
    "load_pipeline_from_config",
    "resolve_path",
    "Detection",
    "DetectionResult",
    "ScreenRect",
    "draw_detections",
]
