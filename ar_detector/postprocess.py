from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np

from .errors import InvalidInputError
from .labels import COCO_LABEL_TABLE, LabelTable
from .letterbox import letterbox_geometry
from .nms import NMSConfig, non_max_suppression
from .types import Detection

logger = logging.getLogger(__name__)


class BoxMapping(str, Enum):
    """
    How model-input boxes are taken back to original-image pixels.

    LETTERBOX undoes the padding and the uniform resize applied by `letterbox()`.
    STRETCH rescales each axis by original_size / input_size and ignores padding;
    it is only exact when the source image is already square.
    """

    LETTERBOX = "letterbox"
    STRETCH = "stretch"


@dataclass(frozen=True)
class DecoderConfig:
    input_size: int = 640
    num_classes: int = 80
    num_predictions: int = 8400
    conf_threshold: float = 0.25
    box_mapping: BoxMapping = BoxMapping.LETTERBOX

    def __post_init__(self) -> None:
        if self.input_size <= 0:
            raise ValueError("input_size must be > 0")
        if self.num_classes <= 0:
            raise ValueError("num_classes must be > 0")
        if self.num_predictions <= 0:
            raise ValueError("num_predictions must be > 0")
        if not 0.0 <= self.conf_threshold <= 1.0:
            raise ValueError("conf_threshold must be in [0, 1]")
        # Accept plain strings from JSON configs.
        object.__setattr__(self, "box_mapping", BoxMapping(self.box_mapping))

    @property
    def num_channels(self) -> int:
        return 4 + self.num_classes


class OutputDecoder:
    """
    Decode a YOLOv8-style raw output into candidate detections.

    Layout (per image): (4 + C, P) channel-major, e.g. 84 x 8400. Rows 0-3 hold
    cx, cy, w, h in model-input pixels; the remaining C rows hold class scores.
    Accepted shapes are (1, 4 + C, P), (4 + C, P) or a flat buffer of that size.

    Candidates come out in prediction-index order, unsorted.
    """

    def __init__(self, cfg: DecoderConfig = DecoderConfig(), labels: LabelTable = COCO_LABEL_TABLE):
        self.cfg = cfg
        self.labels = labels

    def decode(
        self,
        raw: np.ndarray,
        orig_size: Tuple[int, int],
        scale: Optional[float] = None,
        pad: Optional[Tuple[float, float]] = None,
    ) -> List[Detection]:
        """
        Args:
            raw: inference output for a single image
            orig_size: (width, height) of the image before letterboxing
            scale, pad: letterbox parameters; recomputed from `orig_size` when omitted
        """

        p = self._as_channels(raw)
        cfg = self.cfg

        class_scores = p[4:, :]
        # argmax returns the first index on ties.
        class_ids = np.argmax(class_scores, axis=0)
        max_scores = class_scores[class_ids, np.arange(cfg.num_predictions)]

        idx = np.nonzero(max_scores > cfg.conf_threshold)[0]
        if idx.size == 0:
            return []

        cx, cy, w, h = (p[row, idx].astype(np.float64) for row in range(4))
        w = np.maximum(w, 0.0)
        h = np.maximum(h, 0.0)
        x = cx - w / 2
        y = cy - h / 2

        orig_w, orig_h = orig_size
        if cfg.box_mapping is BoxMapping.STRETCH:
            sx = orig_w / cfg.input_size
            sy = orig_h / cfg.input_size
            x, y, w, h = x * sx, y * sy, w * sx, h * sy
        else:
            if scale is None or pad is None:
                geom = letterbox_geometry(orig_w, orig_h, cfg.input_size)
                scale = geom.scale if scale is None else scale
                pad = geom.pad if pad is None else pad
            x, y, w, h = self._undo_letterbox(x, y, w, h, orig_size, scale, pad)

        return [
            Detection(
                x=float(x[k]),
                y=float(y[k]),
                width=float(w[k]),
                height=float(h[k]),
                confidence=float(max_scores[i]),
                class_id=int(class_ids[i]),
                label=self.labels[int(class_ids[i])],
            )
            for k, i in enumerate(idx)
        ]

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _as_channels(self, raw: np.ndarray) -> np.ndarray:
        cfg = self.cfg
        p = np.asarray(raw)
        expected = (cfg.num_channels, cfg.num_predictions)
        if p.shape not in (expected, (1,) + expected, (cfg.num_channels * cfg.num_predictions,)):
            raise InvalidInputError(
                f"Expected output shape (1, {expected[0]}, {expected[1]}) "
                f"or {expected[0] * expected[1]} values, got {p.shape}",
                p.shape,
            )
        return p.reshape(expected)

    @staticmethod
    def _undo_letterbox(
        x: np.ndarray,
        y: np.ndarray,
        w: np.ndarray,
        h: np.ndarray,
        orig_size: Tuple[int, int],
        scale: float,
        pad: Tuple[float, float],
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        pad_x, pad_y = pad
        orig_w, orig_h = orig_size
        x1 = np.clip((x - pad_x) / scale, 0, orig_w)
        y1 = np.clip((y - pad_y) / scale, 0, orig_h)
        x2 = np.clip((x + w - pad_x) / scale, 0, orig_w)
        y2 = np.clip((y + h - pad_y) / scale, 0, orig_h)
        return x1, y1, x2 - x1, y2 - y1


@dataclass(frozen=True)
class PostprocessConfig:
    decoder: DecoderConfig = field(default_factory=DecoderConfig)
    nms: NMSConfig = field(default_factory=NMSConfig)


class YoloPostprocessor:
    """
    Decode + per-class NMS in one call.
    """

    def __init__(self, cfg: PostprocessConfig = PostprocessConfig(), labels: LabelTable = COCO_LABEL_TABLE):
        self.cfg = cfg
        self.decoder = OutputDecoder(cfg.decoder, labels)

    def process(
        self,
        raw: np.ndarray,
        orig_size: Tuple[int, int],
        scale: Optional[float] = None,
        pad: Optional[Tuple[float, float]] = None,
    ) -> List[Detection]:
        candidates = self.decoder.decode(raw, orig_size, scale=scale, pad=pad)
        logger.debug("Decoded %d candidates above conf %.2f", len(candidates), self.cfg.decoder.conf_threshold)
        kept = non_max_suppression(candidates, self.cfg.nms)
        logger.debug("After NMS: %d detections", len(kept))
        return kept
