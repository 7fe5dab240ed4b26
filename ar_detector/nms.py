from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from .types import Detection


@dataclass(frozen=True)
class NMSConfig:
    iou_threshold: float = 0.45
    # None keeps every survivor.
    max_detections: Optional[int] = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be in [0, 1]")
        if self.max_detections is not None and self.max_detections <= 0:
            raise ValueError("max_detections must be > 0")


def iou(a: Detection, b: Detection) -> float:
    """
    Intersection over union of two top-left/size boxes; 0.0 when the union is empty.
    """

    ax1, ay1, ax2, ay2 = a.as_xyxy()
    bx1, by1, bx2, by2 = b.as_xyxy()
    inter_w = max(0.0, min(ax2, bx2) - max(ax1, bx1))
    inter_h = max(0.0, min(ay2, by2) - max(ay1, by1))
    inter = inter_w * inter_h
    union = a.area + b.area - inter
    if union <= 0:
        return 0.0
    return inter / union


def nms(boxes: np.ndarray, scores: np.ndarray, class_ids: np.ndarray, cfg: NMSConfig = NMSConfig()) -> np.ndarray:
    """
    Per-class greedy NMS. Expects boxes shape (N, 4) in xyxy, scores and class_ids shape (N,).
    Returns indices of boxes to keep, highest score first.

    Candidates are sorted once (stable, so equal scores keep input order) and
    suppression only flips flags; nothing is reallocated per pass.
    """

    if boxes.size == 0:
        return np.empty((0,), dtype=np.int64)

    order = np.argsort(-scores, kind="stable")
    b = boxes[order]
    cls = class_ids[order]

    x1 = b[:, 0]
    y1 = b[:, 1]
    x2 = b[:, 2]
    y2 = b[:, 3]
    areas = (x2 - x1) * (y2 - y1)

    n = order.size
    suppressed = np.zeros(n, dtype=bool)
    keep: List[int] = []

    for i in range(n):
        if suppressed[i]:
            continue
        keep.append(int(order[i]))
        if cfg.max_detections is not None and len(keep) >= cfg.max_detections:
            break

        rest = slice(i + 1, n)
        same_class = (cls[rest] == cls[i]) & ~suppressed[rest]
        if not same_class.any():
            continue

        w = np.maximum(0.0, np.minimum(x2[i], x2[rest]) - np.maximum(x1[i], x1[rest]))
        h = np.maximum(0.0, np.minimum(y2[i], y2[rest]) - np.maximum(y1[i], y1[rest]))
        inter = w * h
        union = areas[i] + areas[rest] - inter
        overlap = np.divide(inter, union, out=np.zeros_like(inter), where=union > 0)

        suppressed[rest] |= same_class & (overlap > cfg.iou_threshold)

    return np.array(keep, dtype=np.int64)


def non_max_suppression(detections: Sequence[Detection], cfg: NMSConfig = NMSConfig()) -> List[Detection]:
    if not detections:
        return []
    boxes = np.array([d.as_xyxy() for d in detections], dtype=np.float64)
    scores = np.array([d.confidence for d in detections], dtype=np.float64)
    class_ids = np.array([d.class_id for d in detections], dtype=np.int64)
    return [detections[i] for i in nms(boxes, scores, class_ids, cfg)]
