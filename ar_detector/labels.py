from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterator, Sequence, Tuple, Union

UNKNOWN_LABEL = "Unknown"

# Index equals the class id emitted by COCO-trained YOLOv8 exports.
COCO_LABELS: Tuple[str, ...] = (
    "person", "bicycle", "car", "motorcycle", "airplane", "bus", "train", "truck", "boat",
    "traffic light", "fire hydrant", "stop sign", "parking meter", "bench", "bird", "cat", "dog",
    "horse", "sheep", "cow", "elephant", "bear", "zebra", "giraffe", "backpack", "umbrella",
    "handbag", "tie", "suitcase", "frisbee", "skis", "snowboard", "sports ball", "kite",
    "baseball bat", "baseball glove", "skateboard", "surfboard", "tennis racket", "bottle",
    "wine glass", "cup", "fork", "knife", "spoon", "bowl", "banana", "apple", "sandwich",
    "orange", "broccoli", "carrot", "hot dog", "pizza", "donut", "cake", "chair", "couch",
    "potted plant", "bed", "dining table", "toilet", "tv", "laptop", "mouse", "remote",
    "keyboard", "cell phone", "microwave", "oven", "toaster", "sink", "refrigerator", "book",
    "clock", "vase", "scissors", "teddy bear", "hair drier", "toothbrush",
)


class LabelTable:
    """
    Immutable class id -> name lookup.

    Ids outside the table resolve to "Unknown" instead of raising, so a model with
    more classes than the table still produces usable detections.
    """

    __slots__ = ("_names",)

    def __init__(self, names: Sequence[str] = COCO_LABELS):
        self._names: Tuple[str, ...] = tuple(str(n) for n in names)

    def __getitem__(self, class_id: int) -> str:
        if 0 <= class_id < len(self._names):
            return self._names[class_id]
        return UNKNOWN_LABEL

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __repr__(self) -> str:
        return f"LabelTable({len(self._names)} classes)"

    def as_dict(self) -> Dict[int, str]:
        return dict(enumerate(self._names))

    @classmethod
    def from_metadata(cls, metadata_path: Union[str, Path]) -> "LabelTable":
        """
        Build a table from an Ultralytics-style `metadata.yaml`:

            names:
              0: person
              1: bicycle
              ...

        Ids missing from the file are filled with "Unknown" so positions stay aligned.
        """

        names = load_class_names(metadata_path)
        if not names:
            raise ValueError(f"No class names found in {metadata_path}")
        size = max(names) + 1
        return cls([names.get(i, UNKNOWN_LABEL) for i in range(size)])


def load_class_names(metadata_path: Union[str, Path]) -> Dict[int, str]:
    names: Dict[int, str] = {}
    in_names = False

    with open(metadata_path, "r", encoding="utf-8") as f:
        for raw in f:
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            if line == "names:":
                in_names = True
                continue
            if not in_names:
                continue

            # A dedented key ends the names block.
            if not raw[:1].isspace():
                break
            if ":" not in line:
                continue
            left, right = line.split(":", 1)
            left = left.strip()
            right = right.strip().strip("'").strip('"')
            if not left.isdigit():
                continue
            names[int(left)] = right

    return names


COCO_LABEL_TABLE = LabelTable(COCO_LABELS)
