import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

import cv2

from ar_detector import (
    BoxMapping,
    CaptureOrientation,
    DetectorConfig,
    DetectorError,
    draw_detections,
    load_detector_config,
    load_pipeline,
    map_to_display,
    rotate_for_capture,
)
from ar_detector.preprocess import decode_image


def _parse_display(value: str):
    try:
        w, h = value.lower().split("x", 1)
        return float(w), float(h)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Display size must look like 360x640, got {value!r}") from exc


def main() -> int:
    parser = argparse.ArgumentParser(description="Run YOLO detection on an image and print display-space boxes.")
    parser.add_argument("--image", required=True, help="Path to an input JPEG/PNG image.")
    parser.add_argument("--config", default=None, help="Optional detector config JSON.")
    parser.add_argument("--model", default=None, help="Path to a YOLO model (.onnx/.torchscript).")
    parser.add_argument("--metadata", default=None, help="Path to class metadata (names mapping).")
    parser.add_argument("--imgsz", type=int, default=None, help="Model input size (e.g., 640).")
    parser.add_argument("--conf", type=float, default=None, help="Confidence threshold.")
    parser.add_argument("--iou", type=float, default=None, help="IoU threshold for NMS.")
    parser.add_argument(
        "--box-mapping",
        choices=[m.value for m in BoxMapping],
        default=None,
        help="How model boxes map back to the image: undo letterbox, or per-axis stretch.",
    )
    parser.add_argument("--rotation", type=int, choices=[0, 90, 180, 270], default=None, help="Capture rotation.")
    parser.add_argument("--backend", default=None, help="Force backend: onnxruntime / torchscript.")
    parser.add_argument(
        "--onnx-providers",
        default=None,
        help='Comma-separated ORT providers, e.g. "CUDAExecutionProvider,CPUExecutionProvider".',
    )
    parser.add_argument("--display", type=_parse_display, default=None, help="Display size WxH, e.g. 360x640.")
    parser.add_argument("--show", action="store_true", help="Show a window with visualized detections.")
    parser.add_argument("--out", default=None, help="Optional output path to save the visualization.")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING, ...).")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    cfg = load_detector_config(Path(args.config)) if args.config else DetectorConfig()
    overrides = {
        "model": args.model,
        "metadata": args.metadata,
        "input_size": args.imgsz,
        "conf_threshold": args.conf,
        "iou_threshold": args.iou,
        "box_mapping": args.box_mapping,
        "capture_rotation": args.rotation,
    }
    if args.onnx_providers:
        overrides["onnx_providers"] = tuple(p.strip() for p in args.onnx_providers.split(",") if p.strip())
    cfg = replace(cfg, **{k: v for k, v in overrides.items() if v is not None})
    if not cfg.model:
        parser.error("--model is required (or set 'model' in --config)")

    image_bytes = Path(args.image).read_bytes()
    pipeline = load_pipeline(cfg.model, backend=args.backend, config=cfg)

    try:
        with pipeline:
            results = pipeline.detect(image_bytes)
    except DetectorError as e:
        logging.getLogger(__name__).error("%s", e)
        return 1

    for r in results:
        line = f"{r.label:<15} {r.confidence:.2f} x={r.x:.1f} y={r.y:.1f} w={r.width:.1f} h={r.height:.1f}"
        if args.display is not None:
            rect = map_to_display(r, args.display[0], args.display[1], cfg.capture_rotation)
            line += f" -> screen x={rect.x:.1f} y={rect.y:.1f} w={rect.width:.1f} h={rect.height:.1f}"
        print(line)
    print(f"{len(results)} detections")

    if args.out or args.show:
        oriented = rotate_for_capture(decode_image(image_bytes), CaptureOrientation(cfg.capture_rotation))
        vis = cv2.cvtColor(draw_detections(oriented, results), cv2.COLOR_RGB2BGR)
        if args.out:
            if not cv2.imwrite(args.out, vis):
                raise RuntimeError(f"Failed to write output image: {args.out}")
        if args.show:
            cv2.imshow("detections", vis)
            cv2.waitKey(0)
            cv2.destroyAllWindows()

    return 0


if __name__ == "__main__":
    sys.exit(main())
