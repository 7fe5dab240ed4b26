from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, Tuple, Union, runtime_checkable

import numpy as np

from .backends.base import InferenceEngine
from .config import DetectorConfig
from .errors import ImageDecodeError, ModelInitializationError
from .labels import COCO_LABEL_TABLE, LabelTable
from .letterbox import LetterboxConfig
from .orientation import CaptureOrientation, rotate_for_capture
from .postprocess import PostprocessConfig, YoloPostprocessor
from .preprocess import PreprocessResult, decode_image, preprocess_image
from .types import Detection, DetectionResult

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _project_root(start: Path) -> Path:
    for parent in (start, *start.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return start


def resolve_path(path: PathLike, root: Optional[PathLike] = "auto") -> Path:
    """
    Absolute paths pass through. Relative ones are joined to `root`, or with
    root="auto" to the nearest directory above the cwd holding a pyproject.toml.
    """

    p = Path(path)
    if p.is_absolute():
        return p
    base = _project_root(Path.cwd().resolve()) if root in ("auto", None) else Path(root).resolve()
    return (base / p).resolve()


@runtime_checkable
class Detector(Protocol):
    """
    Frame-in, results-out contract shared by `DetectionPipeline` and any
    whole-pipeline detector supplied by a platform vendor.
    """

    def detect(self, image_bytes: bytes, width: int = 0, height: int = 0) -> List[DetectionResult]: ...


class DetectionPipeline:
    """
    Preprocess (letterbox) -> inference -> decode -> NMS for one frame at a time.

    The pipeline owns its engine: `initialize()` loads it (also done lazily on the
    first frame), `dispose()` releases it. Engine calls are serialized with a lock.

    `detect()` never raises for a bad frame: undecodable bytes and inference or
    decoding failures are logged and yield an empty list. Engine initialization
    errors are raised, and keep being raised on every following frame until
    `reinitialize()` succeeds.
    """

    def __init__(
        self,
        engine: InferenceEngine,
        *,
        labels: LabelTable = COCO_LABEL_TABLE,
        post_cfg: PostprocessConfig = PostprocessConfig(),
        orientation: CaptureOrientation = CaptureOrientation.ROTATE_90,
        letterbox_cfg: Optional[LetterboxConfig] = None,
    ):
        if letterbox_cfg is None:
            letterbox_cfg = LetterboxConfig(size=post_cfg.decoder.input_size)
        if letterbox_cfg.size != post_cfg.decoder.input_size:
            raise ValueError(
                f"Letterbox size {letterbox_cfg.size} does not match decoder input size {post_cfg.decoder.input_size}"
            )
        self.engine = engine
        self.labels = labels
        self.letterbox_cfg = letterbox_cfg
        self.post = YoloPostprocessor(post_cfg, labels)
        self.orientation = CaptureOrientation(orientation)
        self._lock = threading.Lock()
        # (model_path, reason) of the last failed initialization
        self._init_failure: Optional[Tuple[str, str]] = None

    @property
    def input_size(self) -> int:
        return self.post.cfg.decoder.input_size

    @property
    def failed(self) -> bool:
        return self._init_failure is not None

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #
    def initialize(self) -> None:
        with self._lock:
            self._initialize_locked()

    def reinitialize(self) -> None:
        with self._lock:
            self.engine.dispose()
            self._init_failure = None
            self._initialize_locked()

    def dispose(self) -> None:
        with self._lock:
            self.engine.dispose()

    def __enter__(self) -> "DetectionPipeline":
        self.initialize()
        return self

    def __exit__(self, *exc_info) -> None:
        self.dispose()

    def _initialize_locked(self) -> None:
        if self._init_failure is not None:
            # New instance each call; re-raising one object keeps growing its __traceback__.
            raise ModelInitializationError(*self._init_failure)
        if self.engine.is_initialized:
            return
        try:
            self.engine.initialize()
        except ModelInitializationError as e:
            self._record_init_failure(e)
            raise
        except Exception as e:
            err = ModelInitializationError(str(getattr(self.engine, "model_path", self.engine)), str(e))
            self._record_init_failure(err)
            raise err from e

    def _record_init_failure(self, err: ModelInitializationError) -> None:
        logger.error("Detector initialization failed: %s", err)
        self._init_failure = (err.model_path, err.reason)

    # ------------------------------------------------------------------ #
    # Per-frame work
    # ------------------------------------------------------------------ #
    def preprocess(self, image_rgb: np.ndarray) -> PreprocessResult:
        return preprocess_image(image_rgb, self.letterbox_cfg)

    def __call__(self, image_rgb: np.ndarray) -> List[Detection]:
        """
        Detect on an already decoded and oriented RGB image; errors propagate.
        """

        with self._lock:
            self._initialize_locked()
            return self._run_locked(image_rgb)

    def detect(self, image_bytes: bytes, width: int = 0, height: int = 0) -> List[DetectionResult]:
        """
        Run the full pipeline on one encoded frame.

        `width`/`height` are advisory only; the decoded bitmap size is used.
        """

        with self._lock:
            self._initialize_locked()

            try:
                image = decode_image(image_bytes)
            except ImageDecodeError as e:
                logger.warning("Skipping frame: %s", e)
                return []

            src_h, src_w = image.shape[:2]
            if (width, height) not in ((0, 0), (src_w, src_h)):
                logger.debug("Advisory size %dx%d differs from decoded %dx%d", width, height, src_w, src_h)

            try:
                oriented = rotate_for_capture(image, self.orientation)
                detections = self._run_locked(oriented)
            except ModelInitializationError as e:
                self._record_init_failure(e)
                raise
            except Exception:
                logger.exception("Detection failed for frame (%dx%d)", src_w, src_h)
                return []

        return [DetectionResult.from_detection(d, src_w, src_h) for d in detections]

    def _run_locked(self, image_rgb: np.ndarray) -> List[Detection]:
        prep = self.preprocess(image_rgb)
        raw = self.engine.infer(prep.as_nchw())
        return self.post.process(raw, orig_size=prep.orig_size, scale=prep.scale, pad=prep.pad)


def load_pipeline(
    model_path: PathLike,
    *,
    backend: Optional[str] = None,
    root: Optional[PathLike] = "auto",
    config: DetectorConfig = DetectorConfig(),
    labels: Optional[LabelTable] = None,
    onnx_providers: Optional[Sequence[str]] = None,
    torch_device: str = "cpu",
) -> DetectionPipeline:
    """
    Create a pipeline for a model on disk. The model itself is loaded on
    `initialize()` or on the first frame.

    Args:
        model_path: path to the model file; relative paths resolve against the project root by default
        backend: "onnxruntime" / "torchscript", or None to infer from the extension
        labels: class names; loaded from `config.metadata` if set, COCO otherwise
    """

    resolved = resolve_path(model_path, root=root)
    chosen = backend
    if chosen is None:
        suffix = resolved.suffix.lower()
        if suffix == ".onnx":
            chosen = "onnxruntime"
        elif suffix in {".torchscript", ".ts", ".pt"}:
            chosen = "torchscript"
        else:
            raise ValueError(
                f"Could not infer backend from extension '{suffix}'. Pass backend=... explicitly."
            )

    if labels is None:
        if config.metadata:
            labels = LabelTable.from_metadata(resolve_path(config.metadata, root=root))
        else:
            labels = COCO_LABEL_TABLE

    chosen = chosen.lower()
    if chosen == "onnxruntime":
        from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

        providers = onnx_providers if onnx_providers is not None else config.onnx_providers
        engine: InferenceEngine = OnnxRuntimeBackend(resolved, OnnxRuntimeBackendConfig(providers=providers))
    elif chosen == "torchscript":
        from .backends.torchscript_backend import TorchScriptBackend, TorchScriptBackendConfig

        engine = TorchScriptBackend(resolved, TorchScriptBackendConfig(device=torch_device))
    else:
        raise ValueError(f"Unsupported backend: {backend!r}")

    logger.debug("Using %s backend for %s", chosen, resolved)
    return DetectionPipeline(
        engine,
        labels=labels,
        post_cfg=config.postprocess_config(),
        orientation=config.capture_rotation,
        letterbox_cfg=config.letterbox_config(),
    )


def load_pipeline_from_config(config: DetectorConfig, *, root: Optional[PathLike] = "auto", backend: Optional[str] = None) -> DetectionPipeline:
    if not config.model:
        raise ValueError("Detector config has no 'model' path")
    return load_pipeline(config.model, backend=backend, root=root, config=config)
