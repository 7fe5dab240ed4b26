from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np

from ..errors import ModelInitializationError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class OnnxRuntimeBackendConfig:
    """
    Configuration for ONNX Runtime inference.

    - providers: ORT execution providers (e.g., ["NnapiExecutionProvider", "CPUExecutionProvider"])
    - input_name/output_name: override auto-selected I/O names if needed
    """

    providers: Optional[Sequence[str]] = None
    input_name: Optional[str] = None
    output_name: Optional[str] = None


class OnnxRuntimeBackend:
    """
    ONNX Runtime engine with an explicit initialize/dispose lifecycle.

    The session is created on `initialize()` (or lazily on the first `infer`) and
    reused until `dispose()`. Expects an NCHW float32 blob shaped (1, 3, N, N) and
    returns the primary output as a NumPy array.
    """

    def __init__(self, model_path: PathLike, cfg: OnnxRuntimeBackendConfig = OnnxRuntimeBackendConfig()):
        self.model_path = Path(model_path)
        self.cfg = cfg
        self.session = None
        self.input_name: Optional[str] = None
        self.output_name: Optional[str] = None

    @property
    def is_initialized(self) -> bool:
        return self.session is not None

    def initialize(self) -> None:
        if self.session is not None:
            return

        try:
            import onnxruntime as ort  # type: ignore
        except ImportError as e:  # pragma: no cover
            raise ModelInitializationError(
                str(self.model_path), "onnxruntime is not installed (`pip install onnxruntime`)"
            ) from e

        if not self.model_path.exists():
            raise ModelInitializationError(str(self.model_path), "model file not found")

        logger.info("Loading ONNX model from %s", self.model_path)
        sess_opts = ort.SessionOptions()
        sess_opts.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_ALL
        providers = list(self.cfg.providers) if self.cfg.providers is not None else None
        try:
            session = ort.InferenceSession(str(self.model_path), sess_options=sess_opts, providers=providers)
        except Exception as e:
            raise ModelInitializationError(str(self.model_path), str(e)) from e

        for inp in session.get_inputs():
            logger.debug("  input %s shape=%s", inp.name, inp.shape)
        for out in session.get_outputs():
            logger.debug("  output %s shape=%s", out.name, out.shape)

        self.input_name = self.cfg.input_name or session.get_inputs()[0].name
        self.output_name = self.cfg.output_name or session.get_outputs()[0].name
        self.session = session
        logger.info("ONNX model loaded, providers=%s", self.providers_in_use)

    @property
    def providers_in_use(self) -> Sequence[str]:
        if self.session is None:
            return ()
        return tuple(self.session.get_providers())

    def infer(self, blob: np.ndarray) -> np.ndarray:
        if self.session is None:
            self.initialize()
        inputs = {self.input_name: np.ascontiguousarray(blob, dtype=np.float32)}
        outputs = self.session.run([self.output_name], inputs)
        return outputs[0]

    def dispose(self) -> None:
        self.session = None
        self.input_name = None
        self.output_name = None

    def __enter__(self) -> "OnnxRuntimeBackend":
        self.initialize()
        return self

    def __exit__(self, *exc_info) -> None:
        self.dispose()
