from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import numpy as np

from ..errors import ModelInitializationError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class TorchScriptBackendConfig:
    """
    Configuration for TorchScript inference.

    - device: "cpu" or "cuda" (if available)
    - half: cast input to float16 (only if the model expects it)
    - output_index: if the model returns multiple outputs, select this index
    """

    device: str = "cpu"
    half: bool = False
    output_index: int = 0


class TorchScriptBackend:
    """
    TorchScript engine using `torch.jit.load`, loaded on `initialize()`.
    """

    def __init__(self, model_path: PathLike, cfg: TorchScriptBackendConfig = TorchScriptBackendConfig()):
        self.model_path = Path(model_path)
        self.cfg = cfg
        self.model = None
        self._torch = None
        self.device = None

    @property
    def is_initialized(self) -> bool:
        return self.model is not None

    def initialize(self) -> None:
        if self.model is not None:
            return
        try:
            import torch  # type: ignore
        except ImportError as e:  # pragma: no cover
            raise ModelInitializationError(str(self.model_path), "torch is not installed (`pip install torch`)") from e

        if not self.model_path.exists():
            raise ModelInitializationError(str(self.model_path), "model file not found")

        logger.info("Loading TorchScript model from %s on %s", self.model_path, self.cfg.device)
        try:
            device = torch.device(self.cfg.device)
            model = torch.jit.load(str(self.model_path), map_location=device)
        except Exception as e:
            raise ModelInitializationError(str(self.model_path), str(e)) from e
        model.eval()

        self._torch = torch
        self.device = device
        self.model = model

    def infer(self, blob: np.ndarray) -> np.ndarray:
        if self.model is None:
            self.initialize()
        torch = self._torch
        x = torch.as_tensor(blob, device=self.device)
        x = x.half() if self.cfg.half else x.float()
        x = x.contiguous()

        with torch.no_grad():
            y = self.model(x)

        if isinstance(y, (tuple, list)):
            y = y[self.cfg.output_index]

        return y.detach().float().to("cpu").numpy()

    def dispose(self) -> None:
        self.model = None
        self.device = None
