from __future__ import annotations

from typing import Callable, Optional, Protocol, runtime_checkable

import numpy as np


@runtime_checkable
class InferenceEngine(Protocol):
    """
    Long-lived model handle: given a (1, 3, N, N) float32 blob, return the raw output.

    Not safe for concurrent `infer` calls; the owner serializes access.
    """

    @property
    def is_initialized(self) -> bool: ...

    def initialize(self) -> None: ...

    def infer(self, blob: np.ndarray) -> np.ndarray: ...

    def dispose(self) -> None: ...


class CallableEngine:
    """
    Adapts a plain `infer_fn(blob) -> output` to the engine lifecycle.

    Handy for tests and for runtimes managed outside this package.
    """

    def __init__(self, infer_fn: Callable[[np.ndarray], np.ndarray], name: Optional[str] = None):
        self._infer_fn = infer_fn
        self.name = name or getattr(infer_fn, "__name__", "callable")
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        self._initialized = True

    def infer(self, blob: np.ndarray) -> np.ndarray:
        if not self._initialized:
            self.initialize()
        return np.asarray(self._infer_fn(blob))

    def dispose(self) -> None:
        self._initialized = False
