"""
Inference engines for ar_detector.

Engine implementations import their runtime lazily so pre/post-processing stays
usable without any inference runtime installed.
"""

from __future__ import annotations

from .base import CallableEngine, InferenceEngine

__all__ = ["CallableEngine", "InferenceEngine"]
