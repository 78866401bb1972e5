"""Engine bindings that parse and rasterize SVG documents.

This module provides the ``BaseEngine`` interface and the ``ResvgEngine``
implementation backed by the resvg rendering engine.
"""

from .base_engine import BaseEngine, NativeError
from .resvg_engine import ResvgEngine

__all__ = ["BaseEngine", "NativeError", "ResvgEngine", "create_engine"]


def create_engine(name: str = "resvg") -> BaseEngine:
    """Create an engine by name."""
    engines = {
        "resvg": ResvgEngine,
    }
    if name not in engines:
        raise ValueError(f"Unknown engine: {name!r}. Choose from: {list(engines)}")
    return engines[name]()
