from __future__ import annotations

import os
from typing import Callable, Dict, Optional

from .base import Simulator
from .standard import StandardSimulator

_REGISTRY: Dict[str, Callable[[], Simulator]] = {
    "standard": StandardSimulator,
}


def register_simulator(name: str, factory: Callable[[], Simulator]) -> None:
    _REGISTRY[name.strip().lower()] = factory


def get_simulator(name: Optional[str] = None) -> Simulator:
    """
    Registry entry point.
      SIMULATOR=standard (default)
    """
    key = (name or os.environ.get("SIMULATOR") or "standard").strip().lower()
    factory = _REGISTRY.get(key)
    if factory is None:
        raise ValueError(f"unknown simulator {key!r}; known: {sorted(_REGISTRY)}")
    return factory()
