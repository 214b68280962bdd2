from .base import ItemOutcome, ShowOutcome, Simulator
from .registry import get_simulator, register_simulator
from .standard import StandardSimulator

__all__ = [
    "ItemOutcome",
    "ShowOutcome",
    "Simulator",
    "StandardSimulator",
    "get_simulator",
    "register_simulator",
]
