from __future__ import annotations

from typing import Optional


def clamp_limit(raw: Optional[int]) -> int:
    if raw is None:
        return 50
    try:
        v = int(raw)
    except (TypeError, ValueError):
        return 50
    if v < 1:
        v = 1
    if v > 200:
        v = 200
    return v


def clamp_offset(raw: Optional[int]) -> int:
    if raw is None:
        return 0
    try:
        v = int(raw)
    except (TypeError, ValueError):
        return 0
    return max(v, 0)
