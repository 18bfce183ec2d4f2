# qtcompress/config.py
"""
Build/render settings for the quadtree engine.

Usage:
    from qtcompress.config import QuadTreeConfig
    cfg = QuadTreeConfig(max_depth=6)
    cfg = QuadTreeConfig.from_mapping({"detail_threshold": 20})
"""

from __future__ import annotations

import multiprocessing
from dataclasses import dataclass, field, fields, replace
from typing import Any, Mapping, Tuple

MAX_DEPTH = 8
DETAIL_THRESHOLD = 13

Color = Tuple[int, int, int]


def _default_workers() -> int:
    return min(4, max(1, multiprocessing.cpu_count()))


def _check_color(name: str, value: Any) -> Color:
    try:
        c = tuple(int(v) for v in value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be an RGB triple, got {value!r}")
    if len(c) != 3 or any(v < 0 or v > 255 for v in c):
        raise ValueError(f"{name} must be three values in 0..255, got {value!r}")
    return c


@dataclass(frozen=True)
class QuadTreeConfig:
    max_depth: int = MAX_DEPTH
    detail_threshold: float = float(DETAIL_THRESHOLD)
    workers: int = field(default_factory=_default_workers)
    # shorter side of the root region below which build stays single-process
    parallel_min_side: int = 64
    background: Color = (0, 0, 0)
    border_color: Color = (0, 0, 0)

    def __post_init__(self):
        if isinstance(self.max_depth, bool) or not isinstance(self.max_depth, int) or self.max_depth < 1:
            raise ValueError(f"max_depth must be a positive integer, got {self.max_depth!r}")
        try:
            thr = float(self.detail_threshold)
        except (TypeError, ValueError):
            raise ValueError(f"detail_threshold must be a number, got {self.detail_threshold!r}")
        if thr != thr or thr < 0:
            raise ValueError(f"detail_threshold must be non-negative, got {self.detail_threshold!r}")
        if not isinstance(self.workers, int) or self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers!r}")
        if not isinstance(self.parallel_min_side, int) or self.parallel_min_side < 2:
            raise ValueError(f"parallel_min_side must be >= 2, got {self.parallel_min_side!r}")
        object.__setattr__(self, "detail_threshold", thr)
        object.__setattr__(self, "background", _check_color("background", self.background))
        object.__setattr__(self, "border_color", _check_color("border_color", self.border_color))

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "QuadTreeConfig":
        """Overlay a partial dict of settings on the defaults."""
        known = {f.name for f in fields(cls)}
        unknown = set(mapping) - known
        if unknown:
            raise ValueError(f"unknown config keys: {', '.join(sorted(unknown))}")
        return replace(cls(), **dict(mapping))


DEFAULT_CONFIG = QuadTreeConfig()

__all__ = [
    "MAX_DEPTH",
    "DETAIL_THRESHOLD",
    "QuadTreeConfig",
    "DEFAULT_CONFIG",
]
