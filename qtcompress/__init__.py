"""Quadtree-based lossy image approximation."""

from qtcompress.config import DEFAULT_CONFIG, DETAIL_THRESHOLD, MAX_DEPTH, QuadTreeConfig
from qtcompress.logging_conf import setup_logging
from qtcompress.quadtree_core import (
    QuadNode,
    QuadTree,
    Region,
    count_nodes,
    deserialize_quadtree,
    estimate_serialized_bytes,
    psnr,
    render_quadtree,
    serialize_quadtree,
)
from qtcompress.region_stats import average_color, detail

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_CONFIG",
    "DETAIL_THRESHOLD",
    "MAX_DEPTH",
    "QuadTreeConfig",
    "QuadNode",
    "QuadTree",
    "Region",
    "average_color",
    "count_nodes",
    "deserialize_quadtree",
    "detail",
    "estimate_serialized_bytes",
    "psnr",
    "render_quadtree",
    "serialize_quadtree",
    "setup_logging",
]
