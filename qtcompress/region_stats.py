# qtcompress/region_stats.py
"""
Per-region pixel statistics used by the quadtree builder.

A block is any HxWx3 uint8 view of the source image. `detail` measures
intensity spread per channel, not spatial structure: two blocks with the
same value distribution score the same regardless of layout.
"""
from typing import Tuple
import numpy as np

# luminance weights for channel0/1/2
DETAIL_WEIGHTS = (0.2989, 0.5870, 0.1140)
HIST_BINS = 256


def average_color(block: np.ndarray) -> Tuple[int, int, int]:
    if block.shape[0] == 0 or block.shape[1] == 0:
        raise ValueError("average_color needs a non-empty block")
    mean = block.reshape(-1, 3).mean(axis=0, dtype=np.float64)
    # truncate toward zero like an 8-bit cast
    return tuple(int(c) for c in mean)


def channel_histograms(block: np.ndarray) -> np.ndarray:
    """Return a (3, 256) array of per-channel value counts."""
    flat = block.reshape(-1, 3)
    return np.stack([np.bincount(flat[:, ch], minlength=HIST_BINS) for ch in range(3)])


def weighted_stddev(hist: np.ndarray) -> float:
    counts = np.asarray(hist, dtype=np.float64)
    total = counts.sum()
    if total <= 0:
        return 0.0
    bins = np.arange(counts.shape[0], dtype=np.float64)
    mean = (bins * counts).sum() / total
    return float(np.sqrt((counts * (bins - mean) ** 2).sum() / total))


def detail(block: np.ndarray) -> float:
    if block.size == 0:
        return 0.0
    hists = channel_histograms(block)
    return float(sum(w * weighted_stddev(h) for w, h in zip(DETAIL_WEIGHTS, hists)))
