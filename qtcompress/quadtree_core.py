# qtcompress/quadtree_core.py
from dataclasses import dataclass
from typing import Optional, List, Tuple, Dict, Any, Iterator, NamedTuple
import logging, math, multiprocessing
import numpy as np
from PIL import Image

from qtcompress.config import QuadTreeConfig, DEFAULT_CONFIG, Color, _check_color
from qtcompress.region_stats import average_color, detail as region_detail

log = logging.getLogger(__name__)


class Region(NamedTuple):
    x: int
    y: int
    width: int
    height: int

    def can_split(self) -> bool:
        return self.width >= 2 and self.height >= 2

    def quadrants(self) -> Tuple["Region", "Region", "Region", "Region"]:
        """Top-left, top-right, bottom-left, bottom-right.

        Odd sizes give the extra row/column to the right/bottom halves, so the
        four quadrants always tile the parent exactly.
        """
        lw, th = self.width // 2, self.height // 2
        rw, bh = self.width - lw, self.height - th
        mx, my = self.x + lw, self.y + th
        return (
            Region(self.x, self.y, lw, th),
            Region(mx,     self.y, rw, th),
            Region(self.x, my,     lw, bh),
            Region(mx,     my,     rw, bh),
        )

    def view(self, img: np.ndarray) -> np.ndarray:
        return img[self.y:self.y+self.height, self.x:self.x+self.width]


@dataclass
class QuadNode:
    bbox: Region
    depth: int
    color: Color
    detail: float
    is_leaf: bool = False
    children: Optional[Tuple["QuadNode", ...]] = None


def as_rgb_array(image) -> np.ndarray:
    """Return a read-only HxWx3 uint8 view of a numpy array or PIL image."""
    if isinstance(image, Image.Image):
        arr = np.array(image.convert("RGB"))
    else:
        arr = np.asarray(image)
    if arr.ndim != 3 or arr.shape[2] != 3 or arr.dtype != np.uint8:
        raise ValueError("image must be HxW x 3 RGB uint8")
    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise ValueError("image must have non-zero width and height")
    arr = arr.view()
    arr.flags.writeable = False
    return arr

# ---------------- node construction ----------------
def make_node(img: np.ndarray, bbox: Region, depth: int) -> QuadNode:
    block = bbox.view(img)
    return QuadNode(bbox=bbox, depth=depth, color=average_color(block), detail=region_detail(block))

def should_stop(node: QuadNode, cfg: QuadTreeConfig) -> bool:
    return (node.depth >= cfg.max_depth
            or node.detail < cfg.detail_threshold
            or not node.bbox.can_split())

# ---------------- single-process builder ----------------
def grow_subtree(img: np.ndarray, node: QuadNode, cfg: QuadTreeConfig) -> int:
    """Grow `node` in place; return the deepest leaf depth below it."""
    if should_stop(node, cfg):
        node.is_leaf = True
        return node.depth
    node.children = tuple(make_node(img, q, node.depth + 1) for q in node.bbox.quadrants())
    return max(grow_subtree(img, c, cfg) for c in node.children)

# ---------------- multiprocessed root fan-out ----------------
def _build_subtree_worker(args):
    img, node, cfg = args
    deepest = grow_subtree(img, node, cfg)
    return node, deepest

def parallel_grow(img: np.ndarray, root: QuadNode, cfg: QuadTreeConfig) -> int:
    """Split the root and build its four quadrants in a process pool."""
    root.children = tuple(make_node(img, q, root.depth + 1) for q in root.bbox.quadrants())
    tasks = [(img, child, cfg) for child in root.children]
    pool_size = min(4, cfg.workers)
    log.debug("building %d root quadrants with %d processes", len(tasks), pool_size)
    with multiprocessing.Pool(processes=pool_size) as pool:
        results = pool.map(_build_subtree_worker, tasks)
    root.children = tuple(node for node, _ in results)
    return max(deepest for _, deepest in results)

# ---------------- traversal & render ----------------
def iter_blocks(node: QuadNode, depth: Optional[int] = None) -> Iterator[QuadNode]:
    """Yield the nodes drawn as flat blocks when rendering at `depth`.

    A node is a block if it is a leaf or sits at `depth`; None means leaves only.
    """
    stack = [node]
    while stack:
        n = stack.pop()
        if n.is_leaf or not n.children or (depth is not None and n.depth >= depth):
            yield n
        else:
            stack.extend(reversed(n.children))

def _draw_outline(canvas: np.ndarray, bbox: Region, color: Color):
    x, y, w, h = bbox
    if w == 0 or h == 0:
        return
    canvas[y,       x:x+w] = color
    canvas[y+h-1,   x:x+w] = color
    canvas[y:y+h,   x]     = color
    canvas[y:y+h,   x+w-1] = color

def render_quadtree(node: QuadNode, canvas: np.ndarray, depth: Optional[int] = None,
                    draw_borders: bool = False, border_color: Color = (0, 0, 0)) -> np.ndarray:
    if depth is not None and depth < 0:
        raise ValueError(f"render depth must be >= 0, got {depth}")
    for block in iter_blocks(node, depth):
        x, y, w, h = block.bbox
        canvas[y:y+h, x:x+w] = block.color
        if draw_borders:
            _draw_outline(canvas, block.bbox, border_color)
    return canvas

def count_nodes(node: QuadNode) -> int:
    if not node.children: return 1
    return 1 + sum(count_nodes(c) for c in node.children)

def estimate_serialized_bytes(node: QuadNode) -> int:
    if not node.children: return 1 + 3
    return 1 + sum(estimate_serialized_bytes(c) for c in node.children)

# ---------------- JSON helpers ----------------
def serialize_quadtree(node: QuadNode) -> Dict[str, Any]:
    d = {"bbox": list(node.bbox), "depth": node.depth, "color": list(node.color),
         "detail": node.detail, "leaf": node.is_leaf}
    if node.children:
        d["children"] = [serialize_quadtree(c) for c in node.children]
    return d

def deserialize_quadtree(d: Dict[str, Any]) -> QuadNode:
    try:
        node = QuadNode(bbox=Region(*(int(v) for v in d["bbox"])), depth=int(d["depth"]),
                        color=_check_color("color", d["color"]), detail=float(d["detail"]),
                        is_leaf=bool(d["leaf"]))
        children = d.get("children")
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"malformed quadtree node: {e}") from e
    if node.is_leaf:
        if children:
            raise ValueError("leaf node must not have children")
        return node
    if not children or len(children) != 4:
        raise ValueError("internal node must have exactly four children")
    node.children = tuple(deserialize_quadtree(c) for c in children)
    for child, expected in zip(node.children, node.bbox.quadrants()):
        if child.depth != node.depth + 1:
            raise ValueError(f"malformed quadtree node: child depth {child.depth} under depth {node.depth}")
        if child.bbox != expected:
            raise ValueError(f"malformed quadtree node: child bbox {tuple(child.bbox)} does not match {tuple(expected)}")
    return node

# ---------------- quality ----------------
def psnr(orig: np.ndarray, recon: np.ndarray) -> float:
    mse = float(np.mean((orig.astype(np.float64) - recon.astype(np.float64))**2))
    if mse == 0.0:
        return float("inf")
    PIXEL_MAX = 255.0
    return 20.0 * math.log10(PIXEL_MAX / math.sqrt(mse))


class QuadTree:
    """Quadtree approximation of an RGB image.

    Construction computes root statistics only; call build() to grow the tree,
    then render() at any depth. release() tears the tree down.
    """

    def __init__(self, image, config: Optional[QuadTreeConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self.image = as_rgb_array(image)
        self.height, self.width = self.image.shape[:2]
        self.root: Optional[QuadNode] = make_node(self.image, Region(0, 0, self.width, self.height), 0)
        self.max_depth = 0
        self.built = False

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.release()
        return False

    def __repr__(self):
        state = "released" if self.root is None else ("built" if self.built else "unbuilt")
        return f"<QuadTree {self.width}x{self.height} {state} max_depth={self.max_depth}>"

    # ---- build ----
    def build(self) -> "QuadTree":
        if self.root is None:
            raise RuntimeError("quadtree has been released")
        if self.built:
            return self
        cfg, root = self.config, self.root
        fan_out = (cfg.workers > 1 and not should_stop(root, cfg)
                   and min(root.bbox.width, root.bbox.height) >= cfg.parallel_min_side)
        if fan_out:
            self.max_depth = parallel_grow(self.image, root, cfg)
        else:
            self.max_depth = grow_subtree(self.image, root, cfg)
        self.built = True
        log.debug("built quadtree %dx%d: %d nodes, max depth %d",
                  self.width, self.height, count_nodes(root), self.max_depth)
        return self

    def _require_built(self):
        if self.root is None:
            raise RuntimeError("quadtree has been released")
        if not self.built:
            raise RuntimeError("quadtree has not been built; call build() first")

    def _target_depth(self, depth: Optional[int]) -> int:
        if depth is None:
            return self.max_depth
        depth = int(depth)
        if depth < 0:
            raise ValueError(f"render depth must be >= 0, got {depth}")
        return min(depth, self.max_depth)

    # ---- render ----
    def leaves(self, depth: Optional[int] = None) -> List[QuadNode]:
        self._require_built()
        return list(iter_blocks(self.root, self._target_depth(depth)))

    def render(self, depth: Optional[int] = None, draw_borders: bool = False) -> np.ndarray:
        self._require_built()
        target = self._target_depth(depth)
        canvas = np.empty((self.height, self.width, 3), dtype=np.uint8)
        canvas[:] = self.config.background
        return render_quadtree(self.root, canvas, target, draw_borders, self.config.border_color)

    def render_image(self, depth: Optional[int] = None, draw_borders: bool = False) -> Image.Image:
        return Image.fromarray(self.render(depth, draw_borders))

    def render_frames(self, draw_borders: bool = False) -> List[np.ndarray]:
        """One render per depth, coarsest first."""
        self._require_built()
        return [self.render(d, draw_borders) for d in range(self.max_depth + 1)]

    def psnr(self, depth: Optional[int] = None) -> float:
        return psnr(self.image, self.render(depth))

    @property
    def node_count(self) -> int:
        return 0 if self.root is None else count_nodes(self.root)

    # ---- teardown ----
    def release(self) -> int:
        """Detach every node bottom-up and drop the root. Returns nodes released."""
        if self.root is None:
            return 0
        released = 0
        stack = [(self.root, False)]
        while stack:
            node, expanded = stack.pop()
            if node.children and not expanded:
                stack.append((node, True))
                stack.extend((c, False) for c in node.children)
                continue
            node.children = None
            released += 1
        self.root = None
        self.built = False
        self.max_depth = 0
        log.debug("released %d quadtree nodes", released)
        return released
