"""
Connected-component labeling over a binary mask.

4-connectivity only: diagonal neighbours never join two blobs. Traversal uses
an explicit stack so blobs covering the whole working raster do not hit the
interpreter's recursion limit.
"""

from dataclasses import dataclass
from typing import List

import numpy as np

from leafcrops.engines.leaf_crops.schemas import BoundingBox


@dataclass(frozen=True)
class Component:
    """A maximal 4-connected blob of foreground pixels."""

    area: int
    min_x: int
    min_y: int
    max_x: int
    max_y: int

    @property
    def bbox(self) -> BoundingBox:
        return BoundingBox(
            x=self.min_x,
            y=self.min_y,
            w=self.max_x - self.min_x + 1,
            h=self.max_y - self.min_y + 1,
        )


def label_components(mask: np.ndarray) -> List[Component]:
    """Partition the foreground of ``mask`` into 4-connected components.

    Seeds are discovered in row-major order, so the returned list is in a
    deterministic discovery order. No area filtering happens here.

    Args:
        mask: (H, W) array, non-zero means foreground

    Returns:
        Components in discovery order
    """
    if mask.ndim != 2:
        raise ValueError(f"Expected a 2-D mask, got shape {mask.shape}")

    height, width = mask.shape
    total = width * height
    if total == 0:
        return []

    flat = (mask.reshape(-1) != 0).tolist()
    visited = bytearray(total)
    components: List[Component] = []
    stack: List[int] = []

    for seed in range(total):
        if not flat[seed] or visited[seed]:
            continue

        visited[seed] = 1
        stack.append(seed)

        seed_y, seed_x = divmod(seed, width)
        area = 0
        min_x = max_x = seed_x
        min_y = max_y = seed_y

        while stack:
            cur = stack.pop()
            area += 1
            cy, cx = divmod(cur, width)

            if cx < min_x:
                min_x = cx
            if cx > max_x:
                max_x = cx
            if cy < min_y:
                min_y = cy
            if cy > max_y:
                max_y = cy

            for n in (cur - 1, cur + 1, cur - width, cur + width):
                if n < 0 or n >= total:
                    continue
                # Linear offsets wrap across row ends; only true edge neighbours count
                ny, nx = divmod(n, width)
                if abs(nx - cx) + abs(ny - cy) != 1:
                    continue
                if flat[n] and not visited[n]:
                    visited[n] = 1
                    stack.append(n)

        components.append(Component(area, min_x, min_y, max_x, max_y))

    return components
