"""Monochrome framebuffer mutated by the CLS and DRW instructions."""

from __future__ import annotations

from typing import Iterable, Tuple

import numpy as np

from ..constants import DISPLAY_HEIGHT, DISPLAY_WIDTH


class FrameBuffer:
    """64x32 boolean bitmap stored row-major as a numpy array.

    ``pixels[y, x]`` addresses pixel (x, y); flattening the array yields the
    ``y * width + x`` ordering consumed by presentation collaborators.
    """

    def __init__(self, width: int = DISPLAY_WIDTH, height: int = DISPLAY_HEIGHT):
        self.width = width
        self.height = height
        self.pixels = np.zeros((height, width), dtype=bool)
        self.clear_count = 0
        self.draw_count = 0

    def reset(self) -> None:
        """Blank the bitmap and the operation counters."""
        self.pixels = np.zeros((self.height, self.width), dtype=bool)
        self.clear_count = 0
        self.draw_count = 0

    def clear(self) -> None:
        self.pixels.fill(False)
        self.clear_count += 1

    def draw_sprite(self, x: int, y: int, rows: Iterable[int]) -> bool:
        """XOR an 8-pixel-wide sprite into the bitmap.

        The origin wraps around the screen but the sprite itself is clipped at
        the right and bottom edges. Returns True when any lit pixel was turned
        off (collision).
        """

        x0 = x % self.width
        y0 = y % self.height
        collision = False
        for i, row in enumerate(rows):
            py = y0 + i
            if py > self.height - 1:
                break
            for j in range(8):
                px = x0 + j
                if px > self.width - 1:
                    break
                if not (row >> (7 - j)) & 1:
                    continue
                if self.pixels[py, px]:
                    collision = True
                self.pixels[py, px] = not self.pixels[py, px]
        self.draw_count += 1
        return collision

    def pixel(self, x: int, y: int) -> bool:
        return bool(self.pixels[y, x])

    def get_display_buffer(self) -> np.ndarray:
        """Return a copy of the bitmap as a 2-D boolean array."""
        return self.pixels.copy()

    def to_bytes(self) -> bytes:
        """Row-major bitmap, one byte (0 or 1) per pixel."""
        return self.pixels.astype(np.uint8).tobytes()

    def lit_pixels(self) -> Tuple[Tuple[int, int], ...]:
        ys, xs = np.nonzero(self.pixels)
        return tuple((int(x), int(y)) for y, x in zip(ys, xs))

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height


__all__ = ["FrameBuffer"]
