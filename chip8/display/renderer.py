"""Display rendering utilities for the CHIP-8 framebuffer."""

from typing import Optional, Tuple

import numpy as np
from PIL import Image

from .framebuffer import FrameBuffer


class DisplayRenderer:
    """Renders the framebuffer to images for debugging and headless runs."""

    def __init__(self, scale: int = 15,
                 fg_color: Tuple[int, int, int] = (255, 255, 255),
                 bg_color: Tuple[int, int, int] = (0, 0, 0)):
        if scale < 1:
            raise ValueError(f"Invalid scale: {scale}")
        self.scale = scale
        self.fg_color = fg_color
        self.bg_color = bg_color

    def render_display(self, framebuffer: FrameBuffer) -> Image.Image:
        """Render the framebuffer to a scaled RGB PIL Image."""
        buffer = framebuffer.get_display_buffer()
        height, width = buffer.shape

        rgb = np.empty((height, width, 3), dtype=np.uint8)
        rgb[...] = self.bg_color
        rgb[buffer] = self.fg_color

        img = Image.fromarray(rgb)
        if self.scale != 1:
            img = img.resize((width * self.scale, height * self.scale),
                             Image.Resampling.NEAREST)
        return img

    def save_display(self, framebuffer: FrameBuffer, filename: str) -> None:
        """Save display to image file."""
        img = self.render_display(framebuffer)
        img.save(filename)

    def render_text(self, framebuffer: FrameBuffer,
                    on: str = "#", off: str = ".",
                    border: Optional[str] = None) -> str:
        """Render the framebuffer as one text line per pixel row."""
        buffer = framebuffer.get_display_buffer()
        lines = ["".join(on if px else off for px in row) for row in buffer]
        if border:
            edge = border * (buffer.shape[1] + 2)
            lines = [edge] + [f"{border}{line}{border}" for line in lines] + [edge]
        return "\n".join(lines)
