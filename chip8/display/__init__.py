"""Display subsystem for the CHIP-8 emulator."""

from .framebuffer import FrameBuffer
from .renderer import DisplayRenderer

__all__ = [
    "FrameBuffer",
    "DisplayRenderer",
]
