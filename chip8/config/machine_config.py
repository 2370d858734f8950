"""Machine configuration for the CHIP-8 emulator."""

from dataclasses import dataclass, field
from typing import Optional, Tuple
import json

from ..constants import (
    DEFAULT_INSTRUCTIONS_PER_SECOND,
    DISPLAY_HEIGHT,
    DISPLAY_WIDTH,
    TIMER_HZ,
)


@dataclass
class Quirks:
    """Behavioural switches where historical interpreters disagree."""
    # 8XY6 takes VF from VX & 0xF instead of the low bit.
    legacy_shift_flag_mask: bool = False

    def to_dict(self) -> dict:
        return {"legacy_shift_flag_mask": self.legacy_shift_flag_mask}

    @classmethod
    def from_dict(cls, data: dict) -> 'Quirks':
        return cls(
            legacy_shift_flag_mask=bool(data.get("legacy_shift_flag_mask", False))
        )


@dataclass
class MachineConfig:
    """CHIP-8 machine configuration."""
    name: str = "CHIP-8"
    instructions_per_second: int = DEFAULT_INSTRUCTIONS_PER_SECOND
    tick_rate: int = TIMER_HZ
    width: int = DISPLAY_WIDTH
    height: int = DISPLAY_HEIGHT
    scale: int = 15
    seed: Optional[int] = None
    foreground: Tuple[int, int, int] = (255, 255, 255)
    background: Tuple[int, int, int] = (0, 0, 0)
    quirks: Quirks = field(default_factory=Quirks)

    def __post_init__(self):
        if self.instructions_per_second < 0:
            raise ValueError(
                f"instructions_per_second must be >= 0, got {self.instructions_per_second}"
            )
        if self.tick_rate <= 0:
            raise ValueError(f"tick_rate must be positive, got {self.tick_rate}")
        self.foreground = tuple(self.foreground)
        self.background = tuple(self.background)

    @property
    def instructions_per_tick(self) -> int:
        return self.instructions_per_second // self.tick_rate

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "instructions_per_second": self.instructions_per_second,
            "tick_rate": self.tick_rate,
            "width": self.width,
            "height": self.height,
            "scale": self.scale,
            "seed": self.seed,
            "foreground": list(self.foreground),
            "background": list(self.background),
            "quirks": self.quirks.to_dict(),
        }

    def save(self, path: str) -> None:
        """Save configuration to JSON file."""
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def from_dict(cls, data: dict) -> 'MachineConfig':
        defaults = cls()
        return cls(
            name=data.get("name", defaults.name),
            instructions_per_second=int(
                data.get("instructions_per_second", defaults.instructions_per_second)
            ),
            tick_rate=int(data.get("tick_rate", defaults.tick_rate)),
            width=int(data.get("width", defaults.width)),
            height=int(data.get("height", defaults.height)),
            scale=int(data.get("scale", defaults.scale)),
            seed=data.get("seed", defaults.seed),
            foreground=tuple(data.get("foreground", defaults.foreground)),
            background=tuple(data.get("background", defaults.background)),
            quirks=Quirks.from_dict(data.get("quirks", {})),
        )

    @classmethod
    def load(cls, path: str) -> 'MachineConfig':
        """Load configuration from JSON file."""
        with open(path, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)
