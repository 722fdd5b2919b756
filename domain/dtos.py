from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Tuple

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{6})$")

@dataclass(frozen=True)
class RGB:
    r: int
    g: int
    b: int

    def __post_init__(self) -> None:
        for name in ("r", "g", "b"):
            v = getattr(self, name)
            if isinstance(v, bool) or not isinstance(v, int):
                raise ValueError(f"rgb.{name} must be an integer, got {v!r}")
            if not 0 <= v <= 255:
                raise ValueError(f"rgb.{name} out of range 0..255: {v}")

    def to_hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"

@dataclass(frozen=True)
class Color:
    hex: str
    rgb: RGB
    count: int

    def __post_init__(self) -> None:
        m = _HEX_RE.match(self.hex or "")
        if not m:
            raise ValueError(f"hex must be 6 hex digits, got {self.hex!r}")
        normalized = "#" + m.group(1).lower()
        if normalized != self.rgb.to_hex():
            raise ValueError(f"hex {self.hex} does not encode {self.rgb}")
        if isinstance(self.count, bool) or not isinstance(self.count, int) or self.count < 0:
            raise ValueError(f"count must be a non-negative integer, got {self.count!r}")
        # frozen: bypass __setattr__ to store the canonical form
        object.__setattr__(self, "hex", normalized)

    @property
    def display_hex(self) -> str:
        return self.hex.upper()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Color":
        rgb = data["rgb"]
        return cls(
            hex=data["hex"],
            rgb=RGB(r=rgb["r"], g=rgb["g"], b=rgb["b"]),
            count=data["count"],
        )

@dataclass(frozen=True)
class Palette:
    """Dominance-ranked colors for one image. Replaced wholesale, never mutated."""
    colors: Tuple[Color, ...] = ()

    @classmethod
    def of(cls, colors: Iterable[Color]) -> "Palette":
        return cls(colors=tuple(colors))

    def __len__(self) -> int:
        return len(self.colors)

    def __iter__(self):
        return iter(self.colors)

    def __getitem__(self, index: int) -> Color:
        return self.colors[index]

    @property
    def total_count(self) -> int:
        return sum(c.count for c in self.colors)

    def percentage(self, color: Color) -> float:
        total = self.total_count
        if total == 0:
            return 0.0
        return color.count / total * 100

@dataclass(frozen=True)
class ImageUpload:
    data: bytes
    media_type: str
    size: int = -1  # declared size; defaults to len(data)
    filename: str = "image"

    def __post_init__(self) -> None:
        if self.size < 0:
            object.__setattr__(self, "size", len(self.data))

@dataclass(frozen=True)
class ExportFile:
    filename: str
    content: str
    mime_type: str = "text/plain"

@dataclass(frozen=True)
class Preview:
    data: bytes
    media_type: str = "image/jpeg"
    width: int = 0
    height: int = 0
