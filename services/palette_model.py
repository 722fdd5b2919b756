from __future__ import annotations
from typing import List

from domain.dtos import Color, Palette
from services.color_space import js_round

class PaletteModel:
    """Holds the current palette snapshot. Written only by the upload controller."""

    def __init__(self) -> None:
        self._palette = Palette()

    @property
    def palette(self) -> Palette:
        return self._palette

    @property
    def is_empty(self) -> bool:
        return len(self._palette) == 0

    @property
    def total_count(self) -> int:
        return self._palette.total_count

    def replace(self, palette: Palette) -> None:
        self._palette = palette

    def clear(self) -> None:
        self._palette = Palette()

    def percentage(self, color: Color) -> float:
        return self._palette.percentage(color)

    def rounded_percentages(self) -> List[int]:
        return [js_round(self._palette.percentage(c)) for c in self._palette]
