from __future__ import annotations
import math

from domain.dtos import RGB

def js_round(x: float) -> int:
    """Half-up rounding, matching JavaScript Math.round (round(2.5) == 3, round(-0.5) == 0)."""
    return int(math.floor(x + 0.5))

def rgb_to_hsl(r: int, g: int, b: int) -> str:
    r, g, b = r / 255, g / 255, b / 255
    mx = max(r, g, b)
    mn = min(r, g, b)
    h = s = 0.0
    l = (mx + mn) / 2

    if mx != mn:
        d = mx - mn
        s = d / (2 - mx - mn) if l > 0.5 else d / (mx + mn)
        if mx == r:
            h = ((g - b) / d + (6 if g < b else 0)) / 6
        elif mx == g:
            h = ((b - r) / d + 2) / 6
        else:
            h = ((r - g) / d + 4) / 6

    # hues just below 360 round up to a full turn
    hue = js_round(h * 360) % 360
    return f"hsl({hue}, {js_round(s * 100)}%, {js_round(l * 100)}%)"

def rgb_string(rgb: RGB) -> str:
    return f"rgb({rgb.r}, {rgb.g}, {rgb.b})"
