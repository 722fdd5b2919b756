"""
Unit tests for RGB -> HSL conversion and JavaScript-compatible rounding.
"""
import re

import pytest

from domain.dtos import RGB
from services.color_space import js_round, rgb_string, rgb_to_hsl

HSL_RE = re.compile(r"^hsl\((\d+), (\d+)%, (\d+)%\)$")


class TestJsRound:
    def test_halves_round_up(self):
        assert js_round(2.5) == 3
        assert js_round(12.5) == 13
        assert js_round(0.5) == 1

    def test_negative_half_rounds_toward_zero(self):
        assert js_round(-0.5) == 0

    def test_regular_values(self):
        assert js_round(1.4999) == 1
        assert js_round(99.6) == 100
        assert js_round(0) == 0


class TestRgbToHsl:
    """Reference values for the converter."""

    @pytest.mark.parametrize("rgb,expected", [
        ((0, 0, 0), "hsl(0, 0%, 0%)"),
        ((255, 255, 255), "hsl(0, 0%, 100%)"),
        ((255, 0, 0), "hsl(0, 100%, 50%)"),
        ((0, 255, 0), "hsl(120, 100%, 50%)"),
        ((0, 0, 255), "hsl(240, 100%, 50%)"),
        ((128, 128, 128), "hsl(0, 0%, 50%)"),
        ((255, 128, 64), "hsl(20, 100%, 63%)"),
    ])
    def test_known_colors(self, rgb, expected):
        assert rgb_to_hsl(*rgb) == expected

    def test_hue_just_below_full_turn_wraps_to_zero(self):
        # red max with blue slightly above green: hue is 359.76 degrees
        assert rgb_to_hsl(255, 0, 1) == "hsl(0, 100%, 50%)"

    def test_output_ranges_over_grid(self):
        """Hue stays in [0, 360), saturation and lightness in [0, 100]."""
        steps = list(range(0, 256, 15)) + [255]
        for r in steps:
            for g in steps:
                for b in steps:
                    m = HSL_RE.match(rgb_to_hsl(r, g, b))
                    assert m, (r, g, b)
                    h, s, l = (int(x) for x in m.groups())
                    assert 0 <= h < 360
                    assert 0 <= s <= 100
                    assert 0 <= l <= 100

    def test_deterministic(self):
        assert rgb_to_hsl(12, 200, 99) == rgb_to_hsl(12, 200, 99)


def test_rgb_string():
    assert rgb_string(RGB(255, 128, 64)) == "rgb(255, 128, 64)"
