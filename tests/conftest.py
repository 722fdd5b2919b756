"""
Shared fixtures and fakes for the palette bot tests.
"""
import asyncio
from typing import Dict, List, Tuple, Union

import pytest

from domain.dtos import RGB, Color, Palette
from domain.errors import ExtractionFailed


def make_color(r: int, g: int, b: int, count: int) -> Color:
    return Color(hex=f"#{r:02x}{g:02x}{b:02x}", rgb=RGB(r, g, b), count=count)


@pytest.fixture
def sample_palette() -> Palette:
    """Two colors at 75% / 25%."""
    return Palette.of([make_color(255, 128, 64, 3), make_color(0, 0, 0, 1)])


@pytest.fixture
def other_palette() -> Palette:
    return Palette.of([make_color(0, 0, 255, 5)])


class FakeExtractor:
    """Answers immediately with a fixed palette or failure, recording every call."""

    def __init__(self, result: Union[Palette, Exception]):
        self.result = result
        self.calls: List[Tuple[bytes, str, str]] = []

    async def extract(self, data: bytes, media_type: str, filename: str = "image") -> Palette:
        self.calls.append((data, media_type, filename))
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


class GatedExtractor:
    """Holds every request open until the test releases it, to force out-of-order completion."""

    def __init__(self, results: Dict[bytes, Union[Palette, Exception]]):
        self.results = results
        self.gates: Dict[bytes, asyncio.Event] = {}

    async def extract(self, data: bytes, media_type: str, filename: str = "image") -> Palette:
        gate = asyncio.Event()
        self.gates[data] = gate
        await gate.wait()
        result = self.results[data]
        if isinstance(result, Exception):
            raise result
        return result

    async def wait_for(self, n: int) -> None:
        for _ in range(200):
            if len(self.gates) >= n:
                return
            await asyncio.sleep(0.01)
        raise AssertionError(f"expected {n} in-flight requests, saw {len(self.gates)}")

    def release(self, data: bytes) -> None:
        self.gates[data].set()


@pytest.fixture
def failing_extractor() -> FakeExtractor:
    return FakeExtractor(ExtractionFailed("Failed to extract colors"))
