from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Dict, List, Protocol, Union

from domain.dtos import ExportFile, Palette
from domain.enums import ExportFormat
from services.color_space import js_round, rgb_string, rgb_to_hsl

log = logging.getLogger(__name__)

FILENAMES = {
    ExportFormat.css: "palette.css",
    ExportFormat.json: "palette.json",
    ExportFormat.tailwind: "tailwind.config.js",
}
MIME_TYPE = "text/plain"

def to_css(palette: Palette) -> str:
    lines = [f"  --color-{i}: {c.hex};" for i, c in enumerate(palette, start=1)]
    return ":root {\n" + "\n".join(lines) + "\n}"

def to_json(palette: Palette) -> str:
    entries: List[Dict[str, Union[str, int]]] = []
    for i, c in enumerate(palette, start=1):
        entries.append({
            "name": f"color-{i}",
            "hex": c.hex,
            "rgb": rgb_string(c.rgb),
            "hsl": rgb_to_hsl(c.rgb.r, c.rgb.g, c.rgb.b),
            "percentage": js_round(palette.percentage(c)),
        })
    return json.dumps(entries, indent=2)

def to_tailwind(palette: Palette) -> str:
    lines = [f"        'palette-{i}': '{c.hex}'," for i, c in enumerate(palette, start=1)]
    return (
        "module.exports = {\n  theme: {\n    extend: {\n      colors: {\n"
        + "\n".join(lines)
        + "\n      },\n    },\n  },\n}"
    )

_RENDERERS = {
    ExportFormat.css: to_css,
    ExportFormat.json: to_json,
    ExportFormat.tailwind: to_tailwind,
}

def serialize(palette: Palette, fmt: Union[ExportFormat, str]) -> ExportFile:
    fmt = ExportFormat.parse(fmt) if not isinstance(fmt, ExportFormat) else fmt
    content = _RENDERERS[fmt](palette)
    return ExportFile(filename=FILENAMES[fmt], content=content, mime_type=MIME_TYPE)


class FileSaver(Protocol):
    async def save(self, export: ExportFile) -> None:
        ...

class DirectoryFileSaver(FileSaver):
    """Writes exports into a local directory, overwriting files of the same name."""

    def __init__(self, directory: Union[str, Path]) -> None:
        self.directory = Path(directory)

    async def save(self, export: ExportFile) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / export.filename
        path.write_text(export.content, encoding="utf-8")
        log.info("Saved %s (%d bytes)", path, len(export.content))
