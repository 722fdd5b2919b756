# scripts/extract_palette.py

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
import sys
from typing import List, Optional

# --- Add the project root to sys.path when the script is run directly ---
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
# -------------------------------------------------------------------------

from config import Settings
from domain.dtos import ImageUpload
from domain.enums import ExportFormat
from services.color_space import js_round, rgb_string, rgb_to_hsl
from services.exporter import DirectoryFileSaver, serialize
from services.extraction_client import ExtractionClient
from services.image_utils import make_preview, render_card
from services.upload_controller import Error, Ready, UploadController

MEDIA_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
}


def media_type_for(path: Path) -> str:
    return MEDIA_TYPES.get(path.suffix.lower(), "application/octet-stream")


async def run(image: Path, out_dir: Path, formats: List[ExportFormat], settings: Settings, card: bool = False) -> int:
    data = image.read_bytes()
    upload = ImageUpload(data=data, media_type=media_type_for(image), size=len(data), filename=image.name)

    async with ExtractionClient(settings.api_base, timeout=settings.request_timeout) as client:
        controller = UploadController(client, preview_factory=make_preview, max_bytes=settings.max_upload_bytes)
        state = await controller.submit(upload)

    if isinstance(state, Error):
        print(f"{state.reason.value}: {state.message}", file=sys.stderr)
        return 1
    if not isinstance(state, Ready):
        return 1

    palette = state.palette
    print(f"{len(palette)} colors")
    for i, c in enumerate(palette, start=1):
        pct = js_round(palette.percentage(c))
        print(f"{i:>2}. {c.display_hex}  {rgb_string(c.rgb):<20} {rgb_to_hsl(c.rgb.r, c.rgb.g, c.rgb.b):<20} {pct:>3}%")

    saver = DirectoryFileSaver(out_dir)
    for fmt in formats:
        await saver.save(serialize(palette, fmt))
    if card:
        out_dir.mkdir(parents=True, exist_ok=True)
        (out_dir / "palette.png").write_bytes(render_card(controller.preview, palette))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Extract a color palette from an image and export it")
    parser.add_argument("image", type=Path)
    parser.add_argument("--out", type=Path, default=Path("."), help="directory for the exported files")
    parser.add_argument("--format", dest="formats", action="append", choices=[f.value for f in ExportFormat],
                        help="export format, repeatable (default: all)")
    parser.add_argument("--card", action="store_true", help="also write palette.png with the swatch strip")
    args = parser.parse_args(argv)

    settings = Settings()
    logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    formats = [ExportFormat(f) for f in args.formats] if args.formats else list(ExportFormat)
    return asyncio.run(run(args.image, args.out, formats, settings, card=args.card))


if __name__ == "__main__":
    sys.exit(main())
