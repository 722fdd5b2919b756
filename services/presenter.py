from __future__ import annotations
import html
from typing import List, Optional

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from domain.dtos import Palette
from domain.enums import ExportFormat
from services.color_space import js_round, rgb_string, rgb_to_hsl

BAR_WIDTH = 10

def percent_bar(pct: float, width: int = BAR_WIDTH) -> str:
    filled = max(0, min(width, js_round(pct / 100 * width)))
    return "█" * filled + "░" * (width - filled)

def palette_text(palette: Palette, max_colors: int) -> str:
    lines = [f"<b>Extracted Palette</b> · {len(palette)} colors", ""]
    for i, c in enumerate(palette.colors[:max_colors], start=1):
        pct = palette.percentage(c)
        lines.append(f"{i}. <code>{html.escape(c.display_hex)}</code> {percent_bar(pct)} {js_round(pct)}%")
        lines.append(f"   RGB: {rgb_string(c.rgb)}")
        lines.append(f"   HSL: {rgb_to_hsl(c.rgb.r, c.rgb.g, c.rgb.b)}")
    hidden = len(palette) - max_colors
    if hidden > 0:
        lines.append(f"… and {hidden} more (included in exports)")
    return "\n".join(lines)

def palette_keyboard(palette: Palette, max_colors: int, export_format: ExportFormat,
                     copied: Optional[int] = None, per_row: int = 3) -> InlineKeyboardMarkup:
    rows: List[List[InlineKeyboardButton]] = []
    row: List[InlineKeyboardButton] = []
    for i, c in enumerate(palette.colors[:max_colors]):
        label = f"✅ {c.display_hex}" if copied == i else f"📋 {c.display_hex}"
        row.append(InlineKeyboardButton(label, callback_data=f"copy:{i}"))
        if len(row) == per_row:
            rows.append(row)
            row = []
    if row:
        rows.append(row)

    rows.append([
        InlineKeyboardButton(("• " if f == export_format else "") + f.value.upper(), callback_data=f"fmt:{f.value}")
        for f in ExportFormat
    ])
    rows.append([InlineKeyboardButton(f"⬇️ Download {export_format.value.upper()}", callback_data="export")])
    return InlineKeyboardMarkup(rows)
