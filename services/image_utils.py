from __future__ import annotations
from typing import Optional

import numpy as np
import cv2

from domain.dtos import Palette, Preview

PREVIEW_EDGE = 500

def bytes_to_cv2(b: bytes) -> Optional[np.ndarray]:
    if not b:
        return None
    arr = np.asarray(bytearray(b), dtype=np.uint8)
    try:
        img = cv2.imdecode(arr, cv2.IMREAD_COLOR)
    except cv2.error:
        return None
    return img

def make_preview(data: bytes, media_type: str, max_edge: int = PREVIEW_EDGE) -> Optional[Preview]:
    """JPEG thumbnail of the upload, or None when the bytes do not decode as an image."""
    img = bytes_to_cv2(data)
    if img is None:
        return None
    h, w = img.shape[:2]
    scale = max_edge / max(h, w)
    if scale < 1:
        img = cv2.resize(img, None, fx=scale, fy=scale, interpolation=cv2.INTER_AREA)
    ok, buf = cv2.imencode(".jpg", img)
    if not ok:
        return None
    h, w = img.shape[:2]
    return Preview(data=buf.tobytes(), media_type="image/jpeg", width=w, height=h)

def render_swatches(palette: Palette, width: int = 600, height: int = 120, min_share: float = 0.05) -> bytes:
    """PNG strip with one band per color, band width proportional to its share."""
    img = np.full((height, width, 3), 255, dtype=np.uint8)
    n = len(palette)
    if n > 0:
        total = palette.total_count
        if total > 0:
            # floor each band so tiny colors stay visible
            shares = np.array([max(min_share, c.count / total) for c in palette], dtype=float)
        else:
            shares = np.ones(n, dtype=float)
        edges = np.round(np.cumsum(shares) / shares.sum() * width).astype(int)

        x0 = 0
        for color, x1 in zip(palette, edges):
            img[:, x0:x1] = (color.rgb.b, color.rgb.g, color.rgb.r)  # BGR
            x0 = x1
    ok, buf = cv2.imencode(".png", img)
    if not ok:
        raise ValueError("Failed to encode swatch image")
    return buf.tobytes()

def render_card(preview: Optional[Preview], palette: Palette, strip_height: int = 120) -> bytes:
    """Preview thumbnail with the swatch strip underneath; just the strip when there is no preview."""
    if preview is None:
        return render_swatches(palette, height=strip_height)
    thumb = bytes_to_cv2(preview.data)
    if thumb is None:
        return render_swatches(palette, height=strip_height)
    w = thumb.shape[1]
    strip = bytes_to_cv2(render_swatches(palette, width=w, height=strip_height))
    ok, buf = cv2.imencode(".png", np.vstack([thumb, strip]))
    if not ok:
        raise ValueError("Failed to encode palette card")
    return buf.tobytes()
