from __future__ import annotations
import logging
from typing import Any, Dict, Optional

import httpx

from domain.dtos import Color, Palette
from domain.errors import ExtractionFailed

log = logging.getLogger(__name__)

EXTRACT_PATH = "/api/extract"
HEALTH_PATH = "/health"
FAILED_MESSAGE = "Failed to extract colors"

class ExtractionClient:
    """Talks to the color extraction service. Every failure becomes ExtractionFailed; no retries."""

    def __init__(self, api_base: str, *, timeout: Optional[float] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.api_base = api_base.rstrip("/")
        kwargs: Dict[str, Any] = {"base_url": self.api_base}
        if timeout is not None:
            kwargs["timeout"] = timeout
        if transport is not None:
            kwargs["transport"] = transport
        self._http = httpx.AsyncClient(**kwargs)

    async def __aenter__(self) -> "ExtractionClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def extract(self, data: bytes, media_type: str, filename: str = "image") -> Palette:
        files = {"image": (filename, data, media_type)}
        try:
            resp = await self._http.post(EXTRACT_PATH, files=files)
        except httpx.HTTPError as e:
            log.warning("Extraction request to %s failed: %s", self.api_base, e)
            raise ExtractionFailed(FAILED_MESSAGE) from e

        if not resp.is_success:
            log.warning("Extraction service answered %s: %s", resp.status_code, _error_detail(resp))
            raise ExtractionFailed(FAILED_MESSAGE)

        try:
            body = resp.json()
            palette = Palette.of(Color.from_dict(c) for c in body["colors"])
        except (ValueError, KeyError, TypeError) as e:
            # ValueError covers both JSON decoding and Color invariant violations
            log.warning("Malformed extraction response: %s", e)
            raise ExtractionFailed(FAILED_MESSAGE) from e

        log.info("Extracted %d colors from %s (%d bytes)", len(palette), filename, len(data))
        return palette

    async def health(self) -> Dict[str, Any]:
        try:
            resp = await self._http.get(HEALTH_PATH)
            resp.raise_for_status()
            return resp.json()
        except (httpx.HTTPError, ValueError) as e:
            log.warning("Health check against %s failed: %s", self.api_base, e)
            raise ExtractionFailed("Extraction service is unavailable") from e

def _error_detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200]
    if isinstance(body, dict) and "error" in body:
        return str(body["error"])
    return str(body)[:200]
