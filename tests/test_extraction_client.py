"""
Tests for the extraction service client, using httpx.MockTransport in place of the network.
"""
import json

import httpx
import pytest

from domain.errors import ExtractionFailed
from services.extraction_client import ExtractionClient
from conftest import make_color

COLORS_BODY = {
    "colors": [
        {"hex": "#ff8040", "rgb": {"r": 255, "g": 128, "b": 64}, "count": 30},
        {"hex": "#000000", "rgb": {"r": 0, "g": 0, "b": 0}, "count": 10},
    ]
}


def client_for(handler, api_base="http://localhost:8080"):
    return ExtractionClient(api_base, transport=httpx.MockTransport(handler))


class TestExtract:
    @pytest.mark.asyncio
    async def test_posts_multipart_image_field(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=COLORS_BODY)

        async with client_for(handler) as client:
            palette = await client.extract(b"\x89PNG-bytes", "image/png", "cat.png")

        assert len(seen) == 1
        req = seen[0]
        assert req.method == "POST"
        assert str(req.url) == "http://localhost:8080/api/extract"
        assert req.headers["content-type"].startswith("multipart/form-data")
        body = req.content
        assert b'name="image"' in body
        assert b'filename="cat.png"' in body
        assert b"\x89PNG-bytes" in body
        assert list(palette) == [make_color(255, 128, 64, 30), make_color(0, 0, 0, 10)]

    @pytest.mark.asyncio
    async def test_base_with_path_prefix(self):
        seen = []

        def handler(request):
            seen.append(request.url.path)
            return httpx.Response(200, json={"colors": []})

        async with client_for(handler, "http://svc.example/palette/") as client:
            palette = await client.extract(b"x", "image/png")
        assert seen == ["/palette/api/extract"]
        assert len(palette) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [400, 404, 500, 503])
    async def test_non_success_status(self, status):
        def handler(request):
            return httpx.Response(status, json={"error": "Invalid image format. Please upload PNG or JPEG"})

        async with client_for(handler) as client:
            with pytest.raises(ExtractionFailed):
                await client.extract(b"x", "image/png")

    @pytest.mark.asyncio
    async def test_transport_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with client_for(handler) as client:
            with pytest.raises(ExtractionFailed):
                await client.extract(b"x", "image/png")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [
        b"not json",
        json.dumps({"palette": []}).encode(),
        json.dumps([1, 2, 3]).encode(),
        json.dumps({"colors": None}).encode(),
        json.dumps({"colors": [{"hex": "#ffffff", "rgb": {"r": 0, "g": 0, "b": 0}, "count": 1}]}).encode(),
        json.dumps({"colors": [{"hex": "#000000", "rgb": {"r": 0, "g": 0, "b": 0}}]}).encode(),
    ])
    async def test_malformed_body(self, body):
        def handler(request):
            return httpx.Response(200, content=body, headers={"content-type": "application/json"})

        async with client_for(handler) as client:
            with pytest.raises(ExtractionFailed):
                await client.extract(b"x", "image/png")


class TestHealth:
    @pytest.mark.asyncio
    async def test_healthy(self):
        def handler(request):
            assert request.method == "GET"
            assert request.url.path == "/health"
            return httpx.Response(200, json={"status": "healthy", "service": "color-palette-api"})

        async with client_for(handler) as client:
            assert await client.health() == {"status": "healthy", "service": "color-palette-api"}

    @pytest.mark.asyncio
    async def test_unhealthy(self):
        def handler(request):
            return httpx.Response(502, text="bad gateway")

        async with client_for(handler) as client:
            with pytest.raises(ExtractionFailed):
                await client.health()


class TestTimeout:
    @pytest.mark.asyncio
    async def test_unset_timeout_keeps_httpx_default(self):
        async with ExtractionClient("http://localhost:8080") as client:
            assert client._http.timeout == httpx.Timeout(5.0)

    @pytest.mark.asyncio
    async def test_explicit_timeout(self):
        async with ExtractionClient("http://localhost:8080", timeout=7.5) as client:
            assert client._http.timeout == httpx.Timeout(7.5)
