"""Shared fixtures for inkfolio tests."""

from __future__ import annotations

import io
from pathlib import Path

import httpx
import pytest
from PIL import Image

from inkfolio import Settings


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        cloud_name="demo-cloud",
        api_key="key",
        api_secret="secret",
        folder="portfolio",
        site_dir=tmp_path / "site",
        cache_path=tmp_path / "cache" / "blur.json",
    )


@pytest.fixture()
def resources() -> list[dict]:
    """Search API resources, already in the server's public_id-descending order."""
    return [
        {
            "asset_id": "a3",
            "public_id": "portfolio/sleeve",
            "format": "jpg",
            "width": 1600,
            "height": 1200,
            "bytes": 204800,
            "resource_type": "image",
        },
        {
            "asset_id": "a2",
            "public_id": "portfolio/rose",
            "format": "png",
            "width": 1000,
            "height": 1500,
            "bytes": 102400,
            "resource_type": "image",
        },
        {
            "asset_id": "a1",
            "public_id": "portfolio/koi",
            "format": "jpg",
            "width": 800,
            "height": 800,
            "bytes": 51200,
            "resource_type": "image",
        },
    ]


@pytest.fixture()
def jpeg_bytes() -> bytes:
    """32 × 20 solid JPEG."""
    buf = io.BytesIO()
    Image.new("RGB", (32, 20), (200, 40, 40)).save(buf, "JPEG")
    return buf.getvalue()


@pytest.fixture()
def make_client():
    """Build httpx clients backed by a handler; closed after the test."""
    clients = []

    def _make(handler) -> httpx.Client:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()


@pytest.fixture()
def cloudinary_handler(resources: list[dict], jpeg_bytes: bytes):
    """Fake Search API + delivery endpoint; records every request it sees."""

    class Handler:
        def __init__(self):
            self.requests: list[httpx.Request] = []
            self.fail_public_ids: set[str] = set()

        def __call__(self, request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            if request.url.host == "api.cloudinary.com":
                return httpx.Response(200, json={"total_count": len(resources), "resources": resources})
            if any(pid in request.url.path for pid in self.fail_public_ids):
                return httpx.Response(404, text="not found")
            return httpx.Response(200, content=jpeg_bytes, headers={"content-type": "image/jpeg"})

        @property
        def image_requests(self) -> list[httpx.Request]:
            return [r for r in self.requests if r.url.host == "res.cloudinary.com"]

    return Handler()
