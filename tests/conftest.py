"""Shared pytest fixtures for ApexxCloud SDK tests.

A small FastAPI app stands in for the ApexxCloud API. It recomputes the
signature of every request (header auth for direct calls, query auth for
pre-signed URLs) from the raw request line and answers 403 on mismatch, so
tests exercise the exact bytes the SDK puts on the wire. The SDK talks to it
in-process through ``httpx.ASGITransport``.
"""

import hmac
from dataclasses import dataclass, field
from typing import Any

import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from httpx import ASGITransport, AsyncClient

from apexxcloud import ApexxCloud
from apexxcloud.auth import AUTH_QUERY_PARAMS, compute_signature

ACCESS_KEY = "test-access-key"
SECRET_KEY = "test-secret-key"
REGION = "test-region"
BUCKET = "test-bucket"
BASE_URL = "http://testserver"


@dataclass
class RecordedRequest:
    """A request as seen by the fake API."""

    method: str
    path: str
    query: str
    headers: dict[str, str]
    body: bytes
    auth: str
    params: dict[str, str] = field(default_factory=dict)


def _verify(request: Request) -> str | None:
    """Return the auth mode used, or None when the signature is wrong."""
    raw_query = request.url.query
    pairs = raw_query.split("&") if raw_query else []
    auth_params = {}
    for pair in pairs:
        name, _, value = pair.partition("=")
        if name in AUTH_QUERY_PARAMS:
            auth_params[name] = value

    if "signature" in auth_params:
        signed_query = "&".join(p for p in pairs if p.partition("=")[0] not in AUTH_QUERY_PARAMS)
        signed_path = f"{request.url.path}?{signed_query}"
        access_key = auth_params.get("access_key", "")
        timestamp = request.query_params.get("timestamp", "")
        provided = auth_params["signature"]
        mode = "query"
    else:
        signed_path = f"{request.url.path}?{raw_query}" if raw_query else request.url.path
        access_key = request.headers.get("x-access-key", "")
        timestamp = request.headers.get("x-timestamp", "")
        provided = request.headers.get("x-signature", "")
        mode = "header"

    if access_key != ACCESS_KEY:
        return None
    expected = compute_signature(SECRET_KEY, request.method, signed_path, timestamp)
    if not hmac.compare_digest(expected, provided):
        return None
    return mode


def create_fake_api() -> FastAPI:
    """Create a FastAPI app emulating the ApexxCloud files API."""
    app = FastAPI()
    app.state.requests = []

    @app.middleware("http")
    async def check_signature(request: Request, call_next):
        mode = _verify(request)
        if mode is None:
            return JSONResponse({"message": "Invalid signature"}, status_code=403)
        app.state.requests.append(
            RecordedRequest(
                method=request.method,
                path=request.url.path,
                query=request.url.query,
                headers=dict(request.headers),
                body=await request.body(),
                auth=mode,
                params=dict(request.query_params),
            )
        )
        return await call_next(request)

    @app.put("/api/v1/files/upload")
    async def upload(request: Request) -> dict[str, Any]:
        key = request.query_params["key"]
        return {"url": f"https://cdn.example.com/{key}"}

    @app.delete("/api/v1/files/delete")
    async def delete(request: Request):
        if request.query_params.get("key") == "missing.txt":
            return JSONResponse({"message": "Not found"}, status_code=404)
        return {"success": True}

    @app.post("/api/v1/files/purge")
    async def purge() -> dict[str, Any]:
        return {"success": True}

    @app.post("/api/v1/files/multipart/start")
    async def start_multipart() -> dict[str, Any]:
        return {"uploadId": "upload-123"}

    @app.post("/api/v1/files/multipart/{upload_id}")
    async def upload_part(upload_id: str, request: Request) -> dict[str, Any]:
        part_number = int(request.query_params["partNumber"])
        return {"ETag": f"etag-{part_number}", "PartNumber": part_number}

    @app.post("/api/v1/files/multipart/{upload_id}/complete")
    async def complete_multipart(upload_id: str, request: Request) -> dict[str, Any]:
        key = request.query_params["key"]
        return {
            "Location": f"https://cdn.example.com/{key}",
            "Bucket": request.query_params["bucket_name"],
            "Key": key,
            "ETag": "final-etag",
        }

    @app.delete("/api/v1/files/multipart/{upload_id}")
    async def cancel_multipart(upload_id: str) -> dict[str, Any]:
        return {"success": True}

    @app.get("/api/v1/files/contents")
    async def contents(request: Request) -> dict[str, Any]:
        return {
            "contents": [{"key": "a.txt", "size": 3, "lastModified": "", "etag": "e"}],
            "page": int(request.query_params["page"]),
            "totalPages": 1,
            "totalItems": 1,
        }

    @app.get("/api/v1/files/signed-url")
    async def signed_download(request: Request) -> dict[str, Any]:
        key = request.query_params["key"]
        return {"url": f"https://cdn.example.com/{key}?expires={request.query_params['expiresIn']}"}

    return app


@pytest.fixture
def api() -> FastAPI:
    """A fresh fake API per test, with an empty request log."""
    return create_fake_api()


@pytest.fixture
async def http_client(api) -> AsyncClient:
    transport = ASGITransport(app=api)
    async with AsyncClient(transport=transport) as ac:
        yield ac


@pytest.fixture
async def client(http_client) -> ApexxCloud:
    """An SDK client wired to the fake API with default region and bucket."""
    sdk = ApexxCloud(
        ACCESS_KEY,
        SECRET_KEY,
        region=REGION,
        bucket=BUCKET,
        base_url=BASE_URL,
        http_client=http_client,
    )
    yield sdk
    await sdk.aclose()


@pytest.fixture
def recorded(api) -> list[RecordedRequest]:
    """Requests the fake API accepted, oldest first."""
    return api.state.requests
