"""Kernel Client tests — httpx.MockTransport stands in for the SiYuan kernel.

Tests cover:
    - Request shape: path, JSON body, Authorization header
    - fetch_block returns kramdown, or None on every failure mode (never raises)
    - export_document returns content, raises KernelAPIError / ResourceNotFoundError
    - from_settings wiring
"""

import json

import httpx
import pytest

from kramport.config import Settings
from kramport.core.errors import ErrorCategory, KernelAPIError, ResourceNotFoundError
from kramport.infrastructure.kernel_client import KernelClient


BLOCK_ID = "20200813131152-0wk5akh"


def _kernel(handler) -> KernelClient:
    return KernelClient(
        "http://kernel.test/", "secret", transport=httpx.MockTransport(handler),
    )


def _ok(data: dict) -> httpx.Response:
    return httpx.Response(200, json={"code": 0, "msg": "", "data": data})


# --- fetch_block --------------------------------------------------------------

@pytest.mark.asyncio
async def test_fetch_block_sends_expected_request():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return _ok({"id": BLOCK_ID, "kramdown": "Block body\n{: id=\"x\"}"})

    async with _kernel(handler) as kernel:
        result = await kernel.fetch_block(BLOCK_ID)

    assert result == "Block body\n{: id=\"x\"}"
    assert seen["path"] == "/api/block/getBlockKramdown"
    assert seen["auth"] == "Token secret"
    assert seen["body"] == {"id": BLOCK_ID, "mode": "md"}


@pytest.mark.asyncio
async def test_fetch_block_http_error_returns_none():
    async with _kernel(lambda request: httpx.Response(500, text="boom")) as kernel:
        assert await kernel.fetch_block(BLOCK_ID) is None


@pytest.mark.asyncio
async def test_fetch_block_nonzero_code_returns_none():
    def handler(request):
        return httpx.Response(200, json={"code": -1, "msg": "block not found", "data": None})

    async with _kernel(handler) as kernel:
        assert await kernel.fetch_block(BLOCK_ID) is None


@pytest.mark.asyncio
async def test_fetch_block_empty_kramdown_returns_none():
    async with _kernel(lambda request: _ok({"id": BLOCK_ID, "kramdown": ""})) as kernel:
        assert await kernel.fetch_block(BLOCK_ID) is None


@pytest.mark.asyncio
async def test_fetch_block_malformed_json_returns_none():
    async with _kernel(lambda request: httpx.Response(200, text="<html>")) as kernel:
        assert await kernel.fetch_block(BLOCK_ID) is None


@pytest.mark.asyncio
async def test_fetch_block_transport_error_returns_none():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with _kernel(handler) as kernel:
        assert await kernel.fetch_block(BLOCK_ID) is None


@pytest.mark.asyncio
async def test_fetch_block_timeout_returns_none():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    async with _kernel(handler) as kernel:
        assert await kernel.fetch_block(BLOCK_ID) is None


# --- export_document ----------------------------------------------------------

@pytest.mark.asyncio
async def test_export_document_returns_content():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return _ok({"hPath": "/Notes", "content": "---\ntitle: Notes\n---\nBody"})

    async with _kernel(handler) as kernel:
        content = await kernel.export_document("20210101-docdocd")

    assert content == "---\ntitle: Notes\n---\nBody"
    assert seen["path"] == "/api/export/exportMdContent"
    assert seen["body"] == {"id": "20210101-docdocd"}


@pytest.mark.asyncio
async def test_export_document_http_error_raises():
    async with _kernel(lambda request: httpx.Response(401)) as kernel:
        with pytest.raises(KernelAPIError) as exc_info:
            await kernel.export_document("20210101-docdocd")

    assert exc_info.value.status_code == 401
    assert exc_info.value.context.doc_id == "20210101-docdocd"


@pytest.mark.asyncio
async def test_export_document_api_code_raises():
    def handler(request):
        return httpx.Response(200, json={"code": 1, "msg": "invalid id", "data": None})

    async with _kernel(handler) as kernel:
        with pytest.raises(KernelAPIError) as exc_info:
            await kernel.export_document("bad")

    assert exc_info.value.api_code == 1
    assert "invalid id" in exc_info.value.message


@pytest.mark.asyncio
async def test_export_document_timeout_raises_timeout_category():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    async with _kernel(handler) as kernel:
        with pytest.raises(KernelAPIError) as exc_info:
            await kernel.export_document("20210101-docdocd")

    assert exc_info.value.timed_out
    assert exc_info.value.category == ErrorCategory.TIMEOUT
    assert exc_info.value.code == "KERNEL_TIMEOUT"


@pytest.mark.asyncio
async def test_export_document_empty_content_raises_not_found():
    async with _kernel(lambda request: _ok({"content": "  "})) as kernel:
        with pytest.raises(ResourceNotFoundError):
            await kernel.export_document("20210101-docdocd")


# --- Construction -------------------------------------------------------------

@pytest.mark.asyncio
async def test_from_settings_uses_configured_values():
    settings = Settings(
        siyuan_url="http://kernel.test:6806/",
        siyuan_token="tok",
        block_fetch_timeout_seconds=3,
        document_fetch_timeout_seconds=7,
    )
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        return _ok({"kramdown": "x"})

    async with KernelClient.from_settings(settings, transport=httpx.MockTransport(handler)) as kernel:
        await kernel.fetch_block(BLOCK_ID)
        assert kernel.block_timeout_seconds == 3
        assert kernel.document_timeout_seconds == 7

    assert seen["url"] == "http://kernel.test:6806/api/block/getBlockKramdown"
    assert seen["auth"] == "Token tok"


@pytest.mark.asyncio
async def test_no_token_sends_no_authorization_header():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        return _ok({"kramdown": "x"})

    kernel = KernelClient("http://kernel.test", transport=httpx.MockTransport(handler))
    await kernel.fetch_block(BLOCK_ID)
    await kernel.aclose()

    assert seen["auth"] is None
