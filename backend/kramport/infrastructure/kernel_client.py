"""SiYuan Kernel Client — wraps httpx.AsyncClient with timeouts and error mapping.

Invariants:
    - Every request carries "Authorization: Token <siyuan_token>" when a token is set
    - Kernel envelope {"code", "msg", "data"}: code != 0 is a failure even on HTTP 200
    - All failures mapped to KernelAPIError (core/errors.py) inside _post
    - fetch_block NEVER raises: it is the FetchBlockSource handed to the resolver
    - export_document raises: the root document is the one fetch that must succeed

Design Decisions:
    - Single attempt per call, no retry/backoff: the resolver's contract is one fetch per block
    - Per-request timeouts: block fetches and document exports have separate limits
    - Injectable httpx transport: tests use httpx.MockTransport, no network
"""

import logging

import httpx

from kramport.config import Settings, get_settings
from kramport.core.domain_types import (
    DEFAULT_BLOCK_TIMEOUT_SECONDS,
    DEFAULT_DOCUMENT_TIMEOUT_SECONDS,
    DocId,
)
from kramport.core.errors import ErrorContext, KernelAPIError, ResourceNotFoundError

logger = logging.getLogger(__name__)


class KernelClient:
    """Async client for the SiYuan kernel HTTP API."""

    BLOCK_KRAMDOWN_PATH = "/api/block/getBlockKramdown"
    EXPORT_MD_CONTENT_PATH = "/api/export/exportMdContent"

    def __init__(
        self,
        base_url: str,
        token: str = "",
        block_timeout_seconds: float = DEFAULT_BLOCK_TIMEOUT_SECONDS,
        document_timeout_seconds: float = DEFAULT_DOCUMENT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"Authorization": f"Token {token}"} if token else {}
        self.client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            transport=transport,
        )
        self.token = token
        self.block_timeout_seconds = block_timeout_seconds
        self.document_timeout_seconds = document_timeout_seconds

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "KernelClient":
        settings = settings or get_settings()
        return cls(
            settings.siyuan_url,
            settings.siyuan_token,
            block_timeout_seconds=settings.block_fetch_timeout_seconds,
            document_timeout_seconds=settings.document_fetch_timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "KernelClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def fetch_block(self, block_id: str) -> str | None:
        """Fetch one block's raw Kramdown. Returns None on any failure or empty body."""
        try:
            data = await self._post(
                self.BLOCK_KRAMDOWN_PATH,
                {"id": block_id, "mode": "md"},
                timeout=self.block_timeout_seconds,
                context=ErrorContext(block_id=block_id),
            )
        except KernelAPIError as e:
            logger.warning(
                f"Block fetch failed: {e.message}",
                extra={"block_id": block_id, "error_code": e.code, "status_code": e.status_code},
            )
            return None

        kramdown = data.get("kramdown")
        if not isinstance(kramdown, str) or not kramdown.strip():
            logger.warning("Block has no kramdown content", extra={"block_id": block_id})
            return None
        return kramdown

    async def export_document(self, doc_id: DocId) -> str:
        """Export a whole document as dialect Markdown.

        Raises:
            KernelAPIError: transport failure, timeout, HTTP error, or kernel code != 0
            ResourceNotFoundError: the kernel answered but the content is empty
        """
        context = ErrorContext(doc_id=doc_id)
        data = await self._post(
            self.EXPORT_MD_CONTENT_PATH,
            {"id": doc_id},
            timeout=self.document_timeout_seconds,
            context=context,
        )
        content = data.get("content")
        if not isinstance(content, str) or not content.strip():
            raise ResourceNotFoundError("Document", doc_id, context)
        return content

    async def _post(
        self, path: str, payload: dict, *, timeout: float, context: ErrorContext,
    ) -> dict:
        """POST to the kernel and return the envelope's data dict."""
        try:
            response = await self.client.post(path, json=payload, timeout=timeout)
        except httpx.TimeoutException as e:
            raise KernelAPIError(
                f"{path} timed out after {timeout}s", timed_out=True, context=context,
            ) from e
        except httpx.HTTPError as e:
            raise KernelAPIError(f"{path} transport failure: {e}", context=context) from e

        if response.is_error:
            raise KernelAPIError(
                f"{path} returned HTTP {response.status_code}",
                status_code=response.status_code, context=context,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise KernelAPIError(
                f"{path} returned malformed JSON",
                status_code=response.status_code, context=context,
            ) from e

        if not isinstance(body, dict):
            raise KernelAPIError(
                f"{path} returned a non-object body",
                status_code=response.status_code, context=context,
            )
        if body.get("code") != 0:
            raise KernelAPIError(
                f"{path} returned code {body.get('code')}: {body.get('msg', '')}",
                status_code=response.status_code,
                api_code=body.get("code"),
                context=context,
            )

        data = body.get("data")
        return data if isinstance(data, dict) else {}
