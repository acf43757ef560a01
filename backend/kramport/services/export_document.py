"""Document Export — fetch a document from the kernel and bundle its referenced blocks.

Invariants:
    - The root document fetch is the only fatal fetch: its errors propagate to the caller
    - Referenced blocks are best-effort: failures only shrink ExportedDocument.references
    - A missing kernel token fails fast with ConfigurationError, before any request

Design Decisions:
    - Serialization of ExportedDocument for a share backend is left to the caller
"""

import logging
from dataclasses import dataclass, field

from kramport.config import Settings, get_settings
from kramport.core.domain_types import DocId
from kramport.core.errors import ConfigurationError, ErrorContext
from kramport.core.resolution_session import ResolvedBlock
from kramport.infrastructure.kernel_client import KernelClient
from kramport.services.resolve_references import resolve_document

logger = logging.getLogger(__name__)


@dataclass
class ExportedDocument:
    """Portable document text plus its ranked reference bundle."""
    doc_id: DocId
    content: str
    references: list[ResolvedBlock] = field(default_factory=list)


async def export_document_with_references(
    client: KernelClient,
    doc_id: DocId,
    *,
    max_depth: int | None = None,
    settings: Settings | None = None,
) -> ExportedDocument:
    """Export doc_id as portable Markdown and resolve every block it references.

    Raises:
        ConfigurationError: the client has no kernel token
        KernelAPIError / ResourceNotFoundError: the document itself could not be exported
    """
    settings = settings or get_settings()
    if not client.token:
        raise ConfigurationError(
            "SiYuan kernel token is not configured",
            "siyuan_token",
            ErrorContext(doc_id=doc_id),
        )

    raw = await client.export_document(doc_id)
    content, references = await resolve_document(
        raw,
        client.fetch_block,
        settings.max_depth if max_depth is None else max_depth,
        fetch_timeout=client.block_timeout_seconds,
    )
    logger.info(
        f"Exported document with {len(references)} referenced block(s)",
        extra={"doc_id": doc_id},
    )
    return ExportedDocument(doc_id, content, references)
