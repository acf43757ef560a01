"""Reference Resolver — recursive, depth-bounded, cycle-guarded block-reference resolution.

Invariants:
    - Each resolve_document call owns exactly one ResolutionSession
    - Check order per reference: depth bound → cache hit → in-progress (cycle) → fetch
    - Traversal at depth >= max_depth never fetches
    - A resolved block is never fetched again; failures are not cached, so another path may retry
    - A block's own markers are transcoded before its children are resolved
    - Per-block failures (timeout, exception, empty body) are recorded as skips, never raised
    - Siblings fan out together with asyncio.gather; one branch failing never cancels another

Design Decisions:
    - fetch is an injected async callable: any host store, or a test double, can back it
    - Direct references of the document resolve at depth 0, so max_depth=5 fetches
      graph depths 1 through 5
    - Root text is only transcoded; no ResolvedBlock is created for the document itself
"""

import asyncio
import logging

from kramport.core.block_refs import extract_references, transcode_references
from kramport.core.clean_kramdown import clean_kramdown
from kramport.core.domain_types import (
    DEFAULT_BLOCK_TIMEOUT_SECONDS,
    DEFAULT_MAX_DEPTH,
    BlockId,
    SkipReason,
    TranscludeMarker,
)
from kramport.core.portable_markdown import to_portable_markdown
from kramport.core.resolution_session import ResolutionSession, ResolvedBlock
from kramport.core.source_protocols import FetchBlockSource, unwrap_fetch_result

logger = logging.getLogger(__name__)


async def resolve_document(
    raw_text: str,
    fetch: FetchBlockSource,
    max_depth: int = DEFAULT_MAX_DEPTH,
    *,
    fetch_timeout: float | None = DEFAULT_BLOCK_TIMEOUT_SECONDS,
) -> tuple[str, list[ResolvedBlock]]:
    """Transcode a document and resolve its reference graph into a ranked bundle.

    Returns (portable markdown, bundle). The bundle is sorted by ref_count
    descending, ties by discovery order. Never raises for per-block failures.
    """
    resolver = ReferenceResolver(fetch, max_depth, fetch_timeout=fetch_timeout)
    return await resolver.resolve(raw_text)


class ReferenceResolver:
    """Single-use resolver: one instance, one session, one document."""

    def __init__(
        self,
        fetch: FetchBlockSource,
        max_depth: int = DEFAULT_MAX_DEPTH,
        *,
        fetch_timeout: float | None = DEFAULT_BLOCK_TIMEOUT_SECONDS,
    ) -> None:
        self.fetch = fetch
        self.fetch_timeout = fetch_timeout
        if max_depth is None:
            max_depth = DEFAULT_MAX_DEPTH
        self.session = ResolutionSession(max_depth=max_depth)

    async def resolve(self, raw_text: str) -> tuple[str, list[ResolvedBlock]]:
        markdown = to_portable_markdown(raw_text)
        direct_refs = extract_references(raw_text)
        if direct_refs:
            await self._fan_out(direct_refs, depth=0, parent_order=())

        bundle = self.session.ranked_bundle()
        logger.info(
            f"Resolved {len(direct_refs)} direct reference(s) into "
            f"{len(bundle)} block(s) with {self.session.fetch_count} fetch(es), "
            f"{len(self.session.skipped)} skipped",
        )
        return markdown, bundle

    async def resolve_one(
        self, marker: TranscludeMarker, depth: int, order: tuple[int, ...],
    ) -> ResolvedBlock | None:
        """Resolve one reference path. Returns the block, or None when skipped."""
        block_id, label = marker.block_id, marker.label
        session = self.session

        if session.depth_exceeded(depth):
            self._skip(block_id, depth, SkipReason.DEPTH_EXCEEDED)
            return None

        cached = session.lookup(block_id, label)
        if cached is not None:
            return cached

        if session.is_in_progress(block_id):
            self._skip(block_id, depth, SkipReason.CYCLE_DETECTED)
            return None

        session.begin(block_id)
        try:
            raw, failure = await self._fetch(block_id, depth)
            if failure is not None:
                self._skip(block_id, depth, failure)
                return None

            cleaned = clean_kramdown(raw)
            if not cleaned:
                self._skip(block_id, depth, SkipReason.EMPTY_BLOCK)
                return None

            nested = extract_references(cleaned)
            content = transcode_references(cleaned)
            if nested:
                await self._fan_out(nested, depth + 1, order)

            block = ResolvedBlock(block_id, content, label, 1, order)
            session.complete(block)
            return block
        finally:
            session.release(block_id)

    async def _fan_out(
        self,
        markers: list[TranscludeMarker],
        depth: int,
        parent_order: tuple[int, ...],
    ) -> None:
        results = await asyncio.gather(
            *(
                self.resolve_one(marker, depth, parent_order + (i,))
                for i, marker in enumerate(markers)
            ),
            return_exceptions=True,
        )
        for marker, result in zip(markers, results):
            if isinstance(result, Exception):
                logger.error(
                    f"Reference resolution crashed: {result}",
                    exc_info=result,
                    extra={"block_id": marker.block_id, "depth": depth},
                )

    async def _fetch(
        self, block_id: BlockId, depth: int,
    ) -> tuple[str, SkipReason | None]:
        """Single fetch attempt. Returns (text, None) or ("", failure reason)."""
        try:
            result = await asyncio.wait_for(self.fetch(block_id), timeout=self.fetch_timeout)
            text = unwrap_fetch_result(result)
        except asyncio.TimeoutError:
            return "", SkipReason.FETCH_TIMEOUT
        except Exception as e:
            logger.warning(
                f"Block fetch raised: {e}",
                extra={"block_id": block_id, "depth": depth},
            )
            return "", SkipReason.FETCH_FAILED

        if text is None:
            return "", SkipReason.FETCH_FAILED
        if not text.strip():
            return "", SkipReason.EMPTY_BLOCK
        return text, None

    def _skip(self, block_id: BlockId, depth: int, reason: SkipReason) -> None:
        self.session.record_skip(block_id, depth, reason)
        level = logging.DEBUG if reason == SkipReason.DEPTH_EXCEEDED else logging.WARNING
        logger.log(
            level,
            f"Skipped reference {block_id}: {reason.value}",
            extra={"block_id": block_id, "depth": depth, "reason": reason.value},
        )
