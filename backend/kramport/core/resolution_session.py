"""Resolution Session — call-scoped cache and in-progress tracking for one resolve.

Invariants:
    - One session per resolve_document call; never shared, discarded on return
    - cache only grows; a block_id appears in it at most once
    - in_progress holds ids whose fetch has started but not finished (success or failure)
    - ResolvedBlock.label is backfilled once when empty, never overwritten once set
    - ranked_bundle: ref_count descending, ties by discovery order

Design Decisions:
    - Pure dataclasses, no IO: the async resolver in services/ drives all mutation
    - in_progress is session-global, not per traversal path: two siblings racing on
      the same not-yet-cached id look like a cycle and the later one is dropped
    - Discovery order is the pre-order path of marker indices from the root
      (e.g. (0,), (0, 1), (1,)), so ties never depend on fetch completion order
"""

from dataclasses import dataclass, field

from kramport.core.domain_types import DEFAULT_MAX_DEPTH, BlockId, SkipReason


@dataclass
class ResolvedBlock:
    """A fetched, cleaned, transcoded block. Identity is block_id."""
    block_id: BlockId
    content: str
    label: str | None = None
    ref_count: int = 1
    order: tuple[int, ...] = ()

    def record_reference(self, label: str | None) -> None:
        """Count one more appearance; adopt label only if none is set yet."""
        self.ref_count += 1
        if label and not self.label:
            self.label = label


@dataclass
class SkippedReference:
    """Informational record of a reference path that added nothing."""
    block_id: BlockId
    depth: int
    reason: SkipReason


@dataclass
class ResolutionSession:
    """Per-call resolution state. Pure dataclass, no IO."""

    max_depth: int = DEFAULT_MAX_DEPTH
    cache: dict[BlockId, ResolvedBlock] = field(default_factory=dict)
    in_progress: set[BlockId] = field(default_factory=set)
    skipped: list[SkippedReference] = field(default_factory=list)
    fetch_count: int = 0

    def depth_exceeded(self, depth: int) -> bool:
        return depth >= self.max_depth

    def lookup(self, block_id: BlockId, label: str | None) -> ResolvedBlock | None:
        """Return the cached block and count this appearance, or None on a miss."""
        cached = self.cache.get(block_id)
        if cached is not None:
            cached.record_reference(label)
        return cached

    def is_in_progress(self, block_id: BlockId) -> bool:
        return block_id in self.in_progress

    def begin(self, block_id: BlockId) -> None:
        """Mark block_id in progress; called right before its single fetch."""
        self.in_progress.add(block_id)
        self.fetch_count += 1

    def complete(self, block: ResolvedBlock) -> None:
        self.cache[block.block_id] = block
        self.in_progress.discard(block.block_id)

    def release(self, block_id: BlockId) -> None:
        """Unmark block_id after success or failure. Idempotent."""
        self.in_progress.discard(block_id)

    def record_skip(self, block_id: BlockId, depth: int, reason: SkipReason) -> None:
        self.skipped.append(SkippedReference(block_id, depth, reason))

    def ranked_bundle(self) -> list[ResolvedBlock]:
        return sorted(self.cache.values(), key=lambda b: (-b.ref_count, b.order))
