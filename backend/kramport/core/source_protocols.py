"""Boundary Protocols — contracts between core and the host document store.

Invariants:
    - Core NEVER imports from shell: dependency arrows point inward only
    - Block fetching accessed only through FetchBlockSource / BlockSource
    - A source signals failure by returning None or (text, False), never by raising

Design Decisions:
    - Protocol over ABC: structural subtyping, test doubles need no base class
    - Async in Protocol: implementations do IO, but core functions that consume
      their results are never async themselves; services/ awaits and core/ rewrites
"""

from collections.abc import Awaitable, Callable
from typing import Protocol, Union


FetchResult = Union[str, tuple[str, bool], None]

# Plain async callable form: fetch(block_id) -> raw dialect text | None | (text, ok)
FetchBlockSource = Callable[[str], Awaitable[FetchResult]]


class BlockSource(Protocol):
    """Object-shaped block source (e.g. KernelClient); pass `source.fetch_block`."""
    async def fetch_block(self, block_id: str) -> str | None: ...


def unwrap_fetch_result(result: FetchResult) -> str | None:
    """Normalize the three accepted fetch result shapes to text or None.

    None means the fetch failed. Blank text is returned as-is so callers can
    tell an empty block apart from a failed fetch.
    """
    if isinstance(result, tuple):
        text, ok = result
        if not ok:
            return None
        result = text
    if not isinstance(result, str):
        return None
    return result
