"""Service test fixtures — in-memory block store standing in for the host document store.

Invariants:
    - FakeBlockStore.fetch_block matches FetchBlockSource: async, block_id -> result
    - Every call is logged in order, so tests can assert fetch counts and sequences
    - A response may be text, None, a (text, ok) pair, or an Exception to raise;
      a list of responses is consumed one per call (last one repeats)

Design Decisions:
    - Per-id delays via asyncio.sleep: lets tests force sequential vs overlapping branches
"""

import asyncio

import pytest


class FakeBlockStore:
    """Controllable async fetch double."""

    def __init__(self, blocks: dict | None = None, delays: dict | None = None):
        self.blocks = dict(blocks or {})
        self.delays = dict(delays or {})
        self.calls: list[str] = []

    async def fetch_block(self, block_id: str):
        self.calls.append(block_id)
        delay = self.delays.get(block_id, 0)
        if delay:
            await asyncio.sleep(delay)

        response = self.blocks.get(block_id)
        if isinstance(response, list):
            response = response.pop(0) if len(response) > 1 else response[0]
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def make_store():
    """Factory: make_store(blocks, delays=None) -> FakeBlockStore."""
    def _make(blocks: dict | None = None, delays: dict | None = None) -> FakeBlockStore:
        return FakeBlockStore(blocks, delays)
    return _make
