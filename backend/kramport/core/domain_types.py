"""Domain Types — identities, markers, and enums shared across the codebase.

Invariants:
    - BlockId values match BLOCK_ID_PATTERN (timestamp digits, dash, lowercase suffix)
    - TranscludeMarker is immutable once produced
    - Skip outcomes encoded as SkipReason: no raw string matching

Design Decisions:
    - NewType over wrapper classes: zero runtime cost, full type-checker support
    - str Enums: log records serialize to JSON without custom encoders
"""

from dataclasses import dataclass
from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

BlockId = NewType("BlockId", str)
DocId = NewType("DocId", str)

# yyyyMMdd[HHmmss...]-suffix, e.g. 20200813131152-0wk5akh
BLOCK_ID_PATTERN = r"\d{8,}-[0-9a-z]{7,}"


# ─── Limits ──────────────────────────────────────────────────────

DEFAULT_MAX_DEPTH = 5
DEFAULT_BLOCK_TIMEOUT_SECONDS = 10.0
DEFAULT_DOCUMENT_TIMEOUT_SECONDS = 20.0


# ─── Value Types ─────────────────────────────────────────────────

@dataclass(frozen=True)
class TranscludeMarker:
    """A block reference found in dialect text: ((id)) or ((id "label"))."""

    block_id: BlockId
    label: str | None = None


# ─── Enums ───────────────────────────────────────────────────────

class SkipReason(str, Enum):
    """Why a reference path ended without adding to the bundle."""
    DEPTH_EXCEEDED = "depth_exceeded"
    CYCLE_DETECTED = "cycle_detected"
    FETCH_FAILED = "fetch_failed"
    FETCH_TIMEOUT = "fetch_timeout"
    EMPTY_BLOCK = "empty_block"
