"""Block References — extract and rewrite ((id "label")) transclusion markers.

Invariants:
    - Extractor and transcoder share one marker pattern and both read raw marker syntax
    - extract_references: deduplicated by block_id, first-occurrence order, first label wins
    - transcode_references: only marker spans change; every other character is preserved
    - An empty label ((id "")) is treated as no label

Design Decisions:
    - Both quote styles accepted: "static" anchors use double quotes, "dynamic" anchors single
"""

import re

from kramport.core.domain_types import BLOCK_ID_PATTERN, BlockId, TranscludeMarker


REF_PLACEHOLDER = "[ref]"

_MARKER = re.compile(
    r"\(\((" + BLOCK_ID_PATTERN + r")"
    r"""(?:[ \t]+(?:"([^"\n]*)"|'([^'\n]*)'))?"""
    r"\)\)"
)


def extract_references(text: str) -> list[TranscludeMarker]:
    """Return distinct markers in first-occurrence order.

    A later occurrence of an already-seen id is ignored, label included.
    """
    if not text or not isinstance(text, str):
        return []

    refs: list[TranscludeMarker] = []
    seen: set[str] = set()
    for match in _MARKER.finditer(text):
        block_id = match.group(1)
        if block_id in seen:
            continue
        seen.add(block_id)
        refs.append(TranscludeMarker(BlockId(block_id), _label_of(match)))
    return refs


def transcode_references(text: str) -> str:
    """Replace each marker with [label], or [ref] when it carries no label."""
    if not text or not isinstance(text, str):
        return ""
    return _MARKER.sub(_render_marker, text)


def _render_marker(match: re.Match) -> str:
    label = _label_of(match)
    return f"[{label}]" if label else REF_PLACEHOLDER


def _label_of(match: re.Match) -> str | None:
    return match.group(2) or match.group(3) or None
