"""Transcoding Pipeline — one document-level transform for every graph node.

Invariants:
    - to_portable_markdown == transcode_references ∘ clean_kramdown
    - Applied identically to the root document and to every fetched block
"""

from kramport.core.block_refs import transcode_references
from kramport.core.clean_kramdown import clean_kramdown


def to_portable_markdown(text: str) -> str:
    """Clean dialect syntax, then rewrite block references to bracket labels."""
    return transcode_references(clean_kramdown(text))
