"""Dialect Cleaner — strip SiYuan Kramdown syntax down to portable Markdown.

Invariants:
    - clean_kramdown is total: any input (None, non-str, malformed) yields a str, never raises
    - Idempotent: clean_kramdown(clean_kramdown(x)) == clean_kramdown(x)
    - IAL matching is bounded to one line and quote-aware: a stray "{:" never eats other lines
    - Block references ((id "label")) are left untouched (see block_refs.py)

Design Decisions:
    - Six ordered stages; metadata stripping runs before whitespace normalization
      so blank lines left by removed annotations collapse in the final passes
    - IAL and embed-query removal loop together to a fixpoint: deleting one span
      can never leave behind another span of either kind
    - A fenced block only counts as front matter when its body reads as YAML
      (key: value, list items, comments); a closed "---" pair around prose is content
"""

import logging
import re

logger = logging.getLogger(__name__)

# {: id="..." style="..."}; quoted values may contain braces
_IAL = r'\{:(?:"[^"\n]*"|[^"}\n])*\}'

_IAL_AFTER_LIST_MARKER = re.compile(
    r"^([ \t]*(?:[-*+]|\d+\.)[ \t]+)(?:" + _IAL + r")+", re.MULTILINE,
)
_IAL_OWN_LINE = re.compile(
    r"^[ \t]*(?:" + _IAL + r"[ \t]*)+$", re.MULTILINE,
)
_IAL_INLINE = re.compile(_IAL)

_EMBED_QUERY = re.compile(r"\{\{.+?\}\}", re.DOTALL)

_METADATA_PREFIXES = ("title:", "date:", "lastmod:", "updated:")
_FRONT_MATTER_FENCE = "---"
_FRONT_MATTER_LINE = re.compile(r"[\w.-]+[ \t]*:(?:\s|$)|-(?:\s|$)|#")

_FULL_WIDTH_SPACE = "\u3000"
_FULL_WIDTH_RUN = re.compile(_FULL_WIDTH_SPACE + "+")

_BLANK_LINE_RUN = re.compile(r"\n{3,}")


# === Public API ===============================================================

def clean_kramdown(text: str) -> str:
    """Convert SiYuan Kramdown to Markdown, minus block-reference rewriting.

    Stages: IAL → embed queries → leading metadata → full-width spaces →
    blank-line collapse → trim.
    """
    if not text or not isinstance(text, str):
        return ""

    result = _strip_annotations(text)
    result = strip_leading_metadata(result)
    result = normalize_full_width_spaces(result)
    result = _BLANK_LINE_RUN.sub("\n\n", result)
    return result.strip()


def strip_ial(text: str) -> str:
    """Remove {: ...} attribute lists in all three placements.

    - After a list marker: "* {: id="x"}item" → "* item"
    - Alone on a line: the line is emptied, its line break stays
    - Inline after another element: "`code`{: id="x"}" → "`code`"
    """
    while True:
        stripped = _IAL_AFTER_LIST_MARKER.sub(r"\1", text)
        stripped = _IAL_OWN_LINE.sub("", stripped)
        stripped = _IAL_INLINE.sub("", stripped)
        if stripped == text:
            return stripped
        text = stripped


def strip_embed_queries(text: str) -> str:
    """Remove {{ ... }} embed-query spans, including multi-line ones."""
    while True:
        stripped = _EMBED_QUERY.sub(_drop_embed_query, text)
        if stripped == text:
            return stripped
        text = stripped


def strip_leading_metadata(text: str) -> str:
    """Drop front matter and title:/date:/lastmod:/updated: lines before real content.

    A "---" line only opens front matter when a closing "---" follows and
    every line between them reads as YAML; otherwise the fence is ordinary
    content (a horizontal rule). Once content is seen, every remaining line
    is kept verbatim.
    """
    lines = text.split("\n")
    kept: list[str] = []
    i = 0
    while i < len(lines):
        trimmed = lines[i].strip()
        if not trimmed:
            kept.append(lines[i])
            i += 1
            continue
        if trimmed == _FRONT_MATTER_FENCE:
            closing = _find_closing_fence(lines, i + 1)
            if closing is None or not _is_front_matter_body(lines[i + 1:closing]):
                break
            i = closing + 1
            continue
        if trimmed.startswith(_METADATA_PREFIXES):
            i += 1
            continue
        break
    kept.extend(lines[i:])
    return "\n".join(kept)


def normalize_full_width_spaces(text: str) -> str:
    """Normalize U+3000 per line and empty out whitespace-only lines.

    Leading run → same number of regular spaces (indentation kept),
    trailing run → removed, interior run → one regular space.
    """
    return "\n".join(_normalize_line(line) for line in text.split("\n"))


# === Private helpers ==========================================================

def _strip_annotations(text: str) -> str:
    while True:
        stripped = strip_embed_queries(strip_ial(text))
        if stripped == text:
            return stripped
        text = stripped


def _drop_embed_query(match: re.Match) -> str:
    logger.debug("Removed embed query: %s", match.group()[:50])
    return ""


def _find_closing_fence(lines: list[str], start: int) -> int | None:
    for j in range(start, len(lines)):
        if lines[j].strip() == _FRONT_MATTER_FENCE:
            return j
    return None


def _is_front_matter_body(lines: list[str]) -> bool:
    return all(
        not line.strip() or line[:1].isspace() or _FRONT_MATTER_LINE.match(line)
        for line in lines
    )


def _normalize_line(line: str) -> str:
    if not line.strip():
        return ""
    body = line.lstrip(_FULL_WIDTH_SPACE)
    indent = " " * (len(line) - len(body))
    body = body.rstrip(_FULL_WIDTH_SPACE)
    return indent + _FULL_WIDTH_RUN.sub(" ", body)
