"""Substring search, highlighting and snippets over note text.

Matching is plain case-insensitive containment; there is no ranking and
no index. Highlights are returned as segments so each caller can render
emphasis its own way.
"""
import re
from typing import List, Optional, Sequence

from notegraph_mcp.config import config
from notegraph_mcp.models.schema import HighlightSegment, MatchResult, Note
from notegraph_mcp.parsing.tags import has_tag


def matches(title: Optional[str], content: Optional[str], query: Optional[str]) -> bool:
    """Check whether a note's title or content contains the query.

    An empty query matches everything.
    """
    if not query:
        return True
    lowered = query.lower()
    return bool(
        (title and lowered in title.lower())
        or (content and lowered in content.lower())
    )


def highlight(text: Optional[str], query: Optional[str]) -> List[HighlightSegment]:
    """Split text around case-insensitive occurrences of the query.

    Original casing is kept in every segment; occurrences are flagged with
    ``is_match``. Without a query the whole text is one plain segment.
    """
    if not text:
        return []
    if not query:
        return [HighlightSegment(text=text)]

    parts = re.split(f"({re.escape(query)})", text, flags=re.IGNORECASE)
    lowered = query.lower()
    return [
        HighlightSegment(text=part, is_match=part.lower() == lowered)
        for part in parts
        if part
    ]


def snippet(
    content: Optional[str],
    query: Optional[str],
    before: Optional[int] = None,
    after: Optional[int] = None,
) -> Optional[List[HighlightSegment]]:
    """Build a highlighted window of content around the first match.

    The window spans ``before`` characters ahead of the match and ``after``
    characters past its end, clamped to the content. An ellipsis marks
    each side where the content was cut.

    Returns:
        Highlight segments of the window, or None when nothing matches.
    """
    if not query or not content:
        return None

    index = content.lower().find(query.lower())
    if index == -1:
        return None

    before = config.snippet_before if before is None else before
    after = config.snippet_after if after is None else after
    start = max(0, index - before)
    end = min(len(content), index + len(query) + after)

    window = content[start:end]
    if start > 0:
        window = config.ellipsis + window
    if end < len(content):
        window = window + config.ellipsis
    return highlight(window, query)


def match_and_highlight(
    title: Optional[str], content: Optional[str], query: Optional[str]
) -> MatchResult:
    """Match one note against a query and prepare its highlighted rendering."""
    return MatchResult(
        matches=matches(title, content, query),
        highlighted=highlight(title, query),
        snippet=snippet(content, query),
    )


def filter_notes(
    notes: Sequence[Note], query: Optional[str] = None, tag: Optional[str] = None
) -> List[Note]:
    """Narrow a note list by selected tag, then by search query."""
    filtered = list(notes)
    if tag:
        filtered = [note for note in filtered if has_tag(note.content, tag)]
    if query:
        filtered = [note for note in filtered if matches(note.title, note.content, query)]
    return filtered


def suggest_links(
    notes: Sequence[Note], partial: str, exclude_id: Optional[int] = None
) -> List[Note]:
    """List notes whose title contains the partially typed link title."""
    lowered = (partial or "").lower()
    return [
        note
        for note in notes
        if note.id != exclude_id and lowered in note.title.lower()
    ]


def render_segments(segments: Optional[Sequence[HighlightSegment]], marker: str = "**") -> str:
    """Render highlight segments as text, wrapping matches in ``marker``."""
    if not segments:
        return ""
    return "".join(
        f"{marker}{segment.text}{marker}" if segment.is_match else segment.text
        for segment in segments
    )
