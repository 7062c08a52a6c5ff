"""Parsing of ``[[Title]]`` wiki links embedded in note content.

The notation is the only wire format shared with existing notes, so the
rules here are exact: a link is ``[[`` followed by a run of characters
other than ``]`` and closed by ``]]``. Anything else is plain text.
"""
import re
from typing import List, Optional, Tuple

LINK_PATTERN = re.compile(r"\[\[([^\]]*)\]\]")

# An open "[[partial" right before the cursor while typing a link
OPEN_LINK_PATTERN = re.compile(r"\[\[([^\]]*)\Z")


def format_link(title: str) -> str:
    """Render a title as a wiki link."""
    return f"[[{title}]]"


def extract_links(content: str) -> List[str]:
    """Extract the unique link targets of a text.

    Args:
        content: Note content; may be empty.

    Returns:
        Trimmed link titles in order of first appearance, without duplicates.
        Unclosed ``[[`` and empty ``[[]]`` produce nothing.
    """
    if not content:
        return []

    links: List[str] = []
    seen = set()
    for match in LINK_PATTERN.finditer(content):
        raw = match.group(1)
        if not raw:
            continue
        title = raw.strip()
        if title not in seen:
            seen.add(title)
            links.append(title)
    return links


def find_link_query(text_before_cursor: str) -> Optional[str]:
    """Return the partial title of a link being typed, if any.

    ``"see [[Al"`` gives ``"Al"``, ``"see [["`` gives ``""`` and text
    without an open link gives None.
    """
    match = OPEN_LINK_PATTERN.search(text_before_cursor or "")
    if match is None:
        return None
    return match.group(1)


def complete_link(text: str, cursor: int, title: str) -> Tuple[str, int]:
    """Replace the link being typed before ``cursor`` with ``[[title]]``.

    Args:
        text: Full note content.
        cursor: Cursor offset into ``text``.
        title: Title of the chosen note.

    Returns:
        The new text and the cursor offset right after the inserted link.
        Both are unchanged when no open link precedes the cursor.
    """
    before, after = text[:cursor], text[cursor:]
    match = OPEN_LINK_PATTERN.search(before)
    if match is None:
        return text, cursor
    start = match.start()
    new_text = before[:start] + format_link(title) + after
    return new_text, start + len(title) + 4


def contains_link(content: str, title: str) -> bool:
    """Check for the literal ``[[title]]`` in content (backlink rule)."""
    return bool(content) and format_link(title) in content


def rename_link(content: str, old_title: str, new_title: str) -> str:
    """Rewrite every literal ``[[old_title]]`` into ``[[new_title]]``."""
    if not content:
        return content
    return content.replace(format_link(old_title), format_link(new_title))
