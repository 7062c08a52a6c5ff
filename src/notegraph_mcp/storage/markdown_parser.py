"""Markdown parsing and serialization for note files.

A note file is the note content with a YAML frontmatter header holding
``id``, ``title``, ``created`` and ``updated``. The body is the note content,
links and tags included; surrounding blank lines are not preserved.
"""
import datetime
from typing import Any, Dict, Optional

import frontmatter

from notegraph_mcp.models.schema import Note, ensure_timezone_aware, utc_now


def _parse_timestamp(value: Any) -> Optional[datetime.datetime]:
    """Read a frontmatter timestamp (YAML may already have parsed it)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime.datetime):
        return ensure_timezone_aware(value)
    return ensure_timezone_aware(datetime.datetime.fromisoformat(str(value)))


class MarkdownParser:
    """Parses and serializes notes as markdown with frontmatter."""

    def parse_note(self, content: str) -> Note:
        """Parse a note from markdown content with YAML frontmatter.

        Args:
            content: Raw markdown string with ``---`` frontmatter delimiters.

        Returns:
            The Note. A missing title becomes an empty title.

        Raises:
            ValueError: If the id is missing or not an integer, or a
                timestamp is not ISO 8601.
        """
        post = frontmatter.loads(content)
        metadata = post.metadata

        raw_id = metadata.get("id")
        if raw_id is None or isinstance(raw_id, bool):
            raise ValueError("Note ID missing from frontmatter")
        try:
            note_id = int(raw_id)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Note ID '{raw_id}' is not an integer") from e

        title = metadata.get("title")
        title = "" if title is None else str(title)

        created_at = _parse_timestamp(metadata.get("created")) or utc_now()
        updated_at = _parse_timestamp(metadata.get("updated")) or created_at

        return Note(
            id=note_id,
            title=title,
            content=post.content,
            created_at=created_at,
            updated_at=updated_at,
        )

    def render_to_markdown(self, note: Note) -> str:
        """Convert a Note to markdown with frontmatter."""
        metadata: Dict[str, Any] = {
            "id": note.id,
            "title": note.title,
            "created": note.created_at.isoformat(),
            "updated": note.updated_at.isoformat(),
        }
        post = frontmatter.Post(note.content, **metadata)
        return frontmatter.dumps(post)
