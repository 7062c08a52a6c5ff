"""Parsing of ``#tag`` tokens embedded in note content."""
import re
from typing import Iterable, List, Optional

from notegraph_mcp.models.schema import Note

# A tag is "#" plus letters, digits, "_" or "-". It must start the text or
# follow whitespace, and must not run into a further word character.
# Word characters are ASCII only, like the JavaScript \w of existing notes.
TAG_BODY = r"#[a-zA-Z0-9_\-]+"
_NOT_WORD = r"(?![A-Za-z0-9_])"
TAG_PATTERN = re.compile(rf"(?:^|\s)({TAG_BODY}){_NOT_WORD}")


def extract_tags(content: Optional[str]) -> List[str]:
    """Extract every tag token of a text, in order, duplicates included.

    Examples:
        >>> extract_tags("hello #world, visit #foo-bar_baz now #a1")
        ['#world', '#foo-bar_baz', '#a1']
        >>> extract_tags("url#notATag http://x.com#anchor")
        []
    """
    if not content:
        return []
    return [match.group(1) for match in TAG_PATTERN.finditer(content)]


def collect_tags(notes: Iterable[Note]) -> List[str]:
    """Build the tag cloud: unique tags of all notes, sorted."""
    tags = set()
    for note in notes:
        tags.update(extract_tags(note.content))
    return sorted(tags)


def has_tag(content: Optional[str], tag: str) -> bool:
    """Check whether content carries ``tag``, ignoring case.

    The tag must stand on its own the same way ``extract_tags`` requires,
    so ``#work`` does not match inside ``#workshop``.
    """
    if not content or not tag:
        return False
    pattern = re.compile(rf"(?:^|\s){re.escape(tag)}{_NOT_WORD}", re.IGNORECASE)
    return pattern.search(content) is not None
