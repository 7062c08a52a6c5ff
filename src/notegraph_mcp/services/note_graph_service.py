"""Service running the note derivations over a note store."""
import logging
from typing import List, Optional, Tuple

from notegraph_mcp.exceptions import NoteGraphError, NoteValidationError
from notegraph_mcp.models.schema import MatchResult, Note, NoteGraph, NoteUpdate
from notegraph_mcp.observability import traced
from notegraph_mcp.parsing.links import complete_link, find_link_query
from notegraph_mcp.parsing.tags import collect_tags
from notegraph_mcp.services.graph_builder import (
    build_graph,
    find_backlinks,
    plan_title_rename,
)
from notegraph_mcp.services.search_service import (
    filter_notes,
    match_and_highlight,
    suggest_links,
)
from notegraph_mcp.storage.base import NoteStore

logger = logging.getLogger(__name__)


class NoteGraphService:
    """Derives graph, tags and search results from the current notes.

    Holds no derived state: every call reads a fresh snapshot from the
    store, so results always reflect the latest writes.
    """

    def __init__(self, store: NoteStore):
        """Initialize the service.

        Args:
            store: Note store to read snapshots from and write renames to.
        """
        self.store = store

    # =========================================================================
    # Note CRUD passthrough
    # =========================================================================

    @traced("create_note")
    def create_note(self, title: str = "", content: str = "") -> Note:
        return self.store.create(title=title, content=content)

    @traced("get_note")
    def get_note(self, note_id: int) -> Note:
        return self.store.get(note_id)

    @traced("update_note")
    def update_note(
        self,
        note_id: int,
        title: Optional[str] = None,
        content: Optional[str] = None,
    ) -> Note:
        return self.store.update(note_id, title=title, content=content)

    @traced("delete_note")
    def delete_note(self, note_id: int) -> None:
        self.store.delete(note_id)

    # =========================================================================
    # Derivations
    # =========================================================================

    @traced("build_graph")
    def get_graph(self, query: Optional[str] = None, tag: Optional[str] = None) -> NoteGraph:
        """Build the graph of the notes visible under a query and tag filter."""
        notes = filter_notes(self.store.list_notes(), query=query, tag=tag)
        return build_graph(notes)

    @traced("collect_tags")
    def get_tags(self) -> List[str]:
        """Tag cloud of the whole collection, regardless of any filter."""
        return collect_tags(self.store.list_notes())

    @traced("search")
    def search(
        self, query: Optional[str] = None, tag: Optional[str] = None
    ) -> List[Tuple[Note, MatchResult]]:
        """Filter notes and attach the highlighted title and snippet of each."""
        notes = filter_notes(self.store.list_notes(), query=query, tag=tag)
        return [(note, match_and_highlight(note.title, note.content, query)) for note in notes]

    @traced("get_backlinks")
    def get_backlinks(self, note_id: int) -> List[Note]:
        notes = self.store.list_notes()
        note = self.store.get(note_id)
        return find_backlinks(notes, note)

    @traced("suggest_links")
    def suggest_links(self, note_id: Optional[int], text_before_cursor: str) -> List[Note]:
        """Autocomplete candidates for a link being typed in a note."""
        partial = find_link_query(text_before_cursor)
        if partial is None:
            return []
        return suggest_links(self.store.list_notes(), partial, exclude_id=note_id)

    @traced("insert_link")
    def insert_link(self, note_id: int, cursor: int, title: str) -> Note:
        """Complete the link being typed at ``cursor`` with ``[[title]]`` and save.

        The note is left untouched when no open link precedes the cursor.
        """
        note = self.store.get(note_id)
        if not 0 <= cursor <= len(note.content):
            raise NoteValidationError(
                f"Cursor {cursor} is outside note {note_id} (length {len(note.content)})",
                field="cursor",
                value=cursor,
            )
        content, _ = complete_link(note.content, cursor, title)
        if content == note.content:
            return note
        return self.store.update(note_id, content=content)

    # =========================================================================
    # Refactoring
    # =========================================================================

    @traced("rename_note")
    def rename_note(self, note_id: int, new_title: str) -> List[NoteUpdate]:
        """Retitle a note and rewrite every ``[[old title]]`` link to it.

        Returns:
            The content rewrites applied to linking notes.
        """
        old_title = self.store.get(note_id).title
        self.store.update(note_id, title=new_title)

        updates = plan_title_rename(self.store.list_notes(), old_title, new_title)
        # Not atomic: the title and each rewrite are separate store writes
        for done, update in enumerate(updates):
            try:
                self.store.update(update.note_id, content=update.content)
            except NoteGraphError:
                logger.error(
                    f"Rename of note {note_id} to '{new_title}' left links half-migrated: "
                    f"rewritten {[u.note_id for u in updates[:done]]}, "
                    f"still linking '{old_title}' {[u.note_id for u in updates[done:]]}"
                )
                raise
        if updates:
            logger.info(
                f"Refactored links in {len(updates)} note(s) from "
                f"'{old_title}' to '{new_title}'"
            )
        return updates
