"""Interface of the note stores the derivations read from."""
from abc import ABC, abstractmethod
from typing import List, Optional

from notegraph_mcp.models.schema import Note


class NoteStore(ABC):
    """Read and write accessors of a note collection.

    The graph, tag and search derivations only ever see the list returned
    by ``list_notes``; stores never hold derived data.
    """

    @abstractmethod
    def list_notes(self) -> List[Note]:
        """Return a snapshot of every note, most recently updated first."""

    @abstractmethod
    def get(self, note_id: int) -> Note:
        """Return one note.

        Raises:
            NoteNotFoundError: If no note has this ID.
        """

    @abstractmethod
    def create(self, title: str = "", content: str = "") -> Note:
        """Create a note and return it with its assigned ID."""

    @abstractmethod
    def update(
        self,
        note_id: int,
        title: Optional[str] = None,
        content: Optional[str] = None,
    ) -> Note:
        """Change a note's title and/or content, bumping ``updated_at``.

        Raises:
            NoteNotFoundError: If no note has this ID.
        """

    @abstractmethod
    def delete(self, note_id: int) -> None:
        """Delete a note.

        Raises:
            NoteNotFoundError: If no note has this ID.
        """
