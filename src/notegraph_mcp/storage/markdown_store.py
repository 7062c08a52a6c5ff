"""Note store keeping one markdown file per note."""
import logging
import os
import threading
from pathlib import Path
from typing import List, Optional

import yaml

from notegraph_mcp.config import config
from notegraph_mcp.exceptions import ErrorCode, NoteNotFoundError, StorageError
from notegraph_mcp.models.schema import Note, utc_now
from notegraph_mcp.storage.base import NoteStore
from notegraph_mcp.storage.markdown_parser import MarkdownParser

logger = logging.getLogger(__name__)


class MarkdownNoteStore(NoteStore):
    """Note store over a directory of ``<id>.md`` files.

    The directory is the source of truth and may be edited by hand;
    every listing re-reads it.
    """

    def __init__(self, notes_dir: Optional[Path] = None):
        """Initialize the store.

        Args:
            notes_dir: Directory holding the note files. If None, uses
                       config.notes_dir.
        """
        self.notes_dir = (
            config.get_absolute_path(Path(notes_dir))
            if notes_dir
            else config.get_notes_dir()
        )
        self.notes_dir.mkdir(parents=True, exist_ok=True)
        self._parser = MarkdownParser()
        self.file_lock = threading.RLock()

    def _path_for(self, note_id: int) -> Path:
        return self.notes_dir / f"{int(note_id)}.md"

    def _read(self, file_path: Path) -> Note:
        with open(file_path, "r", encoding="utf-8") as f:
            return self._parser.parse_note(f.read())

    def _write(self, note: Note, operation: str) -> None:
        file_path = self._path_for(note.id)
        try:
            with open(file_path, "w", encoding="utf-8") as f:
                f.write(self._parser.render_to_markdown(note))
        except OSError as e:
            raise StorageError(
                f"Failed to write note {note.id}",
                operation=operation,
                path=str(file_path),
                code=ErrorCode.STORAGE_WRITE_FAILED,
                original_error=e,
            ) from e

    def list_notes(self) -> List[Note]:
        notes: List[Note] = []
        with self.file_lock:
            for file_path in sorted(self.notes_dir.glob("*.md")):
                try:
                    note = self._read(file_path)
                except (OSError, ValueError, yaml.YAMLError) as e:
                    # Skip broken hand-edited files
                    logger.warning(f"Skipping unreadable note file {file_path.name}: {e}")
                    continue
                if file_path.stem != str(note.id):
                    # Only <id>.md is reachable by get, update and delete
                    logger.warning(
                        f"Skipping note file {file_path.name}: frontmatter id {note.id} "
                        f"does not match the file name"
                    )
                    continue
                notes.append(note)
        notes.sort(key=lambda n: (n.updated_at, n.id), reverse=True)
        return notes

    def get(self, note_id: int) -> Note:
        file_path = self._path_for(note_id)
        with self.file_lock:
            if not file_path.exists():
                raise NoteNotFoundError(note_id)
            try:
                note = self._read(file_path)
            except (OSError, ValueError, yaml.YAMLError) as e:
                raise StorageError(
                    f"Failed to read note {note_id}",
                    operation="read",
                    path=file_path.name,
                    original_error=e,
                ) from e
            if note.id != note_id:
                raise StorageError(
                    f"Note file for {note_id} carries frontmatter id {note.id}",
                    operation="read",
                    path=file_path.name,
                )
            return note

    def _next_id(self) -> int:
        ids = []
        for file_path in self.notes_dir.glob("*.md"):
            try:
                ids.append(int(file_path.stem))
            except ValueError:
                continue
        return max(ids, default=0) + 1

    def create(self, title: str = "", content: str = "") -> Note:
        with self.file_lock:
            now = utc_now()
            note = Note(
                id=self._next_id(),
                title=title or "",
                content=content or "",
                created_at=now,
                updated_at=now,
            )
            self._write(note, "create")
        logger.debug(f"Created note {note.id} in {self.notes_dir}")
        return note

    def update(
        self,
        note_id: int,
        title: Optional[str] = None,
        content: Optional[str] = None,
    ) -> Note:
        with self.file_lock:
            note = self.get(note_id)
            if title is not None:
                note.title = title
            if content is not None:
                note.content = content
            note.updated_at = utc_now()
            self._write(note, "update")
            return note

    def delete(self, note_id: int) -> None:
        file_path = self._path_for(note_id)
        with self.file_lock:
            if not file_path.exists():
                raise NoteNotFoundError(note_id)
            try:
                os.remove(file_path)
            except OSError as e:
                raise StorageError(
                    f"Failed to delete note {note_id}",
                    operation="delete",
                    path=file_path.name,
                    code=ErrorCode.STORAGE_DELETE_FAILED,
                    original_error=e,
                ) from e
