"""SQLite note store backed by SQLAlchemy."""
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from notegraph_mcp.exceptions import ErrorCode, NoteNotFoundError, StorageError
from notegraph_mcp.models.db_models import DBNote, get_session_factory, init_db
from notegraph_mcp.models.schema import Note, ensure_timezone_aware, utc_now
from notegraph_mcp.storage.base import NoteStore

logger = logging.getLogger(__name__)


class SqlNoteStore(NoteStore):
    """Note store keeping notes in a single ``notes`` table.

    Uses one session per operation, so a store instance can be shared
    between threads.
    """

    def __init__(self, engine: Optional[Engine] = None, db_url: Optional[str] = None):
        """Initialize the store.

        Args:
            engine: Pre-configured SQLAlchemy engine. When None, one is
                    created by ``init_db`` from ``db_url`` or the config.
            db_url: Database URL used when no engine is given.
        """
        try:
            self.engine = engine if engine is not None else init_db(db_url)
        except SQLAlchemyError as e:
            raise StorageError(
                "Failed to open note database",
                operation="connect",
                code=ErrorCode.STORAGE_CONNECTION_FAILED,
                original_error=e,
            ) from e
        self.session_factory = get_session_factory(self.engine)

    @staticmethod
    def _db_note_to_model(db_note: DBNote) -> Note:
        """Convert a DBNote row to a domain Note."""
        return Note(
            id=db_note.id,
            title=db_note.title or "",
            content=db_note.content or "",
            created_at=ensure_timezone_aware(db_note.created_at),
            updated_at=ensure_timezone_aware(db_note.updated_at),
        )

    def list_notes(self) -> List[Note]:
        try:
            with self.session_factory() as session:
                rows = session.scalars(
                    select(DBNote).order_by(DBNote.updated_at.desc(), DBNote.id.desc())
                ).all()
                return [self._db_note_to_model(row) for row in rows]
        except SQLAlchemyError as e:
            raise StorageError(
                "Failed to list notes", operation="list", original_error=e
            ) from e

    def get(self, note_id: int) -> Note:
        try:
            with self.session_factory() as session:
                db_note = session.get(DBNote, note_id)
                if db_note is None:
                    raise NoteNotFoundError(note_id)
                return self._db_note_to_model(db_note)
        except SQLAlchemyError as e:
            raise StorageError(
                f"Failed to read note {note_id}", operation="read", original_error=e
            ) from e

    def create(self, title: str = "", content: str = "") -> Note:
        now = utc_now()
        try:
            with self.session_factory() as session:
                db_note = DBNote(
                    title=title or "",
                    content=content or "",
                    created_at=now,
                    updated_at=now,
                )
                session.add(db_note)
                session.commit()
                note = self._db_note_to_model(db_note)
        except SQLAlchemyError as e:
            raise StorageError(
                "Failed to create note",
                operation="create",
                code=ErrorCode.STORAGE_WRITE_FAILED,
                original_error=e,
            ) from e
        logger.debug(f"Created note {note.id}")
        return note

    def update(
        self,
        note_id: int,
        title: Optional[str] = None,
        content: Optional[str] = None,
    ) -> Note:
        try:
            with self.session_factory() as session:
                db_note = session.get(DBNote, note_id)
                if db_note is None:
                    raise NoteNotFoundError(note_id)
                if title is not None:
                    db_note.title = title
                if content is not None:
                    db_note.content = content
                db_note.updated_at = utc_now()
                session.commit()
                return self._db_note_to_model(db_note)
        except SQLAlchemyError as e:
            raise StorageError(
                f"Failed to update note {note_id}",
                operation="update",
                code=ErrorCode.STORAGE_WRITE_FAILED,
                original_error=e,
            ) from e

    def delete(self, note_id: int) -> None:
        try:
            with self.session_factory() as session:
                db_note = session.get(DBNote, note_id)
                if db_note is None:
                    raise NoteNotFoundError(note_id)
                session.delete(db_note)
                session.commit()
        except SQLAlchemyError as e:
            raise StorageError(
                f"Failed to delete note {note_id}",
                operation="delete",
                code=ErrorCode.STORAGE_DELETE_FAILED,
                original_error=e,
            ) from e
