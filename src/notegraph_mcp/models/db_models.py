"""SQLAlchemy database models for the SQLite note store."""
from typing import Optional

from sqlalchemy import Column, DateTime, Integer, Text, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from notegraph_mcp.config import config
from notegraph_mcp.models.schema import utc_now

# Create base class for SQLAlchemy models
Base = declarative_base()


class DBNote(Base):
    """Database model for a note.

    Only notes are stored; graph, tags and search results are always
    derived from them at read time.
    """
    __tablename__ = "notes"
    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(Text, nullable=False, default="", index=True)
    content = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, nullable=False, index=True)

    def __repr__(self) -> str:
        """Return string representation of note."""
        return f"<Note(id={self.id}, title='{self.title}')>"


def init_db(db_url: Optional[str] = None) -> Engine:
    """Create the engine and schema for the note store.

    File databases get WAL journaling and NORMAL synchronous mode so a
    crash mid-write cannot corrupt the notes table.

    Args:
        db_url: SQLAlchemy URL. Defaults to the configured database path.
    """
    url = db_url or config.get_db_url()
    if ":memory:" in url:
        # Single shared connection for in-memory databases
        engine = create_engine(
            url, connect_args={"check_same_thread": False}, poolclass=StaticPool
        )
    else:
        engine = create_engine(url)

    if url.startswith("sqlite") and ":memory:" not in url:
        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.close()

    Base.metadata.create_all(engine)
    return engine


def get_session_factory(engine: Optional[Engine] = None):
    """Get a session factory for the database."""
    if engine is None:
        engine = init_db()
    return sessionmaker(bind=engine, expire_on_commit=False)
