"""Common test fixtures for the note graph MCP server."""

import tempfile
from pathlib import Path

import pytest

from notegraph_mcp.config import config
from notegraph_mcp.models.schema import Note
from notegraph_mcp.observability import metrics
from notegraph_mcp.services.note_graph_service import NoteGraphService
from notegraph_mcp.storage.markdown_store import MarkdownNoteStore
from notegraph_mcp.storage.sql_store import SqlNoteStore


@pytest.fixture
def temp_dirs():
    """Create temporary directories for notes and database."""
    with tempfile.TemporaryDirectory() as notes_dir:
        with tempfile.TemporaryDirectory() as db_dir:
            yield Path(notes_dir), Path(db_dir)


@pytest.fixture
def test_config(temp_dirs, monkeypatch):
    """Configure with test paths (auto-restored even on crash)."""
    notes_dir, db_dir = temp_dirs
    database_path = db_dir / "test_notegraph.db"
    monkeypatch.setattr(config, "notes_dir", notes_dir)
    monkeypatch.setattr(config, "database_path", database_path)
    yield config


@pytest.fixture
def sql_store(test_config):
    """Create a SQLite note store in the temporary database."""
    store = SqlNoteStore(db_url=test_config.get_db_url())
    yield store
    store.engine.dispose()


@pytest.fixture
def markdown_store(test_config):
    """Create a markdown note store in the temporary notes directory."""
    yield MarkdownNoteStore(notes_dir=test_config.notes_dir)


@pytest.fixture(params=["sql", "markdown"])
def note_store(request, sql_store, markdown_store):
    """Run a test once against each note store."""
    return sql_store if request.param == "sql" else markdown_store


@pytest.fixture
def note_graph_service(sql_store):
    """Create a NoteGraphService over the SQLite store."""
    yield NoteGraphService(sql_store)


@pytest.fixture(autouse=True)
def _reset_metrics():
    """Keep the global metrics collector isolated between tests."""
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def sample_notes():
    """A small collection: two linked notes, a ghost link and an untitled note."""
    return [
        Note(id=1, title="Alpha", content="#project Alpha links to [[Beta]] and [[Gamma]]"),
        Note(id=2, title="Beta", content="#idea Back to [[Alpha]]. #project"),
        Note(id=3, title="", content="Loose thoughts #idea"),
    ]
