"""Storage layer for the note graph server."""
from typing import Optional

from notegraph_mcp.config import config
from notegraph_mcp.exceptions import ConfigurationError
from notegraph_mcp.storage.base import NoteStore
from notegraph_mcp.storage.markdown_store import MarkdownNoteStore
from notegraph_mcp.storage.sql_store import SqlNoteStore

__all__ = [
    "NoteStore",
    "MarkdownNoteStore",
    "SqlNoteStore",
    "create_store",
]


def create_store(backend: Optional[str] = None) -> NoteStore:
    """Create the note store selected by ``backend`` or the config.

    Raises:
        ConfigurationError: If the backend name is unknown.
    """
    backend = (backend or config.store_backend).lower()
    if backend == "sqlite":
        return SqlNoteStore()
    if backend == "markdown":
        return MarkdownNoteStore()
    raise ConfigurationError(
        f"Unknown note store backend '{backend}' (expected 'sqlite' or 'markdown')",
        config_key="store_backend",
    )
