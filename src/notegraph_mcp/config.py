"""Configuration module for the note graph server."""

import logging
import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

from notegraph_mcp import __version__

# Load environment variables from the project root .env file.
# Anchored to __file__, not the process CWD.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

# User-level config, lives alongside the default log directory
_USER_ENV = Path.home() / ".notegraph" / ".env"
load_dotenv(_USER_ENV)


logger = logging.getLogger(__name__)


class NoteGraphConfig(BaseModel):
    """Configuration for the note graph server."""

    # Base directory for the project
    base_dir: Path = Field(
        default_factory=lambda: Path(os.getenv("NOTEGRAPH_BASE_DIR", "."))
    )
    # Markdown store directory
    notes_dir: Path = Field(
        default_factory=lambda: Path(os.getenv("NOTEGRAPH_NOTES_DIR", "data/notes"))
    )
    # SQLite store location
    database_path: Path = Field(
        default_factory=lambda: Path(
            os.getenv("NOTEGRAPH_DATABASE_PATH", "data/db/notegraph.db")
        )
    )
    # Which note store backs the server: "sqlite" or "markdown"
    store_backend: Literal["sqlite", "markdown"] = Field(
        default_factory=lambda: os.getenv("NOTEGRAPH_STORE", "sqlite").lower()
    )
    # Server configuration
    server_name: str = Field(default=os.getenv("NOTEGRAPH_SERVER_NAME", "notegraph-mcp"))
    server_version: str = Field(default=__version__)

    # Snippet window around the first match (characters)
    snippet_before: int = Field(
        default_factory=lambda: int(os.getenv("NOTEGRAPH_SNIPPET_BEFORE", "20"))
    )
    snippet_after: int = Field(
        default_factory=lambda: int(os.getenv("NOTEGRAPH_SNIPPET_AFTER", "40"))
    )
    ellipsis: str = Field(default="...")

    # Graph rendering hints
    untitled_label: str = Field(
        default_factory=lambda: os.getenv("NOTEGRAPH_UNTITLED_LABEL", "Untitled")
    )
    real_node_val: float = Field(default=1.0)
    ghost_node_val: float = Field(default=0.5)

    @model_validator(mode="after")
    def _validate_rendering_config(self) -> "NoteGraphConfig":
        """Validate snippet widths and node weights."""
        if self.snippet_before < 0 or self.snippet_after < 0:
            raise ValueError("snippet_before and snippet_after must be >= 0")
        if self.real_node_val <= 0 or self.ghost_node_val <= 0:
            raise ValueError("node weights must be > 0")
        if self.ghost_node_val > self.real_node_val:
            logger.warning(
                "ghost_node_val (%.2f) exceeds real_node_val (%.2f); "
                "ghost nodes will render larger than real notes",
                self.ghost_node_val,
                self.real_node_val,
            )
        return self

    def get_absolute_path(self, path: Path) -> Path:
        """Convert a relative path to an absolute path based on base_dir."""
        if path.is_absolute():
            return path
        return self.base_dir / path

    def get_db_url(self) -> str:
        """Get the database URL for SQLite."""
        db_path = self.get_absolute_path(self.database_path)
        db_path.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite:///{db_path}"

    def get_notes_dir(self) -> Path:
        """Get the absolute Markdown notes directory, creating it if needed."""
        notes_dir = self.get_absolute_path(self.notes_dir)
        notes_dir.mkdir(parents=True, exist_ok=True)
        return notes_dir


# Create a global config instance
config = NoteGraphConfig()
