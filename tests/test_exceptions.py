# tests/test_exceptions.py
"""Tests for the structured exception hierarchy."""
from notegraph_mcp.exceptions import (
    ConfigurationError,
    ErrorCode,
    NoteGraphError,
    NoteNotFoundError,
    NoteValidationError,
    StorageError,
)


class TestExceptions:
    """Tests for error codes, details and serialization."""

    def test_note_not_found(self):
        error = NoteNotFoundError(12)
        assert isinstance(error, NoteGraphError)
        assert error.code == ErrorCode.NOTE_NOT_FOUND
        assert error.note_id == 12
        assert str(error) == "[NOTE_NOT_FOUND] Note with ID '12' not found (note_id=12)"

    def test_to_dict(self):
        error = NoteValidationError("Title too long", field="title", value="x" * 500)
        data = error.to_dict()
        assert data["error"] == "NoteValidationError"
        assert data["code"] == 1002
        assert data["code_name"] == "NOTE_VALIDATION_FAILED"
        assert data["details"]["field"] == "title"
        assert len(data["details"]["value"]) == 100

    def test_storage_error_hides_full_path(self):
        error = StorageError(
            "Failed to write note 3",
            operation="update",
            path="/home/someone/notes/3.md",
            code=ErrorCode.STORAGE_WRITE_FAILED,
            original_error=OSError("disk full"),
        )
        assert error.details["path_hint"] == "3.md"
        assert error.details["original_error"] == "disk full"
        assert error.path == "/home/someone/notes/3.md"

    def test_configuration_error(self):
        error = ConfigurationError("bad backend", config_key="store_backend")
        assert error.code == ErrorCode.CONFIG_INVALID
        assert str(error) == "[CONFIG_INVALID] bad backend (config_key=store_backend)"

    def test_message_without_details(self):
        assert str(NoteGraphError("plain")) == "[VALIDATION_FAILED] plain"
