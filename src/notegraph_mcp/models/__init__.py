"""Data models for the note graph server."""
