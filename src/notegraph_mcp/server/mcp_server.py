"""MCP server exposing the note graph derivations as tools."""

import json
import logging
import uuid
from typing import Optional

from mcp.server.fastmcp import FastMCP

from notegraph_mcp.config import config
from notegraph_mcp.exceptions import NoteGraphError, NoteValidationError
from notegraph_mcp.observability import metrics, timed_operation
from notegraph_mcp.services.note_graph_service import NoteGraphService
from notegraph_mcp.services.search_service import render_segments
from notegraph_mcp.storage import NoteStore, create_store

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 500
MAX_CONTENT_LENGTH = 1_000_000  # 1 MB


def _validate_input_lengths(
    title: Optional[str] = None, content: Optional[str] = None
) -> None:
    """Validate input string lengths at the MCP boundary."""
    if title and len(title) > MAX_TITLE_LENGTH:
        raise NoteValidationError(
            f"Title exceeds maximum length of {MAX_TITLE_LENGTH} characters",
            field="title",
        )
    if content and len(content) > MAX_CONTENT_LENGTH:
        raise NoteValidationError(
            f"Content exceeds maximum length of {MAX_CONTENT_LENGTH} characters",
            field="content",
        )


def _validate_limit(limit: int) -> None:
    """Validate a result limit at the MCP boundary."""
    if limit < 1:
        raise NoteValidationError("Limit must be at least 1", field="limit", value=limit)


class NoteGraphMcpServer:
    """MCP server for the note graph."""

    def __init__(self, store: Optional[NoteStore] = None):
        """Initialize the MCP server.

        Args:
            store: Note store to serve. When None, the store selected by
                   ``config.store_backend`` is created.
        """
        self.mcp = FastMCP(config.server_name)
        self.service = NoteGraphService(store if store is not None else create_store())
        self._register_tools()
        logger.info("Note graph MCP server initialized")

    def format_error_response(self, error: Exception) -> str:
        """Format an error response in a consistent way.

        Args:
            error: The exception that occurred

        Returns:
            Formatted error message with appropriate level of detail
        """
        error_id = str(uuid.uuid4())[:8]

        if isinstance(error, NoteGraphError):
            logger.error(
                f"[{error.code.name}] [{error_id}]: {error.message}",
                extra={"error_details": error.details},
            )
            return f"Error: {error.message}"
        elif isinstance(error, ValueError):
            # Full detail in the log only
            logger.error(f"Validation error [{error_id}]: {str(error)}")
            return f"Error: Invalid input (ref: {error_id})"
        elif isinstance(error, OSError):
            logger.error(f"File system error [{error_id}]: {str(error)}", exc_info=True)
            return f"Error: A file system error occurred (ref: {error_id})"
        else:
            logger.error(f"Unexpected error [{error_id}]: {str(error)}", exc_info=True)
            return f"Error: An unexpected error occurred (ref: {error_id})"

    def _register_tools(self) -> None:
        """Register MCP tools."""

        @self.mcp.tool(name="ng_create_note")
        def ng_create_note(title: str = "", content: str = "") -> str:
            """Create a new note.
            Args:
                title: The title of the note (may be empty)
                content: Markdown content; use [[Title]] to link and #tag to tag
            """
            with timed_operation("ng_create_note", title=title[:30]) as op:
                try:
                    _validate_input_lengths(title=title, content=content)
                    note = self.service.create_note(title=title, content=content)
                    op["note_id"] = note.id
                    return f"Note created successfully with ID: {note.id}"
                except Exception as e:
                    return self.format_error_response(e)

        @self.mcp.tool(name="ng_get_note")
        def ng_get_note(note_id: int) -> str:
            """Retrieve a note by ID.
            Args:
                note_id: The ID of the note
            """
            with timed_operation("ng_get_note", note_id=note_id):
                try:
                    note = self.service.get_note(note_id=note_id)
                    result = f"# {note.title or config.untitled_label}\n"
                    result += f"ID: {note.id}\n"
                    result += f"Created: {note.created_at.isoformat()}\n"
                    result += f"Updated: {note.updated_at.isoformat()}\n"
                    result += f"\n{note.content}\n"
                    return result
                except Exception as e:
                    return self.format_error_response(e)

        @self.mcp.tool(name="ng_update_note")
        def ng_update_note(
            note_id: int,
            title: Optional[str] = None,
            content: Optional[str] = None,
        ) -> str:
            """Update a note's title and/or content.

            Changing the title here does not touch links in other notes;
            use ng_rename_note for that.
            Args:
                note_id: The ID of the note to update
                title: New title (optional)
                content: New content (optional)
            """
            with timed_operation("ng_update_note", note_id=note_id):
                try:
                    if title is None and content is None:
                        return "Nothing to update: provide a title and/or content."
                    _validate_input_lengths(title=title, content=content)
                    note = self.service.update_note(note_id=note_id, title=title, content=content)
                    return f"Note updated successfully: {note.id}"
                except Exception as e:
                    return self.format_error_response(e)

        @self.mcp.tool(name="ng_delete_note")
        def ng_delete_note(note_id: int) -> str:
            """Delete a note.
            Args:
                note_id: The ID of the note to delete
            """
            with timed_operation("ng_delete_note", note_id=note_id):
                try:
                    self.service.delete_note(note_id=note_id)
                    return f"Note deleted successfully: {note_id}"
                except Exception as e:
                    return self.format_error_response(e)

        @self.mcp.tool(name="ng_graph")
        def ng_graph(query: Optional[str] = None, tag: Optional[str] = None) -> str:
            """Get the link graph of the notes as JSON.

            Nodes for notes that do not exist yet (links to unknown titles)
            are marked with "isGhost": true.
            Args:
                query: Only graph notes whose title or content contains this text
                tag: Only graph notes carrying this tag (e.g. "#project")
            """
            with timed_operation("ng_graph", query=query[:30] if query else None) as op:
                try:
                    graph = self.service.get_graph(query=query, tag=tag)
                    op["node_count"] = len(graph.nodes)
                    op["edge_count"] = len(graph.edges)
                    return json.dumps(graph.to_dict(), ensure_ascii=False)
                except Exception as e:
                    return self.format_error_response(e)

        @self.mcp.tool(name="ng_tags")
        def ng_tags() -> str:
            """List every tag used in any note, sorted alphabetically."""
            with timed_operation("ng_tags") as op:
                try:
                    tags = self.service.get_tags()
                    op["result_count"] = len(tags)
                    if not tags:
                        return "No tags found."
                    return f"Found {len(tags)} tags:\n" + "\n".join(tags)
                except Exception as e:
                    return self.format_error_response(e)

        @self.mcp.tool(name="ng_search")
        def ng_search(
            query: Optional[str] = None, tag: Optional[str] = None, limit: int = 20
        ) -> str:
            """Search notes by text and/or tag.

            Matches are case-insensitive substrings of the title or content;
            matched text is wrapped in ** in the output.
            Args:
                query: Text to search for in titles and content
                tag: Only return notes carrying this tag (e.g. "#project")
                limit: Maximum number of results to return
            """
            with timed_operation("ng_search", query=query[:30] if query else None) as op:
                try:
                    _validate_limit(limit)
                    results = self.service.search(query=query, tag=tag)[:limit]
                    op["result_count"] = len(results)
                    if not results:
                        return "No matching notes found."

                    output = f"Found {len(results)} matching notes:\n\n"
                    for i, (note, match) in enumerate(results, 1):
                        title = render_segments(match.highlighted) or config.untitled_label
                        output += f"{i}. {title} (ID: {note.id})\n"
                        if match.snippet:
                            snippet = render_segments(match.snippet).replace("\n", " ")
                            output += f"   {snippet}\n"
                        output += "\n"
                    return output
                except Exception as e:
                    return self.format_error_response(e)

        @self.mcp.tool(name="ng_backlinks")
        def ng_backlinks(note_id: int) -> str:
            """List the notes that link to a note with [[its title]].
            Args:
                note_id: The ID of the linked-to note
            """
            with timed_operation("ng_backlinks", note_id=note_id) as op:
                try:
                    backlinks = self.service.get_backlinks(note_id=note_id)
                    op["result_count"] = len(backlinks)
                    if not backlinks:
                        return f"No notes link to note {note_id}."
                    output = f"{len(backlinks)} note(s) link here:\n"
                    for note in backlinks:
                        output += f"- {note.title or config.untitled_label} (ID: {note.id})\n"
                    return output
                except Exception as e:
                    return self.format_error_response(e)

        @self.mcp.tool(name="ng_suggest_links")
        def ng_suggest_links(text_before_cursor: str, note_id: Optional[int] = None) -> str:
            """Suggest link targets for a [[link being typed.
            Args:
                text_before_cursor: Note text up to the cursor, ending in "[[partial"
                note_id: The note being edited, excluded from suggestions
            """
            with timed_operation("ng_suggest_links") as op:
                try:
                    suggestions = self.service.suggest_links(note_id, text_before_cursor)
                    op["result_count"] = len(suggestions)
                    if not suggestions:
                        return "No suggestions."
                    return "\n".join(
                        f"[[{note.title}]] (ID: {note.id})" for note in suggestions
                    )
                except Exception as e:
                    return self.format_error_response(e)

        @self.mcp.tool(name="ng_insert_link")
        def ng_insert_link(note_id: int, cursor: int, title: str) -> str:
            """Complete the [[link being typed at a cursor position with [[title]].
            Args:
                note_id: The note being edited
                cursor: Character offset right after the partial "[[..." text
                title: Title of the note to link to
            """
            with timed_operation("ng_insert_link", note_id=note_id):
                try:
                    _validate_input_lengths(title=title)
                    before = self.service.get_note(note_id=note_id).content
                    note = self.service.insert_link(note_id, cursor, title)
                    if note.content == before:
                        return f"No open link at position {cursor} in note {note_id}."
                    return f"Inserted [[{title}]] into note {note_id}."
                except Exception as e:
                    return self.format_error_response(e)

        @self.mcp.tool(name="ng_rename_note")
        def ng_rename_note(note_id: int, new_title: str) -> str:
            """Rename a note and rewrite [[old title]] links in every note.
            Args:
                note_id: The ID of the note to rename
                new_title: The new title
            """
            with timed_operation("ng_rename_note", note_id=note_id) as op:
                try:
                    _validate_input_lengths(title=new_title)
                    updates = self.service.rename_note(note_id=note_id, new_title=new_title)
                    op["updated_count"] = len(updates)
                    return (
                        f"Note {note_id} renamed to '{new_title}'; "
                        f"links updated in {len(updates)} note(s)."
                    )
                except Exception as e:
                    return self.format_error_response(e)

        @self.mcp.tool(name="ng_status")
        def ng_status() -> str:
            """Get server performance metrics."""
            summary = metrics.get_summary()
            output = "# Note Graph Status\n\n"
            output += f"**Uptime:** {summary['uptime_seconds']:.0f}s\n"
            output += f"**Operations:** {summary['total_operations']}\n"
            output += f"**Errors:** {summary['total_errors']}\n"
            output += f"**Success rate:** {summary['overall_success_rate']:.1%}\n\n"
            for op_name, data in sorted(metrics.get_metrics().items()):
                output += (
                    f"- {op_name}: {data['count']} calls, "
                    f"avg {data['avg_duration_ms']}ms"
                )
                if data["error_count"]:
                    output += f", {data['error_count']} errors"
                if data["last_result"]:
                    sizes = ", ".join(f"{k}={v}" for k, v in data["last_result"].items())
                    output += f" (last: {sizes})"
                output += "\n"
            return output

    def run(self) -> None:
        """Run the MCP server."""
        self.mcp.run()
