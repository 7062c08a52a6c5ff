"""Derivation of the link graph from a snapshot of notes.

The graph is rebuilt from scratch on every call. Nothing is cached between
calls; callers re-run ``build_graph`` whenever their notes change.
"""
import logging
from typing import Dict, List, Optional, Sequence

from notegraph_mcp.config import config
from notegraph_mcp.models.schema import (
    GhostNodeId,
    GraphEdge,
    GraphNode,
    Note,
    NoteGraph,
    NoteUpdate,
    RealNodeId,
)
from notegraph_mcp.parsing.links import contains_link, extract_links, rename_link
from notegraph_mcp.parsing.tags import extract_tags

logger = logging.getLogger(__name__)


def find_duplicate_titles(notes: Sequence[Note]) -> Dict[str, List[int]]:
    """Find trimmed titles shared by more than one note.

    Links to such a title cannot be resolved unambiguously; ``build_graph``
    sends them to whichever note registered the title last.

    Returns:
        Mapping of title to the colliding note IDs, in input order.
    """
    ids_by_title: Dict[str, List[int]] = {}
    for note in notes:
        title = note.title.strip() if note.title else ""
        if title:
            ids_by_title.setdefault(title, []).append(note.id)
    return {title: ids for title, ids in ids_by_title.items() if len(ids) > 1}


def build_graph(
    notes: Sequence[Note],
    real_val: Optional[float] = None,
    ghost_val: Optional[float] = None,
    untitled: Optional[str] = None,
) -> NoteGraph:
    """Build the link graph of the given notes.

    Every note becomes a real node grouped by its first tag. Every unique
    link of a note becomes an edge: to the note whose trimmed title equals
    the link text exactly, or else to a ghost node created once per title.

    Args:
        notes: The notes to graph, usually already filtered by the caller.
        real_val: Rendering weight of real nodes (config default 1.0).
        ghost_val: Rendering weight of ghost nodes (config default 0.5).
        untitled: Display name for notes with an empty title.

    Returns:
        A fresh NoteGraph; empty for an empty input.
    """
    real_val = config.real_node_val if real_val is None else real_val
    ghost_val = config.ghost_node_val if ghost_val is None else ghost_val
    untitled = config.untitled_label if untitled is None else untitled

    nodes: List[GraphNode] = []
    edges: List[GraphEdge] = []
    if not notes:
        return NoteGraph(nodes=nodes, edges=edges)

    title_to_id: Dict[str, RealNodeId] = {}
    for note in notes:
        tags = extract_tags(note.content)
        node_id = RealNodeId(note_id=note.id)
        nodes.append(
            GraphNode(
                id=node_id,
                name=note.title or untitled,
                is_ghost=False,
                group=tags[0] if tags else None,
                val=real_val,
            )
        )
        title = note.title.strip()
        if title:
            # Last registration wins for duplicate titles
            title_to_id[title] = node_id

    duplicates = find_duplicate_titles(notes)
    if duplicates:
        logger.warning(
            "Ambiguous link targets, %d title(s) shared by several notes: %s",
            len(duplicates),
            ", ".join(f"{title!r} -> {ids}" for title, ids in duplicates.items()),
        )

    ghosts: Dict[str, GhostNodeId] = {}
    for source in notes:
        if not source.content:
            continue
        source_id = RealNodeId(note_id=source.id)

        for link_title in extract_links(source.content):
            target_id = title_to_id.get(link_title)
            if target_id is None:
                target_id = ghosts.get(link_title)
                if target_id is None:
                    target_id = GhostNodeId(title=link_title)
                    ghosts[link_title] = target_id
                    nodes.append(
                        GraphNode(
                            id=target_id,
                            name=link_title,
                            is_ghost=True,
                            val=ghost_val,
                        )
                    )
            edges.append(GraphEdge(source=source_id, target=target_id))

    logger.debug(
        f"Built graph: {len(nodes)} nodes ({len(ghosts)} ghost), {len(edges)} edges"
    )
    return NoteGraph(nodes=nodes, edges=edges)


def find_backlinks(notes: Sequence[Note], note: Note) -> List[Note]:
    """Find the other notes that link to ``note`` by its title.

    Uses the literal ``[[title]]`` text, so only exact spellings count.
    A note with an empty title has no backlinks.
    """
    if not note.title:
        return []
    return [
        other
        for other in notes
        if other.id != note.id and contains_link(other.content, note.title)
    ]


def plan_title_rename(
    notes: Sequence[Note], old_title: str, new_title: str
) -> List[NoteUpdate]:
    """Compute the content rewrites that keep links valid after a rename.

    Every note containing ``[[old_title]]`` (the renamed note included) gets
    the link rewritten to ``[[new_title]]``. Nothing is planned when the old
    title is blank or the title did not change.
    """
    if not old_title.strip() or old_title == new_title:
        return []
    return [
        NoteUpdate(note_id=note.id, content=rename_link(note.content, old_title, new_title))
        for note in notes
        if contains_link(note.content, old_title)
    ]
