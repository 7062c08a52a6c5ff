"""Data models for the note graph derivation engine."""

import datetime
from datetime import timezone
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

GHOST_ID_PREFIX = "ghost-"


def utc_now() -> datetime.datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.datetime.now(timezone.utc)


def ensure_timezone_aware(dt_value: Optional[datetime.datetime]) -> datetime.datetime:
    """Ensure a datetime is timezone-aware, treating naive datetimes as UTC.

    SQLite hands back naive datetimes, and frontmatter written by other tools
    may omit the offset; both are assumed to be UTC.
    """
    if dt_value is None:
        return utc_now()
    if dt_value.tzinfo is None:
        return dt_value.replace(tzinfo=timezone.utc)
    return dt_value


class Note(BaseModel):
    """A note as handed over by a note store.

    Titles and content may be empty. Title uniqueness is not enforced;
    see ``find_duplicate_titles`` for how collisions surface.
    """

    id: int = Field(..., description="Stable unique ID of the note")
    title: str = Field(default="", description="Title of the note, may be empty")
    content: str = Field(default="", description="Markdown content of the note")
    created_at: datetime.datetime = Field(
        default_factory=utc_now, description="When the note was created (UTC)"
    )
    updated_at: datetime.datetime = Field(
        default_factory=utc_now, description="When the note was last updated (UTC)"
    )

    model_config = {"validate_assignment": True, "extra": "forbid"}


class RealNodeId(BaseModel):
    """Identity of a graph node backed by an existing note."""

    kind: Literal["real"] = "real"
    note_id: int

    model_config = {"frozen": True}

    def to_json(self) -> int:
        return self.note_id

    def __str__(self) -> str:
        return str(self.note_id)


class GhostNodeId(BaseModel):
    """Identity of a graph node for a link title with no note yet.

    Derived only from the title, so the same title always maps to an
    equal id across calls.
    """

    kind: Literal["ghost"] = "ghost"
    title: str

    model_config = {"frozen": True}

    def to_json(self) -> str:
        return f"{GHOST_ID_PREFIX}{self.title}"

    def __str__(self) -> str:
        return self.to_json()


NodeId = Annotated[Union[RealNodeId, GhostNodeId], Field(discriminator="kind")]


class GraphNode(BaseModel):
    """A node of the derived link graph."""

    id: NodeId
    name: str
    is_ghost: bool = False
    group: Optional[str] = Field(
        default=None, description="First tag of the note, used for clustering"
    )
    val: float = Field(default=1.0, description="Relative rendering weight")

    model_config = {"frozen": True}

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id.to_json(),
            "name": self.name,
            "isGhost": self.is_ghost,
            "val": self.val,
        }
        if self.group is not None:
            data["group"] = self.group
        return data


class GraphEdge(BaseModel):
    """A directed edge from the note containing a link to its target."""

    source: NodeId
    target: NodeId

    model_config = {"frozen": True}

    def to_dict(self) -> Dict[str, Any]:
        return {"source": self.source.to_json(), "target": self.target.to_json()}


class NoteGraph(BaseModel):
    """Nodes and edges derived from one snapshot of notes."""

    nodes: List[GraphNode] = Field(default_factory=list)
    edges: List[GraphEdge] = Field(default_factory=list)

    @property
    def ghost_nodes(self) -> List[GraphNode]:
        return [node for node in self.nodes if node.is_ghost]

    def to_dict(self) -> Dict[str, Any]:
        """Render the payload a force-graph renderer expects."""
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "links": [edge.to_dict() for edge in self.edges],
        }


class HighlightSegment(BaseModel):
    """A run of text, flagged when it is an occurrence of the query."""

    text: str
    is_match: bool = False

    model_config = {"frozen": True}


class MatchResult(BaseModel):
    """Outcome of matching one note against a search query."""

    matches: bool
    highlighted: List[HighlightSegment] = Field(
        default_factory=list, description="Highlighted title"
    )
    snippet: Optional[List[HighlightSegment]] = Field(
        default=None, description="Highlighted window of the content, if it matched"
    )


class NoteUpdate(BaseModel):
    """A content rewrite produced by link refactoring."""

    note_id: int
    content: str

    model_config = {"frozen": True}
