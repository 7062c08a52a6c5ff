"""
Notegraph MCP - derives the link graph, tag cloud and search matches of a
personal note collection written with [[wiki links]] and #tags.

The derivations are pure functions over a snapshot of notes; the package also
ships note stores and a Model Context Protocol (MCP) server around them.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("notegraph-mcp")
except PackageNotFoundError:
    __version__ = "0.1.0"

from notegraph_mcp.parsing.links import extract_links
from notegraph_mcp.parsing.tags import extract_tags
from notegraph_mcp.services.graph_builder import build_graph
from notegraph_mcp.services.search_service import match_and_highlight

__all__ = [
    "__version__",
    "build_graph",
    "extract_links",
    "extract_tags",
    "match_and_highlight",
]
