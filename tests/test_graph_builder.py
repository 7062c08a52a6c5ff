# tests/test_graph_builder.py
"""Tests for link graph derivation, backlinks and rename planning."""
import json
import logging

from notegraph_mcp.models.schema import GhostNodeId, Note, NoteUpdate, RealNodeId
from notegraph_mcp.services.graph_builder import (
    build_graph,
    find_backlinks,
    find_duplicate_titles,
    plan_title_rename,
)


def _ids(graph):
    return [node.id for node in graph.nodes]


class TestBuildGraph:
    """Tests for build_graph."""

    def test_empty_collection(self):
        graph = build_graph([])
        assert graph.nodes == []
        assert graph.edges == []

    def test_link_between_existing_notes(self):
        notes = [
            Note(id=1, title="A", content="[[B]]"),
            Note(id=2, title="B", content=""),
        ]
        graph = build_graph(notes)

        assert _ids(graph) == [RealNodeId(note_id=1), RealNodeId(note_id=2)]
        assert len(graph.edges) == 1
        assert graph.edges[0].source == RealNodeId(note_id=1)
        assert graph.edges[0].target == RealNodeId(note_id=2)
        assert graph.ghost_nodes == []

    def test_ghost_node_for_unknown_title(self):
        notes = [Note(id=1, title="A", content="[[Ghost]]")]
        graph = build_graph(notes)

        assert len(graph.nodes) == 2
        ghost = graph.ghost_nodes[0]
        assert ghost.name == "Ghost"
        assert ghost.is_ghost
        assert ghost.val == 0.5
        assert ghost.group is None
        assert graph.edges[0].source == RealNodeId(note_id=1)
        assert graph.edges[0].target == ghost.id

    def test_ghost_id_is_stable_across_calls(self):
        notes = [Note(id=1, title="A", content="[[Ghost]]")]
        first = build_graph(notes).ghost_nodes[0].id
        second = build_graph(notes).ghost_nodes[0].id
        assert first == second == GhostNodeId(title="Ghost")

    def test_ghost_created_once_per_title(self):
        """Several notes linking to the same missing title share one ghost."""
        notes = [
            Note(id=1, title="A", content="[[Ghost]]"),
            Note(id=2, title="B", content="[[Ghost]] [[Ghost]]"),
        ]
        graph = build_graph(notes)
        assert len(graph.ghost_nodes) == 1
        assert len(graph.edges) == 2
        assert {edge.target for edge in graph.edges} == {GhostNodeId(title="Ghost")}

    def test_real_node_attributes(self):
        notes = [
            Note(id=1, title="Tagged", content="#first #second"),
            Note(id=2, title="", content="no tags"),
        ]
        tagged, untitled = build_graph(notes).nodes

        assert tagged.name == "Tagged"
        assert tagged.group == "#first"
        assert tagged.val == 1.0
        assert not tagged.is_ghost
        assert untitled.name == "Untitled"
        assert untitled.group is None

    def test_link_resolves_against_trimmed_title(self):
        notes = [
            Note(id=1, title="  Spaced  ", content=""),
            Note(id=2, title="B", content="[[Spaced]]"),
        ]
        graph = build_graph(notes)
        assert graph.ghost_nodes == []
        assert graph.edges[0].target == RealNodeId(note_id=1)

    def test_whitespace_only_title_is_not_a_link_target(self):
        """A blank title registers nothing, so [[ ]] stays a ghost link."""
        notes = [
            Note(id=1, title="   ", content=""),
            Note(id=2, title="B", content="[[ ]]"),
        ]
        graph = build_graph(notes)
        assert graph.edges[0].target == GhostNodeId(title="")
        assert [node.id for node in graph.ghost_nodes] == [GhostNodeId(title="")]

    def test_link_resolution_is_case_sensitive(self):
        notes = [
            Note(id=1, title="Alpha", content=""),
            Note(id=2, title="B", content="[[alpha]]"),
        ]
        graph = build_graph(notes)
        assert [node.name for node in graph.ghost_nodes] == ["alpha"]

    def test_self_link_is_a_self_loop(self):
        graph = build_graph([Note(id=1, title="Me", content="[[Me]]")])
        assert len(graph.nodes) == 1
        assert graph.edges[0].source == graph.edges[0].target == RealNodeId(note_id=1)

    def test_repeated_link_gives_single_edge(self):
        notes = [
            Note(id=1, title="A", content="[[B]] [[B]] [[ B ]]"),
            Note(id=2, title="B", content=""),
        ]
        assert len(build_graph(notes).edges) == 1

    def test_duplicate_titles_last_wins(self, caplog):
        notes = [
            Note(id=1, title="Same", content=""),
            Note(id=2, title="Same", content=""),
            Note(id=3, title="C", content="[[Same]]"),
        ]
        with caplog.at_level(logging.WARNING, logger="notegraph_mcp.services.graph_builder"):
            graph = build_graph(notes)

        assert graph.edges[0].target == RealNodeId(note_id=2)
        assert "Same" in caplog.text

    def test_custom_weights_and_label(self):
        notes = [Note(id=1, title="", content="[[X]]")]
        graph = build_graph(notes, real_val=3.0, ghost_val=2.0, untitled="(none)")
        real, ghost = graph.nodes
        assert real.name == "(none)"
        assert real.val == 3.0
        assert ghost.val == 2.0

    def test_every_edge_endpoint_is_a_node(self, sample_notes):
        graph = build_graph(sample_notes)
        node_ids = set(_ids(graph))
        for edge in graph.edges:
            assert edge.source in node_ids
            assert edge.target in node_ids

    def test_payload_shape(self, sample_notes):
        """The JSON payload uses plain ids and the 'links' key."""
        payload = build_graph(sample_notes).to_dict()
        assert set(payload) == {"nodes", "links"}
        by_id = {node["id"]: node for node in payload["nodes"]}

        assert by_id[1] == {"id": 1, "name": "Alpha", "isGhost": False, "val": 1.0, "group": "#project"}
        assert by_id["ghost-Gamma"] == {"id": "ghost-Gamma", "name": "Gamma", "isGhost": True, "val": 0.5}
        assert {"source": 1, "target": 2} in payload["links"]
        assert {"source": 2, "target": 1} in payload["links"]
        assert {"source": 1, "target": "ghost-Gamma"} in payload["links"]
        json.dumps(payload)


class TestDuplicateTitles:
    """Tests for find_duplicate_titles."""

    def test_reports_colliding_ids(self):
        notes = [
            Note(id=1, title="Same"),
            Note(id=2, title=" Same "),
            Note(id=3, title="Other"),
            Note(id=4, title=""),
            Note(id=5, title=""),
        ]
        assert find_duplicate_titles(notes) == {"Same": [1, 2]}

    def test_no_duplicates(self, sample_notes):
        assert find_duplicate_titles(sample_notes) == {}


class TestBacklinks:
    """Tests for find_backlinks."""

    def test_backlinks(self, sample_notes):
        alpha = sample_notes[0]
        assert [note.id for note in find_backlinks(sample_notes, alpha)] == [2]

    def test_backlinks_exclude_the_note_itself(self):
        me = Note(id=1, title="Me", content="[[Me]]")
        other = Note(id=2, title="Other", content="see [[Me]]")
        assert find_backlinks([me, other], me) == [other]

    def test_untitled_note_has_no_backlinks(self):
        untitled = Note(id=1, title="", content="")
        other = Note(id=2, title="Other", content="[[]]")
        assert find_backlinks([untitled, other], untitled) == []


class TestPlanTitleRename:
    """Tests for plan_title_rename."""

    def test_rewrites_linking_notes(self):
        notes = [
            Note(id=1, title="Old", content="self [[Old]]"),
            Note(id=2, title="B", content="[[Old]] and [[Old]] and [[Other]]"),
            Note(id=3, title="C", content="no links"),
        ]
        updates = plan_title_rename(notes, "Old", "New")
        assert updates == [
            NoteUpdate(note_id=1, content="self [[New]]"),
            NoteUpdate(note_id=2, content="[[New]] and [[New]] and [[Other]]"),
        ]

    def test_blank_old_title_plans_nothing(self):
        notes = [Note(id=1, title="B", content="[[]] [[ ]]")]
        assert plan_title_rename(notes, "", "New") == []
        assert plan_title_rename(notes, "  ", "New") == []

    def test_unchanged_title_plans_nothing(self):
        notes = [Note(id=1, title="B", content="[[Same]]")]
        assert plan_title_rename(notes, "Same", "Same") == []
