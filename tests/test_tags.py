# tests/test_tags.py
"""Tests for #tag parsing and the tag cloud."""
import doctest

import pytest

from notegraph_mcp.models.schema import Note
from notegraph_mcp.parsing import tags as tags_module
from notegraph_mcp.parsing.tags import collect_tags, extract_tags, has_tag


class TestExtractTags:
    """Tests for extract_tags."""

    def test_basic_tags(self):
        assert extract_tags("hello #world, visit #foo-bar_baz now #a1") == [
            "#world",
            "#foo-bar_baz",
            "#a1",
        ]

    def test_no_leading_boundary(self):
        """A '#' glued to a preceding word is not a tag."""
        assert extract_tags("url#notATag http://x.com#anchor") == []

    def test_tag_at_start_of_content(self):
        assert extract_tags("#first thing") == ["#first"]

    def test_tag_after_newline_and_tab(self):
        assert extract_tags("line\n#one\t#two") == ["#one", "#two"]

    def test_duplicates_are_kept(self):
        assert extract_tags("#a #a") == ["#a", "#a"]

    def test_glued_tags(self):
        """A second "#" glued to the first tag does not start a new tag."""
        assert extract_tags("#a#b") == ["#a"]

    def test_hash_followed_by_punctuation(self):
        assert extract_tags("# heading and #! and #") == []

    def test_trailing_punctuation_ends_tag(self):
        assert extract_tags("done #todo. next #later!") == ["#todo", "#later"]

    def test_non_ascii_letter_ends_tag(self):
        """Only ASCII word characters belong to a tag."""
        assert extract_tags("#café") == ["#caf"]

    def test_empty_and_none(self):
        assert extract_tags("") == []
        assert extract_tags(None) == []

    def test_docstring_examples(self):
        """The examples in the extract_tags docstring hold."""
        result = doctest.testmod(tags_module)
        assert result.failed == 0


class TestTagCloud:
    """Tests for collect_tags and has_tag."""

    def test_collect_tags_sorted_unique(self):
        notes = [
            Note(id=1, content="#b #a"),
            Note(id=2, content="#a"),
        ]
        assert collect_tags(notes) == ["#a", "#b"]

    def test_collect_tags_empty_collection(self):
        assert collect_tags([]) == []

    def test_note_tags_subset_of_cloud(self, sample_notes):
        """Each note's tags appear in the collection-wide cloud."""
        cloud = collect_tags(sample_notes)
        assert cloud == sorted(set(cloud))
        for note in sample_notes:
            assert set(extract_tags(note.content)) <= set(cloud)

    @pytest.mark.parametrize(
        "content, tag, expected",
        [
            ("Hello #Work", "#work", True),
            ("#workshop", "#work", False),
            ("email#work", "#work", False),
            ("#work-item", "#work", True),
            ("", "#work", False),
            ("#work", "", False),
        ],
    )
    def test_has_tag(self, content, tag, expected):
        assert has_tag(content, tag) is expected

    def test_has_tag_escapes_tag_text(self):
        """Tag text is matched literally, not as a pattern."""
        assert not has_tag("#aXb", "#a.b")
