"""
Unit tests for the alias rewriter.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../backend"))

from glossary import build_ordered_aliases
from models import AliasLink, GlossaryEntry
from rewriter import count_links, link_line, linked_spans, parse_link, rewrite


def _aliases(*pairs):
    return build_ordered_aliases([GlossaryEntry(target=t, aliases=list(a)) for t, a in pairs])


@pytest.mark.unit
class TestRewrite:
    """Test suite for rewrite()."""

    def test_end_to_end_skips_header(self):
        aliases = _aliases(("Cats", ["cat", "cats"]))
        text = "# cat facts\nI have a cat."

        assert rewrite(text, aliases, skip_headers=True) == "# cat facts\nI have a [[Cats|cat]]."

    def test_header_rewritten_when_not_skipped(self):
        aliases = _aliases(("B", ["category"]))

        assert rewrite("# category theory", aliases, skip_headers=True) == "# category theory"
        assert rewrite("# category theory", aliases, skip_headers=False) == "# [[B|category]] theory"

    def test_longest_alias_wins(self):
        aliases = _aliases(("A", ["cat"]), ("B", ["category"]))

        assert rewrite("category", aliases) == "[[B|category]]"

    def test_existing_link_not_relinked(self):
        aliases = _aliases(("B", ["category"]))

        assert rewrite("see [[B|category]]", aliases) == "see [[B|category]]"
        assert rewrite("see [[category]]", aliases) == "see [[category]]"

    def test_link_target_position_skipped(self):
        aliases = _aliases(("A", ["cat"]))

        assert rewrite("open [[cat", aliases) == "open [[cat"

    def test_one_replacement_per_line(self):
        aliases = _aliases(("A", ["cat"]))

        assert rewrite("cat and cat", aliases) == "cat and [[A|cat]]"
        assert rewrite("cat\ncat", aliases) == "[[A|cat]]\n[[A|cat]]"

    def test_idempotent(self):
        aliases = _aliases(("Cats", ["cat", "cats"]), ("Dogs", ["dog"]), ("B", ["category"]))
        text = "# cat facts\ncats and dogs\na category of cat\n\nno dog here? dog!"

        once = rewrite(text, aliases)
        assert rewrite(once, aliases) == once

    def test_pipe_later_on_line_blocks_match(self):
        aliases = _aliases(("A", ["cat"]))

        assert rewrite("| cat | table |", aliases) == "| cat | table |"

    def test_mention_before_existing_link_is_skipped(self):
        aliases = [AliasLink(alias="cat", target="C"), AliasLink(alias="dog", target="D")]

        assert rewrite("dog and cat", aliases) == "dog and [[C|cat]]"

    def test_matching_is_literal(self):
        aliases = _aliases(("Cpp", ["C++"]), ("Abc", ["a.c"]))

        assert rewrite("I like C++.", aliases) == "I like [[Cpp|C++]]."
        assert rewrite("abc", aliases) == "abc"

    def test_matching_is_case_sensitive(self):
        aliases = _aliases(("A", ["cat"]))

        assert rewrite("Cat", aliases) == "Cat"

    def test_empty_inputs(self):
        aliases = _aliases(("A", ["cat"]))

        assert rewrite("", aliases) == ""
        assert rewrite("cat", []) == "cat"
        assert rewrite("cat", [AliasLink(alias="", target="A")]) == "cat"

    def test_link_line_keeps_surrounding_text(self):
        assert link_line("a cat sat", "cat", "Cats") == "a [[Cats|cat]] sat"


@pytest.mark.unit
class TestLinkHelpers:
    """Test suite for link parsing helpers."""

    def test_parse_link(self):
        assert parse_link("[[Target Page|display text]]") == ("Target Page", "display text")
        assert parse_link("before [[a|b]] after") == ("a", "b")

    def test_parse_link_without_link(self):
        assert parse_link("plain text") is None
        assert parse_link("[[no pipe]]") is None
        assert parse_link("") is None

    def test_linked_spans(self):
        line = "a [[x|y]] b [[z]]"

        assert linked_spans(line) == [(2, 9), (12, 17)]
        assert linked_spans("[[unterminated") == []

    def test_count_links(self):
        assert count_links("[[a|b]]\nc [[d]] [[e|f]]") == 3
        assert count_links("") == 0
