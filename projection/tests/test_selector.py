"""Tests for Selector include/exclude semantics."""

from dataclasses import FrozenInstanceError

import pytest

from projection.selector import Selector


class TestSelector:
    """Include and exclude are independent questions."""

    def test_empty_selector_neither_includes_nor_excludes(self):
        selector = Selector()

        assert selector.should_include("last_message") is False
        assert selector.should_exclude("last_message") is False

    def test_unknown_keys_are_safe(self):
        selector = Selector.from_fields(include="last_message", exclude="recipients")

        assert selector.should_include("no_such_field") is False
        assert selector.should_exclude("no_such_field") is False

    def test_include_and_exclude_are_not_complements(self):
        selector = Selector.from_fields(include="last_message", exclude="recipients")

        assert selector.should_include("last_message") is True
        assert selector.should_exclude("last_message") is False
        assert selector.should_include("recipients") is False
        assert selector.should_exclude("recipients") is True
        # Default policy applies to keys mentioned in neither
        assert selector.should_include("first_message") is False
        assert selector.should_exclude("first_message") is False

    def test_from_fields_accepts_strings_and_iterables(self):
        from_string = Selector.from_fields(include=" a, b ,,c ", exclude="d")
        from_list = Selector.from_fields(include=["a", "b", "c"], exclude=["d"])

        assert from_string == from_list
        assert from_string.includes == frozenset({"a", "b", "c"})

    def test_dotted_include_opts_in_to_parent(self):
        selector = Selector.from_fields(include="last_message.attachments")

        assert selector.should_include("last_message") is True
        assert selector.should_include("last") is False

    def test_dotted_exclude_does_not_suppress_parent(self):
        selector = Selector.from_fields(exclude="first_message.attachments")

        assert selector.should_exclude("first_message") is False

    def test_for_key_narrows_to_nested_fields(self):
        selector = Selector.from_fields(
            include="last_message.attachments,recipients",
            exclude="first_message.message_body_html,links",
        )

        nested = selector.for_key("first_message")
        assert nested.should_exclude("message_body_html") is True
        assert nested.should_exclude("links") is False

        nested = selector.for_key("last_message")
        assert nested.should_include("attachments") is True
        assert nested.should_include("recipients") is False

    def test_selector_is_immutable(self):
        selector = Selector.from_fields(include="a")

        with pytest.raises(FrozenInstanceError):
            selector.includes = frozenset({"b"})
