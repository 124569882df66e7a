"""Tests for message template interpolation."""

from __future__ import annotations

from plhcc.messages import interpolate_template, render_message, template_placeholders


class TestInterpolateTemplate:
    def test_replaces_known_variables(self):
        text = interpolate_template("Hi {{poc}}, {{item}} for {{project}}", {"poc": "Dana", "item": "Tile", "project": "Kitchen"})

        assert text == "Hi Dana, Tile for Kitchen"

    def test_unknown_and_empty_left_in_place(self):
        text = interpolate_template("{{project}} due {{deadline}}", {"project": "", "other": "x"})

        assert text == "{{project}} due {{deadline}}"

    def test_repeated_placeholder(self):
        assert interpolate_template("{{a}}-{{a}}", {"a": "1"}) == "1-1"

    def test_single_braces_untouched(self):
        assert interpolate_template("{a} {{ a }}", {"a": "1"}) == "{a} {{ a }}"


class TestRenderMessage:
    def test_subject_body_and_missing(self):
        message = render_message(
            "Hi {{poc}},\n{{scope}}",
            {"poc": "Dana", "project": "Kitchen"},
            subject_template="Dimensions needed for {{project}} - {{item}}",
        )

        assert message.subject == "Dimensions needed for Kitchen - {{item}}"
        assert message.body == "Hi Dana,\n{{scope}}"
        assert message.missing == ["item", "scope"]

    def test_no_subject(self):
        message = render_message("Thanks {{poc}}", {"poc": "Dana"})

        assert message.subject is None
        assert message.missing == []

    def test_placeholders_in_order(self):
        assert template_placeholders("{{b}} {{a}} {{b}}") == ["b", "a"]
