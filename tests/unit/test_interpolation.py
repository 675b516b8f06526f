"""Unit tests for configuration interpolation."""

import pytest

from rulegate.gateway.filtering.interpolation import replace_vars


class TestReplaceVars:
    """Test cases for replace_vars."""

    def test_replace_single_placeholder(self):
        """Test replacing one placeholder with its configured value."""
        assert replace_vars("Hello ${PLACE}!", {"PLACE": "World"}) == "Hello World!"

    def test_empty_template(self):
        """Test that the empty template stays empty for any configuration."""
        for config in ({}, {"A": "x"}, {"": "value"}):
            assert replace_vars("", config) == ""

    def test_missing_key_becomes_empty(self):
        """Test that placeholders without a configured value disappear."""
        assert replace_vars("${A}${B}", {"A": "x"}) == "x"

    def test_no_recursive_expansion(self):
        """Test that substituted values are never expanded again."""
        assert replace_vars("${A}", {"A": "${B}", "B": "nested"}) == "${B}"

    def test_shortest_span(self):
        """Test that each placeholder ends at the first closing brace."""
        test_cases = [
            ("${A}}", {"A": "x"}, "x}"),
            ("${A}-${B}", {"A": "1", "B": "2"}, "1-2"),
            ("${A${B}", {"A${B": "odd"}, "odd"),
            ("prefix ${A", {"A": "x"}, "prefix ${A"),
            ("no placeholders", {"A": "x"}, "no placeholders"),
        ]

        for template, config, expected in test_cases:
            assert replace_vars(template, config) == expected, f"Failed for {template}"

    def test_replace_in_origin_template(self):
        """Test interpolating a full origin URL."""
        config = {"HOST": "registry.internal", "PORT": "8443"}
        assert replace_vars("https://${HOST}:${PORT}", config) == "https://registry.internal:8443"
