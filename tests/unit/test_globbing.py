"""Unit tests for query glob matching."""

from rulegate.gateway.filtering.globbing import expand_braces, glob_match


class TestGlobMatch:
    """Test cases for glob_match."""

    def test_wildcards(self):
        """Test star, question mark and character classes."""
        test_cases = [
            ("v1.2.3", "v1.*", True),
            ("v2.0", "v1.*", False),
            ("v1", "v?", True),
            ("v10", "v?", False),
            ("v2", "v[0-3]", True),
            ("v7", "v[!0-3]", True),
            ("v2", "v[^0-3]", False),
            ("v[1", "v[1", True),
            ("V1", "v1", False),
        ]

        for value, pattern, expected in test_cases:
            assert glob_match(value, pattern) is expected, f"{value} with {pattern}"

    def test_slash_separates_segments(self):
        """Test wildcards match within one segment only."""
        test_cases = [
            ("v1/secret", "v1*", False),
            ("v1/secret", "v?/secret", True),
            ("a/b", "*", False),
            ("a/b", "*/*", True),
            ("a/b/c", "a/**", True),
            ("a", "a/**", True),
            ("a/b/c", "**/c", True),
            ("a/.git/c", "a/**/c", False),
        ]

        for value, pattern, expected in test_cases:
            assert glob_match(value, pattern) is expected, f"{value} with {pattern}"

    def test_leading_dot(self):
        """Test dot-prefixed values need an explicit dot."""
        assert glob_match(".hidden", "*") is False
        assert glob_match(".hidden", "[.]hidden") is False
        assert glob_match(".hidden", ".*") is True
        assert glob_match("a.hidden", "a*") is True

    def test_empty_values(self):
        """Test wildcards never match an empty value."""
        assert glob_match("", "*") is False
        assert glob_match("", "") is True
        assert glob_match("x", "") is False

    def test_negation_and_comments(self):
        """Test leading "!" negates and leading "#" never matches."""
        assert glob_match("v2", "!v1*") is True
        assert glob_match("v1.0", "!v1*") is False
        assert glob_match("v1.0", "!!v1*") is True
        assert glob_match("#tag", "#tag") is False

    def test_escapes(self):
        """Test backslash escapes wildcard characters."""
        assert glob_match("v*", "v\\*") is True
        assert glob_match("v1", "v\\*") is False


class TestExpandBraces:
    """Test cases for brace expansion."""

    def test_expand_braces(self):
        """Test brace alternatives and ranges."""
        test_cases = [
            ("v{1,2}.*", ["v1.*", "v2.*"]),
            ("{a,b}{x,y}", ["ax", "ay", "bx", "by"]),
            ("{a,{b,c}}", ["a", "b", "c"]),
            ("v{1..3}", ["v1", "v2", "v3"]),
            ("v{3..1}", ["v3", "v2", "v1"]),
            ("v{01..03}", ["v01", "v02", "v03"]),
            ("{a..c}", ["a", "b", "c"]),
            ("{a}", ["{a}"]),
            ("{}", ["{}"]),
            ("v{1,2", ["v{1,2"]),
            ("\\{a,b}", ["\\{a,b}"]),
        ]

        for pattern, expected in test_cases:
            assert expand_braces(pattern) == expected, f"Failed for: {pattern}"

    def test_braces_in_matching(self):
        """Test expanded alternatives are each tried."""
        assert glob_match("beta", "{alpha,beta}") is True
        assert glob_match("gamma", "{alpha,beta}") is False
        assert glob_match("v2", "v{1..3}") is True
        assert glob_match("v4", "v{1..3}") is False
