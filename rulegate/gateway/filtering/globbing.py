"""
Glob matching for query filters.

Patterns follow the conventions of path globbing rather than plain
``fnmatch``: values are split on ``/`` and matched segment by segment,
``*``, ``?`` and ``[...]`` never cross a ``/``, a segment starting with
``.`` is only matched by a pattern segment that starts with ``.`` too, and
``{a,b}`` / ``{1..3}`` braces expand into alternatives. A whole ``**``
segment matches any number of segments. A leading ``!`` negates the
pattern and a leading ``#`` marks a comment that never matches.
"""

import re
from functools import lru_cache
from typing import List, Optional, Pattern, Tuple, Union

GLOBSTAR = object()

_NUMERIC_RANGE = re.compile(r'^(-?\d+)\.\.(-?\d+)(?:\.\.(-?\d+))?$')
_ALPHA_RANGE = re.compile(r'^([A-Za-z])\.\.([A-Za-z])(?:\.\.(-?\d+))?$')

Segment = Union[Pattern, object]


def glob_match(value: str, pattern: str) -> bool:
    """
    Check whether a value matches a glob pattern.

    Args:
        value: Value to test, e.g. a query parameter
        pattern: Glob pattern

    Returns:
        True if the value matches (or, for a negated pattern, does not match)
    """
    if pattern.startswith('#'):
        return False

    negated, alternatives = _compile(pattern)
    if alternatives is None:
        # Empty pattern
        return (value == '') != negated

    parts = value.split('/')
    matched = any(_match_segments(parts, segments) for segments in alternatives)
    return matched != negated


@lru_cache(maxsize=1000)
def _compile(pattern: str) -> Tuple[bool, Optional[Tuple[Tuple[Segment, ...], ...]]]:
    negated = False
    offset = 0
    while offset < len(pattern) and pattern[offset] == '!':
        negated = not negated
        offset += 1
    pattern = pattern[offset:]

    if not pattern:
        return negated, None

    alternatives = tuple(
        tuple(_compile_segment(segment) for segment in expanded.split('/'))
        for expanded in expand_braces(pattern)
    )
    return negated, alternatives


def _compile_segment(segment: str) -> Segment:
    if segment == '**':
        return GLOBSTAR

    regex = []
    magic = False
    starts_with_wildcard = False
    i = 0
    n = len(segment)

    while i < n:
        char = segment[i]
        if char == '\\' and i + 1 < n:
            regex.append(re.escape(segment[i + 1]))
            i += 2
            continue

        if char == '*':
            if not regex or regex[-1] != '.*':
                regex.append('.*')
            magic = True
            starts_with_wildcard = starts_with_wildcard or i == 0
        elif char == '?':
            regex.append('.')
            magic = True
            starts_with_wildcard = starts_with_wildcard or i == 0
        elif char == '[':
            end, char_class = _parse_class(segment, i)
            if char_class is None:
                regex.append(re.escape(char))
            else:
                regex.append(char_class)
                magic = True
                starts_with_wildcard = starts_with_wildcard or i == 0
                i = end
        else:
            regex.append(re.escape(char))
        i += 1

    prefix = ''
    if starts_with_wildcard:
        prefix += r'(?!\.)'
    if magic:
        # Wildcards never match an empty segment
        prefix += '(?=.)'

    return re.compile('(?s:' + prefix + ''.join(regex) + r')\Z')


def _parse_class(segment: str, start: int) -> Tuple[int, Optional[str]]:
    """Parse a "[...]" class at start, returning its closing index and regex."""
    i = start + 1
    if i < len(segment) and segment[i] in '!^':
        i += 1
    if i < len(segment) and segment[i] == ']':
        i += 1
    while i < len(segment) and segment[i] != ']':
        i += 1
    if i >= len(segment):
        return start, None

    body = segment[start + 1:i]
    negated = body[:1] in ('!', '^')
    if negated:
        body = body[1:]

    body = body.replace('\\', '\\\\')
    body = re.sub(r'([&~|\[])', r'\\\1', body)
    return i, '[' + ('^' if negated else '') + body + ']'


def _match_segments(parts: List[str], segments: Tuple[Segment, ...]) -> bool:
    if not segments:
        return not parts

    head = segments[0]
    if head is GLOBSTAR:
        for i in range(len(parts) + 1):
            if _match_segments(parts[i:], segments[1:]):
                return True
            if i < len(parts) and parts[i].startswith('.'):
                return False
        return False

    if not parts:
        return False

    return head.match(parts[0]) is not None and _match_segments(parts[1:], segments[1:])


def expand_braces(pattern: str) -> List[str]:
    """
    Expand brace alternatives and ranges.

    Examples:
        "v{1,2}.*" -> ["v1.*", "v2.*"]
        "v{1..3}" -> ["v1", "v2", "v3"]
        "{a}" -> ["{a}"]
    """
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == '\\':
            i += 2
            continue
        if char == '{':
            close, alternatives = _scan_braces(pattern, i)
            if alternatives is not None:
                prefix = pattern[:i]
                suffix = pattern[close + 1:]
                return [
                    prefix + expanded
                    for alternative in alternatives
                    for expanded in expand_braces(alternative + suffix)
                ]
        i += 1

    return [pattern]


def _scan_braces(pattern: str, start: int) -> Tuple[int, Optional[List[str]]]:
    depth = 0
    commas = []
    i = start
    while i < len(pattern):
        char = pattern[i]
        if char == '\\':
            i += 2
            continue
        if char == '{':
            depth += 1
        elif char == '}':
            depth -= 1
            if depth == 0:
                break
        elif char == ',' and depth == 1:
            commas.append(i)
        i += 1
    else:
        return start, None

    body = pattern[start + 1:i]
    if commas:
        bounds = [start] + commas + [i]
        return i, [pattern[a + 1:b] for a, b in zip(bounds, bounds[1:])]

    sequence = _expand_range(body)
    if sequence is None:
        return start, None
    return i, sequence


def _expand_range(body: str) -> Optional[List[str]]:
    match = _NUMERIC_RANGE.match(body)
    if match:
        first, last, step = match.groups()
        width = 0
        if any(len(bound.lstrip('-')) > 1 and bound.lstrip('-').startswith('0') for bound in (first, last)):
            width = max(len(first), len(last))
        return [str(number).zfill(width) for number in _inclusive_range(int(first), int(last), step)]

    match = _ALPHA_RANGE.match(body)
    if match:
        first, last, step = match.groups()
        return [chr(code) for code in _inclusive_range(ord(first), ord(last), step)]

    return None


def _inclusive_range(first: int, last: int, step: Optional[str]) -> range:
    increment = abs(int(step)) if step else 1
    increment = increment or 1
    if first <= last:
        return range(first, last + 1, increment)
    return range(first, last - 1, -increment)
