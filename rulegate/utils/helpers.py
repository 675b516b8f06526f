"""
Utility helper functions for the request filter.

This module provides the request-side parsing helpers used while matching:
URL normalization and splitting, tolerant JSON decoding, safe nested
lookups and bracket-aware querystring parsing.
"""

import json
import re
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import parse_qsl


# Returned by safe_get when a lookup path does not resolve.
MISSING = object()

MAX_QUERY_DEPTH = 5
MAX_QUERY_ARRAY_INDEX = 20

_PATH_TOKEN = re.compile(r'\[(?:"([^"]*)"|\'([^\']*)\'|([^\]]*))\]|([^.\[\]]+)')
_QUERY_BRACKET = re.compile(r'\[([^\[\]]*)\]')


def normalize_path(path: str) -> str:
    """
    Normalize a URL path the way a POSIX filesystem path is normalized.

    Collapses repeated slashes, resolves "." and ".." segments and keeps a
    trailing slash when the input had one.

    Args:
        path: Path to normalize

    Returns:
        Normalized path ("." for an empty input)

    Examples:
        "/a/./b/../c" -> "/a/c"
        "/a//b/" -> "/a/b/"
        "../a" -> "../a"
    """
    if not path:
        return "."

    is_absolute = path.startswith('/')
    trailing_slash = path.endswith('/')

    segments: List[str] = []
    for segment in path.split('/'):
        if segment in ('', '.'):
            continue
        if segment == '..':
            if segments and segments[-1] != '..':
                segments.pop()
            elif not is_absolute:
                segments.append(segment)
            continue
        segments.append(segment)

    normalized = '/'.join(segments)

    if not normalized and not is_absolute:
        normalized = '.'
    if normalized and trailing_slash:
        normalized += '/'

    return '/' + normalized if is_absolute else normalized


def is_traversal_attempt(url: str) -> bool:
    """Return True when normalizing the raw URL would change it."""
    return normalize_path(url) != url


def split_url(url: str) -> Tuple[str, str]:
    """
    Split a request URL into path and querystring.

    The fragment is discarded and only the first "?" separates the path
    from the querystring.

    Examples:
        "/a?x=1?y=2#top" -> ("/a", "x=1?y=2")
        "/a" -> ("/a", "")
    """
    main_uri = url.split('#', 1)[0]
    path, _, querystring = main_uri.partition('?')
    return path, querystring


def try_json_parse(body: Any) -> Any:
    """
    Decode a request body as JSON without ever raising.

    Already decoded values are returned unchanged; a missing body or
    anything that is not valid JSON text decodes to an empty mapping.
    """
    if body is None:
        return {}

    if isinstance(body, (dict, list, int, float)):
        return body

    if isinstance(body, (bytes, bytearray)):
        try:
            body = bytes(body).decode('utf-8')
        except UnicodeDecodeError:
            return {}

    if not isinstance(body, str):
        return {}

    try:
        return json.loads(body)
    except ValueError:
        return {}


def split_lookup_path(path: str) -> List[str]:
    """
    Split a nested lookup path into keys.

    Examples:
        "a.b.c" -> ["a", "b", "c"]
        "items[0].name" -> ["items", "0", "name"]
        'meta["x.y"]' -> ["meta", "x.y"]
    """
    keys = []
    for quoted, single_quoted, bare, dotted in _PATH_TOKEN.findall(path):
        keys.append(quoted or single_quoted or bare or dotted)
    return keys


def safe_get(data: Any, path: str, default: Any = MISSING) -> Any:
    """
    Resolve a nested path without failing on missing intermediate keys.

    Args:
        data: Decoded JSON structure
        path: Lookup path (see split_lookup_path); empty means the whole structure
        default: Value returned when the path does not resolve

    Returns:
        The resolved value, or default
    """
    if not path.strip():
        return data

    current = data
    for key in split_lookup_path(path):
        if isinstance(current, dict):
            if key not in current:
                return default
            current = current[key]
        elif isinstance(current, list):
            try:
                index = int(key)
            except ValueError:
                return default
            if not 0 <= index < len(current):
                return default
            current = current[index]
        else:
            return default

    return current


def stringify_value(value: Any) -> str:
    """Render a decoded JSON value as text for pattern matching."""
    if isinstance(value, str):
        return value
    if isinstance(value, (bool, dict, list)) or value is None:
        return json.dumps(value, separators=(',', ':'))
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _split_query_key(key: str) -> List[str]:
    """Split "a[b][]" style keys into ["a", "b", ""], honouring the depth limit."""
    first = key.find('[')
    if first <= 0 or not _QUERY_BRACKET.match(key, first):
        return [key]

    parts = [key[:first]]
    position = first
    while position < len(key) and len(parts) <= MAX_QUERY_DEPTH:
        match = _QUERY_BRACKET.match(key, position)
        if not match:
            break
        parts.append(match.group(1))
        position = match.end()

    if position < len(key):
        # Anything past the depth limit stays a literal key
        parts.append(key[position:])

    return parts


def _assign_query_value(target: Dict[str, Any], parts: List[str], value: str, nested: bool = False) -> None:
    """Store a parsed value at the nested location described by parts."""
    key = parts[0]
    rest = parts[1:]

    if not rest:
        existing = target.get(key)
        if existing is None:
            target[key] = value
        elif nested and key.isdigit() and isinstance(existing, str):
            # A taken array slot appends instead of nesting
            target[str(_next_index(target))] = value
        elif isinstance(existing, list):
            existing.append(value)
        elif isinstance(existing, str):
            target[key] = [existing, value]
        # A scalar cannot be merged into an existing nested mapping
        return

    child = target.get(key)
    if rest[0] == '' and len(rest) == 1:
        if child is None:
            target[key] = [value]
        elif isinstance(child, list):
            child.append(value)
        elif isinstance(child, str):
            target[key] = [child, value]
        elif isinstance(child, dict):
            child[str(_next_index(child))] = value
        return

    if not isinstance(child, dict):
        child = {} if child is None else {str(i): v for i, v in enumerate(_as_list(child))}
        target[key] = child

    _assign_query_value(child, rest, value, nested=True)


def _next_index(mapping: Dict[str, Any]) -> int:
    indices = [int(key) for key in mapping if key.isdigit()]
    return max(indices) + 1 if indices else 0


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else [value]


def _compact_arrays(value: Any) -> Any:
    """Turn mappings keyed only by small integer indices into lists."""
    if not isinstance(value, dict):
        return value

    compacted = {key: _compact_arrays(item) for key, item in value.items()}
    if compacted and all(key.isdigit() and int(key) <= MAX_QUERY_ARRAY_INDEX for key in compacted):
        return [compacted[key] for key in sorted(compacted, key=int)]
    return compacted


def parse_querystring(querystring: str) -> Dict[str, Any]:
    """
    Parse a raw querystring into a nested mapping.

    Bracket keys build nested structures and repeated keys collect into
    lists, following the common "qs" conventions.

    Examples:
        "a=1&a=2" -> {"a": ["1", "2"]}
        "user[name]=bob" -> {"user": {"name": "bob"}}
        "ids[]=1&ids[]=2" -> {"ids": ["1", "2"]}
        "tags[1]=b&tags[0]=a" -> {"tags": ["a", "b"]}
    """
    if not querystring:
        return {}

    parsed: Dict[str, Any] = {}
    for key, value in parse_qsl(querystring, keep_blank_values=True):
        if not key:
            continue
        _assign_query_value(parsed, _split_query_key(key), value)

    return {key: _compact_arrays(value) for key, value in parsed.items()}


def lowercase_headers(headers: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Return a copy of the request headers keyed by lowercase name."""
    if not headers:
        return {}
    return {str(name).lower(): value for name, value in headers.items()}
