"""
Validity filter evaluation.

Body, body-regex and query filters are alternatives, checked in that order:
the first filter that accepts the request makes it valid and the remaining
categories are skipped. Header filters are requirements: every one of them
must accept the request.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

from rulegate.config.logging import get_logger
from rulegate.gateway.filtering.globbing import glob_match
from rulegate.models.rules import BodyFilter, BodyRegexFilter, HeaderFilter, QueryFilter
from rulegate.utils.helpers import (
    MISSING,
    lowercase_headers,
    parse_querystring,
    safe_get,
    stringify_value,
    try_json_parse,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class RequestValidator:
    """Evaluates the body, body-regex and query filters of one rule."""
    body_filters: Tuple[BodyFilter, ...] = ()
    body_regex_filters: Tuple[BodyRegexFilter, ...] = ()
    query_filters: Tuple[QueryFilter, ...] = ()

    @property
    def has_filters(self) -> bool:
        return bool(self.body_filters or self.body_regex_filters or self.query_filters)

    def is_valid(self, body: Any, querystring: str) -> bool:
        """
        Check whether at least one filter accepts the request.

        Args:
            body: Raw request body (text, bytes or already decoded JSON)
            querystring: Raw querystring without the leading "?"

        Returns:
            True if a body, body-regex or query filter matched
        """
        parsed_body = None

        if self.body_filters:
            parsed_body = try_json_parse(body)
            if any(_body_filter_matches(f, parsed_body) for f in self.body_filters):
                return True

        if self.body_regex_filters:
            if parsed_body is None:
                parsed_body = try_json_parse(body)
            if any(_body_regex_filter_matches(f, parsed_body) for f in self.body_regex_filters):
                return True

        if self.query_filters:
            parsed_query = parse_querystring(querystring)
            if any(_query_filter_matches(f, parsed_query) for f in self.query_filters):
                return True

        return False


def _body_filter_matches(body_filter: BodyFilter, parsed_body: Any) -> bool:
    value = safe_get(parsed_body, body_filter.path)
    if value is MISSING:
        return False
    return any(_same_json_value(value, allowed) for allowed in body_filter.value)


def _same_json_value(value: Any, allowed: Any) -> bool:
    # JSON true must not equal 1
    if isinstance(value, bool) or isinstance(allowed, bool):
        return type(value) is type(allowed) and value == allowed
    return value == allowed


def _body_regex_filter_matches(regex_filter: BodyRegexFilter, parsed_body: Any) -> bool:
    value = safe_get(parsed_body, regex_filter.path)
    if value is MISSING:
        return False

    try:
        pattern = re.compile(regex_filter.regex)
    except re.error as e:
        logger.error(
            "Failed to test regex rule",
            extra={"path": regex_filter.path, "regex": regex_filter.regex, "error": str(e)},
        )
        return False

    return pattern.search(stringify_value(value)) is not None


def _query_filter_matches(query_filter: QueryFilter, parsed_query: Dict[str, Any]) -> bool:
    value = parsed_query.get(query_filter.query_param, "")

    if isinstance(value, list):
        candidates = [item for item in value if isinstance(item, str)]
    elif isinstance(value, str):
        candidates = [value]
    else:
        # Nested mappings never match a glob
        return False

    return any(
        glob_match(candidate, pattern)
        for pattern in query_filter.values
        for candidate in candidates
    )


def headers_valid(header_filters: Sequence[HeaderFilter], request_headers: Optional[Dict[str, Any]]) -> bool:
    """
    Check that every header filter is satisfied.

    Args:
        header_filters: Header filters of the rule
        request_headers: Request headers, names compared case-insensitively

    Returns:
        False as soon as a header is missing or carries a value that is not allowed
    """
    headers = lowercase_headers(request_headers)

    for header_filter in header_filters:
        header_value = headers.get(header_filter.header.lower())

        if not header_value:
            return False

        if header_value not in header_filter.values:
            return False

    return True
