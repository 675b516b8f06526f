"""
Filter rules engine for the request filter.

This module dispatches incoming requests to the first compiled rule that
accepts them and manages the active rule set. Rule sets are immutable
tuples; reloading compiles a complete new tuple before replacing the
reference readers use, so a request never sees a half-loaded rule set.
"""

from collections import Counter
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from rulegate.config import load_rule_file
from rulegate.config.logging import get_logger
from rulegate.gateway.filtering.compiler import (
    CompiledRule,
    FilterRequest,
    MatchResult,
    RuleLoader,
    RuleSource,
    compile_rules,
)
from rulegate.gateway.filtering.errors import RequestBlockedError

logger = get_logger(__name__)


def find_match(compiled_rules: Sequence[CompiledRule], request: FilterRequest) -> Optional[MatchResult]:
    """
    Find the first compiled rule that accepts the request.

    Args:
        compiled_rules: Compiled rules in declaration order
        request: Incoming request

    Returns:
        MatchResult of the first accepting rule, or None
    """
    logger.debug(
        "Looking for a rule match",
        extra={"rules_count": len(compiled_rules), "method": request.method, "url": request.url}
    )

    for compiled_rule in compiled_rules:
        result = compiled_rule.match(request)
        if result is not None:
            return result

    return None


def dispatch(compiled_rules: Sequence[CompiledRule], request: FilterRequest) -> MatchResult:
    """
    Match a request against compiled rules.

    Raises:
        RequestBlockedError: If no rule accepts the request
    """
    result = find_match(compiled_rules, request)
    if result is None:
        logger.debug("No filter rule matched", extra={"method": request.method, "url": request.url})
        raise RequestBlockedError(method=request.method, url=request.url)
    return result


class RuleEngine:
    """
    Holds the active compiled rule set and matches requests against it.
    """

    def __init__(self, config: Mapping[str, str], loader: RuleLoader = load_rule_file):
        """
        Initialize the rule engine with an empty, fail-closed rule set.

        Args:
            config: Read-only configuration mapping used for interpolation
            loader: Callback resolving rule source references
        """
        self._config = config
        self._loader = loader
        self._rules: Tuple[CompiledRule, ...] = ()

    @property
    def config(self) -> Mapping[str, str]:
        return self._config

    def load(self, rule_source: RuleSource) -> int:
        """
        Compile a rule source and make it the active rule set.

        Args:
            rule_source: Inline list of rules, a reference for the loader, or None

        Returns:
            Number of active rules

        Raises:
            RuleConfigError: If the rule source is malformed; the previous rule set stays active
        """
        compiled = compile_rules(rule_source, self._config, self._loader)
        self._rules = compiled
        logger.info("Activated filter rules", extra={"rules_count": len(compiled)})
        return len(compiled)

    def find_match(self, request: FilterRequest) -> Optional[MatchResult]:
        """Return the first match for the request, or None."""
        return find_match(self._rules, request)

    def match(self, request: FilterRequest) -> MatchResult:
        """
        Match a request against the active rule set.

        Raises:
            RequestBlockedError: If no rule accepts the request
        """
        return dispatch(self._rules, request)

    def list_rules(self) -> Tuple[CompiledRule, ...]:
        """
        Get the active compiled rules.

        Returns:
            Compiled rules in declaration order
        """
        return self._rules

    def get_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the active rule set.

        Returns:
            Dictionary containing rule statistics
        """
        rules = self._rules

        return {
            "total_rules": len(rules),
            "methods": dict(Counter(rule.method for rule in rules)),
            "rules_with_auth": sum(1 for rule in rules if rule.auth is not None),
            "streaming_rules": sum(1 for rule in rules if rule.stream),
            "rules_with_body_filters": sum(1 for rule in rules if rule.validator.body_filters),
            "rules_with_body_regex_filters": sum(1 for rule in rules if rule.validator.body_regex_filters),
            "rules_with_query_filters": sum(1 for rule in rules if rule.validator.query_filters),
            "rules_with_header_filters": sum(1 for rule in rules if rule.header_filters),
        }
