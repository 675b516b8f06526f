"""
Filter rule compiler.

This module turns declarative filter rules into compiled rules that can be
evaluated against incoming requests. Everything that only depends on the
rule and the configuration (method normalization, filter partitioning, the
path template and the upstream origin) is resolved once, here.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from rulegate.config import load_rule_file
from rulegate.config.logging import get_logger
from rulegate.gateway.filtering.auth import resolve_auth_header
from rulegate.gateway.filtering.errors import RuleConfigError
from rulegate.gateway.filtering.interpolation import replace_vars
from rulegate.gateway.filtering.path_matcher import PathTemplate
from rulegate.gateway.filtering.validity import RequestValidator, headers_valid
from rulegate.models.rules import BodyFilter, BodyRegexFilter, HeaderFilter, QueryFilter, Rule
from rulegate.utils.helpers import is_traversal_attempt, split_url

logger = get_logger(__name__)

ANY_METHOD = "any"
DEFAULT_METHOD = "get"

RuleSource = Union[None, str, "os.PathLike[str]", List[Any], Tuple[Any, ...]]
RuleLoader = Callable[[Any], Any]


@dataclass(frozen=True)
class FilterRequest:
    """An inbound request as seen by the filter."""
    method: str
    url: str
    headers: Dict[str, Any] = field(default_factory=dict)
    body: Any = None


@dataclass(frozen=True)
class MatchResult:
    """Forwarding directive for an accepted request."""
    url: str
    auth: Optional[str] = None
    stream: Optional[bool] = None
    rule_index: int = -1


@dataclass(frozen=True)
class CompiledRule:
    """A filter rule prepared for per-request evaluation."""
    index: int
    method: str
    origin: str
    path: PathTemplate
    validator: RequestValidator
    header_filters: Tuple[HeaderFilter, ...]
    rule: Rule
    config: Mapping[str, str]

    @property
    def stream(self) -> Optional[bool]:
        return self.rule.stream

    @property
    def auth(self):
        return self.rule.auth

    def match(self, request: FilterRequest) -> Optional[MatchResult]:
        """
        Evaluate this rule against a request.

        Returns:
            MatchResult if the rule accepts the request, None otherwise
        """
        if self.method != ANY_METHOD and request.method.lower() != self.method:
            return None

        # Do not allow directory traversal
        if is_traversal_attempt(request.url):
            return None

        path, querystring = split_url(request.url)

        parameters = self.path.match(path)
        if parameters is None:
            return None

        path = self.path.rewrite(path, parameters)

        if self.validator.has_filters and not self.validator.is_valid(request.body, querystring):
            return None

        if self.header_filters and not headers_valid(self.header_filters, request.headers):
            return None

        logger.debug(
            "Filter rule matched",
            extra={
                "rule_index": self.index,
                "path": self.path.template,
                "origin": self.origin,
                "url": path,
                "querystring": querystring,
            }
        )

        return MatchResult(
            url=self.origin + path + (f"?{querystring}" if querystring else ""),
            auth=resolve_auth_header(self.auth, self.config) if self.auth is not None else None,
            stream=self.stream,
            rule_index=self.index,
        )


def resolve_rule_source(rule_source: RuleSource, loader: Optional[RuleLoader] = None) -> List[Any]:
    """
    Resolve a rule source into a list of raw rules.

    Args:
        rule_source: Inline list of rules, a reference for the loader, or None
        loader: Callback resolving a reference; defaults to reading a JSON/YAML file

    Returns:
        Raw rules in declaration order (empty when the loader fails)

    Raises:
        RuleConfigError: If the resolved value is not a list
    """
    if loader is None:
        loader = load_rule_file

    if isinstance(rule_source, (list, tuple)):
        rules = rule_source
    elif isinstance(rule_source, (str, os.PathLike)):
        rules = []
        if rule_source:
            try:
                rules = loader(rule_source)
            except Exception as e:
                logger.warning(
                    "Unable to load rule source, ignoring",
                    extra={"rule_source": str(rule_source), "error": str(e)}
                )
                rules = []
    elif rule_source is None:
        rules = []
    else:
        rules = rule_source

    if not isinstance(rules, (list, tuple)):
        raise RuleConfigError(
            f"Expected a list of filter rules, got '{type(rules).__name__}' instead."
        )

    return list(rules)


def compile_rule(index: int, rule: Union[Rule, Dict[str, Any]], config: Mapping[str, str]) -> CompiledRule:
    """
    Compile a single filter rule.

    Raises:
        RuleConfigError: If the rule does not fit the rule schema
    """
    if not isinstance(rule, Rule):
        try:
            rule = Rule.model_validate(rule)
        except ValidationError as e:
            raise RuleConfigError(f"Invalid filter rule at index {index}: {e}") from e

    method = (rule.method if rule.method is not None else DEFAULT_METHOD).lower()

    body_filters = tuple(f for f in rule.valid if isinstance(f, BodyFilter))
    body_regex_filters = tuple(f for f in rule.valid if isinstance(f, BodyRegexFilter))
    query_filters = tuple(f for f in rule.valid if isinstance(f, QueryFilter))
    header_filters = tuple(f for f in rule.valid if isinstance(f, HeaderFilter))

    path = PathTemplate.compile(rule.path, config)
    origin = replace_vars(rule.origin, config)

    logger.info(
        "Adding new filter rule",
        extra={"rule_index": index, "method": method, "path": path.template}
    )

    return CompiledRule(
        index=index,
        method=method,
        origin=origin,
        path=path,
        validator=RequestValidator(
            body_filters=body_filters,
            body_regex_filters=body_regex_filters,
            query_filters=query_filters,
        ),
        header_filters=header_filters,
        rule=rule,
        config=config,
    )


def compile_rules(
    rule_source: RuleSource,
    config: Mapping[str, str],
    loader: Optional[RuleLoader] = None
) -> Tuple[CompiledRule, ...]:
    """
    Compile a rule source into an ordered tuple of compiled rules.

    Args:
        rule_source: Inline list of rules, a reference for the loader, or None
        config: Read-only configuration mapping used for interpolation
        loader: Callback resolving a rule source reference

    Returns:
        Compiled rules in declaration order

    Raises:
        RuleConfigError: If the rule source or one of its rules is malformed
    """
    rules = resolve_rule_source(rule_source, loader)

    logger.info("Loading new filter rules", extra={"rules_count": len(rules)})

    return tuple(compile_rule(index, rule, config) for index, rule in enumerate(rules))
