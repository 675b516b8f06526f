"""
Request filtering package.

This package contains the rule compiler, the path template matcher, the
validity filters and the rules engine for the request filter.
"""

from .auth import resolve_auth_header
from .compiler import CompiledRule, FilterRequest, MatchResult, compile_rule, compile_rules, resolve_rule_source
from .engine import RuleEngine, dispatch, find_match
from .errors import RequestBlockedError, RuleConfigError, RuleGateError
from .globbing import glob_match
from .interpolation import replace_vars
from .path_matcher import PathParameter, PathTemplate
from .validity import RequestValidator, headers_valid

__all__ = [
    "RuleEngine",
    "dispatch",
    "find_match",
    "CompiledRule",
    "FilterRequest",
    "MatchResult",
    "compile_rule",
    "compile_rules",
    "resolve_rule_source",
    "PathTemplate",
    "PathParameter",
    "RequestValidator",
    "headers_valid",
    "glob_match",
    "resolve_auth_header",
    "replace_vars",
    "RuleGateError",
    "RuleConfigError",
    "RequestBlockedError",
]
