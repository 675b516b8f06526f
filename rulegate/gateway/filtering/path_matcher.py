"""
Path template matching for filter rules.

This module compiles rule path templates into regular expressions and
extracts named path parameters from request paths. A ``${VAR}`` placeholder
in a rule path becomes a ``:VAR`` parameter whose captured value may later
be replaced by the configured value of ``VAR``.
"""

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import List, Mapping, Optional, Pattern, Tuple

from rulegate.config.logging import get_logger

logger = get_logger(__name__)

# ${VAR} placeholders and plain :name parameters
_TOKEN_PATTERN = re.compile(r'\$\{(.*?)\}|:(\w+)')

# One non-empty path segment
_SEGMENT_PATTERN = r'([^/]+?)'


@dataclass(frozen=True)
class PathParameter:
    """A named parameter captured from a request path."""
    name: str
    value: str
    start: int
    end: int


@dataclass(frozen=True)
class PathTemplate:
    """A compiled path template."""
    template: str
    regex: Pattern
    parameter_names: Tuple[str, ...] = ()
    parameter_defaults: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def compile(cls, path: Optional[str], config: Mapping[str, str]) -> "PathTemplate":
        """
        Compile a rule path into a template.

        Supports:
        - Literal segments: /api/health
        - Configured parameters: /pkg/${NAME} captures NAME and remembers config["NAME"]
        - Plain parameters: /users/:id captures id

        Args:
            path: Rule path, "/" when None
            config: Configuration mapping used for parameter defaults

        Returns:
            Compiled path template
        """
        if path is None:
            path = '/'
        if not path.startswith('/'):
            path = '/' + path

        template_parts: List[str] = []
        regex_parts: List[str] = []
        names: List[str] = []
        defaults = {}

        position = 0
        for token in _TOKEN_PATTERN.finditer(path):
            literal = path[position:token.start()]
            template_parts.append(literal)
            regex_parts.append(re.escape(literal))

            config_key, plain_name = token.group(1), token.group(2)
            if config_key is not None:
                name = config_key
                defaults[name] = config.get(name, '')
            else:
                name = plain_name

            names.append(name)
            template_parts.append(':' + name)
            regex_parts.append(_SEGMENT_PATTERN)
            position = token.end()

        literal = path[position:]
        template_parts.append(literal)
        # A trailing slash is optional, so it is not part of the literal match
        if literal.endswith('/'):
            literal = literal[:-1]
        regex_parts.append(re.escape(literal))

        regex = re.compile('^' + ''.join(regex_parts) + '/?$', re.IGNORECASE)

        return cls(
            template=''.join(template_parts),
            regex=regex,
            parameter_names=tuple(names),
            parameter_defaults=MappingProxyType(defaults),
        )

    def match(self, path: str) -> Optional[Tuple[PathParameter, ...]]:
        """
        Match a request path against this template.

        Args:
            path: Request path without querystring or fragment

        Returns:
            Captured parameters in declaration order, or None if the path does not match
        """
        match = self.regex.match(path)
        if not match:
            return None

        return tuple(
            PathParameter(
                name=name,
                value=match.group(index),
                start=match.start(index),
                end=match.end(index),
            )
            for index, name in enumerate(self.parameter_names, start=1)
        )

    def rewrite(self, path: str, parameters: Tuple[PathParameter, ...]) -> str:
        """
        Replace captured parameters that have a configured default.

        Only parameters declared through ``${VAR}`` with a non-empty
        configuration value are replaced; every other segment is kept as sent.
        """
        rewritten = path
        # Right to left so earlier spans stay valid
        for parameter in reversed(parameters):
            override = self.parameter_defaults.get(parameter.name)
            if override:
                rewritten = rewritten[:parameter.start] + override + rewritten[parameter.end:]

        if rewritten != path:
            logger.debug(
                "Rewrote path parameters from configuration",
                extra={"template": self.template, "original_path": path, "rewritten_path": rewritten},
            )

        return rewritten
