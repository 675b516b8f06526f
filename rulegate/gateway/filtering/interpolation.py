"""
Configuration interpolation for rule templates.

Rule paths, origins and credentials may embed ``${NAME}`` placeholders that
are resolved against the flat configuration mapping.
"""

import re
from typing import Mapping

# Shortest ${...} span, ending at the first closing brace
PLACEHOLDER_PATTERN = re.compile(r'\$\{(.*?)\}')


def replace_vars(template: str, config: Mapping[str, str]) -> str:
    """
    Replace every ``${NAME}`` placeholder with its configuration value.

    Missing keys resolve to the empty string. The result is never scanned
    again, so values that themselves contain placeholders stay literal.

    Example:
        >>> replace_vars("Hello ${PLACE}!", {"PLACE": "World"})
        'Hello World!'
    """
    if template == "":
        return ""

    return PLACEHOLDER_PATTERN.sub(lambda match: config.get(match.group(1), ""), template)
