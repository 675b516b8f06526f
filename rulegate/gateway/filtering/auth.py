"""
Upstream credential resolution for filter rules.
"""

import base64
from typing import Mapping

from rulegate.gateway.filtering.interpolation import replace_vars
from rulegate.models.rules import BasicAuth, TokenAuth


def resolve_auth_header(auth, config: Mapping[str, str]) -> str:
    """
    Build the Authorization header value for a rule's credentials.

    Args:
        auth: BasicAuth or TokenAuth declared on the rule
        config: Configuration mapping used to interpolate the credential templates

    Returns:
        "Token <token>" or "Basic <base64(username:password)>"
    """
    if isinstance(auth, TokenAuth):
        return f"Token {replace_vars(auth.token, config)}"

    if isinstance(auth, BasicAuth):
        credentials = ":".join([
            replace_vars(auth.username, config),
            replace_vars(auth.password, config),
        ])
        encoded = base64.b64encode(credentials.encode("utf-8")).decode("ascii")
        return f"Basic {encoded}"

    raise TypeError(f"Unsupported auth scheme: {type(auth).__name__}")
