"""
Exception types raised by the request filter.
"""

from typing import Optional


class RuleGateError(Exception):
    """Base exception for request filter errors."""
    pass


class RuleConfigError(RuleGateError):
    """Raised when a rule source cannot be compiled into filter rules."""
    pass


class RequestBlockedError(RuleGateError):
    """Raised when no filter rule accepts a request."""

    def __init__(self, method: Optional[str] = None, url: Optional[str] = None):
        super().__init__("blocked")
        self.method = method
        self.url = url
