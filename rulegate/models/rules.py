"""
Rule models for the request filter.

This module defines the declarative rule schema: filter rules, the four
validity filter shapes and the credential injection strategies.
"""

from typing import Annotated, Any, ClassVar, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, field_validator


class _RuleModel(BaseModel):
    """Base for immutable rule schema models."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class BodyFilter(_RuleModel):
    """Accept a request when a JSON body field equals one of the allowed values."""
    shape: ClassVar[str] = "body"

    path: str = Field(..., description="Dotted path into the JSON body")
    value: List[Any] = Field(..., description="Allowed values for the field")


class BodyRegexFilter(_RuleModel):
    """Accept a request when a JSON body field matches a regular expression."""
    shape: ClassVar[str] = "body_regex"

    path: str = Field(..., description="Dotted path into the JSON body")
    regex: str = Field(..., description="Regular expression searched in the field value")
    value: Optional[Any] = Field(default=None, description="Unused, kept for schema compatibility")


class QueryFilter(_RuleModel):
    """Accept a request when a query parameter matches one of the glob patterns."""
    shape: ClassVar[str] = "query"

    query_param: str = Field(..., alias="queryParam", description="Query parameter name")
    values: List[str] = Field(..., description="Allowed shell-style glob patterns")


class HeaderFilter(_RuleModel):
    """Require a request header to carry one of the allowed values."""
    shape: ClassVar[str] = "header"

    header: str = Field(..., description="Header name")
    values: List[str] = Field(..., description="Allowed header values")


def _filter_shape(value: Any) -> Optional[str]:
    """Discriminate a validity filter by the keys it declares."""
    if isinstance(value, _RuleModel):
        return getattr(value, "shape", None)
    if not isinstance(value, dict):
        return None

    if "path" in value:
        return "body_regex" if "regex" in value else "body"
    if "queryParam" in value or "query_param" in value:
        return "query"
    if "header" in value:
        return "header"
    return None


ValidityFilter = Annotated[
    Union[
        Annotated[BodyFilter, Tag("body")],
        Annotated[BodyRegexFilter, Tag("body_regex")],
        Annotated[QueryFilter, Tag("query")],
        Annotated[HeaderFilter, Tag("header")],
    ],
    Discriminator(_filter_shape),
]


class BasicAuth(_RuleModel):
    """HTTP Basic credentials; both fields are configuration templates."""
    scheme: Literal["basic"] = "basic"
    username: str = Field(..., description="Username template")
    password: str = Field(..., description="Password template")


class TokenAuth(_RuleModel):
    """Token credentials; the token is a configuration template."""
    scheme: Literal["token"] = "token"
    token: str = Field(..., description="Token template")


Auth = Annotated[Union[BasicAuth, TokenAuth], Field(discriminator="scheme")]


class Rule(_RuleModel):
    """Model for a filter rule."""
    method: Optional[str] = Field(default=None, description="HTTP method, 'any' matches every method")
    path: Optional[str] = Field(default=None, description="Path template, ${VAR} placeholders allowed")
    origin: str = Field(..., description="Upstream origin template")
    valid: List[ValidityFilter] = Field(default_factory=list, description="Validity filters")
    stream: Optional[bool] = Field(default=None, description="Whether the response should be streamed")
    auth: Optional[Auth] = Field(default=None, description="Credentials injected upstream")

    @field_validator("valid", mode="before")
    @classmethod
    def _valid_defaults_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value
