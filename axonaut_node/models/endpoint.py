"""Endpoint descriptors for calls against the Axonaut REST API.

A descriptor is built fresh by the caller for every request and never
mutated afterwards. Pagination and other per-call variations produce a new
descriptor through `with_query` / `with_headers`.
"""
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class HttpMethod(str, Enum):
    """HTTP methods accepted by the Axonaut API."""
    GET = "GET"
    POST = "POST"
    PATCH = "PATCH"
    PUT = "PUT"
    DELETE = "DELETE"


class EndpointDescriptor(BaseModel):
    """A fully-formed request against a single Axonaut endpoint."""

    model_config = ConfigDict(frozen=True)

    method: HttpMethod = Field(HttpMethod.GET, description="HTTP method")
    path: str = Field(..., description="Path relative to the API base URL")
    body: dict[str, Any] = Field(default_factory=dict, description="JSON body fields")
    query: dict[str, Any] = Field(default_factory=dict, description="Query string parameters")
    headers: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra request headers (e.g. header-based pagination)",
    )

    def with_query(self, **params: Any) -> "EndpointDescriptor":
        """Return a copy with `params` merged into the query string."""
        return self.model_copy(update={"query": {**self.query, **params}})

    def with_headers(self, **headers: Any) -> "EndpointDescriptor":
        """Return a copy with extra request headers."""
        return self.model_copy(update={"headers": {**self.headers, **headers}})

    def without_query(self, *names: str) -> "EndpointDescriptor":
        """Return a copy with the given query parameters removed."""
        query = {k: v for k, v in self.query.items() if k not in names}
        return self.model_copy(update={"query": query})

    @property
    def has_body(self) -> bool:
        return bool(self.body)
