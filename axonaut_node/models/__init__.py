"""Pydantic models for the Axonaut integration node."""
from axonaut_node.models.endpoint import EndpointDescriptor, HttpMethod
from axonaut_node.models.collection import (
    AggregationState,
    MatchKey,
    OperationPerformed,
    PageResult,
    PaginationStrategy,
    SearchOption,
    UpsertResult,
)

__all__ = [
    "EndpointDescriptor",
    "HttpMethod",
    "AggregationState",
    "MatchKey",
    "OperationPerformed",
    "PageResult",
    "PaginationStrategy",
    "SearchOption",
    "UpsertResult",
]
