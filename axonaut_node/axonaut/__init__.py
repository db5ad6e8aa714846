"""Axonaut API integration modules."""
from axonaut_node.axonaut.client import AxonautClient, AxonautError, TransportError
from axonaut_node.axonaut.pagination import PaginationAggregator
from axonaut_node.axonaut.search import RecordNotFoundError, RecordSearch
from axonaut_node.axonaut.upsert import MissingIdentifierError, UpsertCoordinator
from axonaut_node.axonaut.dispatcher import (
    AxonautNode,
    InvalidParameterError,
    MissingParameterError,
    UnsupportedOperationError,
)
from axonaut_node.axonaut.resources import RESOURCE_CATALOG, get_resource

__all__ = [
    "AxonautClient",
    "AxonautError",
    "TransportError",
    "PaginationAggregator",
    "RecordNotFoundError",
    "RecordSearch",
    "UpsertCoordinator",
    "MissingIdentifierError",
    "AxonautNode",
    "InvalidParameterError",
    "MissingParameterError",
    "UnsupportedOperationError",
    "RESOURCE_CATALOG",
    "get_resource",
]
