"""Axonaut API endpoints for running node operations."""
from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from axonaut_node.axonaut import (
    AxonautClient,
    AxonautNode,
    InvalidParameterError,
    MissingIdentifierError,
    MissingParameterError,
    RecordNotFoundError,
    TransportError,
    UnsupportedOperationError,
)
from axonaut_node.axonaut.resources import find_resources_by_operation, list_resources
from axonaut_node.config import get_settings
from axonaut_node.models import SearchOption

logger = structlog.get_logger()

router = APIRouter()


class ExecuteRequest(BaseModel):
    """Request to run one operation on one resource."""

    resource: str = Field(..., description="Resource name, e.g. 'company'")
    operation: str = Field(..., description="Operation or action, e.g. 'upsert'")
    parameters: dict[str, Any] = Field(default_factory=dict, description="Operation parameters")


class ExecuteResponse(BaseModel):
    """Result of an operation."""

    success: bool
    resource: str
    operation: str
    data: Any = None


class AxonautStatusResponse(BaseModel):
    """Response for Axonaut connection status."""

    connected: bool
    base_url: Optional[str] = None
    message: str


def get_node() -> AxonautNode:
    """Build a node from the configured credentials."""
    settings = get_settings()
    if not settings.has_api_key():
        raise HTTPException(
            status_code=400,
            detail="Axonaut API key not configured. Set AXONAUT_API_KEY in environment.",
        )
    return AxonautNode(AxonautClient())


def _transport_exception(e: TransportError) -> HTTPException:
    error_detail = str(e)
    if e.response_body:
        error_detail = f"{e}: {e.response_body}"
    return HTTPException(status_code=502, detail=error_detail)


@router.get("/axonaut/status", response_model=AxonautStatusResponse)
async def check_axonaut_status() -> AxonautStatusResponse:
    """Check if Axonaut is configured and the API key is accepted."""
    settings = get_settings()

    if not settings.has_api_key():
        return AxonautStatusResponse(
            connected=False,
            message="Axonaut API key not configured. Set AXONAUT_API_KEY in environment.",
        )

    try:
        await AxonautClient().check_credentials()
        return AxonautStatusResponse(
            connected=True,
            base_url=settings.axonaut_base_url,
            message="Connected to Axonaut successfully",
        )
    except TransportError as e:
        logger.error("axonaut_connection_error", error=str(e), status_code=e.status_code)
        return AxonautStatusResponse(
            connected=False,
            base_url=settings.axonaut_base_url,
            message=f"Failed to connect to Axonaut: {str(e)}",
        )


@router.get("/axonaut/resources")
async def get_resources(
    operation: Optional[str] = Query(None, description="Only resources offering this operation"),
) -> list[str]:
    """List the resources the node supports, optionally by operation."""
    if operation:
        return sorted(definition.name for definition in find_resources_by_operation(operation))
    return list_resources()


@router.post("/axonaut/execute", response_model=ExecuteResponse)
async def execute_operation(
    request: ExecuteRequest,
    node: AxonautNode = Depends(get_node),
) -> ExecuteResponse:
    """
    Run a resource operation against Axonaut.

    Lookups that miss return 404 and invalid requests 400. A failed
    exchange with Axonaut, or an upstream record that cannot be addressed,
    returns 502.
    """
    try:
        data = await node.execute(request.resource, request.operation, request.parameters)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (UnsupportedOperationError, MissingParameterError, InvalidParameterError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except MissingIdentifierError as e:
        logger.error("axonaut_execute_error", resource=request.resource, error=str(e))
        raise HTTPException(status_code=502, detail=str(e))
    except TransportError as e:
        logger.error(
            "axonaut_execute_error",
            resource=request.resource,
            operation=request.operation,
            status_code=e.status_code,
            response_body=e.response_body,
        )
        raise _transport_exception(e)

    return ExecuteResponse(
        success=True,
        resource=request.resource,
        operation=request.operation,
        data=data,
    )


@router.get("/axonaut/search/{resource}", response_model=list[SearchOption])
async def search_resource(
    resource: str,
    filter: Optional[str] = Query(None, description="Case-insensitive label filter"),
    node: AxonautNode = Depends(get_node),
) -> list[SearchOption]:
    """Search-as-you-type options for a resource. Never fails on upstream errors."""
    try:
        options = await node.execute(resource, "search", {"filter": filter})
    except UnsupportedOperationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return [SearchOption(**option) for option in options]
