"""Resolve (resource, operation, parameters) into calls on the Axonaut core.

Parameters understood by the standard operations:
- id: record identifier (get, update, delete, actions on one record)
- fields: body fields (create, update, upsert, actions with a body)
- match_field / match_value / create_defaults: upsert
- return_all / limit / query: getAll
- filter: search
- any path placeholder, e.g. company_id for nested collections
"""
import string
from typing import Any, Optional

import structlog

from axonaut_node.axonaut.client import AxonautClient, AxonautError
from axonaut_node.axonaut.pagination import PaginationAggregator
from axonaut_node.axonaut.resources import ActionDefinition, ResourceDefinition, get_resource
from axonaut_node.axonaut.search import RecordSearch
from axonaut_node.axonaut.upsert import UpsertCoordinator
from axonaut_node.config import get_settings
from axonaut_node.models import HttpMethod

logger = structlog.get_logger()


class UnsupportedOperationError(AxonautError):
    """The resource does not exist or does not offer the operation."""


class MissingParameterError(AxonautError):
    """A parameter required by the operation was not supplied."""

    def __init__(self, parameter: str, resource: str, operation: str):
        super().__init__(f"Parameter '{parameter}' is required for {resource}.{operation}")
        self.parameter = parameter


class InvalidParameterError(AxonautError):
    """A parameter was supplied with a value the operation cannot use."""

    def __init__(self, parameter: str, value: Any, reason: str):
        super().__init__(f"Invalid value {value!r} for parameter '{parameter}': {reason}")
        self.parameter = parameter
        self.value = value


def _as_limit(value: Any) -> int:
    try:
        limit = int(value)
    except (TypeError, ValueError):
        raise InvalidParameterError("limit", value, "expected a positive integer") from None
    if limit < 1:
        raise InvalidParameterError("limit", value, "expected a positive integer")
    return limit


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


class AxonautNode:
    """Pipeline step executing one Axonaut operation per call."""

    def __init__(
        self,
        client: Optional[AxonautClient] = None,
        aggregator: Optional[PaginationAggregator] = None,
    ):
        self.client = client or AxonautClient()
        self.aggregator = aggregator or PaginationAggregator(self.client)
        self.search = RecordSearch(self.aggregator)
        self.upserts = UpsertCoordinator(self.client, self.aggregator)

    async def execute(
        self,
        resource: str,
        operation: str,
        params: Optional[dict] = None,
    ) -> Any:
        """Run an operation on a resource.

        Args:
            resource: Catalog name, e.g. "company"
            operation: Standard operation or resource action, e.g. "markWon"
            params: Operation parameters

        Returns:
            The API payload, a list of records, an upsert output or
            search options depending on the operation
        """
        definition = get_resource(resource)
        if definition is None:
            raise UnsupportedOperationError(f"Unknown resource '{resource}'")
        if not definition.supports(operation):
            raise UnsupportedOperationError(
                f"Operation '{operation}' is not supported for resource '{resource}'"
            )

        params = params or {}
        logger.info("execute_operation", resource=resource, operation=operation)

        if operation in definition.actions:
            return await self._run_action(definition, operation, definition.actions[operation], params)

        handler = getattr(self, f"_op_{operation}")
        return await handler(definition, params)

    # =========================================================================
    # Standard operations
    # =========================================================================

    async def _op_create(self, definition: ResourceDefinition, params: dict) -> Any:
        path = self._format(definition.create_path or definition.path, params, definition, "create")
        return await self.client.request(HttpMethod.POST, path, body=params.get("fields") or {})

    async def _op_get(self, definition: ResourceDefinition, params: dict) -> Any:
        record_id = self._require(params, "id", definition, "get")
        if definition.has_get_endpoint:
            path = self._format(definition.item_template(), params, definition, "get")
            return await self.client.request(HttpMethod.GET, path)

        # No get-by-id endpoint: scan the (possibly nested) collection
        path = self._format(definition.listing_template(), params, definition, "get")
        return await self.search.find_by_id(
            path,
            record_id,
            id_field=definition.id_field,
            resource_type=definition.resource_type,
        )

    async def _op_getAll(self, definition: ResourceDefinition, params: dict) -> list:
        path = self._format(definition.listing_template(), params, definition, "getAll")
        query = dict(params.get("query") or {})
        records = await self.aggregator.collect_all(HttpMethod.GET, path, query=query)

        if _as_bool(params.get("return_all", False)):
            return records
        limit = _as_limit(params.get("limit") or get_settings().default_list_limit)
        return records[:limit]

    async def _op_update(self, definition: ResourceDefinition, params: dict) -> Any:
        self._require(params, "id", definition, "update")
        path = self._format(definition.item_template(), params, definition, "update")
        return await self.client.request(HttpMethod.PATCH, path, body=params.get("fields") or {})

    async def _op_delete(self, definition: ResourceDefinition, params: dict) -> Any:
        self._require(params, "id", definition, "delete")
        path = self._format(definition.item_template(), params, definition, "delete")
        return await self.client.request(HttpMethod.DELETE, path)

    async def _op_upsert(self, definition: ResourceDefinition, params: dict) -> dict:
        match_value = self._require(params, "match_value", definition, "upsert")
        result = await self.upserts.upsert(
            definition.path,
            params.get("match_field") or definition.match_field,
            match_value,
            patch_fields=params.get("fields") or {},
            create_defaults=params.get("create_defaults") or {},
            id_field=definition.id_field,
        )
        return result.to_output()

    async def _op_search(self, definition: ResourceDefinition, params: dict) -> list[dict]:
        filter_text = params.get("filter")
        if definition.search_parent_path and definition.search_child_path:
            parent_limit = definition.search_parent_limit or get_settings().nested_parent_limit
            options = await self.search.list_nested_options(
                definition.search_parent_path,
                definition.search_child_path,
                definition.name_fields,
                definition.resource_type,
                filter_text=filter_text,
                parent_label_field=definition.parent_label_field,
                parent_limit=parent_limit,
                id_field=definition.id_field,
            )
        else:
            options = await self.search.list_options(
                definition.path,
                definition.name_fields,
                definition.resource_type,
                filter_text=filter_text,
                id_field=definition.id_field,
            )
        return [option.model_dump() for option in options]

    # =========================================================================
    # Resource actions
    # =========================================================================

    async def _run_action(
        self,
        definition: ResourceDefinition,
        operation: str,
        action: ActionDefinition,
        params: dict,
    ) -> Any:
        path = self._format(action.path, params, definition, operation)
        if action.paginate:
            return await self.aggregator.collect_all(action.method, path)
        body = (params.get("fields") or {}) if action.send_fields else {}
        return await self.client.request(action.method, path, body=body)

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _require(params: dict, name: str, definition: ResourceDefinition, operation: str) -> Any:
        value = params.get(name)
        if value is None or value == "":
            raise MissingParameterError(name, definition.name, operation)
        return value

    @classmethod
    def _format(cls, template: str, params: dict, definition: ResourceDefinition, operation: str) -> str:
        """Fill `{placeholders}` of a path template from the parameters."""
        values = {}
        for _, name, _, _ in string.Formatter().parse(template):
            if name:
                values[name] = cls._require(params, name, definition, operation)
        return template.format(**values)
