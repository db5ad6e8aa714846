"""Create-or-update emulation for Axonaut collections.

The API has no native upsert. The coordinator scans the collection for the
first record whose match field equals the expected value, then either
PATCHes that record or POSTs a new one. Exactly one write happens per call.

Two concurrent upserts for the same value can both miss and both create a
record: there is no lock or idempotency key on the Axonaut side.
"""
from typing import Any, Optional

import structlog

from axonaut_node.axonaut.client import AxonautClient, AxonautError
from axonaut_node.axonaut.pagination import PaginationAggregator
from axonaut_node.axonaut.search import find_by_field
from axonaut_node.models import HttpMethod, MatchKey, OperationPerformed, UpsertResult

logger = structlog.get_logger()


class MissingIdentifierError(AxonautError):
    """The matched record carries no identifier to address the update to."""

    def __init__(self, endpoint: str, match_field: str, match_value: Any, id_field: str):
        super().__init__(
            f"Record matching {match_field}={match_value!r} in {endpoint} has no '{id_field}' identifier"
        )
        self.endpoint = endpoint
        self.id_field = id_field


def _as_record(payload: Any) -> dict:
    if payload is None:
        return {}
    if isinstance(payload, dict):
        return payload
    return {"data": payload}


class UpsertCoordinator:
    """Search, then create or update, keyed by a caller-chosen field."""

    def __init__(self, client: AxonautClient, aggregator: PaginationAggregator):
        self.client = client
        self.aggregator = aggregator

    async def upsert(
        self,
        collection_path: str,
        match_field: str,
        match_value: Any,
        patch_fields: Optional[dict] = None,
        create_defaults: Optional[dict] = None,
        id_field: str = "id",
    ) -> UpsertResult:
        """Update the first record matching `match_field == match_value`, or create one.

        Args:
            collection_path: Collection path, e.g. "/companies"
            match_field: Field identifying the logical record
            match_value: Expected value (strict equality)
            patch_fields: Fields written on update and on create
            create_defaults: Extra fields only written on create
            id_field: Identifier field used to address the matched record

        Returns:
            The API's record and which branch was taken

        Raises:
            TransportError: unchanged from the failing call; nothing is retried
        """
        patch_fields = patch_fields or {}
        match = MatchKey(field=match_field, value=match_value)

        records = await self.aggregator.collect_all(HttpMethod.GET, collection_path)
        existing = find_by_field(records, match_field, match_value)

        if existing is not None:
            record_id = existing.get(id_field)
            if record_id is None or record_id == "":
                raise MissingIdentifierError(collection_path, match_field, match_value, id_field)
            logger.info(
                "upsert_update",
                endpoint=collection_path,
                match_field=match_field,
                record_id=record_id,
            )
            response = await self.client.request(
                HttpMethod.PATCH,
                f"{collection_path}/{record_id}",
                body=patch_fields,
            )
            return UpsertResult(
                record=_as_record(response),
                operation_performed=OperationPerformed.UPDATED,
                match=match,
            )

        body = {**(create_defaults or {}), match_field: match_value, **patch_fields}
        logger.info("upsert_create", endpoint=collection_path, match_field=match_field)
        response = await self.client.request(HttpMethod.POST, collection_path, body=body)
        return UpsertResult(
            record=_as_record(response),
            operation_performed=OperationPerformed.CREATED,
            match=match,
        )
