"""In-memory search over Axonaut collections.

The API lacks several lookups the node needs, so they are emulated on top
of the pagination aggregator:

- find_by_id: get-by-id for resources without a "get one" endpoint
- list_options: filtered, labelled listings for search-as-you-type
- find_by_field: first record whose field equals a value (upsert matching)

Every lookup materializes the full collection; the first match in
iteration order wins.
"""
import unicodedata
from typing import Any, Callable, Iterable, Optional, Union

import structlog

from axonaut_node.axonaut.client import AxonautError, TransportError
from axonaut_node.axonaut.pagination import PaginationAggregator
from axonaut_node.models import HttpMethod, SearchOption

logger = structlog.get_logger()

LabelBuilder = Callable[[dict], str]
NameFieldSpec = Union[str, list[str], LabelBuilder]


class RecordNotFoundError(AxonautError):
    """A lookup by identifier found no record in the collection."""

    def __init__(self, identifier: Any, endpoint: str, resource_type: Optional[str] = None):
        what = resource_type or "Record"
        super().__init__(f"{what} with ID {identifier} not found in {endpoint}")
        self.identifier = identifier
        self.endpoint = endpoint
        self.resource_type = resource_type


def _text(value: Any) -> str:
    if value is None or value is False:
        return ""
    return str(value)


def build_label(
    record: dict,
    name_fields: NameFieldSpec,
    resource_type: str,
    id_field: str = "id",
) -> str:
    """Build the display label of a record.

    `name_fields` is a single field, an ordered list of fields joined with
    spaces (empty values skipped), or a callable. A blank result falls back
    to "<resource_type> <id>".
    """
    if callable(name_fields):
        label = name_fields(record)
    elif isinstance(name_fields, str):
        label = _text(record.get(name_fields))
    else:
        parts = (_text(record.get(name)) for name in name_fields)
        label = " ".join(part for part in parts if part.strip())

    if not label.strip():
        label = f"{resource_type} {_text(record.get(id_field))}"
    return label


def label_matches(label: str, filter_text: Optional[str]) -> bool:
    """Case-insensitive substring match; no filter matches everything."""
    if not filter_text:
        return True
    return filter_text.lower() in label.lower()


def collation_key(label: str) -> str:
    """Accent- and case-insensitive key, so "Émile" sorts with the E's."""
    decomposed = unicodedata.normalize("NFKD", label)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def sort_options(options: list[SearchOption]) -> list[SearchOption]:
    """Sort ascending by label, ignoring accents and case."""
    return sorted(options, key=lambda option: (collation_key(option.name), option.name))


def find_by_field(records: Iterable[Any], field: str, value: Any) -> Optional[dict]:
    """Return the first record whose `field` strictly equals `value`, or None."""
    for record in records:
        if isinstance(record, dict) and field in record and record[field] == value:
            return record
    return None


def find_by_id_in(records: Iterable[Any], id_field: str, target_id: Any) -> Optional[dict]:
    """Return the first record whose stringified `id_field` equals `target_id`."""
    target = str(target_id)
    for record in records:
        if not isinstance(record, dict) or record.get(id_field) is None:
            continue
        if str(record[id_field]) == target:
            return record
    return None


def timetracking_label(record: dict) -> str:
    """Label a timetracking as "<hours>h - <date> (<workforce>) - <comment>"."""
    hours = f"{record['hours']}h" if record.get("hours") else ""
    date = _text(record.get("startDate")).split(" ")[0]
    comment = _text(record.get("comment"))
    workforce = ""
    if isinstance(record.get("workforce"), dict):
        person = record["workforce"]
        workforce = f"{_text(person.get('first_name'))} {_text(person.get('last_name'))}".strip()

    name = hours
    if date:
        name += (" - " if name else "") + date
    if workforce:
        name += (" (" if name else "(") + workforce + ")"
    if comment:
        name += (" - " if name else "") + comment
    return name


def payment_label(record: dict) -> str:
    """Label a payment as "<amount> - <date> - <reference>"."""
    parts = [
        _text(record.get("amount")),
        _text(record.get("date")),
        _text(record.get("reference")),
    ]
    return " - ".join(part for part in parts if part)


class RecordSearch:
    """Lookups over full collections fetched through the aggregator."""

    def __init__(self, aggregator: PaginationAggregator):
        self.aggregator = aggregator

    async def find_by_id(
        self,
        path: str,
        target_id: Any,
        id_field: str = "id",
        resource_type: Optional[str] = None,
    ) -> dict:
        """Get a single record when the API has no get-by-id endpoint.

        Args:
            path: Collection path to scan, e.g. "/bank-transactions"
            target_id: Identifier to look for (compared as strings)
            id_field: Identifier field of the records
            resource_type: Used in the error message only

        Returns:
            The first matching record

        Raises:
            RecordNotFoundError: when no record matches after a full scan
            TransportError: when the collection cannot be fetched
        """
        records = await self.aggregator.collect_all(HttpMethod.GET, path)
        record = find_by_id_in(records, id_field, target_id)
        if record is None:
            logger.info("record_not_found", endpoint=path, identifier=str(target_id))
            raise RecordNotFoundError(target_id, path, resource_type)
        return record

    async def find_by_field_in(self, path: str, field: str, value: Any) -> Optional[dict]:
        """Fetch a collection and return its first record with `field == value`."""
        records = await self.aggregator.collect_all(HttpMethod.GET, path)
        return find_by_field(records, field, value)

    async def list_options(
        self,
        path: str,
        name_fields: NameFieldSpec,
        resource_type: str,
        filter_text: Optional[str] = None,
        id_field: str = "id",
    ) -> list[SearchOption]:
        """List labelled options for interactive search.

        Transport failures yield an empty list so the form is never blocked.
        """
        try:
            records = await self.aggregator.collect_all(HttpMethod.GET, path)
        except TransportError as e:
            logger.warning(
                "list_options_failed",
                endpoint=path,
                status_code=e.status_code,
                error=str(e),
            )
            return []

        options = []
        for record in records:
            if not isinstance(record, dict):
                continue
            label = build_label(record, name_fields, resource_type, id_field)
            if label_matches(label, filter_text):
                options.append(SearchOption(name=label, value=_text(record.get(id_field))))

        return sort_options(options)

    async def list_nested_options(
        self,
        parent_path: str,
        child_path_template: str,
        name_fields: NameFieldSpec,
        resource_type: str,
        filter_text: Optional[str] = None,
        parent_label_field: str = "name",
        parent_limit: Optional[int] = None,
        id_field: str = "id",
    ) -> list[SearchOption]:
        """List options of a collection that only exists under a parent.

        Addresses and documents live under companies, so every parent's
        child collection is listed and labelled "<label> (<parent name>)".
        A child collection that cannot be read is skipped.

        Args:
            parent_path: Parent collection, e.g. "/companies"
            child_path_template: Child path with a `{parent_id}` placeholder
            parent_limit: Only the first N parents are scanned
        """
        try:
            parents = await self.aggregator.collect_all(HttpMethod.GET, parent_path)
        except TransportError as e:
            logger.warning("list_options_failed", endpoint=parent_path, error=str(e))
            return []

        if parent_limit is not None:
            parents = parents[:parent_limit]

        options = []
        for parent in parents:
            if not isinstance(parent, dict):
                continue
            child_path = child_path_template.format(parent_id=parent.get(id_field))
            try:
                children = await self.aggregator.collect_all(HttpMethod.GET, child_path)
            except TransportError as e:
                logger.debug("nested_collection_skipped", endpoint=child_path, status_code=e.status_code)
                continue

            for child in children:
                if not isinstance(child, dict):
                    continue
                label = build_label(child, name_fields, resource_type, id_field)
                label = f"{label} ({_text(parent.get(parent_label_field))})"
                if label_matches(label, filter_text):
                    options.append(SearchOption(name=label, value=_text(child.get(id_field))))

        return sort_options(options)
