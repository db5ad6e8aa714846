"""Collect every record of a paged Axonaut collection.

Axonaut endpoints disagree on how pagination is requested: some read
`page`/`per_page` from request headers, others from the query string, and
a few ignore pagination altogether. The aggregator discovers the convention
per call with an ordered, switch-once fallback:

    header  --fails-->  query  --fails-->  single unpaginated call

Once header pagination fails it is not tried again for the rest of the
call. A failure of the single-shot call is the only error surfaced.
"""
from typing import Any, Optional, Union

import structlog

from axonaut_node.axonaut.client import AxonautClient, TransportError
from axonaut_node.config import get_settings
from axonaut_node.models import (
    AggregationState,
    EndpointDescriptor,
    HttpMethod,
    PageResult,
    PaginationStrategy,
)

logger = structlog.get_logger()

# Collection envelope: {"data": [...], ...}
ENVELOPE_KEY = "data"


def normalize_page(payload: Any, per_page: int) -> PageResult:
    """Turn a raw response payload into a page of records.

    A bare list is a page, an envelope yields its nested list, and any other
    object is a single record (which also ends pagination).
    """
    if payload is None or payload == {}:
        return PageResult(records=[], is_terminal=True)

    if isinstance(payload, list):
        records = payload
    elif isinstance(payload, dict) and isinstance(payload.get(ENVELOPE_KEY), list):
        records = payload[ENVELOPE_KEY]
    else:
        return PageResult(records=[payload], is_terminal=True)

    return PageResult(records=records, is_terminal=len(records) < per_page)


class PaginationAggregator:
    """Repeatedly calls the request executor until a collection is exhausted."""

    def __init__(
        self,
        client: AxonautClient,
        page_size: Optional[int] = None,
        max_pages: Optional[int] = None,
    ):
        settings = get_settings()
        self.client = client
        self.page_size = page_size or settings.default_page_size
        self.max_pages = max_pages or settings.max_pages

    async def collect_all(
        self,
        method: Union[HttpMethod, str],
        path: str,
        body: Optional[dict] = None,
        query: Optional[dict] = None,
    ) -> list[Any]:
        """Fetch all pages and concatenate their records in arrival order.

        Args:
            method: HTTP method, normally GET
            path: Collection path, e.g. "/companies"
            body: Optional JSON body sent with every page request
            query: Base query; a `limit` entry sets the page size

        Returns:
            Every record, in page-arrival order, without deduplication

        Raises:
            TransportError: only when the final unpaginated attempt fails
        """
        base = EndpointDescriptor(
            method=HttpMethod(method),
            path=path,
            body=body or {},
            query=query or {},
        )
        limit = base.query.get("limit")
        state = AggregationState(per_page=int(limit) if limit else self.page_size)
        base = base.without_query("limit")

        while True:
            page = await self._fetch_page(base, state)

            if state.strategy == PaginationStrategy.SINGLE:
                # The unpaginated payload is the whole collection
                state.records = list(page.records)
                break

            state.accept(page)

            if not state.should_continue(page, self.max_pages):
                if not page.is_terminal and page.size == state.per_page:
                    logger.warning(
                        "pagination_safety_limit_reached",
                        endpoint=path,
                        pages=state.page,
                        per_page=state.per_page,
                        records=len(state.records),
                    )
                break

            state.page += 1

        logger.debug(
            "pagination_complete",
            endpoint=path,
            strategy=state.strategy.value,
            pages=state.page,
            calls=state.calls,
            records=len(state.records),
        )
        return state.records

    async def _fetch_page(
        self,
        base: EndpointDescriptor,
        state: AggregationState,
    ) -> PageResult:
        if state.strategy == PaginationStrategy.HEADER:
            try:
                return await self._call(
                    base.with_headers(page=state.page, per_page=state.per_page),
                    state,
                )
            except TransportError as e:
                logger.info(
                    "pagination_strategy_fallback",
                    endpoint=base.path,
                    from_strategy=PaginationStrategy.HEADER.value,
                    to_strategy=PaginationStrategy.QUERY.value,
                    page=state.page,
                    status_code=e.status_code,
                )
                state.strategy = PaginationStrategy.QUERY

        try:
            return await self._call(
                base.with_query(page=state.page, per_page=state.per_page),
                state,
            )
        except TransportError as e:
            logger.warning(
                "pagination_strategy_fallback",
                endpoint=base.path,
                from_strategy=PaginationStrategy.QUERY.value,
                to_strategy=PaginationStrategy.SINGLE.value,
                page=state.page,
                status_code=e.status_code,
            )
            state.strategy = PaginationStrategy.SINGLE

        return await self._call(base, state)

    async def _call(
        self,
        descriptor: EndpointDescriptor,
        state: AggregationState,
    ) -> PageResult:
        state.calls += 1
        payload = await self.client.execute(descriptor)
        return normalize_page(payload, state.per_page)
