"""Shared fixtures: Axonaut clients backed by an in-process mock transport."""
from typing import Callable

import httpx
import pytest

from axonaut_node.axonaut import AxonautClient, AxonautNode, PaginationAggregator
from helpers import API_KEY, BASE_URL, api_path, request_json


@pytest.fixture
def make_client() -> Callable[[Callable], AxonautClient]:
    """Build a client whose requests are answered by `handler`."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> AxonautClient:
        return AxonautClient(
            base_url=BASE_URL,
            api_key=API_KEY,
            transport=httpx.MockTransport(handler),
        )

    return factory


@pytest.fixture
def make_aggregator(make_client):
    def factory(handler, page_size: int = 100, max_pages: int = 50) -> PaginationAggregator:
        return PaginationAggregator(make_client(handler), page_size=page_size, max_pages=max_pages)

    return factory


class FakeAxonaut:
    """A tiny Axonaut stand-in serving unpaginated collections.

    Header pagination is honoured; records are served from `collections`
    keyed by path. Writes are recorded and echoed back with an id.
    """

    def __init__(self, collections: dict[str, list[dict]] = None, failing: set[str] = None):
        self.collections = collections or {}
        self.failing = failing or set()
        self.requests: list[httpx.Request] = []
        self.writes: list[tuple[str, str, dict]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = api_path(request)

        if path in self.failing:
            return httpx.Response(500, json={"error": "server error"})

        if request.method in ("POST", "PATCH", "PUT", "DELETE"):
            body = request_json(request) or {}
            self.writes.append((request.method, path, body))
            if request.method == "DELETE":
                return httpx.Response(204)
            record_id = path.rsplit("/", 1)[-1] if request.method != "POST" else 999
            return httpx.Response(200, json={"id": record_id, **body})

        if path in self.collections:
            records = self.collections[path]
            page = int(request.headers.get("page", 1))
            per_page = int(request.headers.get("per_page", len(records) or 1))
            start = (page - 1) * per_page
            return httpx.Response(200, json=records[start:start + per_page])

        for collection_path, records in self.collections.items():
            prefix = collection_path + "/"
            if path.startswith(prefix):
                record_id = path[len(prefix):]
                for record in records:
                    if str(record.get("id")) == record_id:
                        return httpx.Response(200, json=record)

        return httpx.Response(404, json={"error": "not found"})


@pytest.fixture
def fake_api() -> FakeAxonaut:
    return FakeAxonaut()


@pytest.fixture
def node(make_client, fake_api) -> AxonautNode:
    client = make_client(fake_api)
    return AxonautNode(client, PaginationAggregator(client, page_size=100))
