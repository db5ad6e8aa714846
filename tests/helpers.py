"""Helpers for building mock Axonaut responses."""
import json

import httpx

BASE_URL = "https://axonaut.test/api/v2"
API_KEY = "test-key"


def api_path(request: httpx.Request) -> str:
    """Request path relative to the API base URL."""
    return request.url.path[len("/api/v2"):]


def request_json(request: httpx.Request):
    return json.loads(request.content) if request.content else None


def make_records(count: int, start: int = 1, **extra) -> list[dict]:
    return [{"id": i, **extra} for i in range(start, start + count)]
