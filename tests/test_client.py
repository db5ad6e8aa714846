"""Tests for the Axonaut request executor."""
import httpx
import pytest

from axonaut_node.axonaut import AxonautClient, TransportError
from axonaut_node.models import EndpointDescriptor, HttpMethod
from helpers import API_KEY, api_path, request_json


# =========================================================================
# Request building
# =========================================================================


class TestExecute:
    """A descriptor becomes exactly one authenticated HTTP request."""

    @pytest.mark.asyncio
    async def test_sends_auth_and_json_headers(self, make_client):
        """Requests carry the API key and JSON headers."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"id": 1})

        client = make_client(handler)
        result = await client.execute(EndpointDescriptor(path="/companies/1"))

        assert result == {"id": 1}
        assert len(seen) == 1
        request = seen[0]
        assert request.method == "GET"
        assert api_path(request) == "/companies/1"
        assert request.headers["userApiKey"] == API_KEY
        assert request.headers["Accept"] == "application/json"
        assert request.headers["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_empty_body_is_not_sent(self, make_client):
        """An empty body mapping sends no payload."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(204)

        client = make_client(handler)
        result = await client.execute(
            EndpointDescriptor(method=HttpMethod.DELETE, path="/companies/1")
        )

        assert result is None
        assert seen[0].content == b""

    @pytest.mark.asyncio
    async def test_body_query_and_extra_headers(self, make_client):
        """Body, query and extra headers are all forwarded."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(201, json={"id": 9})

        client = make_client(handler)
        descriptor = EndpointDescriptor(
            method=HttpMethod.POST,
            path="/companies",
            body={"name": "Acme"},
            query={"type": "customer"},
            headers={"page": 2},
        )
        await client.execute(descriptor)

        request = seen[0]
        assert request_json(request) == {"name": "Acme"}
        assert request.url.params["type"] == "customer"
        assert request.headers["page"] == "2"

    @pytest.mark.asyncio
    async def test_request_builds_descriptor(self, make_client):
        """request() is a shortcut around execute()."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"ok": True})

        client = make_client(handler)
        await client.request("PATCH", "/opportunities/4/won")

        assert seen[0].method == "PATCH"
        assert api_path(seen[0]) == "/opportunities/4/won"


# =========================================================================
# Failures
# =========================================================================


class TestTransportErrors:
    """Every failure surfaces as a TransportError."""

    @pytest.mark.asyncio
    async def test_non_2xx_carries_status_and_body(self, make_client):
        """Error responses keep method, path, status and body."""
        client = make_client(lambda request: httpx.Response(422, json={"error": "invalid"}))

        with pytest.raises(TransportError) as exc_info:
            await client.request("POST", "/companies", body={"name": ""})

        error = exc_info.value
        assert error.status_code == 422
        assert error.response_body == {"error": "invalid"}
        assert error.method == "POST"
        assert error.path == "/companies"

    @pytest.mark.asyncio
    async def test_network_failure(self, make_client):
        """Connection errors are wrapped without a status."""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)

        with pytest.raises(TransportError) as exc_info:
            await client.request("GET", "/companies")

        assert exc_info.value.status_code is None
        assert "connection refused" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_malformed_json(self, make_client):
        """A 2xx body that is not JSON is a transport error."""
        client = make_client(lambda request: httpx.Response(200, content=b"<html>oops</html>"))

        with pytest.raises(TransportError) as exc_info:
            await client.request("GET", "/companies")

        assert exc_info.value.status_code == 200
        assert exc_info.value.response_body == "<html>oops</html>"

    @pytest.mark.asyncio
    async def test_text_error_body(self, make_client):
        """Non-JSON error bodies are kept as text."""
        client = make_client(lambda request: httpx.Response(503, content=b"unavailable"))

        with pytest.raises(TransportError) as exc_info:
            await client.request("GET", "/companies")

        assert exc_info.value.response_body == "unavailable"
        assert exc_info.value.to_dict()["status_code"] == 503


# =========================================================================
# Setup
# =========================================================================


class TestConfiguration:
    """Client construction and credential checks."""

    def test_missing_api_key_is_rejected(self, monkeypatch):
        """A client cannot be built without a key."""
        monkeypatch.setattr("axonaut_node.axonaut.client.get_settings", _settings_without_key)

        with pytest.raises(ValueError):
            AxonautClient()

    def test_base_url_trailing_slash_is_dropped(self):
        """Base URLs are normalized."""
        client = AxonautClient(base_url="https://axonaut.test/api/v2/", api_key="k")
        assert client.base_url == "https://axonaut.test/api/v2"

    @pytest.mark.asyncio
    async def test_check_credentials_calls_me(self, make_client):
        """The credential check fetches /me."""
        seen = []

        def handler(request):
            seen.append(api_path(request))
            return httpx.Response(200, json={"id": 3, "email": "me@example.com"})

        result = await make_client(handler).check_credentials()

        assert seen == ["/me"]
        assert result["email"] == "me@example.com"


def _settings_without_key():
    from axonaut_node.config import Settings

    return Settings(axonaut_api_key="")
