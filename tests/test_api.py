"""Tests for the Axonaut HTTP endpoints.

Validates that the router:
- Runs node operations and wraps their results
- Maps lookup misses, bad requests and upstream failures to status codes
- Keeps interactive search working when Axonaut fails
"""
import httpx
import pytest
from fastapi.testclient import TestClient

from axonaut_node.api.axonaut import get_node
from axonaut_node.axonaut import AxonautNode
from axonaut_node.main import app


@pytest.fixture
def api(node):
    """Test client whose node talks to the fake Axonaut API."""
    app.dependency_overrides[get_node] = lambda: node
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def failing_api(make_client):
    """Test client whose node only ever gets `status` back from Axonaut."""

    def factory(status: int, body: dict = None) -> TestClient:
        client = make_client(lambda request: httpx.Response(status, json=body or {}))
        app.dependency_overrides[get_node] = lambda: AxonautNode(client)
        return TestClient(app)

    yield factory
    app.dependency_overrides.clear()


# =========================================================================
# Service endpoints
# =========================================================================


def test_health():
    """Health endpoint responds without credentials."""
    response = TestClient(app).get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_resources(api):
    """All cataloged resources are listed."""
    response = api.get("/api/axonaut/resources")

    assert response.status_code == 200
    assert "company" in response.json()
    assert "bank-transaction" in response.json()


def test_resources_by_operation(api):
    """Resources can be filtered by the operation or action they offer."""
    upsertable = api.get("/api/axonaut/resources", params={"operation": "upsert"}).json()
    won = api.get("/api/axonaut/resources", params={"operation": "markWon"}).json()

    assert upsertable == ["company", "employee", "opportunity", "product", "project"]
    assert won == ["opportunity"]


# =========================================================================
# Execute
# =========================================================================


def test_execute_upsert(api, fake_api):
    """An upsert runs through the node and reports its branch."""
    fake_api.collections["/companies"] = []

    response = api.post("/api/axonaut/execute", json={
        "resource": "company",
        "operation": "upsert",
        "parameters": {"match_value": "Acme", "fields": {"city": "Lyon"}},
    })

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["operationPerformed"] == "created"
    assert fake_api.writes == [("POST", "/companies", {"name": "Acme", "city": "Lyon"})]


def test_execute_not_found(api, fake_api):
    """A lookup miss maps to 404."""
    fake_api.collections["/bank-transactions"] = [{"id": 1}]

    response = api.post("/api/axonaut/execute", json={
        "resource": "bank-transaction",
        "operation": "get",
        "parameters": {"id": "99"},
    })

    assert response.status_code == 404


def test_execute_bad_request(api):
    """Unsupported operations map to 400."""
    response = api.post("/api/axonaut/execute", json={
        "resource": "company",
        "operation": "explode",
    })

    assert response.status_code == 400


def test_execute_invalid_limit(api, fake_api):
    """A non-numeric getAll limit maps to 400, not 500."""
    fake_api.collections["/companies"] = []

    response = api.post("/api/axonaut/execute", json={
        "resource": "company",
        "operation": "getAll",
        "parameters": {"limit": "many"},
    })

    assert response.status_code == 400
    assert "limit" in response.json()["detail"]


def test_execute_upsert_match_without_id(api, fake_api):
    """A matched record Axonaut returned without an id maps to 502."""
    fake_api.collections["/companies"] = [{"name": "Acme"}]

    response = api.post("/api/axonaut/execute", json={
        "resource": "company",
        "operation": "upsert",
        "parameters": {"match_value": "Acme"},
    })

    assert response.status_code == 502
    assert fake_api.writes == []


def test_execute_upstream_error(failing_api):
    """Axonaut failures map to 502 with the upstream status."""
    response = failing_api(401, {"error": "bad key"}).post("/api/axonaut/execute", json={
        "resource": "company",
        "operation": "get",
        "parameters": {"id": 1},
    })

    assert response.status_code == 502
    assert "401" in response.json()["detail"]


# =========================================================================
# Search
# =========================================================================


def test_search(api, fake_api):
    """Options are labelled, with a fallback for nameless records."""
    fake_api.collections["/employees"] = [
        {"id": 1, "firstname": "Ada", "lastname": "Lovelace"},
        {"id": 2},
    ]

    response = api.get("/api/axonaut/search/employee")

    assert response.json() == [
        {"name": "Ada Lovelace", "value": "1"},
        {"name": "Employee 2", "value": "2"},
    ]


def test_search_swallows_upstream_errors(failing_api):
    """Search returns no options when Axonaut fails."""
    response = failing_api(500).get("/api/axonaut/search/company", params={"filter": "ac"})

    assert response.status_code == 200
    assert response.json() == []
