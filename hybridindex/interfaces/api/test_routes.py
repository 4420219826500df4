"""Tests for API Routes."""

import logging
from collections.abc import Generator
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from hybridindex.config import Settings, get_settings
from hybridindex.domains.indexing import ConfigStore, InMemoryRepository, ItemStore
from hybridindex.domains.search import HybridSearchEngine
from hybridindex.domains.sync import InMemoryCatalog, SyncPipeline, TableSource

from . import main
from .deps import get_config_store, get_item_store, get_search_engine, get_sync_pipeline


class FixedEmbedder:
    """Embedding provider returning one vector for every text."""

    async def embed(self, text: str) -> list[float]:
        return [0.6, 0.8]


@pytest.fixture
def repo() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture
def catalog() -> InMemoryCatalog:
    return InMemoryCatalog(
        tables=[
            TableSource(
                id="t1", data_source_id="sales", table_name="orders", description="Customer orders"
            )
        ]
    )


@pytest.fixture
def client(
    repo: InMemoryRepository,
    catalog: InMemoryCatalog,
    monkeypatch: pytest.MonkeyPatch,
) -> Generator[TestClient, None, None]:
    """Create a test client backed by an in-memory repository."""
    monkeypatch.setattr(main, "init_services", AsyncMock())
    monkeypatch.setattr(main, "cleanup_services", AsyncMock())

    app = main.create_app()
    embedder = FixedEmbedder()
    configs = ConfigStore(repo)

    app.dependency_overrides[get_settings] = lambda: Settings()
    app.dependency_overrides[get_item_store] = lambda: ItemStore(repo, embedder)
    app.dependency_overrides[get_config_store] = lambda: configs
    app.dependency_overrides[get_search_engine] = lambda: HybridSearchEngine.from_repository(
        repo, embedder=embedder, configs=configs, search_log=repo
    )
    app.dependency_overrides[get_sync_pipeline] = lambda: SyncPipeline(repo, catalog, embedder)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def _create(client: TestClient, content: str, **extra) -> dict:
    response = client.post("/api/items", json={"type": "CUSTOM", "content": content, **extra})
    assert response.status_code == 201
    return response.json()


def test_health_endpoint(client: TestClient) -> None:
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "hybridindex"


def test_request_id_header(client: TestClient) -> None:
    """Test that responses echo or generate a request ID."""
    response = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert response.headers["x-request-id"] == "abc-123"
    assert "x-response-time-ms" in response.headers

    assert client.get("/health").headers["x-request-id"]


def test_404_for_unknown_routes(client: TestClient) -> None:
    """Test 404 for non-existent routes."""
    response = client.get("/api/nonexistent")
    assert response.status_code == 404


def test_item_crud(client: TestClient) -> None:
    """Test create, read, update and delete of an item."""
    created = _create(client, "monthly revenue by region", data_source_id="sales")
    assert created["token_count"] == 4
    assert created["needs_embedding"] is True
    assert "embedding" not in created

    item_id = created["id"]
    assert client.get(f"/api/items/{item_id}").json()["content"] == "monthly revenue by region"

    updated = client.put(f"/api/items/{item_id}", json={"content": "weekly revenue"}).json()
    assert updated["content"] == "weekly revenue"
    assert updated["content_hash"] != created["content_hash"]

    assert client.delete(f"/api/items/{item_id}").status_code == 204
    assert client.get(f"/api/items/{item_id}").status_code == 404


def test_missing_item_error_body(client: TestClient) -> None:
    """Test typed errors are rendered with their code and request id."""
    response = client.get("/api/items/nope", headers={"X-Request-ID": "req-1"})

    assert response.status_code == 404
    body = response.json()
    assert body["error"]["code"] == "NOT_FOUND"
    assert body["request_id"] == "req-1"


def test_list_items_filters(client: TestClient) -> None:
    """Test list filtering and paging."""
    _create(client, "first item", data_source_id="sales")
    _create(client, "second item", data_source_id="sales")
    _create(client, "other scope", data_source_id="hr")

    data = client.get("/api/items", params={"data_source_id": "sales", "limit": 1}).json()

    assert data["total"] == 2
    assert len(data["items"]) == 1


def test_embed_item(client: TestClient) -> None:
    """Test single-item embedding clears the stale flag."""
    item_id = _create(client, "find inactive users")["id"]

    response = client.post(f"/api/items/{item_id}/embed")

    assert response.json() == {"id": item_id, "stored": True}
    item = client.get(f"/api/items/{item_id}").json()
    assert item["has_embedding"] is True
    assert item["needs_embedding"] is False


def test_batch_embed(client: TestClient) -> None:
    """Test batch embedding counts."""
    _create(client, "one")
    _create(client, "two")

    first = client.post("/api/items/batch-embed", json={}).json()
    second = client.post("/api/items/batch-embed", json={}).json()

    assert first["success"] == 2
    assert second["success"] == 0
    assert second["failed"] == 0


def test_search_sparse(client: TestClient) -> None:
    """Test search endpoint returns ranked results."""
    _create(client, "monthly revenue by region")
    _create(client, "find inactive users")

    response = client.post("/api/search", json={"query": "revenue", "search_method": "SPARSE"})

    assert response.status_code == 200
    data = response.json()
    assert data["total_count"] == 1
    assert data["search_method"] == "SPARSE"
    assert data["results"][0]["content"] == "monthly revenue by region"
    assert data["results"][0]["sparse_score"] > 0
    assert response.headers["x-search-method"] == "SPARSE"
    assert response.headers["x-result-count"] == "1"


def test_search_access_log_carries_outcome(
    client: TestClient, caplog: pytest.LogCaptureFixture
) -> None:
    """Test the access log line names the search method and result count."""
    _create(client, "find inactive users")
    caplog.set_level(logging.INFO, logger="hybridindex.interfaces.api.middleware")

    client.post(
        "/api/search",
        json={"query": "inactive", "search_method": "SPARSE"},
        headers={"X-Request-ID": "req-9"},
    )

    (line,) = [r.getMessage() for r in caplog.records if "/api/search" in r.getMessage()]
    assert "request_id=req-9" in line
    assert "method=SPARSE results=1" in line


def test_non_search_requests_have_no_search_headers(client: TestClient) -> None:
    response = client.get("/health")
    assert "x-search-method" not in response.headers


def test_search_validation(client: TestClient) -> None:
    """Test request validation on the search body."""
    assert client.post("/api/search", json={"query": ""}).status_code == 422
    assert client.post("/api/search", json={"query": "x", "top_k": 200}).status_code == 422


def test_search_context(client: TestClient) -> None:
    """Test prompt context assembly."""
    _create(client, "monthly revenue by region")

    response = client.post(
        "/api/search/context", json={"question": "revenue", "method": "SPARSE"}
    )

    assert response.status_code == 200
    assert response.json()["context"] == "monthly revenue by region"


def test_config_crud(client: TestClient) -> None:
    """Test config endpoints including the unique name conflict."""
    response = client.post("/api/configs", json={"name": "sales-default", "top_k": 5})
    assert response.status_code == 201
    config_id = response.json()["id"]

    conflict = client.post("/api/configs", json={"name": "sales-default"})
    assert conflict.status_code == 409
    assert conflict.json()["error"]["code"] == "STORAGE_CONFLICT"

    updated = client.put(f"/api/configs/{config_id}", json={"rrf_k": 30}).json()
    assert updated["rrf_k"] == 30
    assert updated["top_k"] == 5

    assert len(client.get("/api/configs").json()) == 1
    assert client.delete(f"/api/configs/{config_id}").status_code == 204
    assert client.get(f"/api/configs/{config_id}").status_code == 404


def test_sync_item(client: TestClient) -> None:
    """Test syncing one table twice is idempotent."""
    body = {"source_id": "t1", "type": "TABLE"}

    first = client.post("/api/sync/item", json=body).json()
    second = client.post("/api/sync/item", json=body).json()

    assert first["outcome"] == "CREATED"
    assert second["outcome"] == "UNCHANGED"


def test_sync_custom_rejected(client: TestClient) -> None:
    """Test CUSTOM items cannot be synced."""
    response = client.post("/api/sync/item", json={"source_id": "x", "type": "CUSTOM"})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "SYNC_SOURCE_UNSUPPORTED"


def test_sync_data_source(client: TestClient) -> None:
    """Test scope sync report."""
    response = client.post("/api/sync/datasource/sales")

    assert response.json() == {"synced": 1, "errors": 0}
