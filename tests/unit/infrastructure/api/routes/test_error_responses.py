"""Unit tests for HTTP error mapping and operator authentication."""

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from contentbase.core.config import get_settings
from contentbase.core.exceptions import (
    AmbiguousSchemaChangeError,
    ConflictError,
    MigrationError,
    NotFoundError,
)
from contentbase.infrastructure.api.dependencies import get_collection_service


@pytest.fixture
def collection_service() -> AsyncMock:
    return AsyncMock()


@pytest_asyncio.fixture
async def mocked_client(app, collection_service):
    app.dependency_overrides[get_collection_service] = lambda: collection_service
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


COLLECTION = {
    "name": "posts",
    "title": "Posts",
    "fields": [{"name": "title", "label": "Title", "fieldType": "TextField"}],
}


@pytest.mark.asyncio
async def test_not_found_body(mocked_client, collection_service):
    collection_service.get_collection_schema.side_effect = NotFoundError(
        "collectionName", "Collection 'missing' not found"
    )

    response = await mocked_client.get("/api/v1/collections/missing/schema")

    assert response.status_code == 404
    assert response.json() == {
        "error": "Not Found",
        "message": "Collection 'missing' not found",
        "path": "collectionName",
    }


@pytest.mark.asyncio
async def test_conflict_body(mocked_client, collection_service):
    collection_service.create_collection.side_effect = ConflictError(
        "title", "Collection title 'Posts' already exists"
    )

    response = await mocked_client.post("/api/v1/collections", json=COLLECTION)

    assert response.status_code == 409
    assert response.json()["error"] == "Conflict"
    assert response.json()["path"] == "title"


@pytest.mark.asyncio
async def test_ambiguous_change_is_a_validation_error(mocked_client, collection_service):
    collection_service.update_collection.side_effect = AmbiguousSchemaChangeError(
        "address", "Only one field can be renamed per update"
    )

    response = await mocked_client.put("/api/v1/collections/posts", json=COLLECTION)

    assert response.status_code == 400
    assert response.json() == {
        "errors": [{"path": "address", "msg": "Only one field can be renamed per update"}]
    }


@pytest.mark.asyncio
async def test_server_error_hides_details(mocked_client, collection_service):
    collection_service.update_collection.side_effect = MigrationError(
        "Failed to migrate entries of 'posts': disk I/O error"
    )

    response = await mocked_client.put("/api/v1/collections/posts", json=COLLECTION)

    assert response.status_code == 500
    assert response.json() == {
        "error": "Internal server error",
        "message": "Something went wrong, try again",
    }


class TestRequestValidation:
    @pytest.mark.asyncio
    async def test_unknown_field_type(self, mocked_client, collection_service):
        body = {**COLLECTION, "fields": [{"name": "d", "label": "D", "fieldType": "DateField"}]}

        response = await mocked_client.post("/api/v1/collections", json=body)

        assert response.status_code == 400
        assert response.json()["errors"][0]["path"].startswith("fields.0")
        collection_service.create_collection.assert_not_called()

    @pytest.mark.asyncio
    async def test_duplicate_field_names(self, mocked_client):
        field = {"name": "title", "label": "Title", "fieldType": "TextField"}

        response = await mocked_client.post(
            "/api/v1/collections", json={**COLLECTION, "fields": [field, field]}
        )

        assert response.status_code == 400
        assert "Duplicate field name 'title'" in response.json()["errors"][0]["msg"]

    @pytest.mark.asyncio
    async def test_duplicate_names_inside_composite(self, mocked_client):
        child = {"name": "city", "label": "City", "fieldType": "TextField"}
        composite = {
            "name": "address",
            "label": "Address",
            "fieldType": "CompositeField",
            "fields": [child, child],
        }

        response = await mocked_client.post(
            "/api/v1/collections", json={**COLLECTION, "fields": [composite]}
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["", "1posts", "my-posts", "a" * 56])
    async def test_invalid_collection_names(self, mocked_client, name):
        response = await mocked_client.post("/api/v1/collections", json={**COLLECTION, "name": name})

        assert response.status_code == 400
        assert response.json()["errors"][0]["path"] == "name"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["a.b", "$set"])
    async def test_invalid_field_names(self, mocked_client, name):
        field = {"name": name, "label": "X", "fieldType": "TextField"}

        response = await mocked_client.post(
            "/api/v1/collections", json={**COLLECTION, "fields": [field]}
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_attributes_are_rejected(self, mocked_client):
        field = {"name": "t", "label": "T", "fieldType": "TextField", "options": ["a"]}

        response = await mocked_client.post(
            "/api/v1/collections", json={**COLLECTION, "fields": [field]}
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_valid_request_reaches_the_service(self, mocked_client, collection_service):
        collection_service.create_collection.side_effect = lambda schema: schema

        response = await mocked_client.post(
            "/api/v1/collections", json={**COLLECTION, "name": " Posts "}
        )

        assert response.status_code == 201
        assert response.json()["name"] == "posts"
        schema = collection_service.create_collection.call_args.args[0]
        assert schema.fields[0].name == "title"


class TestOperatorApiKey:
    @pytest.mark.asyncio
    async def test_open_when_no_key_is_configured(self, mocked_client, collection_service):
        collection_service.get_all_collection_names.return_value = []

        response = await mocked_client.get("/api/v1/collections")

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_missing_or_wrong_key_is_rejected(
        self, mocked_client, collection_service, monkeypatch
    ):
        monkeypatch.setenv("CONTENTBASE_OPERATOR_API_KEY", "s3cret")
        get_settings.cache_clear()

        missing = await mocked_client.get("/api/v1/collections")
        wrong = await mocked_client.get("/api/v1/collections", headers={"X-API-Key": "nope"})

        assert missing.status_code == 401
        assert wrong.status_code == 401
        collection_service.get_all_collection_names.assert_not_called()

    @pytest.mark.asyncio
    async def test_correct_key_is_accepted(self, mocked_client, collection_service, monkeypatch):
        monkeypatch.setenv("CONTENTBASE_OPERATOR_API_KEY", "s3cret")
        get_settings.cache_clear()
        collection_service.get_all_collection_names.return_value = [
            {"name": "posts", "title": "Posts"}
        ]

        response = await mocked_client.get("/api/v1/collections", headers={"X-API-Key": "s3cret"})

        assert response.status_code == 200
        assert response.json() == [{"name": "posts", "title": "Posts"}]


@pytest.mark.asyncio
async def test_health_and_correlation_id(mocked_client):
    response = await mocked_client.get("/health", headers={"X-Correlation-ID": "cid_test"})

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.headers["X-Correlation-ID"] == "cid_test"
