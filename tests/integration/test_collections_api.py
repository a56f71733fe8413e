"""Integration tests for the collection and entry API."""

import pytest
from fastapi import status
from httpx import ASGITransport, AsyncClient

from contentbase.infrastructure.storage import LocalObjectStorage

API = "/api/v1/collections"


def text(name: str) -> dict:
    return {"name": name, "label": name.title(), "fieldType": "TextField"}


def image_field(name: str) -> dict:
    return {"name": name, "label": name.title(), "fieldType": "ImageField"}


def image(key: str) -> dict:
    return {"originalName": f"{key}.jpg", "key": key, "size": 1024}


POSTS = {"name": "posts", "title": "Posts", "fields": [text("title"), text("body")]}


async def create_posts(client, body: dict | None = None) -> dict:
    response = await client.post(API, json=body or POSTS)
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()


async def add_entry(client, data: dict, collection: str = "posts") -> dict:
    response = await client.post(f"{API}/{collection}/entries", json=data)
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()


@pytest.mark.asyncio
async def test_create_list_and_read_schema(client):
    created = await create_posts(
        client, {**POSTS, "settings": {"dataTable": {"entriesPerPage": 20}}}
    )

    assert created["fields"][0] == {"name": "title", "label": "Title", "fieldType": "TextField"}

    listed = await client.get(API)
    assert listed.json() == [{"name": "posts", "title": "Posts"}]

    schema = await client.get(f"{API}/posts/schema")
    assert schema.status_code == status.HTTP_200_OK
    assert schema.json() == created


@pytest.mark.asyncio
async def test_duplicate_name_is_a_conflict(client):
    await create_posts(client)

    response = await client.post(API, json={**POSTS, "name": "POSTS", "title": "Other"})

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["path"] == "name"


@pytest.mark.asyncio
async def test_schema_update_migrates_entries_end_to_end(client):
    await create_posts(client)
    entry = await add_entry(client, {"title": "Hello", "body": "World"})

    renamed = await client.put(
        f"{API}/posts", json={**POSTS, "fields": [text("headline"), text("body")]}
    )
    assert renamed.status_code == status.HTTP_200_OK, renamed.text

    removed = await client.put(f"{API}/posts", json={**POSTS, "fields": [text("headline")]})
    assert removed.status_code == status.HTTP_200_OK

    fetched = await client.get(f"{API}/posts/entries/{entry['id']}")
    assert fetched.json() == {"id": entry["id"], "headline": "Hello"}


@pytest.mark.asyncio
async def test_ambiguous_update_is_rejected_and_nothing_changes(client):
    await create_posts(client)
    entry = await add_entry(client, {"title": "Hello", "body": "World"})

    response = await client.put(
        f"{API}/posts",
        json={**POSTS, "fields": [text("headline"), text("body"), text("summary")]},
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["errors"][0]["path"] == "fields"
    schema = await client.get(f"{API}/posts/schema")
    assert [f["name"] for f in schema.json()["fields"]] == ["title", "body"]
    fetched = await client.get(f"{API}/posts/entries/{entry['id']}")
    assert fetched.json() == entry


@pytest.mark.asyncio
async def test_collection_rename_keeps_entries(client):
    await create_posts(client)
    entry = await add_entry(client, {"title": "Hello"})

    response = await client.put(f"{API}/posts", json={**POSTS, "name": "articles"})
    assert response.status_code == status.HTTP_200_OK, response.text

    assert (await client.get(f"{API}/posts")).status_code == status.HTTP_404_NOT_FOUND
    collection = await client.get(f"{API}/articles")
    assert collection.json()["entries"] == [entry]


@pytest.mark.asyncio
async def test_entries_with_images(client, object_storage):
    await create_posts(
        client, {**POSTS, "fields": [text("title"), image_field("gallery")]}
    )
    entry = await add_entry(client, {"title": "Trip", "gallery": [image("a"), image("b")]})

    fetched = await client.get(f"{API}/posts/entries/{entry['id']}")
    assert [i["signedUrl"] for i in fetched.json()["gallery"]] == [
        "https://blobs.test/a?signature=abc",
        "https://blobs.test/b?signature=abc",
    ]

    updated = await client.put(
        f"{API}/posts/entries/{entry['id']}", json={"gallery": [image("b")]}
    )
    assert updated.status_code == status.HTTP_200_OK
    assert updated.json() == {"id": entry["id"], "title": "Trip", "gallery": [image("b")]}
    assert object_storage.deleted == ["a"]

    object_storage.failing_keys.add("b")
    deleted = await client.request(
        "DELETE", f"{API}/posts/entries", json={"entryIds": [entry["id"]]}
    )
    assert deleted.status_code == status.HTTP_200_OK
    assert deleted.json() == {"deletedEntries": 1, "deletedBlobs": [], "failedBlobs": ["b"]}
    assert (await client.get(f"{API}/posts")).json()["entries"] == []


@pytest.mark.asyncio
async def test_delete_entries_errors(client):
    await create_posts(client)

    empty = await client.request("DELETE", f"{API}/posts/entries", json={"entryIds": []})
    unknown = await client.request("DELETE", f"{API}/posts/entries", json={"entryIds": ["x"]})
    missing_collection = await client.request(
        "DELETE", f"{API}/missing/entries", json={"entryIds": ["x"]}
    )

    assert empty.status_code == status.HTTP_400_BAD_REQUEST
    assert empty.json()["errors"][0]["path"] == "entryIds"
    assert unknown.status_code == status.HTTP_400_BAD_REQUEST
    assert missing_collection.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.asyncio
async def test_entry_not_found(client):
    await create_posts(client)

    response = await client.get(f"{API}/posts/entries/missing")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["path"] == "entryId"


@pytest.mark.asyncio
async def test_delete_collection_then_recreate(client):
    await create_posts(client)
    await add_entry(client, {"title": "a"})
    await add_entry(client, {"title": "b"})

    deleted = await client.delete(f"{API}/posts")

    assert deleted.status_code == status.HTTP_200_OK
    assert deleted.json() == {
        "message": "Collection deleted successfully",
        "collection_name": "posts",
        "entries_deleted": 2,
    }
    assert (await client.get(API)).json() == []

    await create_posts(client)
    assert (await client.get(f"{API}/posts")).json()["entries"] == []


@pytest.mark.asyncio
async def test_settings_endpoints(client):
    await create_posts(client)

    schema_settings = await client.put(
        f"{API}/posts/schema/settings", json={"dataTable": {"entriesPerPage": 5}}
    )
    field_settings = await client.put(
        f"{API}/posts/schema/fields/title/settings",
        json={"dataTable": {"visible": False, "columnWidth": 240}},
    )
    unknown_field = await client.put(
        f"{API}/posts/schema/fields/missing/settings", json={"dataTable": {"visible": True}}
    )

    assert schema_settings.json()["settings"] == {"dataTable": {"entriesPerPage": 5}}
    title = field_settings.json()["fields"][0]
    assert title["settings"] == {"dataTable": {"visible": False, "columnWidth": 240}}
    assert unknown_field.status_code == status.HTTP_404_NOT_FOUND
    assert unknown_field.json()["path"] == "fieldName"


@pytest.mark.asyncio
async def test_local_storage_serves_files(session_factory, tmp_path):
    from contentbase.infrastructure.api.app import create_app
    from contentbase.infrastructure.persistence.database import get_db_session

    (tmp_path / "images").mkdir()
    (tmp_path / "images" / "a.jpg").write_bytes(b"jpeg-bytes")
    storage = LocalObjectStorage(storage_path=str(tmp_path), external_url="http://test")
    app = create_app(object_storage=storage)

    async def override_get_db_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db_session

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        await create_posts(client, {**POSTS, "fields": [image_field("gallery")]})
        entry = await add_entry(client, {"gallery": [image("images/a.jpg")]})

        fetched = await client.get(f"{API}/posts/entries/{entry['id']}")
        url = fetched.json()["gallery"][0]["signedUrl"]
        assert url == "http://test/files/images/a.jpg"

        blob = await client.get(url)
        assert blob.status_code == status.HTTP_200_OK
        assert blob.content == b"jpeg-bytes"
