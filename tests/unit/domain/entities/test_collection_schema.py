"""Unit tests for the CollectionSchema entity."""

import pytest

from contentbase.domain.entities import CollectionSchema


def test_name_is_normalized_to_lowercase():
    schema = CollectionSchema(name="  Posts ", title="Posts")

    assert schema.name == "posts"


def test_name_and_title_are_required():
    with pytest.raises(ValueError, match="name is required"):
        CollectionSchema(name="  ", title="Posts")
    with pytest.raises(ValueError, match="title is required"):
        CollectionSchema(name="posts", title="")


def test_json_round_trip_keeps_field_order_and_settings():
    data = {
        "name": "posts",
        "title": "Blog posts",
        "fields": [
            {"name": "title", "label": "Title", "fieldType": "TextField"},
            {"name": "views", "label": "Views", "fieldType": "NumberField", "min": 0},
            {"name": "published", "label": "Published", "fieldType": "BooleanField"},
        ],
        "settings": {"dataTable": {"entriesPerPage": 25}},
    }

    schema = CollectionSchema.from_json(CollectionSchema.from_dict(data).to_json())

    assert schema.field_names == ["title", "views", "published"]
    assert schema.to_dict() == data


def test_settings_are_omitted_when_unset():
    schema = CollectionSchema(name="posts", title="Posts")

    assert "settings" not in schema.to_dict()
