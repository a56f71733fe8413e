"""Unit tests for image reference helpers."""

from contentbase.domain.entities import (
    entry_image_keys,
    image_keys,
    is_image_field,
    is_image_object,
    removed_image_keys,
)


def image(key: str, size: float = 10) -> dict:
    return {"originalName": f"{key}.png", "key": key, "size": size}


class TestIsImageObject:
    def test_valid_object(self):
        assert is_image_object(image("a"))

    def test_rejects_empty_key_or_name(self):
        assert not is_image_object({"originalName": "", "key": "a", "size": 1})
        assert not is_image_object({"originalName": "a.png", "key": "", "size": 1})

    def test_rejects_zero_or_non_numeric_size(self):
        assert not is_image_object({"originalName": "a.png", "key": "a", "size": 0})
        assert not is_image_object({"originalName": "a.png", "key": "a", "size": "10"})
        assert not is_image_object({"originalName": "a.png", "key": "a", "size": True})

    def test_rejects_non_dicts(self):
        assert not is_image_object("a.png")


def test_image_field_is_a_list_of_only_image_objects():
    assert is_image_field([image("a"), image("b")])
    assert is_image_field([])
    assert not is_image_field([image("a"), {"key": "b"}])
    assert not is_image_field(image("a"))


def test_image_keys_ignores_other_values():
    assert image_keys([image("a"), image("b")]) == ["a", "b"]
    assert image_keys(["a", "b"]) == []
    assert image_keys("text") == []


def test_entry_image_keys_collects_top_level_fields():
    document = {"title": "Hi", "cover": [image("c1")], "gallery": [image("g1"), image("g2")]}

    assert sorted(entry_image_keys(document)) == ["c1", "g1", "g2"]


def test_removed_image_keys_only_considers_updated_fields():
    old = {"cover": [image("c1")], "gallery": [image("g1"), image("g2")]}

    assert removed_image_keys(old, {"gallery": [image("g2")]}) == ["g1"]
    assert removed_image_keys(old, {"title": "new"}) == []


def test_replacing_an_image_field_with_another_value_drops_all_keys():
    old = {"gallery": [image("g1"), image("g2")]}

    assert removed_image_keys(old, {"gallery": None}) == ["g1", "g2"]
