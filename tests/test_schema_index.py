"""
Schema index tests - reference graph derivation and metadata checks.
"""

import pytest

from blogstore.core.errors import SchemaError
from blogstore.core.meta import BLOG_META
from blogstore.core.schema import SchemaIndex

ACCOUNT_ID = {"name": "id", "required": ["create", "remove"]}


@pytest.fixture
def schema():
    return SchemaIndex(BLOG_META)


def test_categories_follow_metadata(schema):
    assert schema.categories == ("accounts", "articles", "comments")
    assert schema.has_category("articles")
    assert not schema.has_category("users")


def test_forward_edges(schema):
    assert schema.identifies_of("accounts") == {}
    assert schema.identifies_of("articles") == {"authorId": "accounts"}
    assert schema.identifies_of("comments") == {
        "articleId": "articles",
        "commenterId": "accounts",
    }


def test_reverse_edges_are_derived(schema):
    assert sorted(schema.identified_by_of("accounts")) == [
        ("articles", "authorId"),
        ("comments", "commenterId"),
    ]
    assert schema.identified_by_of("articles") == [("comments", "articleId")]
    assert schema.identified_by_of("comments") == []


def test_returned_edges_are_copies(schema):
    schema.identified_by_of("accounts").append(("bogus", "field"))
    schema.identifies_of("articles")["other"] = "accounts"

    assert ("bogus", "field") not in schema.identified_by_of("accounts")
    assert "other" not in schema.identifies_of("articles")


def test_unknown_identifies_target_is_fatal():
    meta = {
        "articles": [
            {"name": "id", "forbidden": ["create"]},
            {"name": "authorId", "identifies": "users"},
        ],
    }
    with pytest.raises(SchemaError) as exc_info:
        SchemaIndex(meta)
    assert "users" in str(exc_info.value)


def test_category_without_id_field_is_rejected():
    with pytest.raises(SchemaError):
        SchemaIndex({"accounts": [{"name": "email"}]})


@pytest.mark.parametrize("id_field", [
    {"name": "id"},
    {"name": "id", "required": ["remove", "update"]},
    {"name": "id", "forbidden": ["find"]},
])
def test_id_without_create_source_is_rejected(id_field):
    with pytest.raises(SchemaError) as exc_info:
        SchemaIndex({"tags": [id_field, {"name": "label"}]})
    assert "tags" in str(exc_info.value)


def test_duplicate_field_is_rejected():
    with pytest.raises(SchemaError):
        SchemaIndex({"accounts": [ACCOUNT_ID, ACCOUNT_ID]})


@pytest.mark.parametrize("bad_field", [
    {"name": "x", "type": "integer"},
    {"name": "x", "match": "like"},
    {"name": "x", "forbidden": ["delete"]},
])
def test_bad_field_metadata_is_rejected(bad_field):
    with pytest.raises(SchemaError):
        SchemaIndex({"accounts": [ACCOUNT_ID, bad_field]})


def test_allowed_and_required_fields(schema):
    create_allowed = schema.allowed_fields("articles", "create")
    assert "id" not in create_allowed
    assert {"title", "content", "authorId", "keywords"} <= create_allowed
    assert "authorId" not in schema.allowed_fields("articles", "update")

    assert schema.required_fields("articles", "create") == {"title", "authorId"}
    assert schema.required_fields("accounts", "create") == {"id"}
    assert schema.required_fields("comments", "remove") == {"id"}


def test_derived_categories(schema):
    assert not schema.is_derived("accounts")
    assert schema.is_derived("articles")
    assert schema.is_derived("comments")


def test_index_hints_skip_system_fields(schema):
    assert schema.index_hints("accounts") == ["email"]
    assert schema.index_hints("articles") == ["authorId"]
    assert schema.index_hints("comments") == ["articleId", "commenterId"]


def test_describe_rebuilds_same_schema(schema):
    rebuilt = SchemaIndex(schema.describe())

    assert rebuilt.categories == schema.categories
    for category in schema.categories:
        assert rebuilt.fields_of(category) == schema.fields_of(category)
        assert rebuilt.identified_by_of(category) == schema.identified_by_of(category)


def test_unknown_category_lookup_raises(schema):
    with pytest.raises(SchemaError):
        schema.fields_of("users")
