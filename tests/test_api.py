"""
REST API tests - routes, status codes and hypermedia links.
"""

import pytest
from fastapi.testclient import TestClient

from blogstore.api.main import create_app, error_status
from blogstore.core.blog import Blog
from blogstore.core.errors import BlogErrors, ErrorKind
from blogstore.core.store import InMemoryRecordStore


@pytest.fixture
def client():
    blog = Blog.make(store=InMemoryRecordStore())
    return TestClient(create_app(blog))


@pytest.fixture
def author(client):
    response = client.post("/accounts", json={"id": "u1", "firstName": "Ann", "roles": ["author"]})
    assert response.status_code == 201
    return "u1"


def post_article(client, author, title, **fields):
    response = client.post("/articles", json={"title": title, "authorId": author, **fields})
    assert response.status_code == 201
    return response.json()["id"]


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "healthy"
    assert data["backend"] == "memory"
    assert data["counts"] == {"accounts": 0, "articles": 0, "comments": 0}


def test_index_links_every_category(client):
    data = client.get("/").json()
    names = {link["name"] for link in data["links"]}
    assert {"self", "meta", "accounts", "articles", "comments"} <= names


def test_meta(client):
    data = client.get("/meta").json()
    assert list(data["categories"]) == ["accounts", "articles", "comments"]


def test_create_returns_location(client, author):
    response = client.post("/articles", json={"title": "T", "authorId": author})

    assert response.status_code == 201
    data = response.json()
    assert len(data["id"]) == 8
    assert response.headers["location"].endswith(f"/articles/{data['id']}")
    assert data["links"][0]["rel"] == "self"


def test_get_record(client, author):
    response = client.get(f"/accounts/{author}")
    assert response.status_code == 200

    record = response.json()["accounts"][0]
    assert record["firstName"] == "Ann"
    assert record["links"][0]["href"].endswith("/accounts/u1")


@pytest.mark.parametrize("method,path,body,status,code", [
    ("post", "/users", {"id": "x"}, 404, "BAD_CATEGORY"),
    ("get", "/accounts/ghost", None, 404, "BAD_ID"),
    ("post", "/accounts", {}, 400, "MISSING_FIELD"),
    ("post", "/accounts", {"id": "x", "nick": "y"}, 400, "BAD_FIELD"),
    ("post", "/articles", {"title": "T", "authorId": "ghost"}, 404, "BAD_ID"),
    ("delete", "/accounts/ghost", None, 404, "BAD_ID"),
    ("patch", "/accounts/ghost", {"firstName": "X"}, 404, "BAD_ID"),
])
def test_error_responses(client, method, path, body, status, code):
    kwargs = {"json": body} if body is not None else {}
    response = client.request(method.upper(), path, **kwargs)

    assert response.status_code == status
    data = response.json()
    assert data["code"] == code
    assert data["errors"][0]["kind"] == code


def test_duplicate_create_is_conflict(client, author):
    response = client.post("/accounts", json={"id": author})
    assert response.status_code == 409
    assert response.json()["code"] == "EXISTS"


def test_all_errors_in_body(client):
    response = client.post("/comments", json={})

    data = response.json()
    assert response.status_code == 400
    assert len(data["errors"]) == 3
    assert data["message"].count(";") == 2


def test_find_paging_links(client, author):
    for i in range(3):
        post_article(client, author, f"T{i}")

    first = client.get("/articles", params={"_count": 2}).json()
    assert len(first["articles"]) == 2
    assert first["next"] == 2
    assert "prev" not in first
    next_href = next(link["href"] for link in first["links"] if link["rel"] == "next")
    assert "_index=2" in next_href

    second = client.get("/articles", params={"_count": 2, "_index": 2}).json()
    assert len(second["articles"]) == 1
    assert "next" not in second
    assert second["prev"] == 0


def test_find_by_repeated_keywords(client, author):
    post_article(client, author, "both", keywords=["py", "db"])
    post_article(client, author, "one", keywords=["py"])

    response = client.get("/articles?keywords=py&keywords=db")
    assert [a["title"] for a in response.json()["articles"]] == ["both"]


@pytest.mark.parametrize("params,expected_next", [
    ({"_index": "0.0"}, None),
    ({"_index": "0", "_count": "1.0"}, 1),
])
def test_paging_values_accepted_by_validation(client, author, params, expected_next):
    response = client.get("/accounts", params=params)

    assert response.status_code == 200
    data = response.json()
    assert [a["id"] for a in data["accounts"]] == [author]
    assert data.get("next") == expected_next
    assert "prev" not in data


def test_find_accounts_by_role(client, author):
    client.post("/accounts", json={"id": "u2", "roles": ["author", "admin"]})
    client.post("/accounts", json={"id": "u3", "roles": ["commenter"]})

    response = client.get("/accounts?roles=author")
    assert response.status_code == 200
    assert sorted(a["id"] for a in response.json()["accounts"]) == ["u1", "u2"]


def test_bad_paging_value(client, author):
    response = client.get("/accounts", params={"_count": "0"})
    assert response.status_code == 400
    assert response.json()["code"] == "BAD_FIELD_VALUE"


def test_update_record(client, author):
    article_id = post_article(client, author, "Old")

    response = client.patch(f"/articles/{article_id}", json={"title": "New"})
    assert response.status_code == 200
    assert response.json()["articles"][0]["title"] == "New"


def test_update_reference_field_rejected(client, author):
    article_id = post_article(client, author, "T")

    response = client.patch(f"/articles/{article_id}", json={"authorId": "u2"})
    assert response.status_code == 400
    assert response.json()["code"] == "BAD_FIELD"


def test_remove_blocked_then_allowed(client, author):
    article_id = post_article(client, author, "T")

    blocked = client.delete(f"/accounts/{author}")
    assert blocked.status_code == 404
    assert article_id in blocked.json()["message"]

    assert client.delete(f"/articles/{article_id}").json()["success"] is True
    assert client.delete(f"/accounts/{author}").status_code == 200


def test_error_status_uses_first_kind():
    errors = BlogErrors.single(ErrorKind.EXISTS, "x")
    assert error_status(errors) == 409
    assert error_status(BlogErrors.single(ErrorKind.DB, "x")) == 500
    assert error_status(BlogErrors.single(ErrorKind.BAD_FIELD_VALUE, "x")) == 400
