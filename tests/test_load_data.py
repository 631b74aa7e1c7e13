"""
Data loader tests - load order, id remapping and error reporting.
"""

import json
from unittest.mock import patch

import pytest

from blogstore.core.blog import Blog
from blogstore.core.store import InMemoryRecordStore
from scripts.load_data import load, load_order, main, read_records


@pytest.fixture
def blog():
    return Blog.make(store=InMemoryRecordStore())


def test_load_order_puts_targets_first(blog):
    order = load_order(blog.schema, ["comments", "articles", "accounts"])
    assert order == ["accounts", "articles", "comments"]


def test_load_order_skips_unknown(blog):
    assert load_order(blog.schema, ["articles", "users"]) == ["articles"]


def test_read_records_by_stem_and_mapping(tmp_path):
    (tmp_path / "accounts.json").write_text(json.dumps([{"id": "u1"}]))
    (tmp_path / "blog.json").write_text(json.dumps({"accounts": [{"id": "u2"}], "articles": []}))

    records = read_records([tmp_path / "accounts.json", tmp_path / "blog.json"])
    assert records == {"accounts": [{"id": "u1"}, {"id": "u2"}], "articles": []}


def test_load_remaps_generated_ids(blog):
    records = {
        "comments": [{"id": "c1", "content": "nice", "articleId": "a1", "commenterId": "u2"}],
        "articles": [{"id": "a1", "title": "T", "authorId": "u1", "keywords": ["py"]}],
        "accounts": [{"id": "u1", "roles": ["author"]}, {"id": "u2"}],
    }

    created = load(blog, records)

    assert created == {"accounts": 2, "articles": 1, "comments": 1}
    article = blog.find("articles", {})[0]
    assert article["id"] != "a1"
    comment = blog.find("comments", {})[0]
    assert comment["articleId"] == article["id"]
    assert comment["commenterId"] == "u2"


def test_load_reports_rejected_records(blog, capsys):
    records = {
        "accounts": [{"id": "u1"}, {"id": "u1"}],
        "users": [{"id": "x"}],
    }

    created = load(blog, records)
    output = capsys.readouterr().out

    assert created == {"accounts": 1}
    assert "WARNING: skipping unknown category users" in output
    assert "ERROR: accounts u1" in output
    assert "EXISTS" in output


def test_main_loads_files(tmp_path, capsys):
    data = tmp_path / "blog.json"
    data.write_text(json.dumps({"accounts": [{"id": "u1"}]}))
    blog = Blog.make(store=InMemoryRecordStore())

    with patch("scripts.load_data.Blog.make", return_value=blog), \
         patch("sys.argv", ["load_data.py", "--clear", str(data)]):
        main()

    assert "Loaded 1 accounts" in capsys.readouterr().out
