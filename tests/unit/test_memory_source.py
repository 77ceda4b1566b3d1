"""Unit tests for MemoryDataSource."""

from __future__ import annotations

import pytest

from row_mapper.core.exceptions import InvalidArgumentError
from row_mapper.core.query import QueryObject
from row_mapper.datasource.memory import MemoryDataSource
from row_mapper.datasource.protocol import DataSource


@pytest.fixture
def ds() -> MemoryDataSource:
    return MemoryDataSource(
        {
            "articles": [
                {"id": 1, "title": "b", "score": 3},
                {"id": 2, "title": "a", "score": 1},
                {"id": 3, "title": "c", "score": 3},
            ]
        }
    )


class TestMemoryDataSource:
    def test_implements_protocol(self, ds: MemoryDataSource) -> None:
        assert isinstance(ds, DataSource)

    def test_read_all_in_storage_order(self, ds: MemoryDataSource) -> None:
        assert ds.read("articles", QueryObject()).map(lambda r: r["id"]) == [1, 2, 3]

    def test_read_unknown_table_is_empty(self, ds: MemoryDataSource) -> None:
        assert ds.read("missing", QueryObject()).is_empty()

    def test_read_returns_copies(self, ds: MemoryDataSource) -> None:
        row = ds.read("articles", QueryObject({"id": 1})).first()
        row["title"] = "changed"
        assert ds.rows("articles")[0]["title"] == "b"

    def test_criteria(self, ds: MemoryDataSource) -> None:
        result = ds.read("articles", QueryObject({"score": 3, "id >": 1}))
        assert result.map(lambda r: r["id"]) == [3]

    def test_fields_projection(self, ds: MemoryDataSource) -> None:
        result = ds.read("articles", QueryObject({"id": 2}, {"fields": ["id", "title"]}))
        assert result == [{"id": 2, "title": "a"}]

    def test_sort_string(self, ds: MemoryDataSource) -> None:
        result = ds.read("articles", QueryObject(options={"sort": "title"}))
        assert result.map(lambda r: r["title"]) == ["a", "b", "c"]

    def test_sort_multiple_columns(self, ds: MemoryDataSource) -> None:
        query = QueryObject(options={"sort": {"score": "DESC", "title": "ASC"}})
        assert ds.read("articles", query).map(lambda r: r["id"]) == [1, 3, 2]

    def test_order_alias(self, ds: MemoryDataSource) -> None:
        query = QueryObject(options={"order": {"id": "desc"}})
        assert ds.read("articles", query).map(lambda r: r["id"]) == [3, 2, 1]

    def test_sort_on_missing_column(self, ds: MemoryDataSource) -> None:
        with pytest.raises(InvalidArgumentError, match="'rank'"):
            ds.read("articles", QueryObject(options={"sort": "rank"}))

    def test_sparse_rows_match_and_sort_as_null(self, ds: MemoryDataSource) -> None:
        ds.create("articles", {"title": "d"})
        sparse = ds.last_generated_id()
        query = QueryObject({"score": None}, {"sort": "score"})
        assert ds.read("articles", query).map(lambda r: r["id"]) == [sparse]
        result = ds.read("articles", QueryObject(options={"sort": "score"}))
        assert result.map(lambda r: r["id"]) == [2, 1, 3, sparse]
        assert ds.count("articles", QueryObject({"score >=": 1})) == 3

    def test_limit_and_offset(self, ds: MemoryDataSource) -> None:
        query = QueryObject(options={"sort": "id", "limit": 1, "offset": 1})
        assert ds.read("articles", query).map(lambda r: r["id"]) == [2]

    def test_offset_without_limit(self, ds: MemoryDataSource) -> None:
        query = QueryObject(options={"offset": 2})
        assert ds.read("articles", query).map(lambda r: r["id"]) == [3]

    def test_create_generates_id(self, ds: MemoryDataSource) -> None:
        assert ds.create("articles", {"title": "d", "score": 0}) is True
        generated = ds.last_generated_id()
        assert generated is not None
        assert ds.read("articles", QueryObject({"id": generated})).first()["title"] == "d"

    def test_create_keeps_explicit_id(self, ds: MemoryDataSource) -> None:
        ds.create("articles", {"id": 10, "title": "d", "score": 0})
        assert ds.last_generated_id() == 10

    def test_create_into_new_table(self, ds: MemoryDataSource) -> None:
        ds.create("tags", {"name": "python"})
        assert len(ds.rows("tags")) == 1

    def test_update_returns_count(self, ds: MemoryDataSource) -> None:
        assert ds.update("articles", QueryObject({"score": 3}), {"score": 4}) == 2
        assert ds.count("articles", QueryObject({"score": 4})) == 2

    def test_delete_returns_count(self, ds: MemoryDataSource) -> None:
        assert ds.delete("articles", QueryObject({"id": [1, 2]})) == 2
        assert ds.rows("articles") == [{"id": 3, "title": "c", "score": 3}]

    def test_count_ignores_limit(self, ds: MemoryDataSource) -> None:
        assert ds.count("articles", QueryObject(options={"limit": 1})) == 3

    def test_transaction_commits(self, ds: MemoryDataSource) -> None:
        with ds.transaction():
            ds.delete("articles", QueryObject({"id": 1}))
        assert len(ds.rows("articles")) == 2

    def test_transaction_restores_on_error(self, ds: MemoryDataSource) -> None:
        with pytest.raises(RuntimeError, match="boom"), ds.transaction():
            ds.delete("articles", QueryObject({"id": 1}))
            ds.create("articles", {"title": "d", "score": 0})
            raise RuntimeError("boom")
        assert [row["id"] for row in ds.rows("articles")] == [1, 2, 3]
