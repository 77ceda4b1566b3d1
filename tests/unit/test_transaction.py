"""Unit tests for TransactionManager."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from row_mapper.core.connection import ConnectionConfig
from row_mapper.core.exceptions import TransactionStateError
from row_mapper.core.query import QueryObject
from row_mapper.datasource.database import DatabaseDataSource


@pytest.fixture
def database(sqlite_config: ConnectionConfig) -> Iterator[DatabaseDataSource]:
    """SQLite data source with an empty tags table."""
    ds = DatabaseDataSource.from_config(sqlite_config)
    ds.execute("CREATE TABLE tags (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL)")
    yield ds
    ds.connection_manager.close_pool()


class TestTransactionManager:
    def test_commit_persists_changes(self, database: DatabaseDataSource) -> None:
        with database.transaction() as tx:
            database.create("tags", {"name": "python"})
            assert tx.state == "active"

        assert tx.state == "committed"
        assert database.count("tags", QueryObject()) == 1

    def test_auto_rollback_on_exception(self, database: DatabaseDataSource) -> None:
        with pytest.raises(RuntimeError, match="boom"), database.transaction() as tx:
            database.create("tags", {"name": "python"})
            raise RuntimeError("boom")

        assert tx.state == "rolled_back"
        assert database.count("tags", QueryObject()) == 0

    def test_explicit_rollback(self, database: DatabaseDataSource) -> None:
        with database.transaction() as tx:
            database.create("tags", {"name": "python"})
            tx.rollback()

        assert database.count("tags", QueryObject()) == 0

    def test_reads_see_uncommitted_writes(self, database: DatabaseDataSource) -> None:
        with database.transaction():
            database.create("tags", {"name": "python"})
            database.create("tags", {"name": "sql"})
            assert database.count("tags", QueryObject()) == 2
            assert database.update("tags", QueryObject({"name": "sql"}), {"name": "SQL"}) == 1

        rows = database.read("tags", QueryObject(options={"sort": "id"}))
        assert [row["name"] for row in rows] == ["python", "SQL"]

    def test_statement_after_rollback_rejected(self, database: DatabaseDataSource) -> None:
        with database.transaction() as tx:
            tx.rollback()
            with pytest.raises(TransactionStateError, match="rolled_back"):
                database.create("tags", {"name": "python"})

    def test_commit_after_rollback(self, database: DatabaseDataSource) -> None:
        with database.transaction() as tx:
            tx.rollback()
            with pytest.raises(TransactionStateError):
                tx.commit()

    def test_cannot_reenter(self, database: DatabaseDataSource) -> None:
        tx = database.transaction()
        with tx:
            pass
        with pytest.raises(TransactionStateError, match="begin"), tx:
            pass

    def test_connection_returned_to_pool(self, database: DatabaseDataSource) -> None:
        with database.transaction():
            database.create("tags", {"name": "python"})
        # a single-connection pool would raise PoolError if it leaked
        with database.transaction():
            database.create("tags", {"name": "sql"})
        assert database.count("tags", QueryObject()) == 2
