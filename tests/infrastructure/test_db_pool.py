import sqlite3
import threading

import pytest

from reach.errors import ConnectionPoolExhausted
from reach.infrastructure.db.pool import ConnectionPool


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "test.db"
    conn = sqlite3.connect(path)
    conn.execute("CREATE TABLE test (id INTEGER PRIMARY KEY, name TEXT)")
    conn.close()
    return path


def test_connection_acquisition(db_path):
    pool = ConnectionPool(db_path, pool_size=1)

    with pool.connection() as conn:
        assert isinstance(conn, sqlite3.Connection)
        assert conn.execute("SELECT 1").fetchone()[0] == 1


def test_rows_support_column_access(db_path):
    pool = ConnectionPool(db_path)

    with pool.connection() as conn:
        conn.execute("INSERT INTO test (name) VALUES (?)", ("foo",))
        row = conn.execute("SELECT name FROM test").fetchone()

    assert row["name"] == "foo"


def test_connection_recycling(db_path):
    pool = ConnectionPool(db_path, pool_size=1)

    with pool.connection() as conn:
        conn_id = id(conn)

    with pool.connection() as conn:
        assert id(conn) == conn_id


def test_transaction_rollback(db_path):
    pool = ConnectionPool(db_path)

    with pytest.raises(RuntimeError):
        with pool.connection() as conn:
            conn.execute("INSERT INTO test (name) VALUES (?)", ("bar",))
            raise RuntimeError("oops")

    conn = sqlite3.connect(db_path)
    assert conn.execute("SELECT name FROM test WHERE name='bar'").fetchone() is None
    conn.close()


def test_exhausted_pool_times_out(db_path):
    pool = ConnectionPool(db_path, pool_size=1, timeout=0.05)
    acquired = threading.Event()
    release = threading.Event()

    def hold():
        with pool.connection():
            acquired.set()
            release.wait(1)

    worker = threading.Thread(target=hold)
    worker.start()
    acquired.wait(1)
    try:
        with pytest.raises(ConnectionPoolExhausted):
            with pool.connection():
                pass
    finally:
        release.set()
        worker.join()


def test_close_all_allows_new_connections(db_path):
    pool = ConnectionPool(db_path, pool_size=1)
    with pool.connection():
        pass
    pool.close_all()

    with pool.connection() as conn:
        assert conn.execute("SELECT COUNT(*) FROM test").fetchone()[0] == 0


def test_connections_open_lazily_up_to_pool_size(db_path):
    pool = ConnectionPool(db_path, pool_size=3)
    assert pool.opened == 0

    with pool.connection():
        with pool.connection():
            assert pool.opened == 2
            assert pool.idle == 0

    assert pool.opened == 2
    assert pool.idle == 2
    pool.close_all()
    assert pool.opened == 0


def test_file_databases_use_wal(db_path):
    pool = ConnectionPool(db_path)

    with pool.connection() as conn:
        assert conn.execute("PRAGMA journal_mode").fetchone()[0] == "wal"


def test_invalid_pool_size(db_path):
    with pytest.raises(ValueError):
        ConnectionPool(db_path, pool_size=0)
