import queue
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

from reach.errors import ConnectionPoolExhausted

MEMORY_DATABASE = ":memory:"


class ConnectionPool:
    """Bounded set of SQLite connections for the customer store.

    Worker threads check a connection out with :meth:`connection`.  The block
    commits when it exits cleanly and rolls back when it raises.  At most
    ``pool_size`` connections are opened, lazily; a caller that finds all of
    them checked out waits up to ``timeout`` seconds.
    """

    def __init__(
        self,
        db_path: Union[Path, str],
        pool_size: int = 5,
        timeout: float = 30.0,
        busy_timeout: float = 5.0,
    ):
        if pool_size < 1:
            raise ValueError(f"pool_size must be at least 1, got {pool_size}")
        self._db_path = db_path
        self._pool_size = pool_size
        self._timeout = timeout
        self._busy_timeout = busy_timeout
        self._idle: "queue.LifoQueue[sqlite3.Connection]" = queue.LifoQueue(maxsize=pool_size)
        self._opened = 0
        self._guard = threading.Lock()

    @property
    def db_path(self) -> Union[Path, str]:
        return self._db_path

    @property
    def opened(self) -> int:
        """Connections currently open, idle or checked out."""
        return self._opened

    @property
    def idle(self) -> int:
        return self._idle.qsize()

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, timeout=self._busy_timeout, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        if str(self._db_path) != MEMORY_DATABASE:
            # Readers keep going while the import or an inline edit writes.
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _checkout(self) -> sqlite3.Connection:
        try:
            return self._idle.get_nowait()
        except queue.Empty:
            pass

        with self._guard:
            if self._opened < self._pool_size:
                conn = self._open()
                self._opened += 1
                return conn

        try:
            return self._idle.get(timeout=self._timeout)
        except queue.Empty:
            raise ConnectionPoolExhausted(
                f"All {self._pool_size} connections to {self._db_path} "
                f"stayed busy for {self._timeout}s"
            ) from None

    def _checkin(self, conn: sqlite3.Connection) -> None:
        try:
            self._idle.put_nowait(conn)
        except queue.Full:
            conn.close()
            with self._guard:
                self._opened -= 1

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        conn = self._checkout()
        try:
            yield conn
        except BaseException:
            conn.rollback()
            raise
        else:
            conn.commit()
        finally:
            self._checkin(conn)

    def close_all(self) -> None:
        """Close idle connections; checked-out ones close when returned late."""
        with self._guard:
            while True:
                try:
                    conn = self._idle.get_nowait()
                except queue.Empty:
                    break
                conn.close()
                self._opened -= 1
