"""Statement execution against a database.

The compiler never talks to a database.  Builders hand their compiled
:class:`~sqorn.compile.base.Statement` to an :class:`Executor`, which owns
connections, transactions, result decoding and driver error translation.

``DBAPIExecutor`` works with any DB-API 2.0 connection whose paramstyle
matches the configured dialect (``sqlite3`` for ``sqlite``, ``PyMySQL`` for
``mysql``)::

    import sqlite3
    from sqorn import sqorn

    sq = sqorn(dialect="sqlite", connection=sqlite3.connect("app.db"))
    rows = sq.from_("person").where({"age": 7}).all()

    with sq.transaction() as trx:
        sq.from_("account").insert({"username": "jo"}).all(trx)
        sq.from_("auth").insert({"password": "secret"}).all(trx)
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, TypeVar

from sqorn.compile.base import Statement
from sqorn.errors import ExecutionError
from sqorn.keys import camel_case

logger = logging.getLogger(__name__)

T = TypeVar("T")

Row = dict[str, Any]


class Transaction:
    """A unit of work on one connection.

    Use it as a context manager (commit on success, rollback on error) or
    call :meth:`commit` / :meth:`rollback` explicitly.  Pass it to ``all``,
    ``one`` or ``exists`` so queries run inside it.
    """

    def __init__(self, connection: Any) -> None:
        self.connection = connection
        self._finished = False

    def commit(self) -> None:
        self._finish()
        self.connection.commit()
        logger.debug("Transaction committed")

    def rollback(self) -> None:
        self._finish()
        self.connection.rollback()
        logger.debug("Transaction rolled back")

    @property
    def finished(self) -> bool:
        return self._finished

    def _finish(self) -> None:
        if self._finished:
            raise ExecutionError("Transaction has already been committed or rolled back.")
        self._finished = True

    def __enter__(self) -> Transaction:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._finished:
            return
        if exc_type is None:
            self.commit()
        else:
            self.rollback()


class Executor(ABC):
    """Runs compiled statements and decodes result rows.

    Args:
        map_output_keys: Applied to every result column name.
    """

    def __init__(self, map_output_keys: Callable[[str], str] = camel_case) -> None:
        self.map_output_keys = map_output_keys

    @abstractmethod
    def query(self, statement: Statement, trx: Transaction | None = None) -> list[Row]:
        """Execute ``statement`` and return all result rows.

        Raises:
            ExecutionError: If the driver rejects the statement.
        """

    @abstractmethod
    def begin(self) -> Transaction:
        """Start a new transaction."""

    def all(self, statement: Statement, trx: Transaction | None = None) -> list[Row]:
        return self.query(statement, trx)

    def one(self, statement: Statement, trx: Transaction | None = None) -> Row | None:
        """Return the first result row, or ``None`` if there are no rows."""
        rows = self.query(statement, trx)
        return rows[0] if rows else None

    def exists(self, statement: Statement, trx: Transaction | None = None) -> bool:
        return bool(self.query(statement, trx))

    def transaction(self, callback: Callable[[Transaction], T] | None = None) -> Transaction | T:
        """Start a transaction, or run ``callback`` inside one.

        With a callback, the transaction is committed when the callback
        returns and rolled back if it raises; the callback's return value
        is returned.  Without one, the open :class:`Transaction` is
        returned and the caller must finish it.
        """
        trx = self.begin()
        if callback is None:
            return trx
        with trx:
            return callback(trx)

    def close(self) -> None:
        """Release any resources held by the executor."""


class DBAPIExecutor(Executor):
    """Executor over a single DB-API 2.0 connection.

    Statements run outside a transaction are committed immediately; inside a
    transaction they are committed or rolled back with it.  While a
    transaction from :meth:`begin` is open, statements run without it share
    its connection and are not committed on their own.

    Args:
        connection: An open DB-API 2.0 connection.
        map_output_keys: Applied to every result column name.
    """

    def __init__(
        self,
        connection: Any,
        map_output_keys: Callable[[str], str] = camel_case,
    ) -> None:
        super().__init__(map_output_keys)
        self._connection = connection
        self._open: Transaction | None = None
        self._driver_error: type[BaseException] = getattr(connection, "Error", Exception)

    def query(self, statement: Statement, trx: Transaction | None = None) -> list[Row]:
        if trx is not None and trx.finished:
            raise ExecutionError("Cannot run a query in a finished transaction.", statement)
        connection = trx.connection if trx is not None else self._connection
        # Outside an explicit trx, only commit when no transaction holds the connection.
        autocommit = trx is None and not self.in_transaction
        logger.debug("Executing %s with %d args", statement.text, len(statement.args))
        cursor = connection.cursor()
        try:
            cursor.execute(statement.text, statement.args)
            rows = self._decode(cursor) if cursor.description else []
        except self._driver_error as exc:
            if autocommit:
                connection.rollback()
            raise ExecutionError(f"Query failed: {exc}", statement) from exc
        finally:
            cursor.close()
        if autocommit:
            connection.commit()
        return rows

    def begin(self) -> Transaction:
        self._open = Transaction(self._connection)
        return self._open

    @property
    def in_transaction(self) -> bool:
        """Whether a transaction from :meth:`begin` is still open."""
        return self._open is not None and not self._open.finished

    def close(self) -> None:
        self._connection.close()

    def _decode(self, cursor: Any) -> list[Row]:
        columns = [self.map_output_keys(d[0]) for d in cursor.description]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]
