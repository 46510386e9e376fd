"""SQLite dialect compiler."""
from __future__ import annotations

import re

from sqorn.compile.base import SQLCompiler


class SQLiteCompiler(SQLCompiler):
    """Compiles method logs to SQLite-flavoured parameterized SQL.

    Parameter style: ``?`` – compatible with Python's built-in ``sqlite3``
    positional execution (``cursor.execute(sql, args)``).
    """

    placeholder_pattern = re.compile(r"\?")

    @property
    def dialect_name(self) -> str:
        return "sqlite"

    def placeholder(self, index: int) -> str:
        return "?"

    def placeholder_index(self, match: re.Match[str], position: int) -> int | None:
        return position
