"""PostgreSQL dialect compiler."""

from __future__ import annotations

import re

from sqorn.compile.base import Fragment, SQLCompiler


class PostgresCompiler(SQLCompiler):
    """Compiles method logs to PostgreSQL-flavoured parameterized SQL.

    Parameter style: ``$1, $2, ...`` – the server-side numeric style used by
    ``asyncpg`` and the PostgreSQL extended query protocol.
    """

    placeholder_pattern = re.compile(r"\$(\d+)")

    @property
    def dialect_name(self) -> str:
        return "postgres"

    def placeholder(self, index: int) -> str:
        return f"${index}"

    def placeholder_index(self, match: re.Match[str], position: int) -> int | None:
        return int(match.group(1)) - 1

    def delete_tables(self, tables: list[Fragment]) -> Fragment:
        target = tables[0].prefix("from")
        if len(tables) == 1:
            return target
        return Fragment.join([target, Fragment.join(tables[1:]).prefix("using")], " ")
