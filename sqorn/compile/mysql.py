"""MySQL dialect compiler."""

from __future__ import annotations

import re

from sqorn.compile.base import Fragment, SQLCompiler


class MySQLCompiler(SQLCompiler):
    """Compiles method logs to MySQL-flavoured parameterized SQL.

    Parameter style: ``%s`` – compatible with ``PyMySQL`` and
    ``mysql-connector-python`` positional execution.

    Because the driver interpolates with ``%``, every literal ``%`` in the
    compiled text (``like 'a%'`` in a template or ``raw`` value) is doubled.
    """

    placeholder_pattern = re.compile(r"%[%s]")

    @property
    def dialect_name(self) -> str:
        return "mysql"

    def placeholder(self, index: int) -> str:
        return "%s"

    def placeholder_index(self, match: re.Match[str], position: int) -> int | None:
        if match.group(0) == "%%":
            return None
        return position

    def escape_literal(self, text: str) -> str:
        return text.replace("%", "%%")

    def unescape_literal(self, text: str) -> str:
        return text.replace("%%", "%")

    def update_tables(self, tables: list[Fragment]) -> tuple[Fragment, Fragment | None]:
        # MySQL lists every table after ``update``.
        return Fragment.join(tables), None

    def delete_tables(self, tables: list[Fragment]) -> Fragment:
        if len(tables) == 1:
            return tables[0].prefix("from")
        return Fragment.join([tables[0], Fragment.join(tables).prefix("from")], " ")
