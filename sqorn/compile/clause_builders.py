"""Clause-level SQL generators.

Each class handles exactly one SQL clause.  ``build(ctx)`` reads the call
buckets of a :class:`~sqorn.schema.context.ContextDescriptor` and returns a
:class:`~sqorn.compile.base.Fragment`, or ``None`` when the clause has no
contribution (an absent clause is omitted entirely, never emitted empty).

All generators share one :class:`~sqorn.compile.escape.ArgumentBuilder`, so
nested builders (CTE bodies, FROM subqueries, subqueries in conditions)
compile with the same dialect and key mapping as the outer statement.

Classes
-------
WithClauseBuilder       - ``with <alias> as (<query>), …``
SelectClauseBuilder     - ``select <expressions | *>``
FromClauseBuilder       - ``from <tables | subqueries>``
ConditionClauseBuilder  - ``where …`` / ``having …``
ListClauseBuilder       - ``group by …`` / ``order by …``
ScalarClauseBuilder     - ``limit …`` / ``offset …``
DeleteClauseBuilder     - ``delete from <table> [using <tables>]``
UpdateClauseBuilder     - ``update <table> set <assignments> [from <tables>]``
InsertClauseBuilder     - ``insert into <table> (<columns>) values …``
ReturningClauseBuilder  - ``returning <expressions>``
ManualClauseBuilder     - raw ``l(...)`` fragments
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from sqorn.compile.base import Buildable, Fragment, Statement
from sqorn.compile.conditions import And, Condition, render, to_condition
from sqorn.compile.escape import ArgumentBuilder
from sqorn.errors import ArityMismatchError, CompilationError, EmptyStatementError
from sqorn.schema.context import ContextDescriptor
from sqorn.schema.method_log import ClauseKind, MethodCall, StatementKind
from sqorn.schema.values import Template

_DEFAULT = Fragment("default")


def _expression_items(
    args: ArgumentBuilder,
    calls: Iterable[MethodCall],
    clause: str,
    aliases: bool = True,
) -> list[Fragment]:
    """Compile the args of list-style calls (from/return/group/order).

    Mapping args become ``<expression> as <mapped alias>`` items when
    ``aliases`` is true.
    """
    items: list[Fragment] = []
    for call in calls:
        for arg in call.args:
            if isinstance(arg, Mapping):
                if not aliases:
                    raise CompilationError(
                        f"The '{clause}' clause does not accept a mapping.", clause=clause
                    )
                for alias, value in arg.items():
                    expr = args.build_expression(value)
                    items.append(Fragment(f"{expr.text} as {args.ctx.map_key(alias)}", expr.args))
            else:
                items.append(args.build_expression(arg))
    return items


def _expression_list(
    args: ArgumentBuilder,
    calls: Iterable[MethodCall],
    clause: str,
    aliases: bool = True,
) -> Fragment | None:
    items = _expression_items(args, calls, clause, aliases)
    return Fragment.join(items) if items else None


class WithClauseBuilder:
    """Builds the ``with <alias> as (<query>), …`` block.

    ``with_({"young": sq.from_("person").where(sql("age < 18"))})`` names a
    subquery; a ``sql()`` template is emitted as a complete entry.
    """

    def __init__(self, args: ArgumentBuilder) -> None:
        self._args = args

    def build(self, ctx: ContextDescriptor) -> Fragment | None:
        entries: list[Fragment] = []
        for call in ctx[ClauseKind.WITH]:
            for arg in call.args:
                if isinstance(arg, Template):
                    entries.append(self._args.build_template(arg))
                elif isinstance(arg, Mapping):
                    for alias, query in arg.items():
                        body = self._body(query)
                        entries.append(
                            Fragment(f"{self._args.ctx.map_key(alias)} as ({body.text})", body.args)
                        )
                else:
                    raise CompilationError(
                        f"Invalid with() argument: {arg!r}. Expected a mapping of "
                        f"alias to query or an sql() template.",
                        clause="with",
                    )
        if not entries:
            return None
        return Fragment.join(entries).prefix("with")

    def _body(self, query: Any) -> Fragment:
        if isinstance(query, Template):
            return self._args.build_template(query)
        if isinstance(query, Buildable):
            fragment, _ = self._args.subquery(query)
            return fragment
        if isinstance(query, Statement):
            return self._args.ctx.compiler.unbind(query)
        raise CompilationError(
            f"Invalid with() query: {query!r}. Expected a builder, statement or sql() template.",
            clause="with",
        )


class SelectClauseBuilder:
    """Builds ``select <expressions>``, defaulting to ``select *``."""

    def __init__(self, args: ArgumentBuilder) -> None:
        self._args = args

    def build(self, ctx: ContextDescriptor) -> Fragment | None:
        columns = _expression_list(self._args, ctx[ClauseKind.RETURN], "return")
        if columns is None:
            return Fragment("select *")
        return columns.prefix("select")


class ReturningClauseBuilder:
    """Builds ``returning <expressions>`` for insert, update and delete."""

    def __init__(self, args: ArgumentBuilder) -> None:
        self._args = args

    def build(self, ctx: ContextDescriptor) -> Fragment | None:
        columns = _expression_list(self._args, ctx[ClauseKind.RETURN], "return")
        return columns.prefix("returning") if columns is not None else None


class FromClauseBuilder:
    """Builds the ``from <tables | subqueries>`` fragment.

    ``tables`` returns the compiled items one by one; update, delete and
    insert statements place them around their own keywords.
    """

    def __init__(self, args: ArgumentBuilder) -> None:
        self._args = args

    def tables(self, ctx: ContextDescriptor) -> list[Fragment]:
        return _expression_items(self._args, ctx[ClauseKind.FROM], "from")

    def build(self, ctx: ContextDescriptor) -> Fragment | None:
        tables = self.tables(ctx)
        return Fragment.join(tables).prefix("from") if tables else None


class ConditionClauseBuilder:
    """Builds ``where`` or ``having`` from the condition algebra.

    Each call becomes its own subtree; separate calls are joined with
    ``and``.  Calls that contribute nothing (``where()``, ``where({})``) are
    skipped, and if none remain the clause is omitted.
    """

    def __init__(self, args: ArgumentBuilder, kind: ClauseKind, keyword: str) -> None:
        self._args = args
        self._kind = kind
        self._keyword = keyword

    def build(self, ctx: ContextDescriptor) -> Fragment | None:
        nodes: list[Condition] = []
        for call in ctx[self._kind]:
            node = to_condition(*call.args, clause=self._kind.value)
            if node is not None:
                nodes.append(node)
        if not nodes:
            return None
        tree = nodes[0] if len(nodes) == 1 else And(tuple(nodes))
        return render(tree, self._args).prefix(self._keyword)


class ListClauseBuilder:
    """Builds ``group by`` / ``order by`` expression lists."""

    def __init__(self, args: ArgumentBuilder, kind: ClauseKind, keyword: str) -> None:
        self._args = args
        self._kind = kind
        self._keyword = keyword

    def build(self, ctx: ContextDescriptor) -> Fragment | None:
        items = _expression_list(self._args, ctx[self._kind], self._kind.value, aliases=False)
        return items.prefix(self._keyword) if items is not None else None


class ScalarClauseBuilder:
    """Builds ``limit`` / ``offset``.  The last call wins."""

    def __init__(self, args: ArgumentBuilder, kind: ClauseKind, keyword: str) -> None:
        self._args = args
        self._kind = kind
        self._keyword = keyword

    def build(self, ctx: ContextDescriptor) -> Fragment | None:
        calls = ctx[self._kind]
        if not calls:
            return None
        last = calls[-1]
        if len(last.args) != 1:
            raise CompilationError(
                f"{self._kind.value}() takes exactly one argument, got {len(last.args)}.",
                clause=self._kind.value,
            )
        return self._args.build(last.args[0]).prefix(self._keyword)


class DeleteClauseBuilder:
    """Builds ``delete from <table>``.

    Further tables are joined the way the dialect allows it, e.g.
    ``delete from a using b`` on PostgreSQL.
    """

    def __init__(self, args: ArgumentBuilder, from_builder: FromClauseBuilder) -> None:
        self._args = args
        self._from = from_builder

    def build(self, ctx: ContextDescriptor) -> Fragment | None:
        if ctx.statement_kind is not StatementKind.DELETE:
            return None
        tables = self._from.tables(ctx)
        return self._args.ctx.compiler.delete_tables(tables).prefix("delete")


class UpdateClauseBuilder:
    """Builds ``update <table> set <assignments>``.

    ``set({"age": 7})`` yields ``age = $1``; ``set(sql("age = age + 1"))`` is
    emitted as written.  Separate calls are joined with ``, ``.
    """

    def __init__(self, args: ArgumentBuilder, from_builder: FromClauseBuilder) -> None:
        self._args = args
        self._from = from_builder

    def build(self, ctx: ContextDescriptor) -> Fragment | None:
        if not ctx.has(ClauseKind.SET):
            return None
        assignments: list[Fragment] = []
        for call in ctx[ClauseKind.SET]:
            for arg in call.args:
                if isinstance(arg, Template):
                    assignments.append(self._args.build_template(arg))
                elif isinstance(arg, Mapping):
                    for column, value in arg.items():
                        frag = self._args.build(value)
                        assignments.append(
                            Fragment(f"{self._args.ctx.map_key(column)} = {frag.text}", frag.args)
                        )
                else:
                    raise CompilationError(
                        f"Invalid set() argument: {arg!r}. Expected a mapping or sql() template.",
                        clause="set",
                    )
        if not assignments:
            raise EmptyStatementError(
                StatementKind.UPDATE.value, "An update statement requires at least one assignment."
            )
        target, joined = self._args.ctx.compiler.update_tables(self._from.tables(ctx))
        parts = [target.prefix("update"), Fragment.join(assignments).prefix("set")]
        if joined is not None:
            parts.append(joined)
        return Fragment.join(parts, " ")


class InsertClauseBuilder:
    """Builds ``insert into <table> (<columns>) values (<row>), …``.

    Two forms are supported and cannot be combined:

    * mapping rows – ``insert({"firstName": "Jo"}, {"age": 7})``: columns are
      the union of mapped keys in first-seen order; a key missing from a row
      emits ``default`` while an explicit ``None`` binds SQL null.
    * column list – ``insert("name", "age").value("Jo", 9).value("Mo", 4)``:
      exactly one column declaration, one row per ``value`` call, and each
      row must have as many values as there are columns.  ``sql()``
      templates may stand in for the column list or a whole row.
    """

    def __init__(self, args: ArgumentBuilder, from_builder: FromClauseBuilder) -> None:
        self._args = args
        self._from = from_builder

    def build(self, ctx: ContextDescriptor) -> Fragment | None:
        if ctx.statement_kind is not StatementKind.INSERT:
            return None
        mapping_rows: list[Mapping[str, Any]] = []
        value_rows: list[tuple[Any, ...]] = []
        for call in ctx[ClauseKind.INSERT_VALUES]:
            for arg in call.args:
                if isinstance(arg, Mapping):
                    mapping_rows.append(arg)
                else:
                    value_rows.append(arg)
        tables = self._from.tables(ctx)
        if len(tables) != 1:
            raise CompilationError(
                f"An insert statement takes exactly one table, got {len(tables)}.",
                clause="insert",
            )
        target = tables[0].prefix("insert into")
        if mapping_rows:
            if value_rows or ctx.has(ClauseKind.INSERT_COLUMNS):
                raise ArityMismatchError(
                    "Mapping rows cannot be combined with an insert column list."
                )
            body = self._from_mappings(mapping_rows)
        else:
            body = self._from_columns(ctx[ClauseKind.INSERT_COLUMNS], value_rows)
        return Fragment.join([target, body], " ")

    # ------------------------------------------------------------------
    # Mapping rows
    # ------------------------------------------------------------------

    def _from_mappings(self, rows: list[Mapping[str, Any]]) -> Fragment:
        map_key = self._args.ctx.map_key
        mapped_rows = [{map_key(key): value for key, value in row.items()} for row in rows]
        columns: dict[str, None] = {}
        for row in mapped_rows:
            columns.update(dict.fromkeys(row))
        if not columns:
            if len(rows) > 1:
                raise ArityMismatchError(
                    "Cannot insert several rows that have no columns.", expected=1, actual=len(rows)
                )
            return Fragment("default values")
        value_sql = Fragment.join(
            Fragment.join(
                self._args.build(row[column]) if column in row else _DEFAULT
                for column in columns
            ).wrap()
            for row in mapped_rows
        )
        return Fragment(f"({', '.join(columns)}) values {value_sql.text}", value_sql.args)

    # ------------------------------------------------------------------
    # Column list + value rows
    # ------------------------------------------------------------------

    def _from_columns(self, column_calls: list[MethodCall], rows: list[tuple[Any, ...]]) -> Fragment:
        if len(column_calls) != 1:
            raise ArityMismatchError(
                f"An insert must declare its columns exactly once, got {len(column_calls)} "
                f"declarations.",
                expected=1,
                actual=len(column_calls),
            )
        declared = column_calls[0].args
        if not declared:
            raise ArityMismatchError(
                "An insert column list must name at least one column.",
                expected=1,
                actual=0,
            )
        if not rows:
            raise ArityMismatchError(
                "An insert with a column list requires at least one value() row.",
                expected=1,
                actual=0,
            )
        width = len(declared) if all(isinstance(c, str) for c in declared) else None
        columns = Fragment.join(self._args.build_expression(c) for c in declared)
        row_sql: list[Fragment] = []
        for row in rows:
            if len(row) == 1 and isinstance(row[0], Template):
                row_sql.append(self._args.build_template(row[0]).wrap())
                continue
            if width is not None and len(row) != width:
                raise ArityMismatchError(
                    f"Insert row has {len(row)} value(s) but {width} column(s) were declared.",
                    expected=width,
                    actual=len(row),
                )
            row_sql.append(Fragment.join(self._args.build(v) for v in row).wrap())
        values = Fragment.join(row_sql)
        return Fragment.join([columns.wrap(), values.prefix("values")], " ")


class ManualClauseBuilder:
    """Joins ``l(...)`` fragments with spaces."""

    def __init__(self, args: ArgumentBuilder) -> None:
        self._args = args

    def build(self, ctx: ContextDescriptor) -> Fragment | None:
        parts = [
            self._args.build(arg)
            for call in ctx[ClauseKind.MANUAL]
            for arg in call.args
        ]
        parts = [part for part in parts if part.text]
        if not parts:
            return None
        return Fragment.join(parts, " ")
