"""Core method log → SQL compilation logic.

``StatementBuilder`` is the top-level orchestrator.  It reduces a method log
to a :class:`~sqorn.schema.context.ContextDescriptor`, runs the clause
generators in the order the statement kind requires, and assembles the
resulting fragments into a :class:`~sqorn.compile.base.Statement`.  All
dialect-specific behaviour is delegated to the injected ``SQLCompiler``;
clause rendering is delegated to the generator hierarchy.

Generator hierarchy
-------------------
StatementBuilder
  ├── ArgumentBuilder          (escape.py)
  ├── WithClauseBuilder        (clause_builders.py)
  ├── SelectClauseBuilder      (clause_builders.py)
  ├── DeleteClauseBuilder      (clause_builders.py)
  ├── UpdateClauseBuilder      (clause_builders.py)
  ├── InsertClauseBuilder      (clause_builders.py)
  ├── FromClauseBuilder        (clause_builders.py)
  ├── ConditionClauseBuilder   (clause_builders.py, where + having)
  ├── ListClauseBuilder        (clause_builders.py, group by + order by)
  ├── ScalarClauseBuilder      (clause_builders.py, limit + offset)
  ├── ReturningClauseBuilder   (clause_builders.py)
  └── ManualClauseBuilder      (clause_builders.py)

Placeholder numbering
---------------------
Generators emit fragments with local parameter marks.  Nested builders are
compiled to unbound fragments through the same ``ArgumentBuilder``, so their
args simply join the parent's stream.  Marks become ``$1 … $n`` (or the
dialect's equivalent) exactly once, in :meth:`StatementBuilder.assemble`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqorn.compile.base import Buildable, Fragment, SQLCompiler, Statement
from sqorn.compile.clause_builders import (
    ConditionClauseBuilder,
    DeleteClauseBuilder,
    FromClauseBuilder,
    InsertClauseBuilder,
    ListClauseBuilder,
    ManualClauseBuilder,
    ReturningClauseBuilder,
    ScalarClauseBuilder,
    SelectClauseBuilder,
    UpdateClauseBuilder,
    WithClauseBuilder,
)
from sqorn.compile.context import CompilationContext
from sqorn.compile.escape import ArgumentBuilder
from sqorn.compile.reducer import reduce
from sqorn.errors import EmptyStatementError
from sqorn.schema.config import SqornConfig
from sqorn.schema.context import ContextDescriptor
from sqorn.schema.method_log import ClauseKind, MethodCall, StatementKind

logger = logging.getLogger(__name__)

#: Generator evaluation order per statement kind.
CLAUSE_ORDER: dict[StatementKind, tuple[str, ...]] = {
    StatementKind.SELECT: (
        "with", "select", "from", "where", "group", "having", "order", "limit", "offset",
    ),
    StatementKind.DELETE: ("with", "delete", "where", "returning"),
    StatementKind.UPDATE: ("with", "update", "where", "returning"),
    StatementKind.INSERT: ("with", "insert", "returning"),
    StatementKind.MANUAL: ("manual",),
}


class StatementBuilder:
    """Compiles method logs to parameterized SQL.

    Args:
        compiler: Dialect-specific compiler instance.
        config: Key-mapping configuration.
    """

    def __init__(self, compiler: SQLCompiler, config: SqornConfig) -> None:
        self._ctx = CompilationContext(compiler=compiler, config=config)
        self._generators = self._make_generators()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(self, method_log: Iterable[MethodCall]) -> Statement:
        """Compile ``method_log`` to a :class:`Statement`.

        Raises:
            CompilationError: (or subclass) if the log is inconsistent.
        """
        ctx = reduce(method_log)
        return self.assemble(ctx.statement_kind, self.generate(ctx))

    def generate(self, ctx: ContextDescriptor) -> list[Fragment | None]:
        """Run the clause generators for ``ctx`` in statement order.

        Raises:
            EmptyStatementError: If the statement kind needs a target and the
                log supplies none.
        """
        self._require_target(ctx)
        return [self._generators[name].build(ctx) for name in CLAUSE_ORDER[ctx.statement_kind]]

    def assemble(
        self,
        statement_kind: StatementKind,
        fragments: Iterable[Fragment | None],
    ) -> Statement:
        """Join present fragments with single spaces and number placeholders.

        Raises:
            EmptyStatementError: If no fragment has any text.
        """
        fragment = self._join(fragments)
        if not fragment.text:
            raise EmptyStatementError(statement_kind.value, "Cannot compile an empty statement.")
        text = self._ctx.compiler.bind(fragment)
        logger.debug(
            "Compiled %s statement (%d args): %s", statement_kind.value, len(fragment.args), text
        )
        return Statement(
            text=text,
            args=fragment.args,
            dialect=self._ctx.compiler.dialect_name,
            fragment=fragment,
        )

    def build_fragment(self, builder: Buildable) -> tuple[Fragment, StatementKind]:
        """Compile a nested builder to an unbound fragment."""
        ctx = reduce(builder.method_log)
        return self._join(self.generate(ctx)), ctx.statement_kind

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _join(fragments: Iterable[Fragment | None]) -> Fragment:
        return Fragment.join((f for f in fragments if f is not None and f.text), " ")

    @staticmethod
    def _require_target(ctx: ContextDescriptor) -> None:
        kind = ctx.statement_kind
        if kind is StatementKind.MANUAL:
            return
        if ctx.has(ClauseKind.FROM):
            return
        if kind is StatementKind.SELECT:
            if not ctx.has(ClauseKind.RETURN):
                raise EmptyStatementError(
                    kind.value, "A select statement requires a table or return expressions."
                )
            return
        raise EmptyStatementError(kind.value)

    def _make_generators(self) -> dict:
        """Construct and wire the generator graph.

        Nested builders are compiled by ``build_fragment`` so they share this
        builder's compiler and configuration.
        """
        args = ArgumentBuilder(self._ctx, self.build_fragment)
        from_builder = FromClauseBuilder(args)
        return {
            "with": WithClauseBuilder(args),
            "select": SelectClauseBuilder(args),
            "delete": DeleteClauseBuilder(args, from_builder),
            "update": UpdateClauseBuilder(args, from_builder),
            "insert": InsertClauseBuilder(args, from_builder),
            "from": from_builder,
            "where": ConditionClauseBuilder(args, ClauseKind.WHERE, "where"),
            "group": ListClauseBuilder(args, ClauseKind.GROUP, "group by"),
            "having": ConditionClauseBuilder(args, ClauseKind.HAVING, "having"),
            "order": ListClauseBuilder(args, ClauseKind.ORDER, "order by"),
            "limit": ScalarClauseBuilder(args, ClauseKind.LIMIT, "limit"),
            "offset": ScalarClauseBuilder(args, ClauseKind.OFFSET, "offset"),
            "returning": ReturningClauseBuilder(args),
            "manual": ManualClauseBuilder(args),
        }
