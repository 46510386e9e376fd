"""The builder façade.

:class:`Sq` is an immutable chain object.  Every chain method returns a new
builder whose method log extends the current one, so a prefix can be shared
and branched freely::

    people = sq.from_("person")
    kids = people.where(sql("age < {}", 13))
    adults = people.where(sql("age >= {}", 18))

    kids.return_("name").query
    # Statement(text='select name from person where age < $1', args=(13,), ...)

    people.where({"id": 7}).set({"firstName": "Jo"}).return_("id").query
    # update person set first_name = $1 where id = $2 returning id

Express syntax: the first three calls of a fresh builder are ``from``,
``where`` and ``return``::

    sq("book")({"genre": "Fantasy"})("title").query
    # select title from book where genre = $1

Illegal chains (``set`` after ``delete``, ``group`` in an insert, any clause
mixed with ``l``) raise
:class:`~sqorn.errors.ConflictingStatementKindError` from the offending call.
"""
from __future__ import annotations

import copy
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from sqorn.compile.base import Buildable, Statement
from sqorn.compile.builder import StatementBuilder
from sqorn.compile.reducer import advance_statement_kind
from sqorn.compile.registry import CompilerFactory
from sqorn.errors import CompilationError, ConfigurationError
from sqorn.execute.executor import Executor, Row, Transaction
from sqorn.schema.config import SqornConfig
from sqorn.schema.method_log import ClauseKind, MethodCall, MethodLog, StatementKind
from sqorn.schema.values import Template

T = TypeVar("T")

_EXPRESS_STEPS = (ClauseKind.FROM, ClauseKind.WHERE, ClauseKind.RETURN)
_EXPRESS_CLOSED = len(_EXPRESS_STEPS)


class Sq(Buildable):
    """Fluent, immutable SQL query builder.

    Normally created through :func:`sqorn.sqorn`.

    Args:
        config: Dialect and key-mapping settings.
        executor: Runs compiled statements for ``all``/``one``/``exists``.
    """

    def __init__(self, config: SqornConfig | None = None, executor: Executor | None = None) -> None:
        self._config = config or SqornConfig()
        self._executor = executor
        self._builder = StatementBuilder(CompilerFactory.create(self._config.dialect), self._config)
        self._log: MethodLog = ()
        self._used: frozenset[ClauseKind] = frozenset()
        self._kind = StatementKind.SELECT
        self._express = 0

    # ------------------------------------------------------------------
    # Buildable
    # ------------------------------------------------------------------

    @property
    def method_log(self) -> MethodLog:
        return self._log

    @property
    def config(self) -> SqornConfig:
        return self._config

    @property
    def statement_kind(self) -> StatementKind:
        return self._kind

    @property
    def query(self) -> Statement:
        """Compile the method log to a parameterized :class:`Statement`.

        Raises:
            CompilationError: (or subclass) if the log cannot be compiled.
        """
        return self._builder.build(self._log)

    # ------------------------------------------------------------------
    # Chain methods
    # ------------------------------------------------------------------

    def __call__(self, *args: Any) -> Sq:
        """Express syntax: ``from``, then ``where``, then ``return``."""
        if self._express >= _EXPRESS_CLOSED:
            raise CompilationError(
                "Express calls are only available as the first three calls of a builder."
            )
        return self._chain(_EXPRESS_STEPS[self._express], args, express=self._express + 1)

    def with_(self, *args: Any) -> Sq:
        """``with`` clause: ``with_({"alias": subquery})`` or an ``sql()`` template."""
        return self._chain(ClauseKind.WITH, args)

    def from_(self, *tables: Any) -> Sq:
        """``from`` clause: table names, ``{alias: table}``, subqueries or templates."""
        return self._chain(ClauseKind.FROM, tables)

    def where(self, *conditions: Any) -> Sq:
        """``where`` clause.

        Keys within a mapping are joined with ``and``, the arguments of one
        call with ``or``, and separate calls with ``and``.
        """
        return self._chain(ClauseKind.WHERE, conditions)

    def return_(self, *columns: Any) -> Sq:
        """``select`` list, or ``returning`` list of a mutation."""
        return self._chain(ClauseKind.RETURN, columns)

    def group(self, *columns: Any) -> Sq:
        return self._chain(ClauseKind.GROUP, columns)

    def having(self, *conditions: Any) -> Sq:
        return self._chain(ClauseKind.HAVING, conditions)

    def order(self, *columns: Any) -> Sq:
        return self._chain(ClauseKind.ORDER, columns)

    def limit(self, value: Any) -> Sq:
        return self._chain(ClauseKind.LIMIT, (value,))

    def offset(self, value: Any) -> Sq:
        return self._chain(ClauseKind.OFFSET, (value,))

    def set(self, *assignments: Any) -> Sq:
        """Turn the query into an update: ``set({"age": 7})``."""
        return self._chain(ClauseKind.SET, assignments)

    def insert(self, *args: Any) -> Sq:
        """Turn the query into an insert.

        ``insert({"name": "Jo"}, {"name": "Mo"})`` inserts mapping rows;
        ``insert("name", "age")`` declares columns for later ``value`` calls.
        """
        if args and all(isinstance(arg, Mapping) for arg in args):
            return self._chain(ClauseKind.INSERT_VALUES, args)
        if any(isinstance(arg, Mapping) for arg in args):
            raise CompilationError(
                "insert() takes either mapping rows or column names, not both.", clause="insert"
            )
        return self._chain(ClauseKind.INSERT_COLUMNS, args)

    def value(self, *values: Any) -> Sq:
        """Append one row of values for the columns declared by ``insert``."""
        return self._chain(ClauseKind.INSERT_VALUES, (values,))

    def delete(self) -> Sq:
        """Turn the query into a delete."""
        return self._chain(ClauseKind.DELETE, ())

    def l(self, text: str | Template, *args: Any) -> Sq:  # noqa: E743
        """Append manual SQL: ``l("select * from person where age = {}", 8)``.

        Manual calls are joined with spaces and cannot be mixed with other
        clauses.
        """
        if isinstance(text, Template):
            if args:
                raise CompilationError("l() takes no extra arguments with an sql() template.")
            template = text
        elif isinstance(text, str):
            template = Template.parse(text, *args)
        else:
            raise CompilationError(
                f"l() expects SQL text or an sql() template, got {type(text).__name__}."
            )
        return self._chain(ClauseKind.MANUAL, (template,))

    def extend(self, *builders: Buildable) -> Sq:
        """Append the method logs of ``builders`` to this builder's log."""
        new = self
        for builder in builders:
            for call in builder.method_log:
                new = new._append(call)
        return new

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def all(self, trx: Transaction | None = None) -> list[Row]:
        """Execute and return all result rows."""
        return self._require_executor().all(self.query, trx)

    def one(self, trx: Transaction | None = None) -> Row | None:
        """Execute and return the first result row, or ``None``."""
        return self._require_executor().one(self.query, trx)

    def exists(self, trx: Transaction | None = None) -> bool:
        """Execute and return whether any row came back."""
        return self._require_executor().exists(self.query, trx)

    def transaction(self, callback: Callable[[Transaction], T] | None = None) -> Transaction | T:
        """Start a transaction; see :meth:`Executor.transaction`."""
        return self._require_executor().transaction(callback)

    def end(self) -> None:
        """Close the executor's connection."""
        self._require_executor().close()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _chain(self, kind: ClauseKind, args: tuple[Any, ...], express: int = _EXPRESS_CLOSED) -> Sq:
        new = self._append(MethodCall(kind, tuple(args)))
        new._express = express
        return new

    def _append(self, call: MethodCall) -> Sq:
        kind = advance_statement_kind(self._kind, self._used, call.kind)
        new = copy.copy(self)
        new._log = self._log + (call,)
        new._used = self._used | {call.kind}
        new._kind = kind
        new._express = _EXPRESS_CLOSED
        return new

    def _require_executor(self) -> Executor:
        if self._executor is None:
            raise ConfigurationError(
                "No executor configured. Pass connection= or executor= to sqorn()."
            )
        return self._executor

    def __repr__(self) -> str:
        calls = ", ".join(call.kind.value for call in self._log)
        return f"Sq({self._kind.value}: [{calls}])"
