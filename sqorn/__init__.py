"""sqorn – a fluent SQL query builder.

Chain calls on a builder; get back one parameterized statement.

Public API
----------
``sqorn``
    Create a root builder from configuration and an optional connection.

``sql`` / ``raw``
    Template text with parameterized ``{}`` slots / literal SQL opt-out.

``conjoin``, ``disjoin``, ``negate``, ``to_condition``
    Condition algebra for ``where`` and ``having``.

Re-exported types
-----------------
``Sq``, ``Statement``, ``SqornConfig``, ``Executor``, ``DBAPIExecutor``,
``Transaction``, the condition node classes, and all error classes.

Extensibility
-------------
New dialect compilers can be registered via::

    from sqorn.compile.registry import CompilerFactory

    @CompilerFactory.register("oracle")
    class OracleCompiler(SQLCompiler):
        ...

After registration, ``sqorn(dialect="oracle")`` picks it up automatically.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError as PydanticValidationError

from sqorn.chain import Sq
from sqorn.compile.base import Fragment, SQLCompiler, Statement
from sqorn.compile.builder import StatementBuilder
from sqorn.compile.conditions import (
    And,
    Condition,
    Leaf,
    Not,
    Or,
    conjoin,
    disjoin,
    from_object_shorthand,
    from_raw_fragment,
    negate,
    to_condition,
)
from sqorn.compile.mysql import MySQLCompiler
from sqorn.compile.postgres import PostgresCompiler
from sqorn.compile.registry import CompilerFactory
from sqorn.compile.sqlite import SQLiteCompiler
from sqorn.errors import (
    ArityMismatchError,
    CompilationError,
    ConfigurationError,
    ConflictingStatementKindError,
    EmptyStatementError,
    ExecutionError,
    MalformedConditionError,
    SqornError,
)
from sqorn.execute.executor import DBAPIExecutor, Executor, Transaction
from sqorn.keys import camel_case, snake_case
from sqorn.schema.config import SqornConfig
from sqorn.schema.method_log import ClauseKind, MethodCall, StatementKind
from sqorn.schema.values import Raw, Template, raw, sql

# ---------------------------------------------------------------------------
# Register built-in compilers with CompilerFactory
# ---------------------------------------------------------------------------

CompilerFactory.register_class("postgres", PostgresCompiler)
CompilerFactory.register_class("sqlite", SQLiteCompiler)
CompilerFactory.register_class("mysql", MySQLCompiler)

__all__ = [
    # Entry point
    "sqorn",
    "Sq",
    # Values
    "raw",
    "sql",
    "Raw",
    "Template",
    # Conditions
    "Condition",
    "Leaf",
    "Not",
    "And",
    "Or",
    "conjoin",
    "disjoin",
    "negate",
    "to_condition",
    "from_object_shorthand",
    "from_raw_fragment",
    # Method log
    "ClauseKind",
    "MethodCall",
    "StatementKind",
    # Configuration
    "SqornConfig",
    "snake_case",
    "camel_case",
    # Compilation
    "Fragment",
    "Statement",
    "StatementBuilder",
    "SQLCompiler",
    "CompilerFactory",
    "PostgresCompiler",
    "SQLiteCompiler",
    "MySQLCompiler",
    # Execution
    "Executor",
    "DBAPIExecutor",
    "Transaction",
    # Errors
    "SqornError",
    "CompilationError",
    "ConflictingStatementKindError",
    "ArityMismatchError",
    "EmptyStatementError",
    "MalformedConditionError",
    "ConfigurationError",
    "ExecutionError",
]


def sqorn(
    connection: Any = None,
    executor: Executor | None = None,
    **config: Any,
) -> Sq:
    """Create a root builder.

    Builders only compile unless they can reach a database::

        sq = sqorn()
        sq.from_("book").where({"id": 7}).return_("title").query
        # Statement(text='select title from book where id = $1', args=(7,), ...)

        sq = sqorn(connection=sqlite3.connect(":memory:"), dialect="sqlite")
        sq.l("select 1 as one").one()
        # {'one': 1}

    Args:
        connection: Optional DB-API 2.0 connection; wrapped in a
            :class:`DBAPIExecutor` that applies ``map_output_keys``.
        executor: Optional custom :class:`Executor` (mutually exclusive with
            ``connection``).
        **config: :class:`SqornConfig` fields (``dialect``,
            ``map_input_keys``, ``map_output_keys``).

    Returns:
        A root :class:`Sq` builder.

    Raises:
        ConfigurationError: If the configuration is invalid or both
            ``connection`` and ``executor`` are given.
    """
    try:
        settings = SqornConfig(**config)
    except PydanticValidationError as exc:
        raise ConfigurationError(f"Invalid sqorn configuration: {exc}") from exc

    if connection is not None and executor is not None:
        raise ConfigurationError("Pass either connection= or executor=, not both.")
    if connection is not None:
        executor = DBAPIExecutor(connection, map_output_keys=settings.map_output_keys)
    return Sq(settings, executor)
