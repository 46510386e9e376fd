"""Method-log types: the record of builder calls compiled into a statement.

Every chain operation on :class:`~sqorn.chain.Sq` appends one
:class:`MethodCall` to an immutable tuple.  The log is the single source of
truth for compilation; builders never hold any other state about the query.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Clause kinds
# ---------------------------------------------------------------------------


class ClauseKind(str, Enum):
    """The closed set of chainable operations."""

    WITH = "with"
    FROM = "from"
    WHERE = "where"
    RETURN = "return"
    GROUP = "group"
    HAVING = "having"
    ORDER = "order"
    LIMIT = "limit"
    OFFSET = "offset"
    SET = "set"
    INSERT_COLUMNS = "insert_columns"
    INSERT_VALUES = "insert_values"
    DELETE = "delete"
    MANUAL = "manual"


# ---------------------------------------------------------------------------
# Statement kinds
# ---------------------------------------------------------------------------


class StatementKind(str, Enum):
    """Which kind of SQL statement a method log compiles to."""

    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    MANUAL = "manual"


#: Clause kinds that decide the statement kind when they appear.
STATEMENT_KIND_CLAUSES: dict[ClauseKind, StatementKind] = {
    ClauseKind.INSERT_COLUMNS: StatementKind.INSERT,
    ClauseKind.INSERT_VALUES: StatementKind.INSERT,
    ClauseKind.SET: StatementKind.UPDATE,
    ClauseKind.DELETE: StatementKind.DELETE,
    ClauseKind.MANUAL: StatementKind.MANUAL,
}

_SHARED = frozenset({ClauseKind.WITH, ClauseKind.FROM, ClauseKind.RETURN})

#: Clause kinds each statement kind accepts.
LEGAL_CLAUSES: dict[StatementKind, frozenset[ClauseKind]] = {
    StatementKind.SELECT: _SHARED
    | {
        ClauseKind.WHERE,
        ClauseKind.GROUP,
        ClauseKind.HAVING,
        ClauseKind.ORDER,
        ClauseKind.LIMIT,
        ClauseKind.OFFSET,
    },
    StatementKind.UPDATE: _SHARED | {ClauseKind.WHERE, ClauseKind.SET},
    StatementKind.DELETE: _SHARED | {ClauseKind.WHERE, ClauseKind.DELETE},
    StatementKind.INSERT: _SHARED | {ClauseKind.INSERT_COLUMNS, ClauseKind.INSERT_VALUES},
    StatementKind.MANUAL: frozenset({ClauseKind.MANUAL}),
}


# ---------------------------------------------------------------------------
# Method call
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MethodCall:
    """One recorded builder operation.

    Attributes:
        kind: The clause the call contributes to.
        args: Positional arguments exactly as the caller passed them.
    """

    kind: ClauseKind
    args: tuple[Any, ...] = ()


MethodLog = tuple[MethodCall, ...]
