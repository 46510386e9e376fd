"""Context reducer: fold a method log into a :class:`ContextDescriptor`.

The statement kind is tracked by a small state machine.  Every log starts as
a ``select``; ``insert``/``value``, ``set``, ``delete`` and ``l`` calls move
it to ``insert``, ``update``, ``delete`` and ``manual`` respectively.  Each
step checks that

* no other mutation kind was already chosen, and
* every clause used so far is legal for the resulting kind
  (see :data:`~sqorn.schema.method_log.LEGAL_CLAUSES`).

:func:`advance_statement_kind` is shared with the builder façade so an
illegal chain fails at the call that makes it illegal; :func:`reduce`
re-runs it so logs assembled by other means are checked too.
"""
from __future__ import annotations

from collections.abc import Iterable

from sqorn.errors import ConflictingStatementKindError
from sqorn.schema.context import ContextDescriptor
from sqorn.schema.method_log import (
    LEGAL_CLAUSES,
    STATEMENT_KIND_CLAUSES,
    ClauseKind,
    MethodCall,
    StatementKind,
)


def advance_statement_kind(
    current: StatementKind,
    used: frozenset[ClauseKind],
    clause: ClauseKind,
) -> StatementKind:
    """Return the statement kind after appending ``clause``.

    Args:
        current: Statement kind resolved so far.
        used: Clause kinds already present in the log.
        clause: The clause kind being appended.

    Raises:
        ConflictingStatementKindError: If ``clause`` selects a different
            mutation kind than ``current``, or is not allowed in it.
    """
    requested = STATEMENT_KIND_CLAUSES.get(clause)
    if requested is not None and requested is not current:
        if current is not StatementKind.SELECT:
            raise ConflictingStatementKindError(current.value, requested.value)
        for earlier in used:
            if earlier not in LEGAL_CLAUSES[requested]:
                raise ConflictingStatementKindError(
                    requested.value, requested.value, clause=earlier.value
                )
        current = requested
    if clause not in LEGAL_CLAUSES[current]:
        raise ConflictingStatementKindError(current.value, current.value, clause=clause.value)
    return current


def reduce(method_log: Iterable[MethodCall]) -> ContextDescriptor:
    """Fold ``method_log`` into per-clause buckets plus a statement kind.

    Raises:
        ConflictingStatementKindError: See :func:`advance_statement_kind`.
    """
    ctx = ContextDescriptor()
    used: set[ClauseKind] = set()
    for call in method_log:
        ctx.statement_kind = advance_statement_kind(
            ctx.statement_kind, frozenset(used), call.kind
        )
        used.add(call.kind)
        ctx.calls[call.kind].append(call)
    return ctx
