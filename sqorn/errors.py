"""Custom exception hierarchy for sqorn.

All public errors inherit from :class:`SqornError` so callers can catch the
base class for any sqorn-specific failure.  Compile-time failures derive from
:class:`CompilationError` and are always raised before any I/O happens.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from sqorn.compile.base import Statement


class SqornError(Exception):
    """Base exception for all sqorn errors."""


class CompilationError(SqornError):
    """Raised when a method log cannot be compiled to a statement.

    Args:
        message: Human-readable description.
        clause: The clause being compiled when the error occurred.
        code: Machine-readable error code.
        details: Extra structured context.
    """

    default_code = "COMPILATION_ERROR"

    def __init__(
        self,
        message: str,
        clause: str | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.clause = clause
        self.code = code or self.default_code
        self.details: dict[str, Any] = details or {}

    def to_error_response(self) -> dict[str, Any]:
        """Returns a structured error response."""
        return {
            "error": self.code,
            "message": str(self),
            "details": self.details,
        }


class ConflictingStatementKindError(CompilationError):
    """Raised when the method log implies two mutually exclusive statement kinds.

    Also raised when a clause is used that the statement kind does not allow
    (e.g. ``group`` in an update statement).
    """

    default_code = "CONFLICTING_STATEMENT_KIND"

    def __init__(self, current: str, requested: str, clause: str | None = None) -> None:
        if clause is None:
            message = f"Cannot combine {current} and {requested} clauses in one statement."
        else:
            message = f"The '{clause}' clause is not allowed in {current} statements."
        super().__init__(
            message,
            clause=clause,
            details={"statement_kind": current, "requested": requested},
        )


class ArityMismatchError(CompilationError):
    """Raised when insert columns and value rows disagree."""

    default_code = "ARITY_MISMATCH"

    def __init__(self, message: str, expected: int | None = None, actual: int | None = None) -> None:
        super().__init__(
            message,
            clause="insert",
            details={"expected": expected, "actual": actual},
        )


class EmptyStatementError(CompilationError):
    """Raised when a statement that needs a target has none."""

    default_code = "EMPTY_STATEMENT"

    def __init__(self, statement_kind: str, message: str | None = None) -> None:
        super().__init__(
            message or f"A {statement_kind} statement requires a table or subquery.",
            details={"statement_kind": statement_kind},
        )


class MalformedConditionError(CompilationError):
    """Raised when a condition input is not a mapping, template or condition."""

    default_code = "MALFORMED_CONDITION"

    def __init__(self, value: Any, clause: str | None = None) -> None:
        super().__init__(
            f"Invalid condition: {value!r}. Expected a mapping, sql() template "
            f"or condition expression.",
            clause=clause,
            details={"type": type(value).__name__},
        )


class ConfigurationError(SqornError):
    """Raised when sqorn is misconfigured.

    Detected when the configuration is built or when an operation needs a
    collaborator (such as an executor) that was never supplied.
    """


class ExecutionError(SqornError):
    """Raised when the database driver fails to execute a statement.

    Args:
        message: Human-readable description.
        statement: The statement that failed.
    """

    def __init__(self, message: str, statement: Statement | None = None) -> None:
        super().__init__(message)
        self.statement = statement
