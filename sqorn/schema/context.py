"""Context descriptor: the reduced form of a method log.

Packages the per-clause call buckets and the resolved statement kind into a
single object consumed by every clause generator.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from sqorn.schema.method_log import ClauseKind, MethodCall, StatementKind


@dataclass
class ContextDescriptor:
    """Per-compilation clause buckets.

    Attributes:
        statement_kind: The single statement kind the log compiles to.
        calls: Calls grouped by clause kind, in log order.  Every
            :class:`ClauseKind` has an entry, possibly empty.
    """

    statement_kind: StatementKind = StatementKind.SELECT
    calls: dict[ClauseKind, list[MethodCall]] = field(
        default_factory=lambda: {kind: [] for kind in ClauseKind}
    )

    def __getitem__(self, kind: ClauseKind) -> list[MethodCall]:
        return self.calls[kind]

    def has(self, kind: ClauseKind) -> bool:
        """Return ``True`` if at least one call contributed to ``kind``."""
        return bool(self.calls[kind])
