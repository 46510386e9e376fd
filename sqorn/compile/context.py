"""Compilation context value object.

Packages the ``(compiler, config)`` data clump shared by the statement
builder, the argument builder and every clause generator into a single
cohesive object.
"""
from __future__ import annotations

from dataclasses import dataclass

from sqorn.compile.base import SQLCompiler
from sqorn.schema.config import SqornConfig
from sqorn.schema.values import check_literal


@dataclass(frozen=True)
class CompilationContext:
    """Immutable context for a single compilation run.

    Attributes:
        compiler: Dialect-specific SQL compiler instance.
        config: Key-mapping configuration.
    """

    compiler: SQLCompiler
    config: SqornConfig

    def map_key(self, key: str) -> str:
        """Map a caller-supplied mapping key to a column name or alias."""
        return check_literal(self.config.map_input_keys(key))
