"""Compiler abstractions: Fragment, Statement and the SQLCompiler ABC.

The Template Method pattern (GoF) is used:
- ``SQLCompiler`` defines the skeleton for binding fragments to final text
  and for unbinding compiled statements back into fragments.
- ``PostgresCompiler``, ``SQLiteCompiler`` and ``MySQLCompiler`` override the
  dialect-specific steps (placeholder style, literal escaping).

Fragments carry local parameter marks (``PARAMETER_MARK``) instead of real
placeholders.  Marks are only turned into numbered placeholders once, when
the whole statement is assembled, so independently built fragments can be
concatenated in any order.
"""
from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from sqorn.errors import CompilationError
from sqorn.schema.method_log import MethodLog
from sqorn.schema.values import PARAMETER_MARK, check_literal


@dataclass(frozen=True)
class Fragment:
    """Compiled text of one clause (or part of one) with its local args.

    Attributes:
        text: SQL text; each ``PARAMETER_MARK`` stands for the next arg.
        args: Argument values in mark order.
    """

    text: str
    args: tuple[Any, ...] = ()

    @classmethod
    def parameter(cls, value: Any) -> Fragment:
        return cls(PARAMETER_MARK, (value,))

    @classmethod
    def join(cls, fragments: Iterable[Fragment], separator: str = ", ") -> Fragment:
        """Concatenate fragments, keeping their args in emission order."""
        texts: list[str] = []
        args: list[Any] = []
        for frag in fragments:
            texts.append(frag.text)
            args.extend(frag.args)
        return cls(separator.join(texts), tuple(args))

    def wrap(self) -> Fragment:
        """Return this fragment in parentheses."""
        return Fragment(f"({self.text})", self.args)

    def prefix(self, keyword: str) -> Fragment:
        """Return ``keyword`` followed by this fragment."""
        return Fragment(f"{keyword} {self.text}", self.args)


@dataclass(frozen=True)
class Statement:
    """The output of a successful compilation.

    Attributes:
        text: The compiled SQL string with positional placeholders.
        args: Values for the placeholders, in placeholder order.
        dialect: The dialect whose placeholder style ``text`` uses.
        fragment: The unbound form, kept so the statement can be embedded
            in another query without re-parsing ``text``.
    """

    text: str
    args: tuple[Any, ...] = ()
    dialect: str = "postgres"
    fragment: Fragment | None = field(default=None, repr=False, compare=False)


class Buildable(ABC):
    """Anything that can be compiled from a method log (i.e. a builder)."""

    @property
    @abstractmethod
    def method_log(self) -> MethodLog:
        """The ordered, immutable record of builder calls."""


class SQLCompiler(ABC):
    """Abstract base for dialect-specific SQL compilers.

    Subclasses implement the dialect-specific methods; the
    :class:`~sqorn.compile.builder.StatementBuilder` uses this interface via
    the Strategy / Template Method patterns.
    """

    #: Regex matching a placeholder (or escaped literal) in compiled text.
    placeholder_pattern: re.Pattern[str]

    @abstractmethod
    def placeholder(self, index: int) -> str:
        """Return the SQL placeholder for the 1-based positional ``index``."""

    @abstractmethod
    def placeholder_index(self, match: re.Match[str], position: int) -> int | None:
        """Return the 0-based arg index a placeholder match refers to.

        Args:
            match: A ``placeholder_pattern`` match.
            position: How many placeholders precede this one.

        Returns:
            The arg index, or ``None`` when the match is an escaped literal.
        """

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the canonical dialect name."""

    def escape_literal(self, text: str) -> str:
        """Escape literal text so it cannot be mistaken for a placeholder."""
        return text

    def unescape_literal(self, text: str) -> str:
        return text

    def update_tables(self, tables: list[Fragment]) -> tuple[Fragment, Fragment | None]:
        """Split the tables of an update into its target and joined tables.

        The first table is updated; any others follow the assignments as
        ``from <tables>``.
        """
        joined = Fragment.join(tables[1:]).prefix("from") if len(tables) > 1 else None
        return tables[0], joined

    def delete_tables(self, tables: list[Fragment]) -> Fragment:
        """Return the text following ``delete`` for a delete over ``tables``.

        Raises:
            CompilationError: If the dialect cannot delete with joined tables.
        """
        if len(tables) > 1:
            raise CompilationError(
                f"The {self.dialect_name} dialect cannot delete using several tables.",
                clause="delete",
            )
        return tables[0].prefix("from")

    # ------------------------------------------------------------------
    # Template methods
    # ------------------------------------------------------------------

    def bind(self, fragment: Fragment) -> str:
        """Replace every parameter mark with a sequential placeholder.

        Raises:
            CompilationError: If marks and args are out of step.
        """
        segments = fragment.text.split(PARAMETER_MARK)
        if len(segments) != len(fragment.args) + 1:
            raise CompilationError(
                f"Statement has {len(segments) - 1} placeholder(s) but "
                f"{len(fragment.args)} argument(s)."
            )
        out = [self.escape_literal(segments[0])]
        for index, segment in enumerate(segments[1:], start=1):
            out.append(self.placeholder(index))
            out.append(self.escape_literal(segment))
        return "".join(out)

    def unbind(self, statement: Statement) -> Fragment:
        """Turn a compiled statement back into a fragment with local marks.

        Raises:
            CompilationError: If the statement belongs to another dialect or
                references an arg that does not exist.
        """
        if statement.fragment is not None:
            return statement.fragment
        if statement.dialect != self.dialect_name:
            raise CompilationError(
                f"Cannot embed a {statement.dialect} statement in a "
                f"{self.dialect_name} query."
            )
        check_literal(statement.text)
        texts: list[str] = []
        args: list[Any] = []
        last = 0
        position = 0
        for match in self.placeholder_pattern.finditer(statement.text):
            texts.append(self.unescape_literal(statement.text[last:match.start()]))
            last = match.end()
            index = self.placeholder_index(match, position)
            if index is None:
                texts.append(self.unescape_literal(match.group(0)))
                continue
            position += 1
            if not 0 <= index < len(statement.args):
                raise CompilationError(
                    f"Placeholder {match.group(0)!r} has no matching argument."
                )
            texts.append(PARAMETER_MARK)
            args.append(statement.args[index])
        texts.append(self.unescape_literal(statement.text[last:]))
        return Fragment("".join(texts), tuple(args))
