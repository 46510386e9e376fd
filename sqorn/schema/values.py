"""Argument value wrappers.

``raw(text)``
    Marks a string as literal SQL.  This is the ONLY way to keep a value out
    of the parameter list; nothing is ever classified as raw implicitly.

``sql(text, *args)``
    A template: SQL text with ``{}`` slots, one per argument.  Arguments are
    parameterized (unless wrapped in ``raw``) or embedded when they are
    sub-statements.  Literal braces are written ``{{`` and ``}}``::

        sql("age between {} and {}", 18, 65)
        sql("data @> '{{}}'::jsonb")
"""
from __future__ import annotations

from dataclasses import dataclass
from string import Formatter
from typing import Any

from sqorn.errors import CompilationError

#: Local placeholder used inside fragments before final assembly.
PARAMETER_MARK = "\x00"


def check_literal(text: str) -> str:
    """Return ``text`` unchanged if it can be emitted as SQL text.

    Raises:
        CompilationError: If ``text`` contains ``PARAMETER_MARK`` (NUL).
    """
    if PARAMETER_MARK in text:
        raise CompilationError(f"SQL text cannot contain NUL characters: {text!r}.")
    return text


@dataclass(frozen=True)
class Raw:
    """Literal SQL text excluded from parameterization."""

    text: str

    def __post_init__(self) -> None:
        check_literal(self.text)


@dataclass(frozen=True)
class Template:
    """SQL text split around argument slots.

    Invariant: ``len(parts) == len(args) + 1``.

    Attributes:
        parts: Literal text segments.
        args: One argument per slot between consecutive parts.
    """

    parts: tuple[str, ...]
    args: tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        if len(self.parts) != len(self.args) + 1:
            raise CompilationError(
                f"Template has {len(self.parts) - 1} slot(s) but "
                f"{len(self.args)} argument(s) were given."
            )
        for part in self.parts:
            check_literal(part)

    @classmethod
    def parse(cls, text: str, *args: Any) -> Template:
        """Split ``text`` on ``{}`` slots.

        Raises:
            CompilationError: On named/indexed fields, unbalanced braces, or a
                slot count that differs from ``len(args)``.
        """
        parts = [""]
        try:
            for literal, field_name, format_spec, conversion in Formatter().parse(text):
                parts[-1] += literal
                if field_name is None:
                    continue
                if field_name or format_spec or conversion:
                    raise CompilationError(
                        f"Template slots must be empty '{{}}', got {field_name!r} in {text!r}."
                    )
                parts.append("")
        except ValueError as exc:
            raise CompilationError(f"Invalid template {text!r}: {exc}") from exc
        return cls(parts=tuple(parts), args=tuple(args))


def raw(text: str) -> Raw:
    """Wrap ``text`` so it is emitted verbatim instead of as a parameter."""
    if not isinstance(text, str):
        raise TypeError(f"raw() expects a string, got {type(text).__name__}")
    return Raw(text)


def sql(text: str, *args: Any) -> Template:
    """Build a :class:`Template` from ``{}``-slotted text and its arguments."""
    return Template.parse(text, *args)
