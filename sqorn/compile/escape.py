"""Argument escaping: turn caller-supplied values into fragments.

``classify`` is the single decision point for parameterization.  A value is
emitted as literal text only when the caller wrapped it with
:func:`~sqorn.schema.values.raw`; every other value becomes a parameter.
Strings are never inspected.

``ArgumentBuilder`` builds on top of ``classify`` and additionally splices
templates and sub-statements (builders and compiled statements) into the
parent's parameter stream.
"""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from sqorn.compile.base import Buildable, Fragment, Statement
from sqorn.compile.context import CompilationContext
from sqorn.schema.method_log import StatementKind
from sqorn.schema.values import Raw, Template, check_literal


@dataclass(frozen=True)
class Parameter:
    """A value bound through a placeholder."""

    value: Any


def classify(value: Any) -> Parameter | Raw:
    """Return ``value`` itself if it is :class:`Raw`, else a :class:`Parameter`."""
    if isinstance(value, Raw):
        return value
    return Parameter(value)


#: Compiles a nested builder with the outer context.
SubqueryFn = Callable[[Buildable], tuple[Fragment, StatementKind]]


class ArgumentBuilder:
    """Compiles argument values to fragments.

    Args:
        ctx: Static compilation context (compiler + config).
        subquery_fn: Compiles a nested builder to an unbound fragment using
            the same context as the outer statement.
    """

    def __init__(self, ctx: CompilationContext, subquery_fn: SubqueryFn) -> None:
        self._ctx = ctx
        self._subquery_fn = subquery_fn

    @property
    def ctx(self) -> CompilationContext:
        return self._ctx

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(self, value: Any) -> Fragment:
        """Compile a value: template, sub-statement, raw text or parameter."""
        if isinstance(value, Template):
            return self.build_template(value)
        if isinstance(value, Buildable):
            return self.build_subquery(value)
        if isinstance(value, Statement):
            return self._ctx.compiler.unbind(value).wrap()
        classified = classify(value)
        if isinstance(classified, Raw):
            return Fragment(classified.text)
        return Fragment.parameter(classified.value)

    def build_expression(self, value: Any) -> Fragment:
        """Compile an item of a column or table list.

        Plain strings in list positions (``from_("book")``,
        ``return_("id")``) name tables, columns or expressions and are
        emitted as written; everything else goes through :meth:`build`.
        """
        if isinstance(value, str):
            return Fragment(check_literal(value))
        return self.build(value)

    def build_template(self, template: Template) -> Fragment:
        """Interleave a template's literal parts with its compiled args."""
        texts = [template.parts[0]]
        args: list[Any] = []
        for arg, part in zip(template.args, template.parts[1:]):
            frag = self.build(arg)
            texts.append(frag.text)
            args.extend(frag.args)
            texts.append(part)
        return Fragment("".join(texts), tuple(args))

    def build_subquery(self, builder: Buildable) -> Fragment:
        """Compile a nested builder; manual queries are spliced verbatim."""
        fragment, kind = self.subquery(builder)
        if kind is StatementKind.MANUAL:
            return fragment
        return fragment.wrap()

    def subquery(self, builder: Buildable) -> tuple[Fragment, StatementKind]:
        """Compile a nested builder without wrapping it."""
        return self._subquery_fn(builder)
