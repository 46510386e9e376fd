"""Condition algebra for WHERE and HAVING clauses.

Conditions are small immutable trees::

    Leaf   – template text (``sql("age < {}", 7)``) or one shorthand pair
             (``{"age": 7}`` → ``age = $1``)
    Not    – negation of one child
    And    – conjunction of children
    Or     – disjunction of children

Builder inputs are turned into trees with :func:`to_condition`:

* pairs within one mapping are joined with ``and`` (insertion order);
* several inputs passed to one call are joined with ``or`` (argument order);
* the reducer joins separate ``where`` calls with ``and``.

Rendering inserts parentheses only where grouping would otherwise change:
around an ``And``/``Or`` child whose operator differs from its parent's,
around every ``Not`` child, and around template leaves that share a
junction with other operands (template text may contain its own ``or``).
Shorthand leaves are atomic and never wrapped.  A template leaf therefore
keeps its own parentheses even inside a wrapped conjunction::

    disjoin(conjoin(sql("a"), sql("b")), negate(sql("c")))
        → ((a) and (b)) or (not (c))
    disjoin({"a": 1, "b": 2}, negate({"c": 3}))
        → (a = $1 and b = $2) or (not (c = $3))

Conditions support ``&``, ``|`` and ``~``::

    (to_condition(sql("age > {}", 3)) & {"active": True}) | ~to_condition(sql("banned"))
"""
from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from sqorn.compile.base import Fragment
from sqorn.compile.escape import ArgumentBuilder
from sqorn.errors import MalformedConditionError
from sqorn.schema.values import Template


class Condition:
    """Base class of condition tree nodes."""

    def __and__(self, other: Any) -> Condition:
        return conjoin(self, other)

    def __rand__(self, other: Any) -> Condition:
        return conjoin(other, self)

    def __or__(self, other: Any) -> Condition:
        return disjoin(self, other)

    def __ror__(self, other: Any) -> Condition:
        return disjoin(other, self)

    def __invert__(self) -> Condition:
        return negate(self)


@dataclass(frozen=True)
class Leaf(Condition):
    """A single predicate.

    Attributes:
        template: Predicate text, or the right-hand operand when ``key`` is set.
        key: Shorthand column key; renders as ``<mapped key> = <template>``.
    """

    template: Template
    key: str | None = None

    @property
    def atomic(self) -> bool:
        return self.key is not None


@dataclass(frozen=True)
class Not(Condition):
    child: Condition


@dataclass(frozen=True)
class And(Condition):
    children: tuple[Condition, ...]


@dataclass(frozen=True)
class Or(Condition):
    children: tuple[Condition, ...]


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def from_object_shorthand(*mappings: Mapping[str, Any]) -> Condition | None:
    """Build ``key = value`` leaves: ``and`` within a mapping, ``or`` across.

    Values that are conditions or ``sql()`` templates are spliced in as
    sub-expressions and their key is ignored.  Empty mappings contribute
    nothing; if nothing remains the result is ``None``.
    """
    nodes = [node for node in map(_mapping_node, mappings) if node is not None]
    return _junction(Or, nodes)


def from_raw_fragment(parts: tuple[str, ...], args: tuple[Any, ...] = ()) -> Leaf:
    """Build a leaf from literal text parts and the args between them."""
    return Leaf(Template(parts=tuple(parts), args=tuple(args)))


def negate(node: Any) -> Condition:
    return Not(_coerce(node))


def conjoin(left: Any, right: Any) -> Condition:
    return And((_coerce(left), _coerce(right)))


def disjoin(left: Any, right: Any) -> Condition:
    return Or((_coerce(left), _coerce(right)))


def to_condition(*inputs: Any, clause: str | None = None) -> Condition | None:
    """Turn the arguments of one ``where``/``having`` call into a tree.

    Raises:
        MalformedConditionError: If an input is not a mapping, template or
            condition.
    """
    nodes: list[Condition] = []
    for item in inputs:
        if isinstance(item, Condition):
            nodes.append(item)
        elif isinstance(item, Template):
            nodes.append(Leaf(item))
        elif isinstance(item, Mapping):
            node = _mapping_node(item)
            if node is not None:
                nodes.append(node)
        else:
            raise MalformedConditionError(item, clause=clause)
    return _junction(Or, nodes)


def _mapping_node(mapping: Mapping[str, Any]) -> Condition | None:
    if not isinstance(mapping, Mapping):
        raise MalformedConditionError(mapping)
    leaves: list[Condition] = []
    for key, value in mapping.items():
        if isinstance(value, Condition):
            leaves.append(value)
        elif isinstance(value, Template):
            leaves.append(Leaf(value))
        else:
            leaves.append(Leaf(Template(parts=("", ""), args=(value,)), key=key))
    if not leaves:
        return None
    return And(tuple(leaves))


def _junction(cls: type[And] | type[Or], nodes: list[Condition]) -> Condition | None:
    if not nodes:
        return None
    if len(nodes) == 1:
        return nodes[0]
    return cls(tuple(nodes))


def _coerce(value: Any) -> Condition:
    node = to_condition(value)
    if node is None:
        raise MalformedConditionError(value)
    return node


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

_KEYWORDS = {And: " and ", Or: " or "}


def render(node: Condition, builder: ArgumentBuilder) -> Fragment:
    """Render a tree to text plus args in left-to-right emission order."""
    if isinstance(node, Leaf):
        frag = builder.build_template(node.template)
        if node.key is None:
            return frag
        return Fragment(f"{builder.ctx.map_key(node.key)} = {frag.text}", frag.args)
    if isinstance(node, Not):
        return _render_child(node.child, node, builder, shared=False).prefix("not")
    if isinstance(node, (And, Or)):
        operands = list(_operands(node))
        shared = len(operands) > 1
        return Fragment.join(
            (_render_child(child, node, builder, shared) for child in operands),
            _KEYWORDS[type(node)],
        )
    raise MalformedConditionError(node)


def _operands(node: And | Or) -> Iterator[Condition]:
    # Nested nodes of the same operator render identically to a flat list.
    for child in node.children:
        if type(child) is type(node):
            yield from _operands(child)
        else:
            yield child


def _render_child(
    child: Condition,
    parent: Condition,
    builder: ArgumentBuilder,
    shared: bool,
) -> Fragment:
    frag = render(child, builder)
    if isinstance(child, (Not, And, Or)):
        return frag.wrap()
    if isinstance(child, Leaf) and not child.atomic and (shared or isinstance(parent, Not)):
        return frag.wrap()
    return frag
