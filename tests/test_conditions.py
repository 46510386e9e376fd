"""Unit tests for the condition algebra (construction + rendering)."""

from __future__ import annotations

import pytest

from sqorn import Sq
from sqorn.compile.conditions import (
    And,
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
from sqorn.errors import MalformedConditionError
from sqorn.schema.values import Template, sql


def _where(sq: Sq, *conditions):
    return sq.from_("t").where(*conditions).query


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def test_shorthand_builds_and_within_or_across():
    node = from_object_shorthand({"a": 1, "b": 2}, {"c": 3})
    assert isinstance(node, Or)
    first, second = node.children
    assert isinstance(first, And) and len(first.children) == 2
    assert all(leaf.key for leaf in first.children)
    assert second.children[0].key == "c"


def test_shorthand_empty_mappings_yield_nothing():
    assert from_object_shorthand({}, {}) is None
    assert to_condition() is None
    assert to_condition({}) is None


def test_raw_fragment_leaf():
    leaf = from_raw_fragment(("age > ", ""), (7,))
    assert leaf == Leaf(Template(("age > ", ""), (7,)))
    assert not leaf.atomic


def test_to_condition_wraps_templates():
    node = to_condition(sql("a"))
    assert isinstance(node, Leaf)


@pytest.mark.parametrize("value", ["age = 7", 7, None, ["a"]])
def test_to_condition_rejects_other_inputs(value):
    with pytest.raises(MalformedConditionError):
        to_condition(value, clause="where")


def test_operators():
    a = to_condition({"a": 1})
    b = to_condition({"b": 2})
    assert a & b == conjoin(a, b)
    assert a | b == disjoin(a, b)
    assert ~a == Not(a)
    assert {"c": 3} & a == conjoin({"c": 3}, a)


def test_negate_rejects_empty_mapping():
    with pytest.raises(MalformedConditionError):
        negate({})


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def test_single_shorthand_has_no_parentheses(sq):
    r = _where(sq, {"age": 7})
    assert r.text == "select * from t where age = $1"


def test_keys_within_mapping_join_with_and(sq):
    r = _where(sq, {"a": 1, "b": 2})
    assert r.text == "select * from t where a = $1 and b = $2"


def test_mappings_join_with_or(sq):
    r = _where(sq, {"a": 1, "b": 2}, {"c": 3})
    assert r.text == "select * from t where (a = $1 and b = $2) or (c = $3)"
    assert r.args == (1, 2, 3)


def test_separate_calls_join_with_and(sq):
    r = sq.from_("t").where({"age": 7}).where({"name": "Joe"}).query
    assert r.text == "select * from t where age = $1 and name = $2"


def test_separate_calls_group_disjunctions(sq):
    r = sq.from_("t").where({"a": 1}, {"b": 2}).where({"c": 3}).query
    assert r.text == "select * from t where ((a = $1) or (b = $2)) and c = $3"


def test_disjunction_of_conjunction_and_negation(sq):
    r = _where(sq, disjoin(conjoin({"a": 1}, {"b": 2}), negate({"c": 3})))
    assert r.text == "select * from t where (a = $1 and b = $2) or (not (c = $3))"
    assert r.args == (1, 2, 3)


def test_same_operator_nesting_is_flattened(sq):
    r = _where(sq, conjoin(conjoin({"a": 1}, {"b": 2}), {"c": 3}))
    assert r.text == "select * from t where a = $1 and b = $2 and c = $3"


def test_template_leaf_is_wrapped_in_junction(sq):
    r = _where(sq, to_condition(sql("a > {} or a < {}", 1, 9)) & {"b": 2})
    assert r.text == "select * from t where (a > $1 or a < $2) and b = $3"
    assert r.args == (1, 9, 2)


def test_template_leaves_keep_parentheses_inside_wrapped_junction(sq):
    a = from_raw_fragment(("a",))
    b = from_raw_fragment(("b",))
    c = from_raw_fragment(("c",))
    r = _where(sq, disjoin(conjoin(a, b), negate(c)))
    assert r.text == "select * from t where ((a) and (b)) or (not (c))"
    shorthand = _where(sq, disjoin({"a": 1, "b": 2}, negate({"c": 3})))
    assert shorthand.text == "select * from t where (a = $1 and b = $2) or (not (c = $3))"


def test_lone_template_is_not_wrapped(sq):
    r = _where(sq, sql("age < {}", 7))
    assert r.text == "select * from t where age < $1"


def test_negated_template(sq):
    r = _where(sq, ~to_condition(sql("banned")))
    assert r.text == "select * from t where not (banned)"


def test_mapping_value_condition_is_spliced(sq):
    r = _where(sq, {"a": 1, "either": disjoin({"b": 2}, {"c": 3})})
    assert r.text == "select * from t where a = $1 and ((b = $2) or (c = $3))"


def test_mapping_value_template_ignores_key(sq):
    r = _where(sq, {"minAge": sql("age < {}", 17)})
    assert r.text == "select * from t where age < $1"
    assert r.args == (17,)


def test_template_and_mapping_in_one_call(sq):
    r = _where(sq, {"a": 1}, sql("b > {}", 2))
    assert r.text == "select * from t where (a = $1) or (b > $2)"


def test_subquery_inside_condition_template(sq):
    sub = sq.from_("u").where({"k": "x"}).return_("id")
    r = _where(sq, {"n": 0}, sql("id in {}", sub))
    assert r.text == "select * from t where (n = $1) or (id in (select id from u where k = $2))"
    assert r.args == (0, "x")


def test_having_uses_same_algebra(sq):
    r = (
        sq.from_("t")
        .group("a")
        .having(sql("count(*) > {}", 1))
        .having({"a": 2}, {"a": 3})
        .query
    )
    assert r.text == (
        "select * from t group by a having (count(*) > $1) and ((a = $2) or (a = $3))"
    )
