"""Unit tests for sql() templates, raw() values and key mapping."""

from __future__ import annotations

import pytest

from sqorn.errors import CompilationError
from sqorn.keys import camel_case, snake_case
from sqorn.schema.values import Raw, Template, raw, sql


def test_sql_splits_on_slots():
    t = sql("age between {} and {}", 18, 65)
    assert t.parts == ("age between ", " and ", "")
    assert t.args == (18, 65)


def test_sql_escaped_braces():
    t = sql("data @> '{{}}'::jsonb")
    assert t.parts == ("data @> '{}'::jsonb",)
    assert t.args == ()


@pytest.mark.parametrize("text", ["{name}", "{0}", "{:>3}"])
def test_sql_rejects_named_and_formatted_slots(text):
    with pytest.raises(CompilationError):
        sql(text, 1)


def test_sql_unbalanced_brace():
    with pytest.raises(CompilationError, match="Invalid template"):
        sql("a { b")


def test_sql_arity_mismatch():
    with pytest.raises(CompilationError):
        sql("a = {}")
    with pytest.raises(CompilationError):
        sql("a", 1)


def test_template_invariant():
    with pytest.raises(CompilationError):
        Template(parts=("a",), args=(1,))


def test_raw():
    assert raw("now()") == Raw("now()")
    with pytest.raises(TypeError):
        raw(5)


@pytest.mark.parametrize(
    "key, expected",
    [
        ("firstName", "first_name"),
        ("first_name", "first_name"),
        ("HTTPServer", "http_server"),
        ("first name", "first_name"),
        ("id", "id"),
        ("p.id", "p.id"),
        ("count(*)", "count(*)"),
    ],
)
def test_snake_case(key, expected):
    assert snake_case(key) == expected


@pytest.mark.parametrize(
    "key, expected",
    [
        ("first_name", "firstName"),
        ("id", "id"),
        ("author_id_2", "authorId2"),
        ("", ""),
    ],
)
def test_camel_case(key, expected):
    assert camel_case(key) == expected


@pytest.mark.parametrize(
    "build",
    [lambda: raw("a\x00b"), lambda: sql("select {}\x00", 1), lambda: Template(("x\x00",))],
)
def test_nul_in_sql_text_is_rejected(build):
    with pytest.raises(CompilationError, match="NUL"):
        build()
