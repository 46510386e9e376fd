"""Unit tests for argument classification and the ArgumentBuilder."""

from __future__ import annotations

import pytest

from sqorn import sqorn
from sqorn.compile.base import PARAMETER_MARK as M
from sqorn.compile.base import Fragment, Statement
from sqorn.compile.builder import StatementBuilder
from sqorn.compile.context import CompilationContext
from sqorn.compile.escape import ArgumentBuilder, Parameter, classify
from sqorn.compile.postgres import PostgresCompiler
from sqorn.schema.config import SqornConfig
from sqorn.schema.values import Raw, raw, sql


@pytest.fixture()
def args() -> ArgumentBuilder:
    compiler = PostgresCompiler()
    config = SqornConfig()
    builder = StatementBuilder(compiler, config)
    return ArgumentBuilder(CompilationContext(compiler, config), builder.build_fragment)


@pytest.mark.parametrize("value", ["text", "$1", "?", 0, 1.5, None, True, b"\x00", ["a"]])
def test_everything_but_raw_is_a_parameter(value):
    assert classify(value) == Parameter(value)


def test_raw_is_classified_raw():
    assert classify(raw("now()")) == Raw("now()")


def test_build_parameter(args):
    assert args.build("Jo") == Fragment(M, ("Jo",))


def test_build_raw(args):
    assert args.build(raw("now()")) == Fragment("now()")


def test_build_expression_keeps_strings(args):
    assert args.build_expression("book") == Fragment("book")
    assert args.build_expression(7) == Fragment(M, (7,))


def test_build_template(args):
    frag = args.build(sql("a = {} and b = {}", 1, raw("c")))
    assert frag == Fragment(f"a = {M} and b = c", (1,))


def test_build_nested_template(args):
    frag = args.build(sql("a = {} and {}", 1, sql("b = {}", 2)))
    assert frag == Fragment(f"a = {M} and b = {M}", (1, 2))


def test_build_builder_is_wrapped(args):
    sq = sqorn()
    frag = args.build(sq.from_("t").where({"a": 1}))
    assert frag == Fragment(f"(select * from t where a = {M})", (1,))


def test_build_manual_builder_is_verbatim(args):
    sq = sqorn()
    assert args.build(sq.l("now()")) == Fragment("now()")


def test_build_statement_is_unbound(args):
    frag = args.build(Statement("select $2, $1", (1, 2)))
    assert frag == Fragment(f"(select {M}, {M})", (2, 1))


def test_subquery_uses_outer_dialect():
    sq_sqlite = sqorn(dialect="sqlite")
    sq = sqorn()
    r = sq_sqlite.from_("t").where(sql("id in {}", sq.from_("u").where({"a": 1}))).query
    assert r.text == "select * from t where id in (select * from u where a = ?)"
