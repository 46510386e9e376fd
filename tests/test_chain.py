"""Unit tests for the Sq builder façade and the sqorn() entry point."""

from __future__ import annotations

import re

import pytest

from sqorn import Sq, sqorn
from sqorn.compile.base import SQLCompiler, Statement
from sqorn.compile.registry import CompilerFactory
from sqorn.errors import (
    ArityMismatchError,
    CompilationError,
    ConfigurationError,
    ConflictingStatementKindError,
)
from sqorn.execute.executor import Executor, Transaction
from sqorn.schema.method_log import ClauseKind, MethodCall, StatementKind
from sqorn.schema.values import sql


# ---------------------------------------------------------------------------
# Chaining
# ---------------------------------------------------------------------------


def test_chain_records_method_log(sq):
    q = sq.from_("book").where({"id": 7}).return_("title")
    assert q.method_log == (
        MethodCall(ClauseKind.FROM, ("book",)),
        MethodCall(ClauseKind.WHERE, ({"id": 7},)),
        MethodCall(ClauseKind.RETURN, ("title",)),
    )
    assert sq.method_log == ()


def test_branching_shares_prefix(sq):
    people = sq.from_("person")
    kids = people.where(sql("age < {}", 13))
    adults = people.where(sql("age >= {}", 18))
    assert kids.return_("name").query.text == "select name from person where age < $1"
    assert adults.query.text == "select * from person where age >= $1"
    assert people.query.text == "select * from person"


def test_update_chain(sq):
    r = sq.from_("person").where({"id": 7}).set({"firstName": "Jo"}).return_("id").query
    assert r.text == "update person set first_name = $1 where id = $2 returning id"
    assert r.args == ("Jo", 7)
    assert sq.from_("person").set({"a": 1}).statement_kind is StatementKind.UPDATE


def test_insert_mapping_rows(sq):
    r = sq.from_("person").insert({"firstName": "Jo"}, {"firstName": "Mo", "age": 3}).query
    assert r.text == "insert into person (first_name, age) values ($1, default), ($2, $3)"
    assert r.args == ("Jo", "Mo", 3)


def test_insert_columns_and_values(sq):
    r = sq.from_("person").insert("first_name", "age").value("Jo", 9).value("Mo", 4).query
    assert r.text == "insert into person (first_name, age) values ($1, $2), ($3, $4)"


def test_insert_without_columns(sq):
    with pytest.raises(ArityMismatchError):
        sq.from_("person").insert().value().query


def test_insert_mixed_arguments(sq):
    with pytest.raises(CompilationError, match="not both"):
        sq.from_("person").insert("first_name", {"age": 3})


def test_delete_chain(sq):
    r = sq.from_("person").where({"id": 3}).delete().query
    assert r.text == "delete from person where id = $1"


def test_manual_chain(sq):
    r = sq.l("select * from person").l("where age = {}", 8).query
    assert r.text == "select * from person where age = $1"
    assert r.args == (8,)


def test_manual_with_template(sq):
    r = sq.l(sql("select {} as n", 1)).query
    assert r.text == "select $1 as n"
    with pytest.raises(CompilationError):
        sq.l(sql("select 1"), 2)
    with pytest.raises(CompilationError):
        sq.l(42)


def test_limit_offset_chain(sq):
    r = sq.from_("person").order("age").limit(10).offset(20).query
    assert r.text == "select * from person order by age limit $1 offset $2"
    assert r.args == (10, 20)


# ---------------------------------------------------------------------------
# Illegal chains fail at the offending call
# ---------------------------------------------------------------------------


def test_set_after_delete(sq):
    q = sq.from_("person").delete()
    with pytest.raises(ConflictingStatementKindError):
        q.set({"a": 1})


def test_group_then_insert(sq):
    q = sq.from_("person").group("age")
    with pytest.raises(ConflictingStatementKindError):
        q.insert({"age": 1})


def test_clause_mixed_with_manual(sq):
    with pytest.raises(ConflictingStatementKindError):
        sq.from_("person").l("select 1")
    with pytest.raises(ConflictingStatementKindError):
        sq.l("select 1").where({"a": 1})


# ---------------------------------------------------------------------------
# Express syntax
# ---------------------------------------------------------------------------


def test_express_from_where_return(sq):
    r = sq("book")({"genre": "Fantasy"})("title").query
    assert r.text == "select title from book where genre = $1"
    assert r.args == ("Fantasy",)


def test_express_can_be_followed_by_chain(sq):
    r = sq("book")({"id": 1}).set({"title": "Dune"}).query
    assert r.text == "update book set title = $1 where id = $2"


def test_express_closed_after_three_calls(sq):
    with pytest.raises(CompilationError):
        sq("book")({"id": 1})("title")("extra")


def test_express_closed_after_named_call(sq):
    with pytest.raises(CompilationError):
        sq.from_("book")({"id": 1})


# ---------------------------------------------------------------------------
# extend
# ---------------------------------------------------------------------------


def test_extend_concatenates_logs(sq):
    q = sq.extend(sq.from_("book"), sq.where({"id": 7}), sq.return_("title"))
    assert q.query.text == "select title from book where id = $1"
    assert len(q.method_log) == 3


def test_extend_checks_statement_kind(sq):
    with pytest.raises(ConflictingStatementKindError):
        sq.from_("book").delete().extend(sq.set({"title": "x"}))


# ---------------------------------------------------------------------------
# Nested builders
# ---------------------------------------------------------------------------


def test_with_and_from_subquery(sq):
    kids = sq.from_("person").where(sql("age < {}", 13))
    r = sq.with_({"kids": kids}).from_("kids").return_("name").query
    assert r.text == "with kids as (select * from person where age < $1) select name from kids"


def test_statement_embedding(sq):
    inner = sq.from_("book").return_("author_id").where({"genre": "sf"}).query
    r = sq.from_("person").where({"id": 1}, sql("id in {}", inner)).query
    assert r.text == (
        "select * from person where (id = $1) or "
        "(id in (select author_id from book where genre = $2))"
    )
    assert r.args == (1, "sf")


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


def test_sqlite_dialect():
    r = sqorn(dialect="sqlite").from_("person").where({"age": 7}).query
    assert r.text == "select * from person where age = ?"
    assert r.dialect == "sqlite"


def test_map_input_keys():
    r = sqorn(map_input_keys=str.upper).from_("p").where({"name": "Jo"}).query
    assert r.text == "select * from p where NAME = $1"


@pytest.mark.parametrize("config", [{"dialect": "oracle"}, {"unknown": 1}])
def test_invalid_configuration(config):
    with pytest.raises(ConfigurationError):
        sqorn(**config)


def test_connection_and_executor_are_exclusive():
    with pytest.raises(ConfigurationError):
        sqorn(connection=object(), executor=_RecordingExecutor([]))


def test_execution_requires_executor(sq):
    with pytest.raises(ConfigurationError, match="No executor"):
        sq.from_("person").all()


def test_registered_compiler_is_usable():
    @CompilerFactory.register("named")
    class NamedCompiler(SQLCompiler):
        placeholder_pattern = re.compile(r":p(\d+)")

        @property
        def dialect_name(self) -> str:
            return "named"

        def placeholder(self, index: int) -> str:
            return f":p{index}"

        def placeholder_index(self, match, position):
            return int(match.group(1)) - 1

    try:
        r = sqorn(dialect="named").from_("t").where({"a": 1}, {"b": 2}).query
    finally:
        assert CompilerFactory.unregister("named") is NamedCompiler
    assert r.text == "select * from t where (a = :p1) or (b = :p2)"
    with pytest.raises(ConfigurationError, match="Unsupported dialect target: 'named'"):
        sqorn(dialect="named")


def test_unknown_dialect_message_lists_targets():
    with pytest.raises(ConfigurationError) as exc_info:
        CompilerFactory.resolve("oracle")
    message = str(exc_info.value)
    assert "'mysql', 'postgres', 'sqlite'" in message
    with pytest.raises(ConfigurationError, match=re.escape(message)):
        sqorn(dialect="oracle")
    with pytest.raises(ConfigurationError):
        CompilerFactory.unregister("oracle")


def test_repr(sq):
    assert repr(sq.from_("t").delete()) == "Sq(delete: [from, delete])"
    assert isinstance(sq, Sq)


# ---------------------------------------------------------------------------
# Execution through a custom executor
# ---------------------------------------------------------------------------


class _FakeConnection:
    def __init__(self) -> None:
        self.events: list[str] = []

    def commit(self) -> None:
        self.events.append("commit")

    def rollback(self) -> None:
        self.events.append("rollback")


class _RecordingExecutor(Executor):
    def __init__(self, rows: list[dict]) -> None:
        super().__init__()
        self.rows = rows
        self.statements: list[tuple[Statement, Transaction | None]] = []
        self.connection = _FakeConnection()

    def query(self, statement, trx=None):
        self.statements.append((statement, trx))
        return list(self.rows)

    def begin(self) -> Transaction:
        return Transaction(self.connection)


def test_all_one_exists():
    executor = _RecordingExecutor([{"id": 1}, {"id": 2}])
    sq = sqorn(executor=executor)
    q = sq.from_("person").return_("id")
    assert q.all() == [{"id": 1}, {"id": 2}]
    assert q.one() == {"id": 1}
    assert q.exists() is True
    assert executor.statements[0][0].text == "select id from person"


def test_one_without_rows():
    sq = sqorn(executor=_RecordingExecutor([]))
    assert sq.from_("person").one() is None
    assert sq.from_("person").exists() is False


def test_transaction_callback_commits():
    executor = _RecordingExecutor([{"n": 1}])
    sq = sqorn(executor=executor)
    result = sq.transaction(lambda trx: sq.from_("t").one(trx))
    assert result == {"n": 1}
    assert executor.connection.events == ["commit"]
    assert executor.statements[0][1] is not None


def test_transaction_callback_rolls_back():
    executor = _RecordingExecutor([])
    sq = sqorn(executor=executor)

    def fail(trx):
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        sq.transaction(fail)
    assert executor.connection.events == ["rollback"]
