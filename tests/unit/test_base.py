"""Tests for the execution facade using an in-memory driver."""

from pathlib import Path
from typing import Any

import pytest

from sqlbind import (
    DriverExecutionError,
    IsolatedSQLBind,
    MissingParameterError,
    ObservabilityConfig,
    QueryEvent,
    ResultEvent,
    SQLBind,
    SQLBindError,
    StatementNotFoundError,
    TransformedError,
)
from sqlbind.base import RAW_QUERY_NAME
from sqlbind.exceptions import FormatValueError
from tests.conftest import FakePostgresError, RecordingDriver

pytestmark = pytest.mark.anyio


@pytest.fixture
def db(driver: RecordingDriver, sql_dir: Path) -> SQLBind:
    return SQLBind(driver, root_dir=sql_dir)


async def test_sql_executes_registered_statement(db: SQLBind, driver: RecordingDriver) -> None:
    result = await db.sql("a.select")

    assert result.rows == [{"id": 1, "text": "a"}]
    assert driver.calls == [("SELECT * FROM __sqlbind_test_db.a ORDER BY id", (), None)]


async def test_nested_parameters_are_bound(db: SQLBind, driver: RecordingDriver) -> None:
    await db.sql("a.test_nested", {"a": {"foo": "a"}})

    sql, values, _ = driver.calls[0]
    assert sql == "SELECT * FROM __sqlbind_test_db.a WHERE text = $1 ORDER BY id"
    assert values == ("a",)


async def test_raw_query(db: SQLBind, driver: RecordingDriver) -> None:
    driver.rows = [{"x": 1}]

    result = await db.query("SELECT 1 as x")

    assert result.rows == [{"x": 1}]
    assert driver.calls[0][:2] == ("SELECT 1 as x", ())


async def test_facade_without_root_dir_runs_raw_sql(driver: RecordingDriver) -> None:
    db = SQLBind(driver)

    await db.query("SELECT :a::int AS x", {"a": 1})

    assert db.statements == []
    assert driver.calls[0][:2] == ("SELECT $1::int AS x", (1,))


async def test_formattable_performs_replacements(db: SQLBind, driver: RecordingDriver) -> None:
    await db.formattable("a.test_format").format("a").query({"a": "a"})

    sql, values, _ = driver.calls[0]
    assert sql == 'SELECT * FROM __sqlbind_test_db."a" WHERE text = $1 ORDER BY id'
    assert values == ("a",)


async def test_format_fragment_injects_parameters(db: SQLBind, driver: RecordingDriver) -> None:
    await (
        db.formattable("a.test_multi_format")
        .format("__sqlbind_test_db.a WHERE text = :a OR text = :b")
        .query({"a": "a", "b": "b"})
    )

    sql, values, _ = driver.calls[0]
    assert sql == "SELECT * FROM __sqlbind_test_db.a WHERE text = $1 OR text = $2 ORDER BY id"
    assert values == ("a", "b")


async def test_multiple_formats_fill_fragment_tokens(db: SQLBind, driver: RecordingDriver) -> None:
    await db.formattable("a.test_multi_format").format("__sqlbind_test_db.a WHERE text = %L").format("a").query()

    assert driver.calls[0][0] == "SELECT * FROM __sqlbind_test_db.a WHERE text = 'a' ORDER BY id"


async def test_format_builders_are_immutable(db: SQLBind, driver: RecordingDriver) -> None:
    base = db.formattable("a.test_multi_format").format("__sqlbind_test_db.a WHERE text = %L")
    first = base.format("a")
    second = base.format("b")

    await first.query()
    await second.query()

    assert base.format_values == ("__sqlbind_test_db.a WHERE text = %L",)
    assert [call[0] for call in driver.calls] == [
        "SELECT * FROM __sqlbind_test_db.a WHERE text = 'a' ORDER BY id",
        "SELECT * FROM __sqlbind_test_db.a WHERE text = 'b' ORDER BY id",
    ]


async def test_missing_parameters_fail_before_dispatch(db: SQLBind, driver: RecordingDriver) -> None:
    with pytest.raises(MissingParameterError) as exc_info:
        await db.sql("a.test_missing_params", {"a": "a"})

    error = exc_info.value
    assert "this_is_the_missing_param" in str(error)
    assert error.query_context is not None
    assert error.query_context.name == "a.test_missing_params"
    assert error.query_context.params == {"a": "a"}
    assert error.query_context.error is None
    assert driver.calls == []


async def test_unknown_statement(db: SQLBind) -> None:
    with pytest.raises(StatementNotFoundError) as exc_info:
        await db.sql("a.nope")

    assert exc_info.value.query_context is not None
    assert exc_info.value.query_context.sql is None


async def test_driver_errors_are_wrapped_with_context(db: SQLBind, driver: RecordingDriver) -> None:
    driver.error = FakePostgresError('relation "blah_doesnt_exist" does not exist', "42P01")

    with pytest.raises(DriverExecutionError) as exc_info:
        await db.sql("a.query_with_error")

    error = exc_info.value
    assert "blah_doesnt_exist" in str(error)
    assert error.__cause__ is driver.error
    context = error.query_context
    assert context is not None
    assert context.error is not None
    assert context.error.code == "42P01"
    assert context.error.original is driver.error
    assert context.sql == "SELECT * FROM blah_doesnt_exist"
    assert not hasattr(context, "context")


async def test_call_site_is_rooted_at_caller(db: SQLBind, driver: RecordingDriver) -> None:
    driver.error = FakePostgresError('column "this_will_throw_error" does not exist', "42703")

    async def this_should_be_in_stack() -> SQLBindError:
        with pytest.raises(DriverExecutionError) as exc_info:
            await db.query("SELECT THIS_WILL_THROW_ERROR;")
        return exc_info.value

    error = await this_should_be_in_stack()

    assert error.call_site is not None
    assert "this_should_be_in_stack" in [frame.name for frame in error.call_site]
    assert "this_should_be_in_stack" in error.format_call_site()


async def test_error_transformer_replaces_error(driver: RecordingDriver) -> None:
    expected = {"foo": "bar"}
    seen: list[SQLBindError] = []

    def transform(error: SQLBindError) -> Any:
        seen.append(error)
        return expected

    db = SQLBind(driver, error_transformer=transform)
    driver.error = FakePostgresError('column "x" does not exist', "42703")

    with pytest.raises(TransformedError) as exc_info:
        await db.query("SELECT x")

    assert exc_info.value.value == expected
    assert len(seen) == 1
    assert seen[0].query_context is not None


async def test_error_transformer_may_return_exception(driver: RecordingDriver) -> None:
    class AppError(Exception):
        pass

    db = SQLBind(driver, error_transformer=lambda error: AppError(error.kind))

    with pytest.raises(AppError, match="missing_parameter") as exc_info:
        await db.query("SELECT :a")

    assert isinstance(exc_info.value.__cause__, MissingParameterError)


async def test_events_wrap_dispatch(db: SQLBind, driver: RecordingDriver) -> None:
    order: list[str] = []
    queries: list[QueryEvent] = []
    results: list[ResultEvent] = []

    def on_query(event: QueryEvent) -> None:
        order.append(f"query:{len(driver.calls)}")
        queries.append(event)

    def on_result(event: ResultEvent) -> None:
        order.append(f"result:{len(driver.calls)}")
        results.append(event)

    db.events.on("query", on_query)
    db.events.on("result", on_result)

    await db.sql("a.test_nested", {"a": {"foo": "a"}})

    assert order == ["query:0", "result:1"]
    assert queries[0].name == "a_test_nested"
    assert queries[0].values == ("a",)
    assert results[0].duration_s >= 0
    assert results[0].row_count == 1
    assert results[0].succeeded


async def test_result_event_carries_driver_error(db: SQLBind, driver: RecordingDriver) -> None:
    driver.error = FakePostgresError("boom", "XX000")
    results: list[ResultEvent] = []
    db.events.on("result", results.append)

    with pytest.raises(DriverExecutionError):
        await db.query("SELECT 1")

    assert results[0].name == RAW_QUERY_NAME
    assert isinstance(results[0].error, DriverExecutionError)
    assert not results[0].succeeded


async def test_pre_dispatch_failures_emit_no_events(db: SQLBind) -> None:
    seen: list[Any] = []
    db.events.on("query", seen.append)
    db.events.on("result", seen.append)

    with pytest.raises(MissingParameterError):
        await db.query("SELECT :missing")

    assert seen == []


async def test_isolated_emitter(db: SQLBind) -> None:
    parent_seen: list[Any] = []
    iso_seen: list[Any] = []
    db.events.on("query", parent_seen.append)
    db.events.on("result", parent_seen.append)

    iso = db.isolated_emitter()
    iso.events.on("query", iso_seen.append)
    iso.events.on("result", iso_seen.append)

    result = await iso.sql("a.select")
    assert result.rows == [{"id": 1, "text": "a"}]
    assert parent_seen == []
    assert len(iso_seen) == 2

    await db.sql("a.select")
    assert len(parent_seen) == 2
    assert len(iso_seen) == 2

    iso.dispose()
    iso.dispose()
    await iso.sql("a.select")
    assert len(iso_seen) == 2


async def test_isolated_emitter_as_context_manager(db: SQLBind) -> None:
    with db.isolated_emitter() as iso:
        assert isinstance(iso, IsolatedSQLBind)
        assert iso.statements == db.statements

    assert iso.events.disposed


async def test_listener_failure_propagates_without_dispatch(db: SQLBind, driver: RecordingDriver) -> None:
    def broken(event: QueryEvent) -> None:
        raise RuntimeError("listener failed")

    db.events.on("query", broken)

    with pytest.raises(RuntimeError, match="listener failed"):
        await db.sql("a.select")

    assert driver.calls == []
    db.events.remove_all_listeners()
    assert (await db.sql("a.select")).rows


async def test_transaction_commits_and_shares_bus(db: SQLBind, driver: RecordingDriver) -> None:
    seen: list[Any] = []
    db.events.on("query", seen.append)

    async with db.transaction() as tx:
        await tx.sql("a.select")
        async with tx.transaction() as nested:
            assert nested is tx
            await nested.query("SELECT 1")

    assert driver.transactions == ["begin", "commit"]
    assert [call[2] for call in driver.calls] == ["connection-1", "connection-1"]
    assert len(seen) == 2


async def test_transaction_rolls_back_on_error(db: SQLBind, driver: RecordingDriver) -> None:
    with pytest.raises(MissingParameterError):
        async with db.transaction() as tx:
            await tx.query("SELECT :missing")

    assert driver.transactions == ["begin", "rollback"]


async def test_describe_lists_parameters(db: SQLBind) -> None:
    assert db.describe("a.test_missing_params").named_params == ("a", "this_is_the_missing_param")


async def test_observability_config_attaches_observers(driver: RecordingDriver) -> None:
    observed: list[ResultEvent] = []
    db = SQLBind(driver, observability_config=ObservabilityConfig(statement_observers=(observed.append,)))

    await db.query("SELECT 1")

    assert len(observed) == 1
    assert db.isolated_emitter().events.listener_count() == 0


async def test_close_releases_driver(db: SQLBind, driver: RecordingDriver) -> None:
    await db.close()

    assert driver.closed


class _Unrenderable:
    __slots__ = ()


async def test_format_failures_carry_context(db: SQLBind, driver: RecordingDriver) -> None:
    db.loader.add_named_sql("t", "SELECT * FROM t WHERE x = %L")
    seen: list[Any] = []
    db.events.on("query", seen.append)
    db.events.on("result", seen.append)

    with pytest.raises(FormatValueError) as exc_info:
        await db.formattable("t").format(_Unrenderable()).query()

    error = exc_info.value
    assert error.query_context is not None
    assert error.query_context.name == "t"
    assert error.query_context.sql == "SELECT * FROM t WHERE x = %L"
    assert error.call_site
    assert driver.calls == []
    assert seen == []


async def test_format_failures_reach_error_transformer(driver: RecordingDriver) -> None:
    seen: list[SQLBindError] = []

    def transform(error: SQLBindError) -> Any:
        seen.append(error)
        return "format failed"

    db = SQLBind(driver, error_transformer=transform)
    db.loader.add_named_sql("t", "SELECT %L")

    with pytest.raises(TransformedError) as exc_info:
        await db.formattable("t").format(_Unrenderable()).query()

    assert exc_info.value.value == "format failed"
    assert len(seen) == 1
    assert isinstance(seen[0], FormatValueError)
    assert seen[0].query_context is not None


async def test_driver_failure_context_is_attached_before_result_event(
    db: SQLBind, driver: RecordingDriver
) -> None:
    driver.error = FakePostgresError("boom", "XX000")
    contexts: list[Any] = []
    db.events.on("result", lambda event: contexts.append(event.error.query_context))

    with pytest.raises(DriverExecutionError) as exc_info:
        await db.query("SELECT :a", {"a": 1})

    assert contexts == [exc_info.value.query_context]
    assert contexts[0].values == (1,)
