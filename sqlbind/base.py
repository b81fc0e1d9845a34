"""Execution facade: statement lookup, formatting, binding and dispatch."""

import time
from collections.abc import AsyncGenerator, Callable, Sequence
from contextlib import asynccontextmanager
from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING, Any, Final, NoReturn, Optional, Union

from sqlbind.exceptions import (
    DriverExecutionError,
    QueryContext,
    SQLBindError,
    TransformedError,
    capture_call_site,
)
from sqlbind.loader import SQLFileLoader, event_name_for
from sqlbind.observability import (
    QUERY_EVENT,
    RESULT_EVENT,
    EventBus,
    ObservabilityConfig,
    QueryEvent,
    ResultEvent,
)
from sqlbind.parameters import FormatResolver, ParameterBinder, ParameterStyle, TemplateReferences, extract_references
from sqlbind.statement import FormattableStatement, QueryExecution, QueryState
from sqlbind.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlbind.driver import AsyncDriverAdapterBase, QueryResult

__all__ = ("RAW_QUERY_NAME", "ErrorTransformer", "IsolatedSQLBind", "SQLBind")

logger = get_logger("base")

RAW_QUERY_NAME: Final = "raw_query"

ErrorTransformer = Callable[[SQLBindError], Any]


class SQLBind:
    """Runs named SQL templates and raw SQL through an async driver.

    Example:
        ```python
        db = SQLBind(AsyncpgDriver(AsyncpgConfig(pool_config={"dsn": dsn})), root_dir="queries")
        result = await db.sql("users.by_id", {"user": {"id": 1}})
        ```

    Args:
        driver: Database driver that owns the connection pool.
        root_dir: Directory of ``.sql`` files to register.
        loader: Existing registry to use instead of building one.
        error_transformer: Called once per failure with the wrapped error;
            its return value replaces the error.
        parameter_style: Positional placeholder style; defaults to the driver's.
        observability_config: Observers subscribed to ``result`` events.
        events: Event bus to use; a fresh one is created by default.
    """

    def __init__(
        self,
        driver: "AsyncDriverAdapterBase",
        *,
        root_dir: "Optional[Union[str, Path]]" = None,
        loader: "Optional[SQLFileLoader]" = None,
        error_transformer: "Optional[ErrorTransformer]" = None,
        parameter_style: "Optional[ParameterStyle]" = None,
        observability_config: "Optional[ObservabilityConfig]" = None,
        events: "Optional[EventBus]" = None,
        connection: Any = None,
    ) -> None:
        self.driver = driver
        self.loader = loader if loader is not None else SQLFileLoader()
        if root_dir is not None:
            self.loader.load_sql(root_dir)
        self.error_transformer = error_transformer
        self.parameter_style = parameter_style or driver.parameter_style
        self.observability_config = observability_config
        self.events = events if events is not None else EventBus()
        self._connection = connection
        self._binder = ParameterBinder(self.parameter_style)
        self._formatter = FormatResolver(driver.quote_literal, driver.quote_identifier)
        if events is None and observability_config is not None:
            for observer in observability_config.iter_observers():
                self.events.on(RESULT_EVENT, observer)

    def _share(self, cls: "type[SQLBind]", *, events: EventBus, connection: Any) -> Any:
        return cls(
            self.driver,
            loader=self.loader,
            error_transformer=self.error_transformer,
            parameter_style=self.parameter_style,
            observability_config=self.observability_config,
            events=events,
            connection=connection,
        )

    @property
    def statements(self) -> "list[str]":
        """Names of every registered statement."""
        return self.loader.list_statements()

    def describe(self, name: str) -> TemplateReferences:
        """Placeholders referenced by the statement registered as ``name``."""
        return extract_references(self.loader.lookup(name))

    async def sql(self, name: str, params: "Optional[Any]" = None) -> "QueryResult":
        """Execute the registered statement ``name`` with ``params``."""
        return await self.execute(name, params)

    async def query(self, sql: str, params: "Optional[Any]" = None) -> "QueryResult":
        """Execute raw ``sql`` with ``params``."""
        return await self.execute(sql, params, raw=True)

    def formattable(self, name: str) -> FormattableStatement:
        """Start a format builder for the registered statement ``name``."""
        return FormattableStatement(self, name)

    async def execute(
        self,
        statement: str,
        params: "Optional[Any]" = None,
        *,
        format_values: "Sequence[Any]" = (),
        raw: bool = False,
    ) -> "QueryResult":
        """Resolve, bind and dispatch one statement.

        Args:
            statement: Registered statement name, or SQL text when ``raw``.
            params: Parameter bag for ``:name`` placeholders.
            format_values: Values for format tokens, in order.
            raw: Treat ``statement`` as SQL text.

        Raises:
            SQLBindError: ``StatementNotFoundError``, ``MissingParameterError`` or
                ``DriverExecutionError`` with ``query_context`` attached, unless
                an error transformer replaced it.

        Returns:
            The driver's result.
        """
        call_site = capture_call_site()
        name = RAW_QUERY_NAME if raw else statement
        execution = QueryExecution(name)
        template: Optional[str] = None

        try:
            template = statement if raw else self.loader.lookup(statement)
            if format_values:
                execution.transition(QueryState.FORMATTING)
                template = self._formatter.resolve(template, format_values, name=name)
            execution.transition(QueryState.BINDING)
            bound = self._binder.bind(template, params, name=name)
        except SQLBindError as error:
            execution.transition(QueryState.FAILED)
            self._raise_failure(error.with_context(QueryContext(name=name, sql=template, params=params), call_site))

        event_name = RAW_QUERY_NAME if raw else event_name_for(statement)
        execution.transition(QueryState.DISPATCHED)
        started_at = time.time()
        start = time.perf_counter()
        self.events.emit(
            QUERY_EVENT,
            QueryEvent(name=event_name, sql=bound.sql, values=bound.values, started_at=started_at, start=start),
        )

        try:
            result = await self.driver.execute(bound.sql, bound.values, connection=self._connection)
        except Exception as exc:
            end = time.perf_counter()
            execution.transition(QueryState.FAILED)
            error_info = self.driver.describe_error(exc)
            error = DriverExecutionError(error_info, name)
            error.__cause__ = exc
            error.with_context(
                QueryContext(name=name, sql=bound.sql, values=bound.values, params=bound.params, error=error_info),
                call_site,
            )
            self.events.emit(
                RESULT_EVENT,
                ResultEvent(
                    name=event_name,
                    sql=bound.sql,
                    values=bound.values,
                    started_at=started_at,
                    start=start,
                    end=end,
                    duration_s=end - start,
                    error=error,
                ),
            )
            self._raise_failure(error)

        end = time.perf_counter()
        execution.transition(QueryState.SUCCEEDED)
        self.events.emit(
            RESULT_EVENT,
            ResultEvent(
                name=event_name,
                sql=bound.sql,
                values=bound.values,
                started_at=started_at,
                start=start,
                end=end,
                duration_s=end - start,
                row_count=result.row_count,
            ),
        )
        return result

    def _raise_failure(self, error: SQLBindError) -> NoReturn:
        name = error.query_context.name if error.query_context is not None else None
        logger.debug(
            "Query %s failed: %s",
            name,
            error,
            extra={"extra_fields": {"statement": name, "kind": error.kind}},
        )
        if self.error_transformer is None:
            raise error
        transformed = self.error_transformer(error)
        if transformed is error:
            raise error
        if not isinstance(transformed, BaseException):
            transformed = TransformedError(transformed)
        raise transformed from error

    def isolated_emitter(self) -> "IsolatedSQLBind":
        """Return a facade sharing this one's driver and statements but with its own event bus."""
        return self._share(IsolatedSQLBind, events=EventBus(), connection=self._connection)

    @asynccontextmanager
    async def transaction(self) -> "AsyncGenerator[SQLBind, None]":
        """Run the block's queries on one connection inside a transaction.

        The yielded facade emits on this facade's bus. Nested calls reuse the
        enclosing transaction.
        """
        if self._connection is not None:
            yield self
            return
        async with self.driver.transaction() as connection:
            logger.debug("Transaction started")
            yield self._share(type(self), events=self.events, connection=connection)
        logger.debug("Transaction finished")

    async def close(self) -> None:
        """Release the driver's pool."""
        await self.driver.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(driver={self.driver!r}, statements={len(self.loader)})"


class IsolatedSQLBind(SQLBind):
    """Facade whose events never reach its parent's bus.

    Usable as a context manager; leaving the block disposes the bus.
    """

    def dispose(self) -> None:
        """Detach all listeners and silence the bus. Safe to call repeatedly."""
        self.events.dispose()

    def __enter__(self) -> "IsolatedSQLBind":
        return self

    def __exit__(
        self,
        exc_type: "Optional[type[BaseException]]",
        exc_val: "Optional[BaseException]",
        exc_tb: "Optional[TracebackType]",
    ) -> None:
        self.dispose()
