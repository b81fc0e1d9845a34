"""Driver contract and result types."""

from sqlbind.driver._async import AsyncDriverAdapterBase
from sqlbind.driver.result import QueryResult

__all__ = ("AsyncDriverAdapterBase", "QueryResult")
