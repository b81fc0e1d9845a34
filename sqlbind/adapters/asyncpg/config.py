"""Connection pool settings for the asyncpg driver."""

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, Optional, TypedDict, Union

from asyncpg import Record
from asyncpg import create_pool as asyncpg_create_pool
from asyncpg.pool import Pool
from typing_extensions import NotRequired

from sqlbind.exceptions import ImproperConfigurationError
from sqlbind.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from sqlbind.adapters.asyncpg._types import AsyncpgConnection


__all__ = ("AsyncpgConfig", "AsyncpgPoolConfig")

logger = get_logger("adapters.asyncpg")


class AsyncpgPoolConfig(TypedDict, total=False):
    """Pool options; anything else :func:`asyncpg.create_pool` accepts goes in ``extra``."""

    dsn: NotRequired[str]
    min_size: NotRequired[int]
    max_size: NotRequired[int]
    extra: NotRequired[dict[str, Any]]


class AsyncpgConfig:
    """Lazily created asyncpg pool.

    Args:
        pool_config: Options for a pool created on first use.
        pool_instance: An existing pool to use as is.

    Raises:
        ImproperConfigurationError: If neither argument is given.
    """

    def __init__(
        self,
        *,
        pool_config: "Optional[Union[AsyncpgPoolConfig, dict[str, Any]]]" = None,
        pool_instance: "Optional[Pool[Record]]" = None,
    ) -> None:
        if pool_config is None and pool_instance is None:
            msg = "AsyncpgConfig requires either pool_config or pool_instance"
            raise ImproperConfigurationError(msg)
        self.pool_config: dict[str, Any] = dict(pool_config or {})
        self.pool_instance = pool_instance

    def _get_pool_config_dict(self) -> "dict[str, Any]":
        """Flatten ``extra`` into the options and drop unset (``None``) entries."""
        options = {key: value for key, value in self.pool_config.items() if key != "extra"}
        options.update(self.pool_config.get("extra") or {})
        return {key: value for key, value in options.items() if value is not None}

    async def provide_pool(self) -> "Pool[Record]":
        if self.pool_instance is None:
            options = self._get_pool_config_dict()
            logger.debug("Creating asyncpg pool", extra={"extra_fields": {"options": sorted(options)}})
            self.pool_instance = await asyncpg_create_pool(**options)
        return self.pool_instance

    async def close_pool(self) -> None:
        if self.pool_instance is not None:
            pool, self.pool_instance = self.pool_instance, None
            await pool.close()

    @asynccontextmanager
    async def provide_connection(self) -> "AsyncGenerator[AsyncpgConnection, None]":
        """Acquire a pooled connection for the duration of the block."""
        pool = await self.provide_pool()
        async with pool.acquire() as connection:
            yield connection
