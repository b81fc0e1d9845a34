from sqlbind.adapters.asyncpg._types import AsyncpgConnection
from sqlbind.adapters.asyncpg.config import AsyncpgConfig, AsyncpgPoolConfig
from sqlbind.adapters.asyncpg.driver import AsyncpgDriver

__all__ = ("AsyncpgConfig", "AsyncpgConnection", "AsyncpgDriver", "AsyncpgPoolConfig")
