"""
Redis connection management with pooling and health checks.

One connection pool is shared by every request. The manager is created
during application startup and handed to the record store explicitly.
"""

import logging
from typing import Optional
from urllib.parse import urlparse

from redis.asyncio import ConnectionPool, Redis

from ..config import Settings

logger = logging.getLogger(__name__)


class RedisConfig:
    """Redis connection parameters resolved from settings."""

    def __init__(self, settings: Settings) -> None:
        if settings.REDIS_URL:
            parsed = urlparse(settings.REDIS_URL)
            self.host: str = parsed.hostname or settings.REDIS_HOST
            self.port: int = parsed.port or settings.REDIS_PORT
            self.password: Optional[str] = parsed.password
            self.db: int = int(parsed.path.lstrip("/") or "0")
            self.username: Optional[str] = parsed.username
        else:
            self.host = settings.REDIS_HOST
            self.port = settings.REDIS_PORT
            self.db = settings.REDIS_DB
            self.password = settings.REDIS_PASSWORD
            self.username = settings.REDIS_USERNAME

        self.max_connections: int = settings.REDIS_MAX_CONNECTIONS
        self.socket_timeout: float = settings.REDIS_SOCKET_TIMEOUT
        self.socket_connect_timeout: float = settings.REDIS_CONNECT_TIMEOUT
        self.decode_responses: bool = True


class RedisConnectionManager:
    """
    Manages Redis connection pool and client lifecycle.

    The client is built without a retry policy: store failures surface to
    the caller instead of being replayed behind its back.
    """

    def __init__(self, settings: Settings) -> None:
        self.config = RedisConfig(settings)
        self._client: Optional[Redis] = None
        self._pool: Optional[ConnectionPool] = None
        logger.info(
            "Redis connection manager initialized: %s:%d",
            self.config.host,
            self.config.port,
        )

    def get_client(self) -> Redis:
        """
        Get or create Redis client.

        Connections are opened lazily by the pool on first command.

        Returns:
            Async Redis client instance
        """
        if self._client is None:
            self._create_client()
        return self._client

    def _create_client(self) -> None:
        """Create Redis client with connection pool."""
        pool_kwargs = {
            "host": self.config.host,
            "port": self.config.port,
            "db": self.config.db,
            "password": self.config.password,
            "max_connections": self.config.max_connections,
            "socket_timeout": self.config.socket_timeout,
            "socket_connect_timeout": self.config.socket_connect_timeout,
            "decode_responses": self.config.decode_responses,
            "retry_on_timeout": False,
        }

        if self.config.username:
            pool_kwargs["username"] = self.config.username

        self._pool = ConnectionPool(**pool_kwargs)
        self._client = Redis(connection_pool=self._pool)

        logger.info(
            "Redis client created with pool (max_connections=%d)",
            self.config.max_connections,
        )

    async def close(self) -> None:
        """Close Redis connection and clean up resources."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("Redis client closed")

        if self._pool:
            await self._pool.disconnect()
            self._pool = None
            logger.info("Redis connection pool closed")
