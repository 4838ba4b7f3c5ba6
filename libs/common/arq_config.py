"""ARQ (Async Redis Queue) configuration utilities.

The notification queue and its worker both derive their Redis connection
from ``REDIS_URL`` so the web process and the worker always agree.
"""

from urllib.parse import urlparse

from arq.connections import RedisSettings
from libs.common.config import get_settings

# Queue name shared by the enqueuing side and the worker.
NOTIFICATIONS_QUEUE = "arq:notifications"


def get_redis_settings() -> RedisSettings:
    """Parse REDIS_URL from application settings into ARQ RedisSettings."""
    settings = get_settings()
    parsed = urlparse(settings.REDIS_URL)

    return RedisSettings(
        host=parsed.hostname or "localhost",
        port=parsed.port or 6379,
        database=int(parsed.path.lstrip("/") or "0"),
        password=parsed.password,
        ssl=parsed.scheme == "rediss",
        conn_timeout=2,
        conn_retries=1,
    )
