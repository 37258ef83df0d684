from typing import Optional

import redis

from .config import Settings, get_settings

_redis_client: Optional[redis.Redis] = None


def get_redis(settings: Settings | None = None) -> redis.Redis:
    global _redis_client
    if _redis_client is not None:
        return _redis_client
    settings = settings or get_settings()

    redis_kwargs = {
        "host": settings.redis_host or "127.0.0.1",
        "port": settings.redis_port,
        "password": settings.redis_password or None,
        "db": settings.redis_db,
        "socket_connect_timeout": 5,
        "health_check_interval": 30,
        "decode_responses": True,
    }

    if settings.redis_tls:
        redis_kwargs["ssl"] = True

    _redis_client = redis.Redis(**redis_kwargs)
    return _redis_client
