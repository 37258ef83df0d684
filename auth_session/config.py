import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()

DEFAULT_BACKEND_URL = "http://localhost:3000"
DEFAULT_STORE_PATH = os.path.join("~", ".auth_session", "credentials.json")


def _str_to_bool(value: str | None) -> bool:
    if value is None:
        return False
    return value.lower() in ("1", "true", "yes", "y", "on")


@dataclass
class Settings:
    backend_url: str
    request_timeout: float
    credential_key: str
    credential_store: str
    credential_store_path: str
    redis_host: str | None
    redis_port: int
    redis_password: str | None
    redis_tls: bool
    redis_db: int
    use_local_redis: bool


def get_settings() -> Settings:
    use_local = _str_to_bool(os.getenv("USE_LOCAL_REDIS"))

    raw_db = os.getenv("AUTH_REDIS_DB")

    if use_local:
        # local redis ignores the remote connection values
        host = "127.0.0.1"
        port = 6379
        password = None
        tls = False
    else:
        host = os.getenv("AUTH_REDIS_HOST")
        port = int(os.getenv("AUTH_REDIS_PORT") or "6379")
        password = os.getenv("AUTH_REDIS_PASSWORD")
        tls = _str_to_bool(os.getenv("AUTH_REDIS_TLS"))

    return Settings(
        backend_url=os.getenv("BACKEND_URL", DEFAULT_BACKEND_URL).rstrip("/"),
        request_timeout=float(os.getenv("REQUEST_TIMEOUT", "10")),
        credential_key=os.getenv("CREDENTIAL_KEY", "token"),
        credential_store=os.getenv("CREDENTIAL_STORE", "file").lower(),
        credential_store_path=os.path.expanduser(
            os.getenv("CREDENTIAL_STORE_PATH", DEFAULT_STORE_PATH)
        ),
        redis_host=host,
        redis_port=port,
        redis_password=password,
        redis_tls=tls,
        redis_db=int(raw_db or "0"),
        use_local_redis=use_local,
    )
