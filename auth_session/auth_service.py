"""
HTTP client for the remote authentication service.

Endpoints:
    GET  /user/me   (Authorization: Bearer <credential>) -> {"user": {...}}
    POST /login     {"username", "password"}             -> {"token": "..."}
    POST /register  <user data>                           -> ignored

Non-2xx answers are returned as an ``AuthResponse`` with ``ok=False``; the
caller decides what a rejection means. Only connection problems and
timeouts raise ``TransportError``.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import aiohttp

from .config import DEFAULT_BACKEND_URL
from .errors import TransportError
from .logging_setup import mask_token

logger = logging.getLogger("auth_session.service")


@dataclass(frozen=True)
class AuthResponse:
    status: int
    body: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def message(self) -> Optional[str]:
        value = self.body.get("message")
        return value if isinstance(value, str) and value else None

    @property
    def token(self) -> Optional[str]:
        value = self.body.get("token")
        return value if isinstance(value, str) and value else None

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        value = self.body.get("user")
        return dict(value) if isinstance(value, dict) else None


def _decode_body(raw: bytes) -> Dict[str, Any]:
    if not raw or not raw.strip():
        return {}
    try:
        # UnicodeDecodeError is a ValueError too
        data = json.loads(raw.decode("utf-8"))
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


class AuthService:
    """
    Thin adapter over ``aiohttp`` for the three auth calls.

    One ``aiohttp.ClientSession`` is opened on first use and reused until
    ``close()``. The instance can be used as an async context manager.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BACKEND_URL,
        timeout: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session

    async def __aenter__(self) -> "AuthService":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        payload: Optional[Mapping[str, Any]] = None,
    ) -> AuthResponse:
        url = f"{self.base_url}{path}"
        session = self._get_session()
        try:
            async with session.request(
                method,
                url,
                headers=headers,
                json=dict(payload) if payload is not None else None,
            ) as response:
                status = response.status
                raw = await response.read()
        except asyncio.TimeoutError as te:
            logger.error("auth_request_timeout op=%s url=%s timeout=%ss", operation, url, self.timeout)
            raise TransportError(operation, f"timeout after {self.timeout}s") from te
        except aiohttp.ClientError as ce:
            logger.error("auth_request_error op=%s url=%s error=%s", operation, url, repr(ce))
            raise TransportError(operation, f"connection error: {ce}") from ce

        logger.info("auth_response op=%s method=%s path=%s status=%s", operation, method, path, status)
        return AuthResponse(status=status, body=_decode_body(raw))

    async def get_me(self, credential: str) -> AuthResponse:
        logger.debug("auth_get_me token=%s", mask_token(credential))
        return await self._request(
            "get_me",
            "GET",
            "/user/me",
            headers={"Authorization": f"Bearer {credential}"},
        )

    async def login(self, username: str, password: str) -> AuthResponse:
        return await self._request(
            "login",
            "POST",
            "/login",
            headers={"Content-Type": "application/json"},
            payload={"username": username, "password": password},
        )

    async def register(self, user_data: Mapping[str, Any]) -> AuthResponse:
        return await self._request(
            "register",
            "POST",
            "/register",
            headers={"Content-Type": "application/json"},
            payload=user_data,
        )


__all__ = ["AuthService", "AuthResponse"]
