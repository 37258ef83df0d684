from unittest.mock import AsyncMock, MagicMock

import pytest

from auth_session.auth_service import AuthResponse, AuthService
from auth_session.credential_store import MemoryCredentialStore
from auth_session.navigator import Navigator
from auth_session.session_manager import SessionManager


def _ok(body=None, status=200) -> AuthResponse:
    return AuthResponse(status=status, body=body or {})


@pytest.fixture
def store():
    """Empty in-memory credential store."""
    return MemoryCredentialStore()


@pytest.fixture
def navigator():
    return Navigator()


@pytest.fixture
def service():
    """AuthService double with awaitable endpoints."""
    service_mock = MagicMock(spec=AuthService)
    service_mock.get_me = AsyncMock(return_value=_ok({"user": {"id": 1}}))
    service_mock.login = AsyncMock(return_value=_ok({"token": "t1"}))
    service_mock.register = AsyncMock(return_value=_ok(status=201))
    service_mock.close = AsyncMock()
    return service_mock


@pytest.fixture
def manager(store, service, navigator):
    return SessionManager(store=store, service=service, navigator=navigator)
