"""
auth_session - client-side authentication session state.

Usage:
    from auth_session import build_session_manager

    manager = build_session_manager()
    await manager.restore()
    error = await manager.login("alice", "secret")
"""

from .auth_service import AuthResponse, AuthService
from .credential_store import (
    CredentialStore,
    FileCredentialStore,
    MemoryCredentialStore,
    RedisCredentialStore,
    build_credential_store,
)
from .errors import AuthSessionError, CredentialStoreError, TransportError
from .navigator import Navigator
from .routes import ROUTES
from .session_manager import Session, SessionManager, SessionStatus, build_session_manager

__all__ = [
    "AuthResponse",
    "AuthService",
    "CredentialStore",
    "FileCredentialStore",
    "MemoryCredentialStore",
    "RedisCredentialStore",
    "build_credential_store",
    "AuthSessionError",
    "CredentialStoreError",
    "TransportError",
    "Navigator",
    "ROUTES",
    "Session",
    "SessionManager",
    "SessionStatus",
    "build_session_manager",
]
