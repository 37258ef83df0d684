"""
Session Manager - client-side authentication lifecycle
======================================================

Single authority over the current session: it owns the current user,
persists the bearer credential through a ``CredentialStore``, and drives the
three exchanges with the remote ``AuthService``.

Flows:
    restore()   stored credential -> GET /user/me -> user or anonymous
    login()     POST /login -> store token -> GET /user/me -> /profile
    register()  POST /register -> /success (no session is created)
    logout()    drop credential and user -> /

State machine:
    ANONYMOUS --login success--> AUTHENTICATED
    PENDING   --restore success--> AUTHENTICATED
    PENDING   --restore failure--> ANONYMOUS
    AUTHENTICATED --logout--> ANONYMOUS

Failures never escape the four operations. ``login`` and ``register`` return
an error message (the empty string means success), ``restore`` falls back to
an anonymous session and drops the stale credential.

Overlapping calls:
    A generation counter is bumped whenever login stores a credential and on
    every logout. A restore answer that arrives after such a change is
    ignored, and a login whose generation moved while it waited for the
    profile rolls back its own credential instead of committing.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Set

from .auth_service import AuthResponse, AuthService
from .config import Settings, get_settings
from .credential_store import CredentialStore, build_credential_store
from .errors import (
    CredentialStoreError,
    TransportError,
    LOGIN_FAILED,
    LOGIN_SUPERSEDED,
    LOGIN_UNEXPECTED,
    PROFILE_FETCH_FAILED,
    REGISTRATION_FAILED,
    REGISTRATION_UNEXPECTED,
)
from .logging_setup import mask_token
from .navigator import Navigator
from .routes import ROUTES

logger = logging.getLogger("auth_session.session")


class SessionStatus(str, Enum):
    ANONYMOUS = "anonymous"
    PENDING = "pending"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class Session:
    """Point-in-time view of the session."""
    current_user: Optional[Dict[str, Any]]
    credential: Optional[str]
    status: SessionStatus


class SessionManager:

    def __init__(
        self,
        store: CredentialStore,
        service: AuthService,
        navigator: Navigator,
    ) -> None:
        self.store = store
        self.service = service
        self.navigator = navigator
        self._current_user: Optional[Dict[str, Any]] = None
        self._generation = 0
        self._pending_restores = 0
        # last credential the service accepted, and tokens of logins not yet committed
        self._committed_credential: Optional[str] = None
        self._inflight_tokens: Set[str] = set()

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def current_user(self) -> Optional[Dict[str, Any]]:
        return dict(self._current_user) if self._current_user is not None else None

    @property
    def credential(self) -> Optional[str]:
        return self.store.get()

    @property
    def status(self) -> SessionStatus:
        if self._current_user is not None:
            return SessionStatus.AUTHENTICATED
        if self._pending_restores:
            return SessionStatus.PENDING
        return SessionStatus.ANONYMOUS

    @property
    def is_authenticated(self) -> bool:
        return self.status is SessionStatus.AUTHENTICATED

    @property
    def session(self) -> Session:
        return Session(
            current_user=self.current_user,
            credential=self.credential,
            status=self.status,
        )

    def snapshot(self) -> Dict[str, Any]:
        """Consumer-facing view: the user record and the status name."""
        return {"user": self.current_user, "status": self.status.value}

    def _set_user(self, user: Optional[Mapping[str, Any]]) -> None:
        self._current_user = dict(user) if user is not None else None

    def _rollback_credential(self, token: str, previous: Optional[str]) -> None:
        """Put back ``previous`` if the store still holds ``token``."""
        try:
            if previous is None:
                self.store.compare_and_remove(token)
            elif self.store.get() == token:
                self.store.set(previous)
        except CredentialStoreError as e:
            logger.error("credential_rollback_error error=%s", e, exc_info=True)

    # =========================================================================
    # RESTORE
    # =========================================================================

    async def restore(self) -> SessionStatus:
        """
        Validate the stored credential and hydrate the current user.

        Without a stored credential the session becomes anonymous and no
        request is made. A rejected or unreachable validation drops the
        credential. Never raises.
        """
        try:
            credential = self.store.get()
        except CredentialStoreError as e:
            logger.error("restore_read_error error=%s", e)
            self._set_user(None)
            return self.status

        if not credential:
            self._set_user(None)
            logger.info("restore_skipped reason=no_credential")
            return self.status

        generation = self._generation
        self._pending_restores += 1
        response: Optional[AuthResponse] = None
        try:
            response = await self.service.get_me(credential)
        except TransportError as e:
            logger.warning("restore_transport_error error=%s", e)
        finally:
            self._pending_restores -= 1

        if generation != self._generation:
            logger.info("restore_ignored reason=session_changed token=%s", mask_token(credential))
            return self.status

        user = response.user if response is not None and response.ok else None
        if user is None:
            status = response.status if response is not None else "transport_error"
            logger.info("restore_rejected status=%s token=%s", status, mask_token(credential))
            try:
                self.store.compare_and_remove(credential)
            except CredentialStoreError as e:
                logger.error("restore_drop_error error=%s", e)
            if self._committed_credential == credential:
                self._committed_credential = None
            self._set_user(None)
            return self.status

        self._committed_credential = credential
        self._set_user(user)
        logger.info("restore_ok user=%s", user.get("id"))
        return self.status

    # =========================================================================
    # LOGIN
    # =========================================================================

    async def login(self, username: str, password: str) -> str:
        """
        Log in and load the user profile.

        Upon success, navigates to "/profile" and returns "". Upon failure,
        returns an error message and puts back the credential that was
        stored before the call. A credential left behind by another login
        that has not committed yet is never put back; the last accepted
        credential is used instead.
        """
        token: Optional[str] = None
        previous: Optional[str] = None
        try:
            response = await self.service.login(username, password)
            if not response.ok:
                logger.info("login_rejected user=%s status=%s", username, response.status)
                return response.message or LOGIN_FAILED

            if response.token is None:
                logger.error("login_no_token user=%s", username)
                return LOGIN_UNEXPECTED

            previous = self.store.get()
            if previous in self._inflight_tokens:
                previous = self._committed_credential
            # credential must be persisted before it is used for the profile call
            self.store.set(response.token)
            token = response.token
            self._inflight_tokens.add(token)
            self._generation += 1
            generation = self._generation

            profile = await self.service.get_me(token)
            user = profile.user if profile.ok else None
            if user is None:
                self._rollback_credential(token, previous)
                logger.warning("login_profile_failed user=%s status=%s", username, profile.status)
                if profile.ok:
                    return PROFILE_FETCH_FAILED
                return profile.message or PROFILE_FETCH_FAILED

            if generation != self._generation:
                self._rollback_credential(token, previous)
                logger.info("login_superseded user=%s", username)
                return LOGIN_SUPERSEDED

            self._committed_credential = token
            self._set_user(user)
            logger.info("login_ok user=%s id=%s", username, user.get("id"))
            self.navigator.goto(ROUTES.PROFILE)
            return ""

        except TransportError as e:
            logger.error("login_transport_error user=%s error=%s", username, e)
            if token is not None:
                self._rollback_credential(token, previous)
            return LOGIN_UNEXPECTED
        except CredentialStoreError as e:
            logger.error("login_store_error user=%s error=%s", username, e, exc_info=True)
            if token is not None:
                self._rollback_credential(token, previous)
            return LOGIN_UNEXPECTED
        finally:
            if token is not None:
                self._inflight_tokens.discard(token)

    # =========================================================================
    # REGISTER
    # =========================================================================

    async def register(self, user_data: Mapping[str, Any]) -> str:
        """
        Register a new user.

        Upon success, navigates to "/success" and returns "". Registration
        does not log the user in.
        """
        try:
            response = await self.service.register(user_data)
        except TransportError as e:
            logger.error("register_transport_error error=%s", e)
            return REGISTRATION_UNEXPECTED

        if not response.ok:
            logger.info("register_rejected status=%s", response.status)
            return response.message or REGISTRATION_FAILED

        logger.info("register_ok")
        self.navigator.goto(ROUTES.SUCCESS)
        return ""

    # =========================================================================
    # LOGOUT
    # =========================================================================

    def logout(self) -> None:
        self._generation += 1
        self._committed_credential = None
        self._set_user(None)
        try:
            self.store.remove()
        except CredentialStoreError as e:
            logger.error("logout_store_error error=%s", e, exc_info=True)
        logger.info("logout_ok")
        self.navigator.goto(ROUTES.HOME)


def build_session_manager(
    settings: Optional[Settings] = None,
    navigator: Optional[Navigator] = None,
) -> SessionManager:
    """Wire a manager from settings: store backend, HTTP client, navigator."""
    settings = settings or get_settings()
    return SessionManager(
        store=build_credential_store(settings),
        service=AuthService(settings.backend_url, timeout=settings.request_timeout),
        navigator=navigator or Navigator(),
    )


__all__ = ["SessionManager", "SessionStatus", "Session", "build_session_manager"]
