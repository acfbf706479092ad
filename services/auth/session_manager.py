"""Session lifecycle: login, logout, invalidation and restore from the secure store."""

import asyncio
from typing import Optional

from core.logging import bind_session_context, get_logger
from core.trading.models import (
    Credentials,
    Session,
    SessionInvalidationReason,
    SessionState,
)
from core.utils.exceptions import ValidationError
from services.api_client import ApiClient
from services.session_store import SecureSessionStore


class SessionManager:
    """Owns the single current Session.

    Transitions (login / logout / invalidate / restore) are serialized by
    one lock so their store-then-publish steps never interleave. The
    session reference itself sits behind a second, short-held lock: readers
    copy it out and never hold it across a network call.

    Restored sessions are provisionally trusted and invalidated lazily on the
    first NotAuthorizedError reported by a dependent call.
    """

    def __init__(self, api_client: ApiClient, store: SecureSessionStore):
        self.api_client = api_client
        self.store = store
        self._session: Optional[Session] = None
        self._transition_lock = asyncio.Lock()
        self._state_lock = asyncio.Lock()
        self.logger = get_logger(__name__, component="session_manager")

    @property
    def state(self) -> SessionState:
        return SessionState.LOGGED_IN if self._session is not None else SessionState.LOGGED_OUT

    @property
    def current_session(self) -> Optional[Session]:
        return self._session

    def is_logged_in(self) -> bool:
        return self._session is not None

    async def snapshot(self) -> Optional[Session]:
        """The session as of now; safe to use after the lock is released."""
        async with self._state_lock:
            return self._session

    async def _publish(self, session: Optional[Session]) -> None:
        async with self._state_lock:
            self._session = session

    async def login(self, credentials: Credentials) -> Session:
        """Authenticate and atomically replace any prior session.

        On any failure the previous state, in memory and in the store, is
        left as it was and the error propagates unchanged.
        """
        if not credentials.username.strip():
            raise ValidationError("Username is required", field="username")
        if not credentials.password.get_secret_value():
            raise ValidationError("Password is required", field="password")

        async with self._transition_lock:
            session = await self.api_client.login(credentials)
            # Store first: after a crash the store is the source of truth
            await self.store.save(session.token)
            replaced = self._session is not None
            await self._publish(session)

        bind_session_context(self.logger, session.user_id).info(
            "Session established", replaced_previous=replaced
        )
        return session

    async def logout(self) -> bool:
        """End the session. Returns False when already logged out."""
        async with self._transition_lock:
            if self._session is None:
                self.logger.debug("Logout requested while logged out")
                return False
            user_id = self._session.user_id
            await self.store.clear()
            await self._publish(None)

        bind_session_context(self.logger, user_id).info(
            "Session ended", reason=SessionInvalidationReason.LOGOUT.value
        )
        return True

    async def invalidate(
        self,
        reason: SessionInvalidationReason = SessionInvalidationReason.MANUAL,
        token: Optional[str] = None,
    ) -> bool:
        """Drop the current session, e.g. after the server rejected its token.

        When ``token`` is given, only a session still holding that token is
        dropped; a newer login is left alone.
        """
        async with self._transition_lock:
            current = self._session
            if current is None:
                return False
            if token is not None and token != current.token:
                self.logger.info("Skipping invalidation of a replaced session", reason=reason.value)
                return False
            try:
                await self.store.clear()
            finally:
                # A rejected token is never reused, even if the store failed
                await self._publish(None)

        bind_session_context(self.logger, current.user_id).warning(
            "Session invalidated", reason=reason.value, provisional=current.provisional
        )
        return True

    async def restore(self) -> Optional[Session]:
        """Adopt a token left in the store by a previous run."""
        async with self._transition_lock:
            if self._session is not None:
                return self._session
            token = await self.store.load()
            if token is None:
                self.logger.info("No stored session to restore")
                return None
            session = Session.restored(token)
            await self._publish(session)

        self.logger.info("Restored provisional session from store")
        return session
