"""
Session store: the single owner of the signed-in user's Profile.

Wraps Supabase auth. Session-change notifications arrive through a synchronous
SDK callback and are queued, then applied one at a time by a worker task so
that a rapid sign-out followed by a sign-in never leaves a stale profile behind.
"""
import asyncio
import logging
from typing import Any, Callable, List, Optional, Tuple
import httpx
from supabase import AsyncClient, AuthError as SupabaseAuthError
from nexuscrm.config.constants import MIN_PASSWORD_LENGTH, REGISTRATION_SUCCESS_MESSAGE
from nexuscrm.core.config import settings
from nexuscrm.core.exceptions import AuthError, ProfileMissingError, RepositoryError
from nexuscrm.schemas.profile import Profile
from nexuscrm.services.profile_service import ProfileService

logger = logging.getLogger(__name__)

UserListener = Callable[[Optional[Profile]], None]

# Queued by refresh_profile so a refresh is ordered with SDK notifications
PROFILE_REFRESH = "PROFILE_REFRESH"


class SessionStore:
    def __init__(
        self,
        client: AsyncClient,
        profile_service: ProfileService = None,
        logout_transition_seconds: float = None,
    ):
        """
        Args:
            client: Supabase client whose auth module owns the session.
            profile_service: Used to resolve a session into a Profile.
            logout_transition_seconds: Minimum duration of the logging-out state.
        """
        self.client = client
        self.profile_service = profile_service or ProfileService(client)
        if logout_transition_seconds is None:
            logout_transition_seconds = settings.LOGOUT_TRANSITION_SECONDS
        self.logout_transition_seconds = logout_transition_seconds

        self.user: Optional[Profile] = None
        self.is_loading = True
        self.is_logging_out = False

        self._listeners: List[UserListener] = []
        self._events: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None
        self._subscription = None

    @property
    def is_signed_in(self) -> bool:
        return self.user is not None

    def add_listener(self, listener: UserListener) -> None:
        """Register a callback invoked with the new user whenever it changes."""
        self._listeners.append(listener)

    def _set_user(self, user: Optional[Profile]) -> None:
        previous = self.user
        self.user = user
        if previous == user:
            return
        for listener in list(self._listeners):
            listener(user)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """
        Resolve any existing session and start listening for session changes.

        Notifications delivered while the initial session is being resolved are
        queued and applied after it, in delivery order.
        """
        self._events = asyncio.Queue()
        self._subscription = self.client.auth.on_auth_state_change(self._on_auth_state_change)

        try:
            session = await self.client.auth.get_session()
        except (SupabaseAuthError, httpx.HTTPError) as e:
            logger.error(f"Error reading existing session: {e}")
            session = None

        await self._resolve_session(session)
        self._worker = asyncio.create_task(self._process_events())
        self.is_loading = False
        logger.info(f"Session store initialized (signed in: {self.is_signed_in})")

    async def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        if self._worker and not self._worker.done():
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
        self._worker = None
        self._set_user(None)
        logger.info("Session store closed")

    async def drain(self) -> None:
        """Wait until every queued session-change notification has been applied."""
        if self._events is not None:
            await self._events.join()

    # ------------------------------------------------------------------
    # Session-change notifications
    # ------------------------------------------------------------------

    def _on_auth_state_change(self, event: str, session: Any) -> None:
        """SDK callback: only enqueue, the worker applies changes in order."""
        if self._events is None:
            logger.warning(f"Auth event {event} received before initialization, ignored")
            return
        self._events.put_nowait((event, session))

    async def _process_events(self) -> None:
        while True:
            item: Tuple[str, Any] = await self._events.get()
            event, session = item
            try:
                if event == PROFILE_REFRESH:
                    await self._refresh_current_session()
                else:
                    logger.info(f"Auth state change: {event}")
                    await self._resolve_session(session)
            except Exception as e:
                logger.exception(f"Error applying auth event {event}: {e}")
            finally:
                self._events.task_done()

    async def _resolve_session(self, session: Any) -> None:
        session_user = getattr(session, "user", None) if session else None
        if session_user is None:
            self._set_user(None)
            return

        try:
            profile = await self._fetch_profile(session_user)
        except ProfileMissingError as e:
            # Never operate with a session but no profile
            logger.error(f"{e.message}. Forcing sign-out.")
            await self._remote_sign_out()
            self._set_user(None)
            return

        self._set_user(profile)

    async def _fetch_profile(self, session_user: Any) -> Profile:
        user_id = str(session_user.id)
        try:
            profile = await self.profile_service.get_profile(
                user_id, getattr(session_user, "last_sign_in_at", None)
            )
        except RepositoryError as e:
            raise ProfileMissingError(user_id, e.message) from e
        if profile is None:
            raise ProfileMissingError(user_id)
        return profile

    async def _remote_sign_out(self) -> None:
        try:
            await self.client.auth.sign_out()
        except (SupabaseAuthError, httpx.HTTPError) as e:
            logger.error(f"Remote sign-out failed: {e}")

    # ------------------------------------------------------------------
    # Auth actions
    # ------------------------------------------------------------------

    async def refresh_profile(self) -> None:
        """
        Re-read the session and re-resolve the profile (after profile edits).

        The refresh is queued behind pending notifications and applied by the
        worker, so a sign-out delivered meanwhile is never undone by it.
        """
        if self._events is None:
            logger.warning("Profile refresh requested before initialization, ignored")
            return
        self._events.put_nowait((PROFILE_REFRESH, None))
        await self.drain()

    async def _refresh_current_session(self) -> None:
        try:
            session = await self.client.auth.get_session()
        except (SupabaseAuthError, httpx.HTTPError) as e:
            logger.error(f"Error reading session for refresh: {e}")
            return
        if session and getattr(session, "user", None):
            await self._resolve_session(session)

    async def login(self, email: str, password: str) -> None:
        """
        Sign in with email and password.

        Success is signaled by the following "signed in" notification, not by
        a return value.

        Raises:
            AuthError: With the service's message when the credentials are rejected.
        """
        try:
            await self.client.auth.sign_in_with_password({"email": email, "password": password})
        except SupabaseAuthError as e:
            logger.warning(f"Login rejected for {email}: {e.message}")
            raise AuthError(e.message) from e
        logger.info(f"Login accepted for {email}")

    async def register(self, name: str, email: str, password: str) -> str:
        """
        Create a remote account.

        The profile row is materialized by a server-side trigger from the
        signup metadata; the client never writes it.

        Returns:
            str: Confirmation message for the user.
        """
        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.")
        try:
            await self.client.auth.sign_up({
                "email": email,
                "password": password,
                "options": {"data": {"name": name}},
            })
        except SupabaseAuthError as e:
            logger.warning(f"Registration failed for {email}: {e.message}")
            raise AuthError(e.message) from e
        logger.info(f"Registered account for {email}")
        return REGISTRATION_SUCCESS_MESSAGE

    async def logout(self) -> None:
        """
        Sign out, holding the logging-out state for the minimum transition time.

        The user is cleared even when the remote sign-out fails. A sign-in
        to another account applied during the transition is kept.
        """
        signed_out_id = self.user.id if self.user else None
        self.is_logging_out = True
        loop = asyncio.get_running_loop()
        started = loop.time()
        try:
            await self._remote_sign_out()
        finally:
            remaining = self.logout_transition_seconds - (loop.time() - started)
            if remaining > 0:
                await asyncio.sleep(remaining)
            if self.user is not None and self.user.id != signed_out_id:
                logger.info(f"Account {self.user.id} signed in during logout, keeping it")
            else:
                self._set_user(None)
                logger.info("Logged out")
            self.is_logging_out = False

    async def update_password(self, password: str, confirmation: str) -> None:
        if password != confirmation:
            raise AuthError("Passwords do not match.")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.")
        try:
            await self.client.auth.update_user({"password": password})
        except SupabaseAuthError as e:
            logger.error(f"Error updating password: {e.message}")
            raise AuthError(f"Error updating password: {e.message}") from e
        logger.info("Password updated")
