from typing import Callable, List, Optional, Union
import logging

from pydantic import ValidationError as SchemaError

from ..core.exceptions import ApiError, ValidationError
from ..core.http import ApiClient, payload_message
from ..core.security import token_is_expired
from ..schemas.auth import AuthResult, LoginCredentials, RegisterFields
from ..schemas.session import Session
from .storage_service import ClientStorage

logger = logging.getLogger(__name__)

PROFILE_PATH = "/profile/me"

SessionListener = Callable[[Optional[Session]], None]

class SessionStore:
    """Single source of truth for who is signed in.

    The in-memory ``session`` and the token held by the API client change
    together: a token is never kept without a resolved session. The profile
    blob in durable storage is a read-only mirror for display.
    """

    def __init__(self, api: ApiClient, storage: ClientStorage):
        self.api = api
        self.storage = storage
        self.session: Optional[Session] = None
        self.loading = True
        self._bootstrapped = False
        self._listeners: List[SessionListener] = []

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Call ``listener`` with the new session (or None) whenever it changes."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def cached_profile(self) -> Optional[dict]:
        """Last profile mirrored to storage. Never used for authorization."""
        return self.storage.load_profile()

    async def bootstrap(self) -> Optional[Session]:
        """Restore the session from a persisted token. Runs once per process."""
        if self._bootstrapped:
            return self.session
        self._bootstrapped = True
        self.loading = True

        try:
            token = self.storage.load_token()
            if not token:
                if self.storage.load_profile() is not None:
                    # A profile blob without its token is stale
                    self.storage.clear_session()
                return None

            if token_is_expired(token):
                logger.info("Stored token has expired, signing out")
                self.logout()
                return None

            self.api.set_token(token)
            try:
                profile = await self.api.get(PROFILE_PATH)
                session = Session.from_profile(profile)
            except (ApiError, SchemaError) as e:
                logger.warning(f"Auth init failed: {e}")
                self.logout()
                return None

            self.storage.save_profile(profile)
            self._set_session(session)
            logger.info(f"Restored session for {session.name or session.user_id} ({session.role})")
            return session
        finally:
            self.loading = False

    async def login(self, credentials: Union[LoginCredentials, dict]) -> AuthResult:
        """Authenticate, then resolve the full profile before reporting success."""
        if isinstance(credentials, dict):
            credentials = LoginCredentials.model_validate(credentials)
        try:
            credentials.check()
        except ValidationError as e:
            return AuthResult.failed(e.message)

        return await self._authenticate("/auth/login", credentials.payload(), "Login failed")

    async def register(self, fields: Union[RegisterFields, dict]) -> AuthResult:
        """Create the account, then resolve the full profile like ``login``."""
        if isinstance(fields, dict):
            fields = RegisterFields.model_validate(fields)
        try:
            fields.check()
        except ValidationError as e:
            return AuthResult.failed(e.message)

        return await self._authenticate("/auth/register", fields.payload(), "Registration failed")

    def logout(self) -> None:
        """Forget the token and session. No server round trip."""
        had_session = self.session is not None
        self.api.clear_token()
        self.session = None
        self.storage.clear_session()
        if had_session:
            logger.info("Signed out")
            self._notify()

    async def update_user(self) -> Optional[Session]:
        """Re-fetch the profile after an edit; failures leave the session as is."""
        if not self.is_authenticated:
            return None
        try:
            profile = await self.api.get(PROFILE_PATH)
            session = Session.from_profile(profile)
        except (ApiError, SchemaError) as e:
            logger.error(f"Update user failed: {e}")
            return self.session

        self.storage.save_profile(profile)
        self._set_session(session)
        return session

    async def _authenticate(self, path: str, body: dict, default_message: str) -> AuthResult:
        previous_token = self.api.token
        try:
            data = await self.api.post(path, json=body)
            token = data.get("token") if isinstance(data, dict) else None
            if not token:
                raise ApiError(default_message)

            self.api.set_token(token)
            profile = await self.api.get(PROFILE_PATH)
            session = Session.from_profile(profile)
        except ApiError as e:
            # Nothing was committed; put back whatever the client had before
            self.api.set_token(previous_token)
            message = payload_message(e.payload) or default_message
            logger.info(f"{path} failed: {message}")
            return AuthResult.failed(message)
        except SchemaError as e:
            self.api.set_token(previous_token)
            logger.error(f"{path} returned an unusable profile: {e}")
            return AuthResult.failed(default_message)

        self.storage.save_session(token, profile)
        self._set_session(session)
        logger.info(f"Signed in as {session.name or session.user_id} ({session.role})")
        return AuthResult.ok(session)

    def _set_session(self, session: Session) -> None:
        self.session = session
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self.session)
            except Exception:
                logger.exception("Session listener failed")
