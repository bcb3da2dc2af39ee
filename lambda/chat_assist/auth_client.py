"""
Authentication client for the custom Lambda auth endpoint.

Handles login, signup, logout and token refresh. The resulting session is
kept in a SessionStore and its token is sent with every chat request.
"""

import logging
from typing import Any, Dict, Optional, Union

import requests

from .config import ChatConfig
from .envelope import decode_envelope, error_message
from .exceptions import AuthError, ResponseParseError
from .schemas import AuthSession, AuthUser, LoginCredentials, SignupCredentials
from .storage import SessionStore
from .utils import now_ms

logger = logging.getLogger(__name__)

DEFAULT_EXPIRES_IN_SECONDS = 3600

# Refresh when the session expires within this window
REFRESH_WINDOW_MS = 5 * 60 * 1000


class AuthClient:
    """
    Client for the auth endpoint (/login, /signup, /refresh, /logout).

    Responses may be direct JSON or a Lambda proxy envelope; both are
    normalized by decode_envelope() in lenient mode.
    """

    def __init__(
        self,
        config: ChatConfig,
        session_store: SessionStore,
        http: Optional[requests.Session] = None,
    ):
        """
        Initialize the auth client.

        Args:
            config: Configuration holder
            session_store: Store owning the persisted auth session
            http: Optional requests session (injected in tests)
        """
        self.config = config
        self.session_store = session_store
        self.http = http or requests.Session()

    # ========================================================================
    # Session Accessors
    # ========================================================================

    def get_stored_session(self) -> Optional[AuthSession]:
        return self.session_store.get()

    def get_auth_token(self) -> Optional[str]:
        return self.session_store.get_auth_token()

    def get_current_user(self) -> Optional[AuthUser]:
        return self.session_store.get_current_user()

    def clear_session(self) -> None:
        self.session_store.clear()

    # ========================================================================
    # Requests
    # ========================================================================

    def _headers(self, token: Optional[str] = None) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if self.config.api_key:
            headers["x-api-key"] = self.config.api_key
        return headers

    def _post(self, path: str, body: Optional[Dict[str, Any]] = None, token: Optional[str] = None):
        url = f"{self.config.auth_endpoint.rstrip('/')}/{path}"
        return self.http.post(
            url,
            headers=self._headers(token),
            json=body,
            timeout=self.config.request_timeout,
        )

    @staticmethod
    def _parse(response: requests.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            raise ResponseParseError(
                f"Auth endpoint returned non-JSON response: {response.text[:500]}",
                payload=response.text,
            )
        return decode_envelope(data, strict=False)

    @staticmethod
    def _build_session(parsed: Dict[str, Any], previous: Optional[AuthSession] = None) -> AuthSession:
        expires_in = parsed.get("expiresIn") or DEFAULT_EXPIRES_IN_SECONDS
        user = parsed.get("user") or (previous.user.model_dump() if previous else None)
        return AuthSession(
            token=parsed["token"],
            refresh_token=parsed.get("refreshToken") or (previous.refresh_token if previous else None),
            expires_at=now_ms() + int(expires_in) * 1000,
            user=user,
        )

    def _authenticate(self, path: str, credentials: LoginCredentials, failure_message: str) -> AuthSession:
        logger.info(f"[auth] POST /{path} for {credentials.email}")

        try:
            response = self._post(path, credentials.model_dump(exclude_none=True))
            parsed = self._parse(response)
        except ResponseParseError as e:
            logger.error(f"[auth] {path} failed: {e}")
            raise AuthError(str(e))
        except requests.exceptions.RequestException as e:
            logger.error(f"[auth] {path} request failed: {e}")
            raise AuthError(f"{failure_message}: {e}")

        if not response.ok or parsed.get("error"):
            message = error_message(parsed, failure_message)
            logger.warning(f"[auth] {path} rejected ({response.status_code}): {message}")
            raise AuthError(str(message))

        if not parsed.get("token") or not parsed.get("user"):
            raise AuthError("Invalid auth response: missing token or user")

        try:
            session = self._build_session(parsed)
        except (ValueError, TypeError) as e:
            raise AuthError(f"Invalid auth response: {e}")

        self.session_store.save(session)
        logger.info(f"[auth] {path} succeeded for user {session.user.id}")
        return session

    # ========================================================================
    # Operations
    # ========================================================================

    def login(self, credentials: Union[LoginCredentials, Dict[str, Any]]) -> AuthSession:
        """
        Log in via the auth endpoint and persist the session.

        Args:
            credentials: Email and password

        Returns:
            AuthSession: The new session

        Raises:
            AuthError: On rejection, transport failure or an incomplete response
        """
        if isinstance(credentials, dict):
            credentials = LoginCredentials(**credentials)
        return self._authenticate("login", credentials, "Login failed")

    def signup(self, credentials: Union[SignupCredentials, Dict[str, Any]]) -> AuthSession:
        """
        Sign up via the auth endpoint and persist the session.

        Raises:
            AuthError: On rejection, transport failure or an incomplete response
        """
        if isinstance(credentials, dict):
            credentials = SignupCredentials(**credentials)
        return self._authenticate("signup", credentials, "Signup failed")

    def logout(self) -> None:
        """
        Clear the local session, then notify the logout endpoint.

        The local session is gone even if the notification fails.
        """
        token = self.get_auth_token()
        self.clear_session()

        if not token:
            return

        try:
            self._post("logout", token=token)
        except requests.exceptions.RequestException as e:
            logger.warning(f"[auth] Logout notification failed, session already cleared locally: {e}")

    def refresh_session(self) -> Optional[AuthSession]:
        """
        Refresh the token if it expires within five minutes.

        Returns:
            The current or refreshed session. None when the refresh failed
            and the user must authenticate again.
        """
        session = self.get_stored_session()

        if not session or not session.refresh_token:
            return session

        if session.expires_at - now_ms() >= REFRESH_WINDOW_MS:
            return session

        logger.info(f"[auth] Refreshing session for user {session.user.id}")

        try:
            response = self._post("refresh", {"refreshToken": session.refresh_token})
            parsed = self._parse(response)

            if not response.ok or parsed.get("error") or not parsed.get("token"):
                logger.warning(
                    f"[auth] Refresh rejected ({response.status_code}): "
                    f"{error_message(parsed, 'missing token')}"
                )
                self.clear_session()
                return None

            new_session = self._build_session(parsed, previous=session)

        except (requests.exceptions.RequestException, ResponseParseError, ValueError, TypeError) as e:
            logger.error(f"[auth] Refresh failed: {e}", exc_info=True)
            self.clear_session()
            return None

        self.session_store.save(new_session)
        return new_session
