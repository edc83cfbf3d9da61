"""WebUntis session state machine.

A Session moves UNAUTHENTICATED -> AUTHENTICATED -> CLOSED and never back.
A closed session cannot be re-authenticated; construct a new one instead.
Sessions are shared between callers through the ClientRegistry, so every
state transition happens under the session's lock.
"""

import threading
from typing import Any

from pydantic import ValidationError

from untis_client.config import UntisConfig, get_config
from untis_client.errors import (
    AlreadyAuthenticated,
    MalformedResponse,
    NotAuthenticated,
)
from untis_client.logging import get_logger
from untis_client.models import AuthenticateResult, PersonType, SessionState
from untis_client.resolver import ReferenceCache
from untis_client.transport import Deadline, JsonRpcTransport

logger = get_logger(__name__)


class Session:
    """Authentication state for one WebUntis account.

    Invariants: ``authenticated`` and ``closed`` are never both true, and
    ``session_id`` is non-empty exactly while the session is authenticated.
    """

    def __init__(
        self,
        username: str,
        password: str,
        *,
        transport: JsonRpcTransport | None = None,
        config: UntisConfig | None = None,
    ) -> None:
        """Create an unauthenticated session.

        Args:
            username: WebUntis account name.
            password: Account password, only sent with ``authenticate``.
            transport: Transport to use; built from config if omitted.
            config: Client configuration; the global config if omitted.
        """
        config = config if config is not None else get_config()

        self.username = username
        self._password = password
        self.client_name = config.untis_client_name
        self.transport = (
            transport
            if transport is not None
            else JsonRpcTransport(
                config.untis_url, timeout=config.request_timeout_seconds
            )
        )
        self.reference_cache = ReferenceCache(config.reference_cache_ttl_seconds)

        self.session_id = ""
        self.person_type: int = PersonType.UNKNOWN
        self.person_id = -1
        self.state = SessionState.UNAUTHENTICATED
        self._lock = threading.RLock()

    def __repr__(self) -> str:
        return (
            f"Session(username={self.username!r}, state={self.state.value}, "
            f"person_type={self.person_type}, person_id={self.person_id})"
        )

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self.authenticated:
            self.close()

    @property
    def authenticated(self) -> bool:
        return self.state is SessionState.AUTHENTICATED

    @property
    def closed(self) -> bool:
        return self.state is SessionState.CLOSED

    def require_authenticated(self) -> None:
        if not self.authenticated:
            raise NotAuthenticated(
                f"session for {self.username!r} is {self.state.value}"
            )

    def authenticate(self, *, deadline: Deadline | None = None) -> None:
        """Log in and record the session token and person identity.

        Raises:
            AlreadyAuthenticated: Session is authenticated or closed.
            IdentifierMismatch: Response id did not match; state unchanged.
            MalformedResponse: Result lacks a string ``sessionId``.
            NetworkError: Transport failure.
        """
        with self._lock:
            if self.state is not SessionState.UNAUTHENTICATED:
                raise AlreadyAuthenticated(
                    f"session for {self.username!r} is {self.state.value}"
                )

            logger.info("authentication_started", username=self.username)
            params = {
                "user": self.username,
                "password": self._password,
                "client": self.client_name,
            }
            raw, request_id = self.transport.send(
                "authenticate", params, deadline=deadline
            )
            result = self.transport.decode(raw, request_id, "authenticate")
            try:
                auth = AuthenticateResult.model_validate(result)
            except ValidationError as e:
                raise MalformedResponse(f"authenticate: {e}") from e

            self.session_id = auth.session_id
            self.person_type = auth.person_type
            self.person_id = auth.person_id
            self.state = SessionState.AUTHENTICATED

        logger.info(
            "session_authenticated",
            username=self.username,
            person_type=self.person_type,
            person_id=self.person_id,
        )

    def close(self, *, deadline: Deadline | None = None) -> None:
        """Log out. The session is CLOSED afterwards even if ``logout`` fails.

        Raises:
            NotAuthenticated: Session is not authenticated.
            NetworkError: Transport failure while sending ``logout``.
        """
        with self._lock:
            self.require_authenticated()
            try:
                self.transport.send(
                    "logout", {}, session_id=self.session_id, deadline=deadline
                )
            finally:
                self.state = SessionState.CLOSED
                self.session_id = ""
                self.reference_cache.clear()

        logger.info("session_closed", username=self.username)

    def call(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        *,
        deadline: Deadline | None = None,
    ) -> Any:
        """Authenticated RPC: send with the session cookie and return ``result``.

        The state check happens before any network traffic.
        """
        with self._lock:
            self.require_authenticated()
            session_id = self.session_id

        raw, request_id = self.transport.send(
            method, params, session_id=session_id, deadline=deadline
        )
        return self.transport.decode(raw, request_id, method)
