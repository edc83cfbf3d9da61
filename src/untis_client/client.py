"""UntisClient: the surface the web layer talks to.

Combines the registry with session, resolver and timetable operations so a
request handler only needs a username: ``login`` once, then fetch lessons or
resolve names on later requests, and ``logout`` at the end.
"""

from collections.abc import Callable
from datetime import date

from untis_client.config import UntisConfig, get_config
from untis_client.errors import NotFound, UntisError
from untis_client.logging import get_logger
from untis_client.models import Lesson
from untis_client.registry import ClientRegistry, default_registry
from untis_client.resolver import ReferenceDataResolver
from untis_client.session import Session
from untis_client.timetable import TimetableRetrieval
from untis_client.transport import Deadline, JsonRpcTransport

logger = get_logger(__name__)


def _retire(session: Session, deadline: Deadline | None) -> None:
    """Log out a displaced session and release its connection pool."""
    try:
        if session.authenticated:
            session.close(deadline=deadline)
    except UntisError as e:
        logger.warning(
            "displaced_session_logout_failed",
            username=session.username,
            error=str(e),
            type=type(e).__name__,
        )
    finally:
        session.transport.close()


class UntisClient:
    def __init__(
        self,
        config: UntisConfig | None = None,
        registry: ClientRegistry | None = None,
        transport_factory: Callable[[], JsonRpcTransport] | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Client configuration; the global config if omitted.
            registry: Session table; the process-wide registry if omitted.
            transport_factory: Builds one transport per login. Each session
                needs its own, since an HTTP session keeps a cookie jar.
        """
        self.config = config if config is not None else get_config()
        self.registry = registry if registry is not None else default_registry
        self._transport_factory = transport_factory

    def _new_transport(self) -> JsonRpcTransport:
        if self._transport_factory is not None:
            return self._transport_factory()
        return JsonRpcTransport(
            self.config.untis_url, timeout=self.config.request_timeout_seconds
        )

    def login(
        self,
        username: str,
        password: str,
        *,
        deadline: Deadline | None = None,
    ) -> Session:
        """Authenticate a new session and make it the user's active one.

        Nothing is registered when authentication fails. A session the
        user already had is logged out once the new one is registered.
        """
        session = Session(
            username,
            password,
            transport=self._new_transport(),
            config=self.config,
        )
        session.authenticate(deadline=deadline)
        replaced = self.registry.put(session)
        if replaced is not None:
            _retire(replaced, deadline)
        return session

    def session(self, username: str) -> Session:
        session = self.registry.get(username)
        if session is None:
            raise NotFound(f"no active session for {username!r}")
        return session

    def logout(self, username: str, *, deadline: Deadline | None = None) -> None:
        """Close the user's session and drop it from the registry."""
        session = self.registry.remove(username)
        if session is None:
            raise NotFound(f"no active session for {username!r}")
        try:
            if session.authenticated:
                session.close(deadline=deadline)
        finally:
            session.transport.close()

    def resolver(self, username: str) -> ReferenceDataResolver:
        return ReferenceDataResolver(self.session(username))

    def lessons(
        self,
        username: str,
        start: date,
        end: date,
        *,
        deadline: Deadline | None = None,
    ) -> list[Lesson]:
        """Timetable of the logged-in account itself."""
        return TimetableRetrieval(self.session(username)).for_person(
            start, end, deadline=deadline
        )

    def class_lessons(
        self,
        username: str,
        start: date,
        end: date,
        class_name: str,
        *,
        deadline: Deadline | None = None,
    ) -> list[Lesson]:
        return TimetableRetrieval(self.session(username)).for_class(
            start, end, class_name, deadline=deadline
        )

    def teacher_lessons(
        self,
        username: str,
        start: date,
        end: date,
        teacher_name: str,
        *,
        deadline: Deadline | None = None,
    ) -> list[Lesson]:
        return TimetableRetrieval(self.session(username)).for_teacher(
            start, end, teacher_name, deadline=deadline
        )
