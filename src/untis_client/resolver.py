"""Reference data resolution: teacher, room and class ids <-> names.

Listings come from ``getTeachers``, ``getRooms`` and ``getKlassen``. Each
session keeps a TTL cache of them (ReferenceCache); with a TTL of 0 every
resolution re-fetches the full listing.
"""

import threading
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING, NamedTuple

from pydantic import TypeAdapter, ValidationError

from untis_client.errors import MalformedResponse, NotFound
from untis_client.logging import get_logger
from untis_client.models import ReferenceEntity, Room, SchoolClass, Teacher
from untis_client.transport import Deadline

if TYPE_CHECKING:
    from untis_client.session import Session

logger = get_logger(__name__)

TEACHERS = "teachers"
ROOMS = "rooms"
CLASSES = "classes"

_LISTING_METHODS: dict[str, str] = {
    TEACHERS: "getTeachers",
    ROOMS: "getRooms",
    CLASSES: "getKlassen",
}
_LISTING_ADAPTERS: dict[str, TypeAdapter] = {
    TEACHERS: TypeAdapter(list[Teacher]),
    ROOMS: TypeAdapter(list[Room]),
    CLASSES: TypeAdapter(list[SchoolClass]),
}


class ReferenceCache:
    """Per-session store of reference listings with a time-to-live."""

    def __init__(self, ttl_seconds: float) -> None:
        self.ttl_seconds = ttl_seconds
        self._entries: dict[str, tuple[float, list]] = {}
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self.ttl_seconds > 0

    def get(self, kind: str) -> list | None:
        if not self.enabled:
            return None
        with self._lock:
            entry = self._entries.get(kind)
            if entry is None:
                return None
            stored_at, records = entry
            if time.monotonic() - stored_at > self.ttl_seconds:
                del self._entries[kind]
                return None
            return records

    def put(self, kind: str, records: list) -> None:
        if not self.enabled:
            return
        with self._lock:
            self._entries[kind] = (time.monotonic(), records)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class NameResolution(NamedTuple):
    """Names found for an id list, plus the ids that matched nothing."""

    names: list[str]
    unresolved: list[int]


class ReferenceDataResolver:
    """Translates foreign keys from timetable records into display names.

    Every operation requires an authenticated session and fails with
    NotAuthenticated before touching the network otherwise.
    """

    def __init__(self, session: "Session") -> None:
        self.session = session

    def refresh(self) -> None:
        """Drop cached listings so the next resolution re-fetches them."""
        self.session.reference_cache.clear()

    def _listing(self, kind: str, deadline: Deadline | None) -> list:
        self.session.require_authenticated()

        cache = self.session.reference_cache
        cached = cache.get(kind)
        if cached is not None:
            return cached

        method = _LISTING_METHODS[kind]
        result = self.session.call(method, {}, deadline=deadline)
        try:
            records = _LISTING_ADAPTERS[kind].validate_python(result)
        except ValidationError as e:
            raise MalformedResponse(f"{method}: {e}") from e

        cache.put(kind, records)
        logger.debug(
            "reference_listing_fetched",
            kind=kind,
            count=len(records),
            cached=cache.enabled,
        )
        return records

    def list_teachers(self, *, deadline: Deadline | None = None) -> list[Teacher]:
        return self._listing(TEACHERS, deadline)

    def list_rooms(self, *, deadline: Deadline | None = None) -> list[Room]:
        return self._listing(ROOMS, deadline)

    def list_classes(self, *, deadline: Deadline | None = None) -> list[SchoolClass]:
        return self._listing(CLASSES, deadline)

    def resolve_names(
        self,
        kind: str,
        ids: Sequence[int],
        *,
        deadline: Deadline | None = None,
    ) -> NameResolution:
        """Resolve ids of one kind to short names.

        Ids are processed in input order; each takes the name of the first
        listing record with that id. Ids without a record are left out of
        ``names`` and reported in ``unresolved``.

        Args:
            kind: One of TEACHERS, ROOMS, CLASSES.
            ids: Element ids as found in a timetable record.
            deadline: Optional time budget for the listing fetch.
        """
        if kind not in _LISTING_METHODS:
            raise ValueError(f"Unknown reference kind {kind!r}")

        records: list[ReferenceEntity] = self._listing(kind, deadline)
        names: list[str] = []
        unresolved: list[int] = []
        for element_id in ids:
            name = next((r.name for r in records if r.id == element_id), None)
            if name is None:
                unresolved.append(element_id)
            else:
                names.append(name)

        if unresolved:
            logger.warning(
                "reference_ids_unresolved",
                kind=kind,
                count=len(unresolved),
                ids=unresolved,
            )
        return NameResolution(names, unresolved)

    def resolve_teacher_names(
        self, ids: Sequence[int], *, deadline: Deadline | None = None
    ) -> list[str]:
        return self.resolve_names(TEACHERS, ids, deadline=deadline).names

    def resolve_room_names(
        self, ids: Sequence[int], *, deadline: Deadline | None = None
    ) -> list[str]:
        return self.resolve_names(ROOMS, ids, deadline=deadline).names

    def resolve_class_names(
        self, ids: Sequence[int], *, deadline: Deadline | None = None
    ) -> list[str]:
        return self.resolve_names(CLASSES, ids, deadline=deadline).names

    def resolve_teacher_id(
        self, display_name: str, *, deadline: Deadline | None = None
    ) -> int:
        """Find a teacher's id from a "Forename SURNAME" display name.

        The forename must equal the record's ``foreName``; the second word,
        uppercased, must equal the first word of the record's ``longName``,
        uppercased.

        Raises:
            NotFound: No teacher matches, or the name has no surname part.
        """
        teachers = self.list_teachers(deadline=deadline)

        parts = display_name.split(" ")
        if len(parts) < 2:
            raise NotFound(f"teacher {display_name!r} not found")
        forename, surname = parts[0], parts[1].upper()

        for teacher in teachers:
            if teacher.fore_name == forename and teacher.surname_token == surname:
                return teacher.id
        raise NotFound(f"teacher {display_name!r} not found")

    def resolve_class_id(
        self, name: str, *, deadline: Deadline | None = None
    ) -> int:
        """Find a class id by exact short name (e.g. "5AHIF").

        Raises:
            NotFound: No class has that short name.
        """
        for school_class in self.list_classes(deadline=deadline):
            if school_class.name == name:
                return school_class.id
        raise NotFound(f"class {name!r} not found")
