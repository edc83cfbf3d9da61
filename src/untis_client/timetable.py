"""Timetable retrieval: ``getTimetable`` records -> normalized Lessons.

WebUntis packs dates and times into integers: ``20240311`` is 2024-03-11,
``800`` is 08:00 and ``1715`` is 17:15. The minute part is always the last
two digits, so the width of a time value depends on the hour.
"""

from collections.abc import Iterable
from datetime import date, datetime, time, timezone

from pydantic import TypeAdapter, ValidationError

from untis_client.errors import MalformedResponse
from untis_client.logging import get_logger
from untis_client.models import ElementRef, Lesson, PersonType, TimetableRecord
from untis_client.resolver import CLASSES, ROOMS, TEACHERS, ReferenceDataResolver
from untis_client.session import Session
from untis_client.transport import Deadline

logger = get_logger(__name__)

_RECORDS = TypeAdapter(list[TimetableRecord])


def format_date(value: date) -> str:
    """Format a date as the ``YYYYMMDD`` string getTimetable expects."""
    return f"{value.year:04d}{value.month:02d}{value.day:02d}"


def parse_packed_date(value: int) -> date:
    """Decode ``YYYYMMDD`` packed into an integer."""
    text = str(value)
    if len(text) != 8:
        raise MalformedResponse(f"packed date {value!r} is not YYYYMMDD")
    try:
        return date(int(text[0:4]), int(text[4:6]), int(text[6:8]))
    except ValueError as e:
        raise MalformedResponse(f"packed date {value!r}: {e}") from e


def parse_packed_time(value: int) -> time:
    """Decode a packed ``H[H]MM`` time: last two digits minutes, the rest hours."""
    if value < 0:
        raise MalformedResponse(f"packed time {value!r} is negative")
    text = str(value)
    hour = int(text[:-2] or "0")
    minute = int(text[-2:])
    try:
        return time(hour, minute)
    except ValueError as e:
        raise MalformedResponse(f"packed time {value!r}: {e}") from e


def _ids(refs: Iterable[ElementRef]) -> list[int]:
    return [ref.id for ref in refs]


class TimetableRetrieval:
    """Fetches lessons for a person, a class or a teacher over a date range.

    Each record's class, teacher and room ids are resolved to names through
    the ReferenceDataResolver, one resolution per list per record. Any
    failure aborts the whole fetch; partial lesson lists are never returned.
    """

    def __init__(
        self, session: Session, resolver: ReferenceDataResolver | None = None
    ) -> None:
        self.session = session
        self.resolver = (
            resolver if resolver is not None else ReferenceDataResolver(session)
        )

    def for_person(
        self,
        start: date,
        end: date,
        *,
        person_id: int | None = None,
        person_type: int | None = None,
        deadline: Deadline | None = None,
    ) -> list[Lesson]:
        """Lessons of a person; defaults to the logged-in account's own timetable."""
        self.session.require_authenticated()
        if person_id is None:
            person_id = self.session.person_id
        if person_type is None:
            person_type = self.session.person_type
        return self._fetch(person_id, person_type, start, end, deadline)

    def for_class(
        self,
        start: date,
        end: date,
        class_name: str,
        *,
        deadline: Deadline | None = None,
    ) -> list[Lesson]:
        """Lessons of a class given by short name (e.g. "5AHIF")."""
        self.session.require_authenticated()
        class_id = self.resolver.resolve_class_id(class_name, deadline=deadline)
        return self._fetch(class_id, PersonType.CLASS, start, end, deadline)

    def for_teacher(
        self,
        start: date,
        end: date,
        teacher_name: str,
        *,
        deadline: Deadline | None = None,
    ) -> list[Lesson]:
        """Lessons of a teacher given as "Forename SURNAME"."""
        self.session.require_authenticated()
        teacher_id = self.resolver.resolve_teacher_id(teacher_name, deadline=deadline)
        return self._fetch(teacher_id, PersonType.TEACHER, start, end, deadline)

    def _fetch(
        self,
        element_id: int,
        element_type: int,
        start: date,
        end: date,
        deadline: Deadline | None,
    ) -> list[Lesson]:
        params = {
            "id": element_id,
            "type": int(element_type),
            "startDate": format_date(start),
            "endDate": format_date(end),
        }
        result = self.session.call("getTimetable", params, deadline=deadline)
        try:
            records = _RECORDS.validate_python(result)
        except ValidationError as e:
            raise MalformedResponse(f"getTimetable: {e}") from e

        lessons = [self._build_lesson(record, deadline) for record in records]
        logger.info(
            "timetable_fetched",
            element_id=element_id,
            element_type=int(element_type),
            start=params["startDate"],
            end=params["endDate"],
            lessons=len(lessons),
        )
        return lessons

    def _build_lesson(
        self, record: TimetableRecord, deadline: Deadline | None
    ) -> Lesson:
        day = parse_packed_date(record.date)
        start_time = parse_packed_time(record.start_time)
        end_time = parse_packed_time(record.end_time)

        class_ids = _ids(record.kl)
        teacher_ids = _ids(record.te)
        room_ids = _ids(record.ro)
        classes = self.resolver.resolve_names(CLASSES, class_ids, deadline=deadline)
        teachers = self.resolver.resolve_names(TEACHERS, teacher_ids, deadline=deadline)
        rooms = self.resolver.resolve_names(ROOMS, room_ids, deadline=deadline)

        return Lesson(
            start=datetime.combine(day, start_time, tzinfo=timezone.utc),
            end=datetime.combine(day, end_time, tzinfo=timezone.utc),
            class_ids=tuple(class_ids),
            classes=tuple(classes.names),
            teacher_ids=tuple(teacher_ids),
            teachers=tuple(teachers.names),
            room_ids=tuple(room_ids),
            rooms=tuple(rooms.names),
        )
