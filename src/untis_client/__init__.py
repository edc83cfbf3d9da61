"""Session-authenticated client for the WebUntis JSON-RPC API.

Authenticates per user, fetches timetables and turns the packed wire records
into Lesson models with teacher, room and class names resolved.
"""

from untis_client.client import UntisClient
from untis_client.models import Lesson, PersonType, SessionState
from untis_client.periods import period_from_end, period_from_start
from untis_client.registry import ClientRegistry, default_registry
from untis_client.resolver import ReferenceDataResolver
from untis_client.session import Session
from untis_client.timetable import TimetableRetrieval
from untis_client.transport import Deadline, JsonRpcTransport

__all__ = [
    "UntisClient",
    "Session",
    "SessionState",
    "PersonType",
    "Lesson",
    "ReferenceDataResolver",
    "TimetableRetrieval",
    "ClientRegistry",
    "default_registry",
    "JsonRpcTransport",
    "Deadline",
    "period_from_start",
    "period_from_end",
]
