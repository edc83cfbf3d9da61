"""Pydantic models for WebUntis wire payloads and the normalized lesson model.

Wire models mirror the JSON-RPC results field by field (camelCase aliases).
Validation failures are turned into MalformedResponse by the callers that
decode them, so a missing or mistyped field never escapes as a bare
pydantic error.
"""

import math
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator

from untis_client.periods import period_from_end, period_from_start


class PersonType(IntEnum):
    """Element types the timetable call is keyed by."""

    UNKNOWN = -1
    CLASS = 1
    TEACHER = 2


class SessionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    CLOSED = "closed"


# ---------------------------------------------------------------------------
# JSON-RPC envelope
# ---------------------------------------------------------------------------


class RpcError(BaseModel):
    code: int = 0
    message: str = ""


class RpcResponse(BaseModel):
    """Response envelope. The server echoes ``id`` as a string."""

    jsonrpc: str = "2.0"
    id: str | int | None = None
    result: Any = None
    error: RpcError | None = None


# ---------------------------------------------------------------------------
# Method results
# ---------------------------------------------------------------------------


class AuthenticateResult(BaseModel):
    """Result of ``authenticate``.

    ``personType`` and ``personId`` arrive as JSON numbers; anything else
    (absent, null, string, an overflowing float) is read as 0.
    """

    model_config = ConfigDict(populate_by_name=True)

    session_id: StrictStr = Field(alias="sessionId")
    person_type: int = Field(default=0, alias="personType")
    person_id: int = Field(default=0, alias="personId")

    @field_validator("person_type", "person_id", mode="before")
    @classmethod
    def _coerce_number(cls, value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return 0
        if isinstance(value, float) and not math.isfinite(value):
            return 0
        return int(value)


class ElementRef(BaseModel):
    """Foreign key entry inside a timetable record (``{"id": 7}``)."""

    id: int


class TimetableRecord(BaseModel):
    """One raw ``getTimetable`` entry with packed date and time integers."""

    model_config = ConfigDict(populate_by_name=True)

    id: int = 0
    date: int  # 20240311
    start_time: int = Field(alias="startTime")  # 800, 1715
    end_time: int = Field(alias="endTime")
    kl: list[ElementRef] = Field(default_factory=list)  # classes
    te: list[ElementRef] = Field(default_factory=list)  # teachers
    su: list[ElementRef] = Field(default_factory=list)  # subjects
    ro: list[ElementRef] = Field(default_factory=list)  # rooms


class ReferenceEntity(BaseModel):
    """A teacher, room or class record from the listing calls."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int
    name: str = ""
    long_name: str = Field(default="", alias="longName")
    fore_color: str | None = Field(default=None, alias="foreColor")
    back_color: str | None = Field(default=None, alias="backColor")


class Teacher(ReferenceEntity):
    fore_name: str = Field(default="", alias="foreName")

    @property
    def surname_token(self) -> str:
        """First word of the long name, uppercased ("SMITH Jonathan" -> "SMITH")."""
        parts = self.long_name.split()
        return parts[0].upper() if parts else ""


class Room(ReferenceEntity):
    pass


class SchoolClass(ReferenceEntity):
    teacher1: int | None = None
    teacher2: int | None = None


# ---------------------------------------------------------------------------
# Normalized model
# ---------------------------------------------------------------------------


class Lesson(BaseModel):
    """A single timetable lesson with resolved names.

    Id and name tuples are parallel but may differ in length when some ids
    did not resolve; ids keep the server's ordering.
    """

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime
    class_ids: tuple[int, ...] = ()
    classes: tuple[str, ...] = ()
    teacher_ids: tuple[int, ...] = ()
    teachers: tuple[str, ...] = ()
    room_ids: tuple[int, ...] = ()
    rooms: tuple[str, ...] = ()

    @property
    def start_period(self) -> int:
        return period_from_start(self.start)

    @property
    def end_period(self) -> int:
        return period_from_end(self.end)
