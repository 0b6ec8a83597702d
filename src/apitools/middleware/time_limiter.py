"""
=============================================================================
TIME LIMITER MIDDLEWARE
=============================================================================

Refuses service during configured wall-clock windows (maintenance, batch
jobs, business-hours-only APIs).

    TimeLimiterMiddleware("08:00-12:00,13:00-17:00")

    10:30 → 503 {"code": 503,
                 "message": "Service unavailable during these times:
                             08:00 - 12:00, 13:00 - 17:00"}
    12:30 → handler runs

=============================================================================
SLOT FORMAT
=============================================================================

Comma-separated "HH:MM-HH:MM" entries, 24h, zero-padded. Both bounds are
inclusive: "08:00-12:00" blocks 08:00 and 12:00 too. Blank entries are
skipped, so "" means no slots and nothing is ever blocked.

The current time is the server's local wall clock at minute precision.
A malformed entry raises TimeSlotsError when the middleware is built.

=============================================================================
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Union
import re

from .base import Middleware, NextHandler
from ..errors import ConfigurationError
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, error_response
from ..http.status_codes import HTTPStatus


_HH_MM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class TimeSlotsError(ConfigurationError):
    """A time-slot string that cannot be parsed."""


@dataclass(frozen=True)
class TimeSlot:
    """One inclusive "HH:MM" interval."""

    start: str
    end: str

    def contains(self, hh_mm: str) -> bool:
        # Zero-padded HH:MM strings order the same way as the times
        return self.start <= hh_mm <= self.end

    def __str__(self) -> str:
        return f"{self.start} - {self.end}"

    @classmethod
    def parse(cls, entry: str) -> "TimeSlot":
        start, sep, end = entry.strip().partition("-")
        if not sep:
            raise TimeSlotsError(f"Invalid time slot {entry!r}: expected HH:MM-HH:MM")
        for side in (start, end):
            if len(side) != 5 or not _HH_MM.match(side):
                raise TimeSlotsError(f"Invalid time {side!r} in slot {entry!r}: expected HH:MM")
        return cls(start, end)


class TimeSlots:
    """An ordered collection of TimeSlot."""

    def __init__(self, slots: Optional[List[TimeSlot]] = None):
        self.slots = list(slots or [])

    @classmethod
    def parse(cls, value: str) -> "TimeSlots":
        """Parse "08:00-12:00,13:00-17:00"; blank entries are ignored."""
        return cls([TimeSlot.parse(entry) for entry in value.split(",") if entry.strip()])

    def contains(self, hh_mm: str) -> bool:
        return any(slot.contains(hh_mm) for slot in self.slots)

    def __len__(self) -> int:
        return len(self.slots)

    def __bool__(self) -> bool:
        return bool(self.slots)

    def __iter__(self):
        return iter(self.slots)

    def __str__(self) -> str:
        return ", ".join(str(slot) for slot in self.slots)

    def __repr__(self) -> str:
        return f"TimeSlots({str(self)!r})"


class TimeLimiterMiddleware(Middleware):
    """
    Answer 503 while the local time falls inside any slot.

    Args:
        time_slots: slot string or an already parsed TimeSlots
        clock:      returns the current local datetime; injectable for tests
    """

    def __init__(
        self,
        time_slots: Union[str, TimeSlots],
        clock: Callable[[], datetime] = datetime.now,
    ):
        if isinstance(time_slots, TimeSlots):
            self.time_slots = time_slots
        else:
            self.time_slots = TimeSlots.parse(time_slots)
        self.clock = clock

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        now = self.clock().strftime("%H:%M")

        if self.time_slots.contains(now):
            return error_response(
                HTTPStatus.SERVICE_UNAVAILABLE,
                f"Service unavailable during these times: {self.time_slots}",
            )

        return next(request)
