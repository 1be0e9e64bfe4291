from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from zoneinfo import ZoneInfo

from utils.daterange import INSTITUTION_TZ

from .timetable import Lesson, Schedule


class LessonKind(Enum):
    current = "current"
    next = "next"


@dataclass(frozen=True)
class LessonContext:
    """Текущая или следующая пара"""
    kind: LessonKind
    lesson: Lesson
    start: datetime
    end: datetime

    @property
    def time_range_text(self) -> str:
        return f"{self.start:%H:%M} – {self.end:%H:%M}"


def _at(day: date, hhmm: str, tz: ZoneInfo) -> datetime | None:
    try:
        parsed = datetime.strptime(hhmm, "%H:%M").time()
    except ValueError:
        return None
    return datetime.combine(day, time(parsed.hour, parsed.minute), tz)


def current_or_next_lesson(schedule: Schedule, at: datetime, tz: ZoneInfo = INSTITUTION_TZ) -> LessonContext | None:
    if at.tzinfo is None:
        at = at.replace(tzinfo=tz)
    local = at.astimezone(tz)

    day = schedule.day_for(local.date())
    if day is None:
        return None

    bounds: list[tuple[Lesson, datetime, datetime]] = []
    for lesson in sorted(day.lessons, key=lambda l: l.sort_key):
        start = _at(day.date, lesson.time_start, tz)
        end = _at(day.date, lesson.time_end, tz)
        if start is not None and end is not None:
            bounds.append((lesson, start, end))

    for lesson, start, end in bounds:
        if start <= local < end:
            return LessonContext(LessonKind.current, lesson, start, end)

    upcoming = [b for b in bounds if b[1] > local]
    if not upcoming:
        return None

    lesson, start, end = min(upcoming, key=lambda b: b[1])
    return LessonContext(LessonKind.next, lesson, start, end)
