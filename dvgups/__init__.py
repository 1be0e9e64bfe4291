from .timetable import Faculty, Group, Lesson, LessonType, Schedule, ScheduleDay, Teacher
from .errors import FetchError, InvalidResponse, InvalidURL, NetworkBlocked, NetworkError, ParseError
from .api import APIClient
from .service import Phase, ScheduleService, ScheduleState
from .formatting import format_schedule
from .lesson_context import LessonContext, LessonKind, current_or_next_lesson

__all__ = [
    'Faculty',
    'Group',
    'Lesson',
    'LessonType',
    'Schedule',
    'ScheduleDay',
    'Teacher',
    'FetchError',
    'InvalidResponse',
    'InvalidURL',
    'NetworkBlocked',
    'NetworkError',
    'ParseError',
    'APIClient',
    'Phase',
    'ScheduleService',
    'ScheduleState',
    'format_schedule',
    'LessonContext',
    'LessonKind',
    'current_or_next_lesson'
]
