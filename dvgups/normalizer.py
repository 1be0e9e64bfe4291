"""Преобразование ответов API в модели расписания.

Записи с отсутствующими или битыми полями пропускаются, пачка целиком не падает.
"""
from datetime import date
import logging
from typing import Any

from utils.daterange import DateRange, parse_server_date, weekday_name

from .lesson_time import normalize_time, pair_number_for
from .timetable import (FacultiesResult, Faculty, Group, Lesson, LessonType,
                        Schedule, ScheduleDay, Teacher)

_logger: logging.Logger = logging.getLogger(__name__)

GROUP_NAME_PLACEHOLDER: str = "Group {group_id}"


def _text(value: Any) -> str:
    """Строковое значение поля без пробелов по краям, "" если поля нет"""
    if value is None or isinstance(value, (dict, list, bool)):
        return ""
    return str(value).strip()


def _first_text(record: dict[Any, Any], *keys: str) -> str:
    for key in keys:
        value = _text(record.get(key))
        if value:
            return value
    return ""


def _as_dict(value: Any) -> dict[Any, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def normalize_faculties(rows: list[Any]) -> FacultiesResult:
    faculties: dict[str, Faculty] = {}
    missing_id_names: set[str] = set()

    for row in rows:
        if not isinstance(row, (list, tuple)):
            continue

        faculty_id = _text(row[0]) if len(row) > 0 else ""
        name = _text(row[1]) if len(row) > 1 else ""

        if not name:
            continue

        if not faculty_id:
            missing_id_names.add(name)
            continue

        faculties.setdefault(faculty_id, Faculty(id=faculty_id, name=name))

    if missing_id_names:
        _logger.warning("Факультеты без ID: %s", ", ".join(sorted(missing_id_names)))

    return FacultiesResult(
        faculties=sorted(faculties.values(), key=lambda f: f.name),
        missing_id_names=sorted(missing_id_names),
    )


def normalize_groups(items: list[Any], faculty_id: str) -> list[Group]:
    groups: dict[str, Group] = {}

    for item in items:
        if not isinstance(item, dict):
            continue

        group_id = _text(item.get("id"))
        name = _text(item.get("name"))
        if not group_id or not name:
            continue

        groups.setdefault(group_id, Group(
            id=group_id,
            name=name,
            full_name=_text(item.get("field")),
            faculty_id=faculty_id,
        ))

    return sorted(groups.values(), key=lambda g: g.name)


def _hhmm(value: Any) -> str:
    return normalize_time(_text(value))


def _compose_room(study_place: dict[Any, Any]) -> str | None:
    name = _text(study_place.get("name"))
    owner = _text(study_place.get("owner_name"))

    if name and owner:
        return f"{name} • {owner}"
    return name or None


def _get_teacher(teacher_list: list[Any]) -> Teacher | None:
    if not teacher_list or not isinstance(teacher_list[0], dict):
        return None

    record = teacher_list[0]
    name = _first_text(record, "name_abbr", "name")
    if not name:
        return None

    return Teacher(name=name, email=_text(record.get("email")) or None)


def _student_group_label(record: Any) -> str:
    if not isinstance(record, dict):
        return ""
    return _first_text(record, "student_group_name_abbr", "student_group_name", "name_abbr", "name")


def _format_lesson(lesson_data: dict[Any, Any], record: dict[Any, Any]) -> Lesson:
    time_start = _hhmm(record.get("start_time"))
    time_end = _hhmm(record.get("end_time"))

    course_type = _as_dict(lesson_data.get("course_type"))
    subject = _as_dict(lesson_data.get("course_subject"))
    study_place = lesson_data.get("study_place")

    groups: list[str] = []
    for student in _as_list(lesson_data.get("student_list")):
        if isinstance(student, dict):
            label = _first_text(student, "student_group_name_abbr", "student_group_name", "name_abbr")
            if label:
                groups.append(label)

    return Lesson(
        pair_number=pair_number_for(time_start),
        time_start=time_start,
        time_end=time_end,
        type=LessonType.from_category(_text(course_type.get("name"))),
        subject=_text(subject.get("name")),
        room=_compose_room(study_place) if isinstance(study_place, dict) else None,
        teacher=_get_teacher(_as_list(lesson_data.get("teacher_list"))),
        groups=groups,
    )


def normalize_schedule(items: list[Any], group_id: str, date_range: DateRange) -> Schedule:
    days_dict: dict[date, list[Lesson]] = {}
    resolved_group_name: str | None = None
    skipped = 0

    for record in items:
        if not isinstance(record, dict):
            skipped += 1
            continue

        lesson_date = parse_server_date(record.get("date"))
        lesson_data = record.get("lesson_data")
        if lesson_date is None or not isinstance(lesson_data, dict):
            skipped += 1
            continue

        if not date_range.is_date_in_range(lesson_date):
            skipped += 1
            continue

        # first non-empty group label in the batch wins
        if resolved_group_name is None:
            for student in _as_list(lesson_data.get("student_list")):
                label = _student_group_label(student)
                if label:
                    resolved_group_name = label
                    break

        days_dict.setdefault(lesson_date, []).append(_format_lesson(lesson_data, record))

    if skipped:
        _logger.warning("Пропущено записей расписания: %d", skipped)

    days = [
        ScheduleDay(
            date=day,
            weekday=weekday_name(day),
            lessons=sorted(lessons, key=lambda l: l.sort_key),
        )
        for day, lessons in sorted(days_dict.items(), key=lambda item: item[0])
    ]

    return Schedule(
        group_id=group_id,
        group_name=resolved_group_name or GROUP_NAME_PLACEHOLDER.format(group_id=group_id),
        start_date=date_range.start_date,
        end_date=date_range.end_date or date_range.start_date,
        days=days,
    )
