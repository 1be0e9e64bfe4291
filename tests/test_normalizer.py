from datetime import date

from dvgups.normalizer import normalize_faculties, normalize_groups, normalize_schedule
from dvgups.timetable import LessonType, Teacher
from utils.daterange import DateRange

WEEK = DateRange(date(2025, 9, 1), date(2025, 9, 7))


def _item(day="2025-09-01", start="09:50:00", end="11:20:00", **lesson_data):
    data = {
        "course_type": {"name": "Лекции"},
        "course_subject": {"name": "Математика"},
        "teacher_list": [{"name": "Иванов Иван Иванович", "name_abbr": "Иванов И.И."}],
        "student_list": [{"student_group_name": "БО241ИСТ"}],
        "study_place": {"name": "3420", "owner_name": "Корпус 3"},
    }
    data.update(lesson_data)
    return {"start_time": start, "end_time": end, "date": day, "lesson_data": data}


def test_faculties_missing_name_and_missing_id():
    result = normalize_faculties([
        ["5", ""],
        [None, "Институт без ID"],
        ["2", "Институт управления, автоматизации и телекоммуникаций"],
    ])

    assert [f.id for f in result.faculties] == ["2"]
    assert result.missing_id_names == ["Институт без ID"]


def test_faculties_deduplicated_and_sorted():
    result = normalize_faculties([
        ["3", "Институт экономики"],
        ["1", " Институт тяги и подвижного состава "],
        ["3", "Институт экономики (дубль)"],
        ["", "Без ID"],
        ["  ", "Без ID"],
        "garbage",
        ["7"],
    ])

    assert [(f.id, f.name) for f in result.faculties] == [
        ("1", "Институт тяги и подвижного состава"),
        ("3", "Институт экономики"),
    ]
    assert result.missing_id_names == ["Без ID"]


def test_groups_mapping():
    groups = normalize_groups([
        {"id": 20, "name": "БО241ПИН", "field": "Программная инженерия"},
        {"id": "10", "name": "БО241ИСТ", "field": "Информационные системы"},
        {"id": "10", "name": "БО241ИСТ", "field": "дубль"},
        {"id": "", "name": "Без ID"},
        {"name": "Тоже без ID"},
        None,
    ], faculty_id="2")

    assert [g.name for g in groups] == ["БО241ИСТ", "БО241ПИН"]
    assert groups[0].full_name == "Информационные системы"
    assert groups[1].id == "20"
    assert all(g.faculty_id == "2" for g in groups)


def test_lessons_sorted_by_pair_number():
    schedule = normalize_schedule([
        _item(start="09:50:00", end="11:20:00"),
        _item(start="08:05:00", end="09:35:00"),
    ], "42", WEEK)

    assert len(schedule.days) == 1
    lessons = schedule.days[0].lessons
    assert [l.pair_number for l in lessons] == [1, 2]
    assert [l.time_start for l in lessons] == ["08:05", "09:50"]
    assert lessons[0].time_end == "09:35"


def test_time_without_leading_zero_and_with_seconds():
    schedule = normalize_schedule([_item(start="8:05:00", end="9:35:00")], "42", WEEK)

    lesson = schedule.days[0].lessons[0]
    assert lesson.pair_number == 1
    assert (lesson.time_start, lesson.time_end) == ("08:05", "09:35")


def test_days_sorted_and_named():
    schedule = normalize_schedule([
        _item(day="2025-09-03"),
        _item(day="2025-09-01"),
        _item(day="2025-09-03", start="08:05:00"),
    ], "42", WEEK)

    assert [d.date for d in schedule.days] == [date(2025, 9, 1), date(2025, 9, 3)]
    assert schedule.days[0].weekday == "Понедельник"
    assert schedule.days[1].weekday == "Среда"
    assert schedule.day_for(date(2025, 9, 2)) is None
    assert schedule.start_date == WEEK.start_date
    assert schedule.end_date == WEEK.end_date


def test_lesson_fields():
    lesson = normalize_schedule([_item(course_type={"name": "ЛАБОРАТОРНЫЕ РАБОТЫ"})], "42", WEEK).days[0].lessons[0]

    assert lesson.type is LessonType.laboratory
    assert lesson.subject == "Математика"
    assert lesson.teacher == Teacher(name="Иванов И.И.")
    assert lesson.room == "3420 • Корпус 3"
    assert lesson.groups == ["БО241ИСТ"]
    assert lesson.online_link is None


def test_lesson_type_unknown_category():
    lesson = normalize_schedule([_item(course_type={"name": "Экзамен"})], "42", WEEK).days[0].lessons[0]
    assert lesson.type is LessonType.unknown


def test_teacher_falls_back_to_full_name_or_none():
    schedule = normalize_schedule([
        _item(start="08:05:00", teacher_list=[{"name": "Петров Пётр", "name_abbr": ""}]),
        _item(start="09:50:00", teacher_list=[]),
    ], "42", WEEK)

    first, second = schedule.days[0].lessons
    assert first.teacher == Teacher(name="Петров Пётр")
    assert second.teacher is None


def test_room_composition():
    schedule = normalize_schedule([
        _item(start="08:05:00", study_place={"name": "101", "owner_name": "  "}),
        _item(start="09:50:00", study_place=None),
        _item(start="11:35:00", study_place={"name": "", "owner_name": ""}),
    ], "42", WEEK)

    rooms = [l.room for l in schedule.days[0].lessons]
    assert rooms == ["101", None, None]


def test_group_name_first_non_empty_wins():
    schedule = normalize_schedule([
        _item(start="08:05:00", student_list=[{"student_group_name": ""}]),
        _item(start="09:50:00", student_list=[{"student_group_name": "", "student_group_name_abbr": ""},
                                              {"student_group_name_abbr": "БО241ИСТ(а)"}]),
        _item(start="11:35:00", student_list=[{"student_group_name": "Другая"}]),
    ], "42", WEEK)

    assert schedule.group_name == "БО241ИСТ(а)"
    assert schedule.group_id == "42"


def test_group_name_placeholder():
    schedule = normalize_schedule([_item(student_list=[])], "42", WEEK)
    assert schedule.group_name == "Group 42"

    empty = normalize_schedule([], "42", WEEK)
    assert empty.group_name == "Group 42"
    assert empty.days == []
    assert empty.is_empty


def test_broken_items_skipped():
    schedule = normalize_schedule([
        _item(day="not-a-date"),
        _item(day="2025-09-10"),
        {"date": "2025-09-02", "start_time": "08:05:00"},
        "garbage",
        _item(day="2025-09-02", start="08:05:00"),
    ], "42", WEEK)

    assert [d.date for d in schedule.days] == [date(2025, 9, 2)]
    assert len(schedule.days[0].lessons) == 1


def test_unknown_pair_sorted_first_then_by_time():
    schedule = normalize_schedule([
        _item(start="08:05:00"),
        _item(start="19:00:00"),
        _item(start="07:30:00"),
    ], "42", WEEK)

    lessons = schedule.days[0].lessons
    assert [(l.pair_number, l.time_start) for l in lessons] == [(0, "07:30"), (0, "19:00"), (1, "08:05")]
