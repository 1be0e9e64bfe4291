from datetime import date, datetime

from dvgups.timetable import Lesson, LessonType, Schedule, ScheduleDay
from main import parse_args, print_lesson_context
from utils.daterange import INSTITUTION_TZ

SCHEDULE = Schedule("10", "БО241ИСТ", date(2025, 9, 1), date(2025, 9, 7), days=[
    ScheduleDay(date(2025, 9, 1), "Понедельник", [Lesson(2, "09:50", "11:20", LessonType.lecture, "Физика")]),
])


def test_prints_current_lesson(capsys):
    print_lesson_context(SCHEDULE, INSTITUTION_TZ, datetime(2025, 9, 1, 10, 0, tzinfo=INSTITUTION_TZ))

    assert capsys.readouterr().out == "⏰ Сейчас идёт: Физика (09:50 – 11:20)\n"


def test_prints_next_lesson(capsys):
    print_lesson_context(SCHEDULE, INSTITUTION_TZ, datetime(2025, 9, 1, 8, 0, tzinfo=INSTITUTION_TZ))

    assert capsys.readouterr().out.startswith("⏰ Следующая пара: Физика")


def test_nothing_printed_outside_the_week(capsys):
    print_lesson_context(SCHEDULE, INSTITUTION_TZ, datetime(2025, 9, 9, 10, 0, tzinfo=INSTITUTION_TZ))

    assert capsys.readouterr().out == ""


def test_parse_args():
    args = parse_args(["--faculty", "2", "--group", "ист", "--date", "2025-09-03", "--week-offset", "-1"])

    assert args.faculty == "2"
    assert args.group == "ист"
    assert args.date == date(2025, 9, 3)
    assert args.week_offset == -1
