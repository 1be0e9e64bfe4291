import logging

from utils.daterange import DateRange

from .timetable import Lesson, Schedule, ScheduleDay

EMOJI_NUMBERS: list[str] = ["0️⃣", "1️⃣", "2️⃣", "3️⃣", "4️⃣", "5️⃣", "6️⃣", "7️⃣", "8️⃣", "9️⃣"]
MONTH_ABBREVIATIONS: list[str] = ["янв", "фев", "мар", "апр", "мая", "июн", "июл", "авг", "сен", "окт", "ноя", "дек"]

_logger: logging.Logger = logging.getLogger(__name__)


def format_week_range(date_range: DateRange) -> str:
    """Подпись недели вида "13 окт - 19 окт" """
    end = date_range.end_date or date_range.start_date
    start_text = f"{date_range.start_date.day:02d} {MONTH_ABBREVIATIONS[date_range.start_date.month - 1]}"
    end_text = f"{end.day:02d} {MONTH_ABBREVIATIONS[end.month - 1]}"
    return f"{start_text} - {end_text}"


class ScheduleFormatter:
    """Класс для форматирования расписания в текст"""

    def format_schedule(self, schedule: Schedule) -> str:
        _logger.info("Форматирование расписания группы %s", schedule.group_name)

        formatted_schedule: list[str] = [
            f"📚 Расписание группы: {schedule.group_name}",
            f"🗓 {format_week_range(DateRange(schedule.start_date, schedule.end_date))}\n",
        ]

        if schedule.is_empty:
            formatted_schedule.append("На указанный период занятий не найдено.")
            return "\n".join(formatted_schedule)

        for day in schedule.days:
            self._format_single_day(day, formatted_schedule)

        return "\n".join(formatted_schedule)

    def _format_single_day(self, day: ScheduleDay, formatted_schedule: list[str]) -> None:
        formatted_schedule.append(f"📅 {day.weekday} {day.date:%d.%m}\n")

        if not day.lessons:
            formatted_schedule.append("Нет занятий\n")
            return

        for lesson in day.lessons:
            formatted_schedule.append(self._format_lesson(lesson))

    def _format_lesson(self, lesson: Lesson) -> str:
        """Форматирует информацию о занятии в табличном стиле"""
        time_block = f"{self._num_to_emoji(lesson.pair_number)} {lesson.time_start}-{lesson.time_end}"
        subject_block = f"📚 {lesson.type.value} {lesson.subject}"
        people_block = f"👩 преп. {lesson.teacher.name}" if lesson.teacher else "👩 ❓"
        room_block = f"🏢 {lesson.room or '❓'}"

        return (
            f"┌─ {time_block}\n"
            f"├─ {subject_block}\n"
            f"├─ {people_block}\n"
            f"└─ {room_block}\n"
        )

    @staticmethod
    def _num_to_emoji(num: int) -> str:
        """Конвертирует номер пары в эмодзи"""
        if 0 < num < len(EMOJI_NUMBERS):
            return EMOJI_NUMBERS[num]
        return "❓"


schedule_formatter = ScheduleFormatter()

def format_schedule(schedule: Schedule) -> str:
    return schedule_formatter.format_schedule(schedule)
