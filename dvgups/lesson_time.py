from dataclasses import dataclass


@dataclass(frozen=True)
class LessonTime:
    """Время пары по звонкам"""
    number: int
    start_time: str
    end_time: str


LESSON_TIMES: list[LessonTime] = [
    LessonTime(1, "08:05", "09:35"),
    LessonTime(2, "09:50", "11:20"),
    LessonTime(3, "11:35", "13:05"),
    LessonTime(4, "13:35", "15:05"),
    LessonTime(5, "15:15", "16:45"),
    LessonTime(6, "16:55", "18:25"),
]

UNKNOWN_PAIR: int = 0


def normalize_time(value: str) -> str:
    """Приводит "H:MM" или "HH:MM:SS" к виду "HH:MM"

    Нераспознанное значение обрезается до первых пяти символов.
    """
    value = value.strip()
    parts = value.split(":")
    if len(parts) in (2, 3) and all(part.isdigit() for part in parts):
        hour, minute = int(parts[0]), int(parts[1])
        if hour < 24 and minute < 60:
            return f"{hour:02d}:{minute:02d}"
    return value[:5]


def pair_number_for(start_time: str) -> int:
    """Номер пары по времени начала "HH:MM", 0 если такой пары нет"""
    start_time = start_time.strip()
    if not start_time:
        return UNKNOWN_PAIR

    for lesson_time in LESSON_TIMES:
        if lesson_time.start_time == start_time:
            return lesson_time.number

    # "8:05" or "08:05:00" vs "08:05"
    normalized = normalize_time(start_time)
    for lesson_time in LESSON_TIMES:
        if lesson_time.start_time == normalized:
            return lesson_time.number

    return UNKNOWN_PAIR
