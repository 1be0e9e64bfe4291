from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

SERVER_DATE_FORMAT: str = "%Y-%m-%d"
INSTITUTION_TZ: ZoneInfo = ZoneInfo("Asia/Vladivostok")

WEEKDAY_NAMES: list[str] = ["Понедельник", "Вторник", "Среда", "Четверг", "Пятница", "Суббота", "Воскресенье"]

@dataclass
class DateRange:
    # range of days, both ends inclusive
    start_date: date
    end_date: Optional[date] = None

    def __post_init__(self) -> None:
        if isinstance(self.start_date, datetime):
            self.start_date = self.start_date.date()

        if isinstance(self.end_date, datetime):
            self.end_date = self.end_date.date()

    def is_date_in_range(self, date: date) -> bool:
        if self.end_date is None:
            # Check only start_date
            return date == self.start_date

        return self.start_date <= date <= self.end_date

    @property
    def days_count(self) -> int:
        if self.end_date is None:
            return 1
        return max(1, (self.end_date - self.start_date).days + 1)


def to_local_date(value: date | datetime, tz: ZoneInfo = INSTITUTION_TZ) -> date:
    """Приводит дату/время к календарной дате в зоне вуза"""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(tz)
        return value.date()
    return value


def today(tz: ZoneInfo = INSTITUTION_TZ) -> date:
    return datetime.now(tz).date()


def start_of_week(value: date | datetime, tz: ZoneInfo = INSTITUTION_TZ) -> date:
    """Понедельник недели, в которую попадает дата.

    Неделя всегда начинается с понедельника, независимо от локали.
    """
    day = to_local_date(value, tz)
    return day - timedelta(days=day.weekday())


def week_range(value: date | datetime, tz: ZoneInfo = INSTITUTION_TZ) -> DateRange:
    monday = start_of_week(value, tz)
    return DateRange(monday, monday + timedelta(days=6))


def format_server_date(value: date | datetime, tz: ZoneInfo = INSTITUTION_TZ) -> str:
    return to_local_date(value, tz).strftime(SERVER_DATE_FORMAT)


def parse_server_date(value: object) -> date | None:
    if not isinstance(value, str):
        return None

    try:
        return datetime.strptime(value.strip(), SERVER_DATE_FORMAT).date()
    except ValueError:
        return None


def weekday_name(value: date) -> str:
    return WEEKDAY_NAMES[value.weekday()]
