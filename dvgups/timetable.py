from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any
import uuid


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Faculty:
    """Факультет/институт"""
    id: str
    name: str

    def to_dict(self) -> dict[str, Any]:
        return {'id': self.id, 'name': self.name}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'Faculty':
        return cls(id=data['id'], name=data['name'])


@dataclass(frozen=True)
class Group:
    """Группа студентов"""
    id: str
    # Название группы, например "БО241ИСТ"
    name: str
    # Полное название направления подготовки
    full_name: str
    faculty_id: str

    def __str__(self) -> str:
        return f"Группа {self.name}"

    def to_dict(self) -> dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'full_name': self.full_name,
            'faculty_id': self.faculty_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'Group':
        return cls(**data)


class LessonType(Enum):
    lecture = "Лекции"
    practice = "Практика"
    laboratory = "Лабораторные работы"
    unknown = "Неизвестно"

    @classmethod
    def from_category(cls, category: str | None) -> 'LessonType':
        if not category:
            return cls.unknown

        category = category.strip().lower()
        for lesson_type in (cls.lecture, cls.practice, cls.laboratory):
            if lesson_type.value.lower() == category:
                return lesson_type
        return cls.unknown


@dataclass(frozen=True)
class Teacher:
    name: str
    email: str | None = None


@dataclass
class Lesson:
    pair_number: int
    time_start: str
    time_end: str
    type: LessonType
    subject: str
    room: str | None = None
    teacher: Teacher | None = None
    groups: list[str] = field(default_factory=list)
    online_link: str | None = None
    id: str = field(default_factory=_new_id)

    @property
    def sort_key(self) -> tuple[int, str]:
        return self.pair_number, self.time_start

    def to_dict(self) -> dict[str, Any]:
        return {
            'id': self.id,
            'pair_number': self.pair_number,
            'time_start': self.time_start,
            'time_end': self.time_end,
            'type': self.type.name,
            'subject': self.subject,
            'room': self.room,
            'teacher': {'name': self.teacher.name, 'email': self.teacher.email} if self.teacher else None,
            'groups': list(self.groups),
            'online_link': self.online_link,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'Lesson':
        data = dict(data)
        data['type'] = LessonType[data['type']]
        data['teacher'] = Teacher(**data['teacher']) if data.get('teacher') else None
        return cls(**data)


@dataclass
class ScheduleDay:
    date: date
    # Например, "Понедельник"
    weekday: str
    lessons: list[Lesson] = field(default_factory=list)
    id: str = field(default_factory=_new_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            'id': self.id,
            'date': self.date.isoformat(),
            'weekday': self.weekday,
            'lessons': [lesson.to_dict() for lesson in self.lessons],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'ScheduleDay':
        return cls(
            id=data['id'],
            date=date.fromisoformat(data['date']),
            weekday=data['weekday'],
            lessons=[Lesson.from_dict(l) for l in data['lessons']],
        )


@dataclass
class Schedule:
    """Расписание группы на одно окно дат"""
    group_id: str
    group_name: str
    start_date: date
    end_date: date
    days: list[ScheduleDay] = field(default_factory=list)
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: str = field(default_factory=_new_id)

    def day_for(self, target: date) -> ScheduleDay | None:
        """Возвращает день расписания или None, если данных за эту дату нет"""
        for day in self.days:
            if day.date == target:
                return day
        return None

    @property
    def is_empty(self) -> bool:
        return not any(day.lessons for day in self.days)

    def to_dict(self) -> dict[str, Any]:
        return {
            'id': self.id,
            'group_id': self.group_id,
            'group_name': self.group_name,
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat(),
            'days': [day.to_dict() for day in self.days],
            'last_updated': self.last_updated.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'Schedule':
        return cls(
            id=data['id'],
            group_id=data['group_id'],
            group_name=data['group_name'],
            start_date=date.fromisoformat(data['start_date']),
            end_date=date.fromisoformat(data['end_date']),
            days=[ScheduleDay.from_dict(d) for d in data['days']],
            last_updated=datetime.fromisoformat(data['last_updated']),
        )


@dataclass
class FacultiesResult:
    faculties: list[Faculty]
    # Факультеты без идентификатора на сервере: показываем только предупреждение
    missing_id_names: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            'faculties': [faculty.to_dict() for faculty in self.faculties],
            'missing_id_names': list(self.missing_id_names),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'FacultiesResult':
        return cls(
            faculties=[Faculty.from_dict(f) for f in data['faculties']],
            missing_id_names=list(data['missing_id_names']),
        )
