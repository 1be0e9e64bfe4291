from datetime import date, datetime

import pytest
import pytest_asyncio
from sqlalchemy import text

from database.db import (create_async_session, create_async_session_factory, create_session,
                         create_session_factory, dispose_async_session_factory)
from database.models import CachedPayload
from database.store import DatabaseSelectionStore, ScheduleCacheStore
from dvgups.selection import FACULTY_ID_KEY, GROUP_ID_KEY
from dvgups.timetable import (FacultiesResult, Faculty, Group, Lesson, LessonType, Schedule,
                              ScheduleDay, Teacher)


@pytest.fixture
def session_factory():
    return create_session_factory("sqlite://")


@pytest_asyncio.fixture
async def async_session_factory():
    factory = await create_async_session_factory("sqlite://")
    yield factory
    await dispose_async_session_factory(factory)


def _schedule() -> Schedule:
    lesson = Lesson(2, "09:50", "11:20", LessonType.practice, "Физика",
                    room="3410 • Кафедра физики", teacher=Teacher("Иванов И.И.", "ivanov@dvgups.ru"),
                    groups=["БО241ИСТ"])
    return Schedule("10", "БО241ИСТ", date(2025, 9, 1), date(2025, 9, 7),
                    days=[ScheduleDay(date(2025, 9, 1), "Понедельник", [lesson])])


def test_selection_store_round_trip(session_factory):
    store = DatabaseSelectionStore(session_factory)

    assert store.get(FACULTY_ID_KEY) is None

    store.set(FACULTY_ID_KEY, "2")
    store.set(FACULTY_ID_KEY, "3")
    store.set(GROUP_ID_KEY, "10")

    reopened = DatabaseSelectionStore(session_factory)
    assert reopened.get(FACULTY_ID_KEY) == "3"
    assert reopened.get(GROUP_ID_KEY) == "10"

    reopened.remove(GROUP_ID_KEY)
    reopened.remove("missing")
    assert store.get(GROUP_ID_KEY) is None


def test_selection_store_errors_are_not_fatal(session_factory):
    store = DatabaseSelectionStore(session_factory)
    store.set(FACULTY_ID_KEY, "2")

    with create_session(session_factory) as session:
        session.execute(text("DROP TABLE stored_values"))

    store.set(GROUP_ID_KEY, "10")
    store.remove(GROUP_ID_KEY)
    assert store.get(FACULTY_ID_KEY) is None


def test_cache_keys():
    assert ScheduleCacheStore.schedule_key("10", date(2025, 9, 1)) == "schedule_group_10_week_2025-09-01"
    assert ScheduleCacheStore.schedule_key("a/b c", date(2025, 9, 1)) == "schedule_group_a_b_c_week_2025-09-01"
    assert ScheduleCacheStore.groups_key("2") == "groups_faculty_2"


@pytest.mark.asyncio
async def test_cached_schedule_survives_new_instance(async_session_factory):
    schedule = _schedule()
    await ScheduleCacheStore(async_session_factory).write_schedule(schedule)

    restored = await ScheduleCacheStore(async_session_factory).read_schedule("10", date(2025, 9, 1))

    assert restored == schedule
    assert restored is not schedule
    assert restored.days[0].lessons[0].teacher.email == "ivanov@dvgups.ru"


@pytest.mark.asyncio
async def test_cached_faculties_and_groups(async_session_factory):
    faculties = FacultiesResult([Faculty("2", "ИУАТ"), Faculty("3", "Институт экономики")], ["Без ID"])
    groups = [Group("10", "БО241ИСТ", "Информационные системы", "2")]

    cache = ScheduleCacheStore(async_session_factory)
    await cache.write_faculties(faculties)
    await cache.write_groups("2", groups)

    reopened = ScheduleCacheStore(async_session_factory)
    assert await reopened.read_faculties() == faculties
    assert await reopened.read_groups("2") == groups
    assert await reopened.read_groups("3") is None


@pytest.mark.asyncio
async def test_cache_miss(async_session_factory):
    cache = ScheduleCacheStore(async_session_factory)
    await cache.write_schedule(_schedule())

    assert await cache.read_schedule("10", date(2025, 9, 8)) is None
    assert await cache.read_schedule("11", date(2025, 9, 1)) is None
    assert await cache.read_faculties() is None


@pytest.mark.asyncio
async def test_corrupt_cache_entry_is_ignored(async_session_factory):
    key = ScheduleCacheStore.schedule_key("10", date(2025, 9, 1))
    async with create_async_session(async_session_factory) as session:
        session.add(CachedPayload(key=key, data="{not json", updated_at=datetime(2025, 9, 1)))

    assert await ScheduleCacheStore(async_session_factory).read_schedule("10", date(2025, 9, 1)) is None
