from collections.abc import Callable
from datetime import date, datetime, timezone
import json
import logging
import re
from typing import Any, TypeVar

from cachetools import TTLCache
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from dvgups.timetable import FacultiesResult, Group, Schedule

from .db import AsyncSessionFactory, SessionFactory, create_async_session, create_session
from .models import CachedPayload, StoredValue

_logger: logging.Logger = logging.getLogger(__name__)

T = TypeVar('T')


class DatabaseSelectionStore:
    """Хранилище выбора в таблице stored_values

    Ошибки базы логируются: потеря сохранённого выбора не критична
    """

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory: SessionFactory = session_factory

    def get(self, key: str) -> str | None:
        try:
            with create_session(self._session_factory) as session:
                return session.scalar(select(StoredValue.value).where(StoredValue.key == key))
        except SQLAlchemyError as e:
            _logger.warning("Не удалось прочитать %s: %s", key, e)
            return None

    def set(self, key: str, value: str) -> None:
        try:
            with create_session(self._session_factory) as session:
                session.merge(StoredValue(key=key, value=value))
        except SQLAlchemyError as e:
            _logger.warning("Не удалось сохранить %s: %s", key, e)

    def remove(self, key: str) -> None:
        try:
            with create_session(self._session_factory) as session:
                session.execute(delete(StoredValue).where(StoredValue.key == key))
        except SQLAlchemyError as e:
            _logger.warning("Не удалось удалить %s: %s", key, e)


def _sanitize(value: str) -> str:
    return re.sub(r"[^A-Za-z0-9_-]", "_", value)


class ScheduleCacheStore:
    """Дисковый кэш факультетов, групп и расписаний для оффлайн-режима

    Ошибки кэша не пробрасываются: кэш best-effort
    """

    FACULTIES_KEY: str = "faculties"

    def __init__(self, session_factory: AsyncSessionFactory, ttl: int = 600) -> None:
        self._session_factory: AsyncSessionFactory = session_factory
        self._memory: TTLCache[str, Any] = TTLCache(maxsize=64, ttl=ttl)

    @staticmethod
    def groups_key(faculty_id: str) -> str:
        return f"groups_faculty_{_sanitize(faculty_id)}"

    @staticmethod
    def schedule_key(group_id: str, week_start: date) -> str:
        return f"schedule_group_{_sanitize(group_id)}_week_{week_start.isoformat()}"

    async def _write(self, key: str, value: Any, payload: Any) -> None:
        self._memory[key] = value

        try:
            async with create_async_session(self._session_factory) as session:
                await session.merge(CachedPayload(
                    key=key,
                    data=json.dumps(payload, ensure_ascii=False),
                    updated_at=datetime.now(timezone.utc).replace(tzinfo=None),
                ))
        except SQLAlchemyError as e:
            _logger.warning("Не удалось сохранить %s в кэш: %s", key, e)

    async def _read(self, key: str, parse: Callable[[Any], T]) -> T | None:
        if key in self._memory:
            return self._memory[key]

        try:
            async with create_async_session(self._session_factory) as session:
                data = await session.scalar(select(CachedPayload.data).where(CachedPayload.key == key))
        except SQLAlchemyError as e:
            _logger.warning("Не удалось прочитать кэш %s: %s", key, e)
            return None

        if data is None:
            return None

        try:
            value = parse(json.loads(data))
        except (ValueError, KeyError, TypeError) as e:
            _logger.warning("Повреждённая запись кэша %s: %s", key, e)
            return None

        self._memory[key] = value
        return value

    async def write_faculties(self, result: FacultiesResult) -> None:
        await self._write(self.FACULTIES_KEY, result, result.to_dict())

    async def read_faculties(self) -> FacultiesResult | None:
        return await self._read(self.FACULTIES_KEY, FacultiesResult.from_dict)

    async def write_groups(self, faculty_id: str, groups: list[Group]) -> None:
        await self._write(self.groups_key(faculty_id), list(groups), [group.to_dict() for group in groups])

    async def read_groups(self, faculty_id: str) -> list[Group] | None:
        return await self._read(self.groups_key(faculty_id), lambda data: [Group.from_dict(g) for g in data])

    async def write_schedule(self, schedule: Schedule) -> None:
        key = self.schedule_key(schedule.group_id, schedule.start_date)
        await self._write(key, schedule, schedule.to_dict())

    async def read_schedule(self, group_id: str, week_start: date) -> Schedule | None:
        return await self._read(self.schedule_key(group_id, week_start), Schedule.from_dict)
