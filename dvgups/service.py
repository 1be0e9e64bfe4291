"""Состояние выбора факультета, группы и недели.

Все изменения состояния идут через один экземпляр ScheduleService в одном
event loop. Загрузки выполняются отдельными задачами; результат загрузки,
цель которой уже сменилась (другая группа, неделя, факультет), отбрасывается.
"""
import asyncio
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from datetime import date, datetime, timedelta
import enum
import logging
from typing import TYPE_CHECKING, Any
from zoneinfo import ZoneInfo

from settings import Settings
from utils.daterange import DateRange, to_local_date, today, week_range
from utils.latin_to_ru import convert_to_russian, fold_text

from .api import APIClient
from .errors import FetchError, NetworkBlocked
from .formatting import format_week_range
from .selection import FACULTY_ID_KEY, GROUP_ID_KEY, GROUP_NAME_KEY, SelectionStore
from .timetable import Faculty, Group, Schedule

if TYPE_CHECKING:
    from database.store import ScheduleCacheStore

_logger: logging.Logger = logging.getLogger(__name__)

NO_FACULTY_MESSAGE: str = "Факультет не выбран"
NO_GROUP_MESSAGE: str = "Группа не выбрана"
NO_GROUPS_FOUND_MESSAGE: str = "Группы для данного факультета не найдены"


class Phase(enum.Enum):
    no_faculty = "NoFaculty"
    faculties_loading = "FacultiesLoading"
    faculty_selected = "FacultySelected"
    groups_loading = "GroupsLoading"
    group_selected = "GroupSelected"
    schedule_loading = "ScheduleLoading"
    schedule_ready = "ScheduleReady"
    schedule_empty = "ScheduleEmpty"


@dataclass(frozen=True)
class ScheduleState:
    """Снимок публикуемого состояния для UI"""
    faculties: tuple[Faculty, ...]
    faculties_missing_ids: tuple[str, ...]
    selected_faculty: Faculty | None
    groups: tuple[Group, ...]
    selected_group: Group | None
    current_schedule: Schedule | None
    # Последние сохранённые данные, если загрузка не удалась
    cached_faculties: tuple[Faculty, ...]
    cached_groups: tuple[Group, ...]
    cached_schedule: Schedule | None
    selected_date: date
    is_loading_faculties: bool
    is_loading_groups: bool
    is_loading_schedule: bool
    error_message: str | None
    network_blocked: bool
    phase: Phase


Listener = Callable[[ScheduleState], None]


class ScheduleService:
    """Сервис для управления выбором и загрузкой расписания"""

    def __init__(
        self,
        client: APIClient,
        store: SelectionStore,
        cache: "ScheduleCacheStore | None" = None,
        settings: Settings | None = None,
        clock: Callable[[], date] | None = None,
    ) -> None:
        self.settings: Settings = settings or client.settings
        self.tz: ZoneInfo = ZoneInfo(self.settings.TIMEZONE)
        self._client = client
        self._store = store
        self._cache = cache
        self._clock: Callable[[], date] = clock or (lambda: today(self.tz))

        self.faculties: list[Faculty] = []
        self.faculties_missing_ids: list[str] = []
        self.selected_faculty: Faculty | None = None
        self.groups: list[Group] = []
        self.selected_group: Group | None = None
        self.current_schedule: Schedule | None = None
        self.cached_faculties: list[Faculty] = []
        self.cached_groups: list[Group] = []
        self.cached_schedule: Schedule | None = None
        self.selected_date: date = self._clock()

        self.is_loading_faculties: bool = False
        self.is_loading_groups: bool = False
        self.is_loading_schedule: bool = False
        self.error_message: str | None = None
        self.network_blocked: bool = False

        self._did_load_faculties: bool = False
        self._faculties_task: asyncio.Task[None] | None = None
        self._tokens: dict[str, int] = {'faculties': 0, 'groups': 0, 'schedule': 0}
        self._listeners: list[Listener] = []
        self._tasks: set[asyncio.Task[None]] = set()

    # Published state

    @property
    def phase(self) -> Phase:
        if self.selected_faculty is None:
            return Phase.faculties_loading if self.is_loading_faculties else Phase.no_faculty
        if self.selected_group is None:
            return Phase.groups_loading if self.is_loading_groups else Phase.faculty_selected
        if self.is_loading_schedule:
            return Phase.schedule_loading
        if self.current_schedule is None:
            return Phase.group_selected
        return Phase.schedule_empty if self.current_schedule.is_empty else Phase.schedule_ready

    def snapshot(self) -> ScheduleState:
        return ScheduleState(
            faculties=tuple(self.faculties),
            faculties_missing_ids=tuple(self.faculties_missing_ids),
            selected_faculty=self.selected_faculty,
            groups=tuple(self.groups),
            selected_group=self.selected_group,
            current_schedule=self.current_schedule,
            cached_faculties=tuple(self.cached_faculties),
            cached_groups=tuple(self.cached_groups),
            cached_schedule=self.cached_schedule,
            selected_date=self.selected_date,
            is_loading_faculties=self.is_loading_faculties,
            is_loading_groups=self.is_loading_groups,
            is_loading_schedule=self.is_loading_schedule,
            error_message=self.error_message,
            network_blocked=self.network_blocked,
            phase=self.phase,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Подписка на изменения состояния. Возвращает функцию отписки"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self) -> None:
        if not self._listeners:
            return

        state = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                _logger.exception("State listener %r failed", listener)

    # Helpers

    def _next_token(self, kind: str) -> int:
        self._tokens[kind] += 1
        return self._tokens[kind]

    def _is_current(self, kind: str, token: int) -> bool:
        return self._tokens[kind] == token

    def _clear_error(self) -> None:
        self.error_message = None
        self.network_blocked = False

    def _set_error(self, error: FetchError) -> None:
        self.error_message = str(error)
        self.network_blocked = isinstance(error, NetworkBlocked)

    def _invalidate_groups(self) -> None:
        self._next_token('groups')
        self.groups = []
        self.cached_groups = []
        self.selected_group = None
        self.is_loading_groups = False

    def _invalidate_schedule(self) -> None:
        self._next_token('schedule')
        self.current_schedule = None
        self.cached_schedule = None
        self.is_loading_schedule = False

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task[None]:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Ждёт завершения всех запущенных загрузок"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    # Loading

    async def ensure_faculties_loaded(self) -> None:
        """Загружает факультеты один раз; параллельные вызовы ждут одну загрузку"""
        if self._did_load_faculties:
            return

        if self._faculties_task is None or self._faculties_task.done():
            self._faculties_task = self._spawn(self.load_faculties())
        await self._faculties_task

    async def load_faculties(self) -> None:
        token = self._next_token('faculties')
        self.is_loading_faculties = True
        self._clear_error()
        self._publish()

        try:
            result = await self._client.get_faculties()
        except FetchError as e:
            if not self._is_current('faculties', token):
                return
            _logger.error("Не удалось загрузить факультеты: %s", e)
            cached = await self._cache.read_faculties() if self._cache else None
            if not self._is_current('faculties', token):
                return
            self.faculties = []
            self.faculties_missing_ids = []
            self.cached_faculties = cached.faculties if cached else []
            self._set_error(e)
            self.is_loading_faculties = False
            self._publish()
            return

        if self._cache:
            await self._cache.write_faculties(result)

        if not self._is_current('faculties', token):
            _logger.debug("Отброшен устаревший список факультетов")
            return

        self.faculties = result.faculties
        self.faculties_missing_ids = result.missing_id_names
        self.cached_faculties = []
        self._did_load_faculties = True

        if self.selected_faculty is None:
            self.selected_faculty = self._restore_faculty()
        else:
            current_id = self.selected_faculty.id
            self.selected_faculty = next((f for f in self.faculties if f.id == current_id), self.selected_faculty)

        self.is_loading_faculties = False
        self._publish()

        if self.selected_faculty is not None:
            await self.load_groups()

    def _restore_faculty(self) -> Faculty | None:
        stored_id = self._store.get(FACULTY_ID_KEY)
        for faculty_id in (stored_id, self.settings.DEFAULT_FACULTY_ID):
            if not faculty_id:
                continue
            for faculty in self.faculties:
                if faculty.id == faculty_id:
                    return faculty

        # faculties are sorted by name
        return self.faculties[0] if self.faculties else None

    async def load_groups(self) -> None:
        faculty = self.selected_faculty
        if faculty is None:
            self.error_message = NO_FACULTY_MESSAGE
            self._publish()
            return

        token = self._next_token('groups')
        self.is_loading_groups = True
        self._clear_error()
        self._publish()

        try:
            groups = await self._client.get_groups(faculty.id)
        except FetchError as e:
            if self._is_stale_groups(token, faculty):
                return
            _logger.error("Не удалось загрузить группы факультета %s: %s", faculty.id, e)
            cached = await self._cache.read_groups(faculty.id) if self._cache else None
            if self._is_stale_groups(token, faculty):
                return
            self.groups = []
            self.cached_groups = cached or []
            self.selected_group = None
            self._invalidate_schedule()
            self._set_error(e)
            self.is_loading_groups = False
            self._publish()
            return

        if self._cache:
            await self._cache.write_groups(faculty.id, groups)

        if self._is_stale_groups(token, faculty):
            _logger.debug("Отброшен устаревший список групп факультета %s", faculty.id)
            return

        self.groups = groups
        self.cached_groups = []
        self.is_loading_groups = False
        self._store.set(FACULTY_ID_KEY, faculty.id)

        stored_group_id = self._store.get(GROUP_ID_KEY)
        restored = next((g for g in groups if g.id == stored_group_id), None) if stored_group_id else None

        if restored is None:
            self.selected_group = None
            self._invalidate_schedule()
            if not groups:
                self.error_message = NO_GROUPS_FOUND_MESSAGE
            self._publish()
            return

        self.selected_group = restored
        self._publish()
        await self.load_week_schedule()

    def _is_stale_groups(self, token: int, faculty: Faculty) -> bool:
        return not self._is_current('groups', token) \
            or self.selected_faculty is None or self.selected_faculty.id != faculty.id

    async def load_week_schedule(self) -> None:
        group = self.selected_group
        if group is None:
            self.error_message = NO_GROUP_MESSAGE
            self._publish()
            return

        week = week_range(self.selected_date, self.tz)
        token = self._next_token('schedule')
        self.is_loading_schedule = True
        self._clear_error()
        self._publish()

        try:
            schedule = await self._client.get_schedule(group.id, week.start_date, week.end_date)
        except FetchError as e:
            if self._is_stale_schedule(token, group, week):
                return
            _logger.error("Не удалось загрузить расписание группы %s: %s", group.id, e)
            cached = await self._cache.read_schedule(group.id, week.start_date) if self._cache else None
            if self._is_stale_schedule(token, group, week):
                return
            self.current_schedule = None
            self.cached_schedule = cached
            self._set_error(e)
            self.is_loading_schedule = False
            self._publish()
            return

        if self._cache:
            await self._cache.write_schedule(schedule)

        if self._is_stale_schedule(token, group, week):
            _logger.debug("Отброшено устаревшее расписание группы %s", group.id)
            return

        self.current_schedule = schedule
        self.cached_schedule = None
        self.is_loading_schedule = False
        self._publish()

    def _is_stale_schedule(self, token: int, group: Group, week: DateRange) -> bool:
        if not self._is_current('schedule', token):
            return True
        if self.selected_group is None or self.selected_group.id != group.id:
            return True
        return week_range(self.selected_date, self.tz).start_date != week.start_date

    # Commands

    def select_faculty(self, faculty: Faculty) -> asyncio.Task[None]:
        """Выбирает факультет и загружает его группы"""
        self.selected_faculty = faculty
        self._invalidate_groups()
        self._invalidate_schedule()
        self._clear_error()
        self._store.set(FACULTY_ID_KEY, faculty.id)
        self._store.remove(GROUP_ID_KEY)
        self._store.remove(GROUP_NAME_KEY)
        self._publish()

        return self._spawn(self.load_groups())

    def select_group(self, group: Group) -> asyncio.Task[None]:
        """Выбирает группу и загружает её недельное расписание"""
        self.selected_group = group
        self._invalidate_schedule()
        self._clear_error()
        self._store.set(GROUP_ID_KEY, group.id)
        self._store.set(GROUP_NAME_KEY, group.name)
        self._publish()

        return self._spawn(self.load_week_schedule())

    def select_date(self, value: date | datetime) -> asyncio.Task[None] | None:
        """Меняет выбранную дату. Расписание перезагружается, только если выбрана группа"""
        self.selected_date = to_local_date(value, self.tz)

        if self.selected_group is None:
            self._publish()
            return None

        # results for the previously selected week are no longer wanted
        self._next_token('schedule')
        self._publish()
        return self._spawn(self.load_week_schedule())

    def next_week(self) -> asyncio.Task[None] | None:
        return self.select_date(self.selected_date + timedelta(days=7))

    def previous_week(self) -> asyncio.Task[None] | None:
        return self.select_date(self.selected_date - timedelta(days=7))

    def go_to_current_week(self) -> asyncio.Task[None] | None:
        return self.select_date(self._clock())

    async def refresh(self) -> None:
        await self.load_groups()

    def clear_selection(self) -> None:
        self.selected_faculty = None
        self._invalidate_groups()
        self._invalidate_schedule()
        self._clear_error()
        self._publish()

    # Queries

    def filter_groups(self, search_text: str) -> list[Group]:
        """Поиск групп по названию и направлению без учёта регистра и диакритики"""
        query = search_text.strip()
        if not query:
            return list(self.groups)

        needles = {fold_text(query), fold_text(convert_to_russian(query))}
        return [
            group for group in self.groups
            if any(needle in fold_text(group.name) or needle in fold_text(group.full_name) for needle in needles)
        ]

    def current_week_label(self) -> str:
        return format_week_range(week_range(self.selected_date, self.tz))
