from datetime import date, timedelta
import json
import logging
from typing import Any

import httpx

from settings import Settings
from utils.daterange import DateRange, format_server_date
from utils.monitoring import measure_time

from .errors import (PREVIEW_LIMIT, FetchError, InvalidResponse, InvalidURL,
                     NetworkBlocked, NetworkError, ParseError)
from .normalizer import normalize_faculties, normalize_groups, normalize_schedule
from .timetable import FacultiesResult, Group, Schedule

_logger: logging.Logger = logging.getLogger(__name__)

FACULTIES_PATH: str = "/api/v1/timetable/faculties"
GROUPS_PATH: str = "/api/v1/timetable/groups/by-faculty"
SCHEDULE_PATH: str = "/api/v1/timetable/schedule"

# Таймауты, недоступный хост, DNS, обрыв соединения.
# Часто возникают при активном VPN или блокировке сети
CONNECTIVITY_ERRORS: tuple[type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.ConnectError,
    httpx.ReadError,
    httpx.WriteError,
    httpx.RemoteProtocolError,
)


class APIClient:
    """Клиент API расписания ДВГУПС с резервным сервером"""

    def __init__(self, settings: Settings | None = None, client: httpx.AsyncClient | None = None) -> None:
        self.settings: Settings = settings or Settings()
        self.primary_url: str = self.settings.PRIMARY_BASE_URL
        self.fallback_url: str = self.settings.FALLBACK_BASE_URL
        self.timeout: httpx.Timeout = httpx.Timeout(self.settings.REQUEST_TIMEOUT)
        self.client: httpx.AsyncClient = client or httpx.AsyncClient()

    async def __aenter__(self) -> 'APIClient':
        return self

    async def __aexit__(self, *_exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    def _build_params(self, path: str, extra_params: dict[str, str] | None = None) -> dict[str, str]:
        params: dict[str, str] = {'api': '1', 'path': path}
        if extra_params:
            params.update(extra_params)
        return params

    async def _make_request(self, base_url: str, params: dict[str, str]) -> Any:
        try:
            response = await self.client.get(
                base_url,
                params=params,
                headers={'Accept': 'application/json'},
                timeout=self.timeout,
                follow_redirects=True,
            )
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            raise InvalidURL(str(e)) from e
        except CONNECTIVITY_ERRORS as e:
            raise NetworkBlocked(e) from e
        except httpx.TransportError as e:
            raise NetworkError(e) from e
        except httpx.RequestError as e:
            # TooManyRedirects, DecodingError
            raise NetworkError(e) from e

        if not response.is_success:
            raise InvalidResponse(response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise ParseError(str(e), response.text[:PREVIEW_LIMIT]) from e

    @measure_time(lambda self: self.settings.SLOW_REQUEST_THRESHOLD)
    async def fetch(self, path: str, params: dict[str, str] | None = None) -> Any:
        """GET запрос к основному серверу, при сбое сети или 5xx - к резервному"""
        request_params = self._build_params(path, params)

        try:
            return await self._make_request(self.primary_url, request_params)
        except (NetworkBlocked, InvalidResponse) as e:
            if isinstance(e, InvalidResponse) and not e.is_server_error:
                _logger.error("API request failed: %s %s", path, e)
                raise
            _logger.warning("Основной сервер недоступен (%s), повтор через %s", e, self.fallback_url)
        except FetchError as e:
            _logger.error("API request failed: %s %s", path, e)
            raise

        try:
            return await self._make_request(self.fallback_url, request_params)
        except FetchError as e:
            _logger.error("API request to fallback failed: %s %s", path, e)
            raise

    @staticmethod
    def _unwrap_list(payload: Any) -> list[Any]:
        """Достаёт список из конверта {status?, data: [...]}"""
        data = payload.get("data") if isinstance(payload, dict) else None
        if isinstance(data, list):
            return data

        try:
            preview = json.dumps(payload, ensure_ascii=False)
        except (TypeError, ValueError):
            preview = repr(payload)
        raise ParseError("в ответе нет списка 'data'", preview[:PREVIEW_LIMIT])

    async def get_faculties(self) -> FacultiesResult:
        data = self._unwrap_list(await self.fetch(FACULTIES_PATH))
        result = normalize_faculties(data)
        _logger.info("Получено факультетов: %d", len(result.faculties))
        return result

    async def get_groups(self, faculty_id: str) -> list[Group]:
        data = self._unwrap_list(await self.fetch(GROUPS_PATH, {'facultyId': faculty_id}))
        groups = normalize_groups(data, faculty_id)
        _logger.info("Факультет %s: получено групп %d", faculty_id, len(groups))
        return groups

    async def get_schedule(self, group_id: str, start_date: date, end_date: date | None = None) -> Schedule:
        if end_date is None:
            end_date = start_date + timedelta(days=max(1, self.settings.SCHEDULE_DAYS) - 1)
        date_range = DateRange(start_date, end_date)

        params: dict[str, str] = {
            'scheduleType': 'gr',
            'parameter': group_id,
            'days': str(date_range.days_count),
            'startDate': format_server_date(start_date),
        }
        records = self._unwrap_list(await self.fetch(SCHEDULE_PATH, params))
        _logger.info("Найдено %d записей в расписании", len(records))

        if _logger.isEnabledFor(logging.DEBUG):
            _logger.debug("Записи расписания: %s", records)

        schedule = normalize_schedule(records, group_id, date_range)
        _logger.info("Обработано дней: %d", len(schedule.days))
        return schedule
