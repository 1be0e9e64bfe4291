"""Ошибки загрузки данных с сервера расписания.

str(error) - сообщение для пользователя.
"""

PREVIEW_LIMIT: int = 300


class FetchError(Exception):
    """Базовая ошибка загрузки"""


class InvalidURL(FetchError):
    def __init__(self, detail: str = "") -> None:
        super().__init__("Неверный URL")
        self.detail: str = detail


class ParseError(FetchError):
    def __init__(self, detail: str, preview: str = "") -> None:
        preview = preview[:PREVIEW_LIMIT]
        message = f"Ошибка парсинга: {detail}"
        if preview:
            message += f". Response preview: {preview}"
        super().__init__(message)
        self.detail: str = detail
        self.preview: str = preview


class NetworkBlocked(FetchError):
    """Сервер недоступен по сети: часто из-за VPN или региональной блокировки"""

    def __init__(self, cause: BaseException | None = None) -> None:
        super().__init__(
            "Не удалось подключиться к серверу. Возможно включен VPN или сеть "
            "блокирует доступ к dvgups.ru. Отключите VPN и повторите попытку."
        )
        self.cause: BaseException | None = cause


class NetworkError(FetchError):
    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"Ошибка сети: {cause}")
        self.cause: BaseException = cause


class InvalidResponse(FetchError):
    def __init__(self, status_code: int | None = None) -> None:
        message = "Неверный формат ответа сервера"
        if status_code is not None:
            message += f" (HTTP {status_code})"
        super().__init__(message)
        self.status_code: int | None = status_code

    @property
    def is_server_error(self) -> bool:
        return self.status_code is not None and 500 <= self.status_code <= 599
