from typing import Protocol

FACULTY_ID_KEY: str = "selection.facultyId"
GROUP_ID_KEY: str = "selection.groupId"
GROUP_NAME_KEY: str = "selection.groupName"


class SelectionStore(Protocol):
    """Хранилище последнего выбора пользователя (ключ-значение)"""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemorySelectionStore:
    def __init__(self, values: dict[str, str] | None = None) -> None:
        self.values: dict[str, str] = dict(values or {})

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def remove(self, key: str) -> None:
        self.values.pop(key, None)
