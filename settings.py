from pydantic import Field
from pydantic_settings import BaseSettings

class DatabaseSettings(BaseSettings):
    DATABASE_URL: str = Field(default="sqlite:///dvgups.db")

class ApiSettings(BaseSettings):
    PRIMARY_BASE_URL: str = Field(default="https://next.dvgups.ru/ext/")
    FALLBACK_BASE_URL: str = Field(default="https://dvgups.ru/ext/")
    REQUEST_TIMEOUT: float = Field(default=20.0)
    SLOW_REQUEST_THRESHOLD: float = Field(default=1.0)

class ScheduleSettings(BaseSettings):
    SCHEDULE_DAYS: int = Field(default=7)
    # ДВГУПС (Хабаровск) живёт в зоне UTC+10
    TIMEZONE: str = Field(default="Asia/Vladivostok")
    # Институт управления, автоматизации и телекоммуникаций
    DEFAULT_FACULTY_ID: str = Field(default="2")

class Settings(DatabaseSettings, ApiSettings, ScheduleSettings):
    pass
