import argparse
import asyncio
import logging
import logging.handlers
import os
from datetime import date, datetime, timedelta
from sys import stdout
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

from database import db
from database.store import DatabaseSelectionStore, ScheduleCacheStore
from dvgups import APIClient, LessonKind, ScheduleService, current_or_next_lesson, format_schedule
from dvgups.timetable import Schedule
from settings import Settings

def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose or os.getenv("DEV") == 'True' else logging.INFO

    os.makedirs("logs", exist_ok=True)

    file_handler = logging.handlers.TimedRotatingFileHandler("logs/latest.log", "midnight", backupCount=3, encoding="utf-8")

    logging.basicConfig(
        level=level,
        format="[%(asctime)s %(levelname)s][%(name)s] %(message)s",
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=[
            file_handler,
            logging.StreamHandler(stdout)
        ]
    )

    # remove verbose logs from httpx
    logging.getLogger("httpx").setLevel(logging.WARNING)

def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Расписание ДВГУПС")
    parser.add_argument("--faculty", help="ID факультета")
    parser.add_argument("--group", help="Название или часть названия группы")
    parser.add_argument("--date", type=date.fromisoformat, help="Дата в формате YYYY-MM-DD")
    parser.add_argument("--week-offset", type=int, default=0, help="Сдвиг в неделях от выбранной даты")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)

def print_lesson_context(schedule: Schedule, tz: ZoneInfo, at: datetime | None = None) -> None:
    context = current_or_next_lesson(schedule, at or datetime.now(tz), tz)
    if context is None:
        return

    title = "Сейчас идёт" if context.kind is LessonKind.current else "Следующая пара"
    print(f"⏰ {title}: {context.lesson.subject} ({context.time_range_text})")

def print_state(service: ScheduleService) -> None:
    state = service.snapshot()

    if state.error_message:
        print(f"⚠️ {state.error_message}")
        if state.cached_schedule:
            print("Показано сохранённое расписание (оффлайн):")
            print(format_schedule(state.cached_schedule))
            print_lesson_context(state.cached_schedule, service.tz)
            return
        if state.cached_groups:
            print("Сохранённый список групп (оффлайн):")
            for group in state.cached_groups:
                print(f"  {group.id:>6}  {group.name}  {group.full_name}")
            return
        if state.cached_faculties:
            print("Сохранённый список факультетов (оффлайн):")
            for faculty in state.cached_faculties:
                print(f"{faculty.id:>4}  {faculty.name}")
            return

    if state.faculties_missing_ids:
        print("Факультеты без ID на сервере: " + ", ".join(state.faculties_missing_ids))

    if state.current_schedule:
        print(format_schedule(state.current_schedule))
        print_lesson_context(state.current_schedule, service.tz)
    elif state.selected_faculty is None:
        for faculty in state.faculties:
            print(f"{faculty.id:>4}  {faculty.name}")
    else:
        print(f"🏛 {state.selected_faculty.name}")
        for group in state.groups:
            print(f"  {group.id:>6}  {group.name}  {group.full_name}")

async def main(argv: list[str] | None = None) -> None:
    load_dotenv()
    args = parse_args(argv)
    setup_logging(args.verbose)

    settings = Settings()
    session_factory = db.create_session_factory(settings.DATABASE_URL)
    cache_session_factory = await db.create_async_session_factory(settings.DATABASE_URL)

    try:
        async with APIClient(settings) as client:
            service = ScheduleService(
                client,
                DatabaseSelectionStore(session_factory),
                ScheduleCacheStore(cache_session_factory),
                settings,
            )
            await run(service, args)
    finally:
        await db.dispose_async_session_factory(cache_session_factory)

async def run(service: ScheduleService, args: argparse.Namespace) -> None:
    await service.ensure_faculties_loaded()

    if args.faculty:
        # offline the saved list still allows choosing a faculty
        known = service.faculties or service.cached_faculties
        faculty = next((f for f in known if f.id == args.faculty), None)
        if faculty is None:
            logging.error("Факультет %s не найден", args.faculty)
            return
        await service.select_faculty(faculty)

    target = (args.date or service.selected_date) + timedelta(weeks=args.week_offset)
    service.select_date(target)
    await service.wait_idle()

    if args.group:
        matches = service.filter_groups(args.group)
        if not matches:
            logging.error("Группа %s не найдена", args.group)
            return
        await service.select_group(matches[0])

    print(f"Неделя: {service.current_week_label()}")
    print_state(service)


if __name__ == '__main__':
    asyncio.run(main())
