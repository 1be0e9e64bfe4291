import time
from functools import wraps
from typing import TypeVar, Callable, Any, Awaitable
import logging

T = TypeVar('T')

_logger: logging.Logger = logging.getLogger(__name__)

def measure_time(threshold: float | Callable[[Any], float] = 1.0) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Декоратор для измерения времени выполнения асинхронных функций

    threshold может быть числом или функцией, получающей self метода
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            start = time.monotonic()
            try:
                return await func(*args, **kwargs)
            finally:
                execution_time = time.monotonic() - start
                limit = threshold(args[0]) if callable(threshold) else threshold

                if execution_time > limit:
                    _logger.warning(
                        "Slow operation detected: %s took %.2f seconds",
                        func.__qualname__, execution_time
                    )
        return wrapper
    return decorator
