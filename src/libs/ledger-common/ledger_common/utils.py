# src/libs/ledger-common/ledger_common/utils.py
import functools
import logging
import time
from typing import Any, Callable

from .monitoring import DB_OPERATION_LATENCY_SECONDS

logger = logging.getLogger(__name__)

# Queries slower than this are logged at WARNING.
SLOW_OPERATION_SECONDS = 1.0


def async_timed(repository: str, method: str) -> Callable:
    """
    Records the latency of a repository coroutine in
    DB_OPERATION_LATENCY_SECONDS, labelled with whether the call raised.
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            outcome = "error"
            started = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
                outcome = "success"
                return result
            finally:
                elapsed = time.perf_counter() - started
                DB_OPERATION_LATENCY_SECONDS.labels(
                    repository=repository, method=method, outcome=outcome
                ).observe(elapsed)
                if elapsed >= SLOW_OPERATION_SECONDS:
                    logger.warning(
                        "Slow ledger query.",
                        extra={"repository": repository, "method": method, "duration_ms": round(elapsed * 1000, 2)},
                    )
        return wrapper
    return decorator
