"""Duration logging for awaited operations such as token refreshes."""

import logging
import time
from contextlib import contextmanager


@contextmanager
def timed_operation(
    operation: str,
    logger: logging.Logger,
    level: int = logging.DEBUG,
    extra: dict | None = None,
):
    """Log ``<operation>_completed`` or ``<operation>_failed`` with duration_ms.

    Failures are logged at ERROR with error and error_type and re-raised.
    Cancellation is not an Exception and passes through unlogged.

    Example:
        >>> with timed_operation("token_refresh", logger, level=logging.INFO):
        ...     token = await credential.refresh()
    """
    context = dict(extra or {})
    start = time.perf_counter()

    def elapsed_ms() -> float:
        return round((time.perf_counter() - start) * 1000, 2)

    try:
        yield
    except Exception as e:
        logger.error(
            f"{operation}_failed",
            extra={
                **context,
                "duration_ms": elapsed_ms(),
                "status": "failed",
                "error": str(e),
                "error_type": type(e).__name__,
            },
        )
        raise
    logger.log(
        level,
        f"{operation}_completed",
        extra={**context, "duration_ms": elapsed_ms(), "status": "success"},
    )
