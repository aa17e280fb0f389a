import math
import time
import logging

class ThrottledLogger:
    """
    Emits at most one record per interval for a high-rate event and reports
    how many occurrences were folded into it.
    """
    def __init__(self, logger: logging.Logger, interval_sec: float = 5.0) -> None:
        self._logger = logger
        self._interval = interval_sec
        # The first event is always emitted, however recently the clock started.
        self._last_log_time = -math.inf
        self._counter = 0

    def log(self, level: int, message: str, *args, **kwargs) -> None:
        self._counter += 1
        now = time.monotonic()

        if now - self._last_log_time >= self._interval:
            self._logger.log(level, "[%d] " + message, self._counter, *args, **kwargs)
            self._last_log_time = now
            self._counter = 0

    def debug(self, message: str, *args, **kwargs) -> None:
        self.log(logging.DEBUG, message, *args, **kwargs)

    def warning(self, message: str, *args, **kwargs) -> None:
        self.log(logging.WARNING, message, *args, **kwargs)
