from __future__ import annotations

import time


class TimeMeasurer:
    def __init__(self) -> None:
        self._start = time.monotonic()

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self._start) * 1000)


__all__ = ["TimeMeasurer"]
