from __future__ import annotations

import json
import logging
import time
import uuid
from pathlib import Path
from typing import Any, Optional

from ..errors import ConfigError

logger = logging.getLogger(__name__)


def _utc_ts() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


class EventLogger:
    """Append-only JSON-lines diagnostic log.

    Each call writes one object ``{ts, event_type, span_id, payload}``. A
    logger built with ``path=None`` accepts events and discards them, which is
    what the shell uses when the diagnostic log is disabled.
    """

    def __init__(self, *, path: Optional[Path]) -> None:
        self.path = path
        if self.path is not None:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise ConfigError(f"cannot create diagnostic log directory {self.path.parent}: {exc}") from exc

    def log(
        self,
        *,
        event_type: str,
        payload: dict[str, Any],
        span_id: Optional[str] = None,
    ) -> str:
        span = span_id or uuid.uuid4().hex
        if self.path is None:
            return span
        obj: dict[str, Any] = {
            "ts": _utc_ts(),
            "event_type": event_type,
            "span_id": span,
            "payload": payload,
        }
        try:
            with self.path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(obj, ensure_ascii=False, default=str) + "\n")
        except OSError as exc:
            logger.warning("could not write diagnostic event %s to %s: %s", event_type, self.path, exc)
        return span


def event_logger_from_config(config: dict[str, Any], root: Path) -> EventLogger:
    raw = (config.get("logging") or {}).get("diagnostic_log")
    if not raw:
        return EventLogger(path=None)
    path = Path(raw).expanduser()
    return EventLogger(path=path if path.is_absolute() else root / path)


__all__ = ["EventLogger", "event_logger_from_config"]
