from __future__ import annotations

import json
import sys
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from config.settings import settings

_LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}


class ActivityLogger:
    """
    Per-component activity log. One JSON object per line, appended to
    ``ACTIVITY_LOG_PATH`` and echoed to stderr.

        {"timestamp": "...", "level": "INFO", "event": "ticket_score_saved",
         "component": "score_access", "issue_key": "PROJ-1", "score": 7}

    ``issue_key`` and ``run_id`` are only present when known. Writes are
    serialised so worker threads of a batch read do not interleave lines.
    """

    _write_lock = threading.Lock()

    def __init__(self, component: str, **context: Any) -> None:
        self.component = component
        self._context = context
        self._path = Path(settings.activity_log_path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def bind(self, **context: Any) -> "ActivityLogger":
        """Logger for the same component that stamps ``context`` on every record."""
        return ActivityLogger(self.component, **{**self._context, **context})

    def _enabled(self, level: str) -> bool:
        threshold = _LEVELS.get(settings.log_level.upper(), _LEVELS["INFO"])
        return _LEVELS[level] >= threshold

    def _record(self, level: str, event: str, fields: dict[str, Any]) -> dict[str, Any]:
        fields = {**self._context, **fields}
        record: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "event": event,
            "component": self.component,
        }
        for key in ("issue_key", "run_id"):
            value = fields.pop(key, None)
            if value:
                record[key] = value
        record.update(fields)
        return record

    def _emit(self, level: str, event: str, **fields: Any) -> None:
        if not self._enabled(level):
            return
        line = json.dumps(self._record(level, event, fields), default=str)
        with self._write_lock:
            with open(self._path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
        print(line, file=sys.stderr, flush=True)

    def debug(self, event: str, **fields: Any) -> None:
        self._emit("DEBUG", event, **fields)

    def info(self, event: str, **fields: Any) -> None:
        self._emit("INFO", event, **fields)

    def warning(self, event: str, **fields: Any) -> None:
        self._emit("WARNING", event, **fields)

    def error(self, event: str, exc: Optional[Exception] = None, **fields: Any) -> None:
        if exc is not None:
            fields.setdefault("error_type", type(exc).__name__)
            fields.setdefault("error_message", str(exc))
        self._emit("ERROR", event, **fields)
