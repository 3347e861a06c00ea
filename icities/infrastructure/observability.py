"""Структурное логирование: JSON-форматтер и настройка корневого логгера.

- Каждая запись содержит время, уровень, имя логгера и сообщение.
- Поля `image`, `day`, `state` и факты перестановки выводятся, если переданы через `extra=`.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

EXTRA_FIELDS = (
    "image", "day", "state", "error_kind",
    "loop_x", "loop_y", "permutation", "offset", "offset_x", "offset_y",
)


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val if isinstance(val, (int, float, bool)) else str(val)
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


def setup_logging(level: str = "INFO", fmt: str = "text") -> None:
    """Настраивает корневой логгер; вызывается один раз при старте CLI."""
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
        ))
    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
