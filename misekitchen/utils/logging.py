"""애플리케이션 로깅 설정 모듈.

Application logging setup.
JSON lines in production, a compact human-readable format when LOG_JSON is off.
Structured fields are passed through ``extra={"data": {...}}``.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from misekitchen.config import settings

_configured: bool = False


class JsonFormatter(logging.Formatter):
    """로그 레코드를 JSON 한 줄로 출력합니다 (One JSON object per record)."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        data = getattr(record, "data", None)
        if data:
            log_data["data"] = data
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """개발용 포맷 (Development formatter)."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp: str = datetime.now().strftime("%H:%M:%S")
        message: str = f"[{timestamp}] {record.levelname:8} {record.name}: {record.getMessage()}"
        data = getattr(record, "data", None)
        if data:
            message += " (" + " | ".join(f"{k}={v}" for k, v in data.items()) + ")"
        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"
        return message


def setup_logging() -> None:
    """루트 로거를 한 번만 구성합니다.

    Configure the ``misekitchen`` logger hierarchy once per process.
    """
    global _configured
    if _configured:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter() if settings.LOG_JSON else ConsoleFormatter())

    root = logging.getLogger("misekitchen")
    root.setLevel(settings.LOG_LEVEL.upper())
    root.addHandler(handler)
    root.propagate = False
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """모듈 로거를 반환합니다 (Return a module logger under ``misekitchen``)."""
    return logging.getLogger(name)
