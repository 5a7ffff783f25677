import json
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from config import get_settings
from database import session_scope
from models import LogEntry

logger = logging.getLogger(__name__)

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class AuditSink:
    """Fire-and-forget event log.

    Every event goes to the ``logging`` tree and, when a session factory is
    configured, into the ``logs`` table through its own short-lived session.
    A failed write is reported on the logger and never reaches the caller.
    """

    def __init__(
        self,
        session_factory: Optional[sessionmaker] = None,
        service: Optional[str] = None,
    ) -> None:
        self.session_factory = session_factory
        self.service = service or get_settings().service_name

    def debug(self, message: str, **data: object) -> None:
        self.emit("debug", message, data)

    def info(self, message: str, **data: object) -> None:
        self.emit("info", message, data)

    def warn(self, message: str, **data: object) -> None:
        self.emit("warn", message, data)

    def error(self, message: str, **data: object) -> None:
        self.emit("error", message, data)

    def request(
        self, method: str, url: str, status_code: int, response_time_ms: int
    ) -> None:
        self.emit(
            "info",
            f"{method} {url} {status_code} {response_time_ms}ms",
            {},
            method=method,
            url=url,
            status_code=status_code,
            response_time_ms=response_time_ms,
        )

    def emit(
        self,
        level: str,
        message: str,
        data: dict[str, object],
        *,
        method: Optional[str] = None,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        response_time_ms: Optional[int] = None,
    ) -> None:
        fields = " ".join(f"{key}={value}" for key, value in data.items())
        logger.log(
            _LEVELS.get(level, logging.INFO),
            f"{self.service}: {message}" + (f" {fields}" if fields else ""),
        )
        if self.session_factory is None:
            return
        entry = LogEntry(
            level=level,
            message=message,
            service=self.service,
            method=method,
            url=url,
            status_code=status_code,
            response_time_ms=response_time_ms,
            data_json=json.dumps(data, default=str) if data else None,
        )
        try:
            with session_scope(self.session_factory) as session:
                session.add(entry)
        except SQLAlchemyError:
            logger.warning(
                f"audit_persist_failed: service={self.service} level={level}",
                exc_info=True,
            )
