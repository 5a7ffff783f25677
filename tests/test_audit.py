import json
import logging

from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker

from audit import AuditSink
from database import Base
from models import LogEntry


def test_events_are_persisted_with_their_data() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine)

    sink = AuditSink(factory, service="costs-service")
    sink.warn("User not found when adding cost", userid=42)
    sink.request("GET", "/api/report?id=1", 200, 12)

    with factory() as session:
        rows = session.scalars(select(LogEntry).order_by(LogEntry.id)).all()

    assert [(r.level, r.message) for r in rows] == [
        ("warn", "User not found when adding cost"),
        ("info", "GET /api/report?id=1 200 12ms"),
    ]
    assert json.loads(rows[0].data_json) == {"userid": 42}
    assert rows[0].data == {"userid": 42}
    assert rows[1].status_code == 200
    assert rows[1].response_time_ms == 12
    assert rows[1].data is None
    assert all(r.service == "costs-service" for r in rows)


def test_failed_persist_is_logged_not_raised(caplog) -> None:
    # No tables: every insert fails.
    engine = create_engine("sqlite:///:memory:")
    sink = AuditSink(sessionmaker(bind=engine), service="costs-service")

    with caplog.at_level(logging.WARNING, logger="audit"):
        sink.error("Error generating report", error="boom")

    assert any("audit_persist_failed" in r.getMessage() for r in caplog.records)


def test_sink_without_storage_only_logs(caplog) -> None:
    sink = AuditSink(service="costs-service")
    with caplog.at_level(logging.INFO, logger="audit"):
        sink.info("Report generated", userid=1, year=2024, month=1)
    assert any(
        "Report generated userid=1 year=2024 month=1" in r.getMessage()
        for r in caplog.records
    )
