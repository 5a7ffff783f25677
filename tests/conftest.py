from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import pytest

from audit import AuditSink
from errors import CacheWriteConflict
from models import Cost, User
from periods import fixed_clock
from reports import Report

NOW = datetime(2026, 10, 19, 12, 0)


class FakeUsers:
    def __init__(self, *user_ids: int) -> None:
        self.users = {
            user_id: User(
                id=user_id,
                first_name="mosh",
                last_name="israeli",
                birthday=date(1990, 1, 1),
            )
            for user_id in user_ids
        }

    def exists(self, user_id: int) -> bool:
        return user_id in self.users

    def find(self, user_id: int) -> Optional[User]:
        return self.users.get(user_id)

    def list_all(self) -> list[User]:
        return list(self.users.values())

    def add(self, user: User) -> User:
        self.users[user.id] = user
        return user


class FakeLedger:
    def __init__(self) -> None:
        self.rows: list[Cost] = []
        self.query_calls = 0

    def insert(self, cost: Cost) -> Cost:
        cost.id = len(self.rows) + 1
        self.rows.append(cost)
        return cost

    def query(self, user_id: int, year: int, month: int) -> list[Cost]:
        self.query_calls += 1
        return [
            c
            for c in self.rows
            if c.user_id == user_id and c.year == year and c.month == month
        ]

    def total_for_user(self, user_id: int) -> Decimal:
        return sum((c.amount for c in self.rows if c.user_id == user_id), Decimal(0))

    def add(
        self,
        user_id: int,
        year: int,
        month: int,
        category: str,
        amount_cents: int,
        description: str = "item",
        day: int = 1,
    ) -> Cost:
        return self.insert(
            Cost(
                user_id=user_id,
                description=description,
                category=category,
                amount_cents=amount_cents,
                day=day,
                month=month,
                year=year,
            )
        )


class FakeCache:
    def __init__(self) -> None:
        self.reports: dict[tuple[int, int, int], Report] = {}
        self.insert_attempts = 0

    def find(self, user_id: int, year: int, month: int) -> Optional[Report]:
        return self.reports.get((user_id, year, month))

    def insert(self, report: Report) -> None:
        self.insert_attempts += 1
        key = (report.user_id, report.year, report.month)
        if key in self.reports:
            raise CacheWriteConflict("already cached", report.user_id)
        self.reports[key] = report


class RecordingAudit(AuditSink):
    def __init__(self) -> None:
        super().__init__(session_factory=None, service="test")
        self.events: list[tuple[str, str, dict[str, object]]] = []

    def emit(self, level, message, data, **columns) -> None:
        self.events.append((level, message, dict(data)))

    def messages(self) -> list[str]:
        return [message for _, message, _ in self.events]


@pytest.fixture
def clock():
    return fixed_clock(NOW)


@pytest.fixture
def users() -> FakeUsers:
    return FakeUsers(123123)


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def cache() -> FakeCache:
    return FakeCache()


@pytest.fixture
def audit() -> RecordingAudit:
    return RecordingAudit()
