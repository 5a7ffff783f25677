from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from audit import AuditSink
from config import Settings, get_settings
from errors import CacheWriteConflict, NotFoundError, StorageError, ValidationError
from models import Cost, LogEntry, User
from periods import MIN_YEAR, Clock, ReportPeriod, is_closed, system_clock
from reports import Report, build_report
from schemas import CostIn, UserIn, parse_payload, subject_from
from stores import CostLedger, ReportCache, UserDirectory


class CostService:
    """Accepts new ledger entries.

    Nothing may be written into a month that has already ended; this is
    what keeps cached reports for closed months valid forever.
    """

    def __init__(
        self,
        users: UserDirectory,
        ledger: CostLedger,
        clock: Clock = system_clock,
        audit: Optional[AuditSink] = None,
    ) -> None:
        self.users = users
        self.ledger = ledger
        self.clock = clock
        self.audit = audit or AuditSink()

    def submit(self, payload: object) -> Cost:
        data = parse_payload(
            CostIn, payload, subject_from(payload, "userId", "userid", "user_id")
        )
        if not self.users.exists(data.user_id):
            self.audit.warn("User not found when adding cost", userid=data.user_id)
            raise NotFoundError(
                "User not found. Cannot add cost for non-existent user.", data.user_id
            )

        now = self.clock()
        day = data.day if data.day is not None else now.day
        month = data.month if data.month is not None else now.month
        year = data.year if data.year is not None else now.year

        if is_closed(year, month, now):
            self.audit.warn(
                "Attempt to add cost with past date",
                userid=data.user_id,
                year=year,
                month=month,
            )
            raise ValidationError("Cannot add costs with dates in the past", data.user_id)

        cost = self.ledger.insert(
            Cost(
                user_id=data.user_id,
                description=data.description,
                category=data.category,
                amount_cents=data.amount_cents,
                day=day,
                month=month,
                year=year,
            )
        )
        self.audit.info(
            "Cost added",
            userid=cost.user_id,
            category=cost.category.value,
            amount=str(cost.amount),
        )
        return cost


class ReportService:
    """Serves monthly reports, memoizing those of closed months.

    A closed month can no longer receive costs (see ``CostService``), so a
    report computed for it never goes stale and is cached without any
    invalidation. Open months are always computed from the ledger.
    """

    def __init__(
        self,
        users: UserDirectory,
        ledger: CostLedger,
        cache: ReportCache,
        clock: Clock = system_clock,
        audit: Optional[AuditSink] = None,
    ) -> None:
        self.users = users
        self.ledger = ledger
        self.cache = cache
        self.clock = clock
        self.audit = audit or AuditSink()

    def resolve(self, user_id: int, year: int, month: int) -> Report:
        if year < MIN_YEAR:
            raise ValidationError("Year must be a valid year (1900 or later)", user_id)
        if not 1 <= month <= 12:
            raise ValidationError("Month must be between 1 and 12", user_id)
        if not self.users.exists(user_id):
            self.audit.warn("User not found when getting report", userid=user_id)
            raise NotFoundError("User not found", user_id)

        period = ReportPeriod(user_id, year, month)
        closed = is_closed(year, month, self.clock())

        if closed:
            cached = self.cache.find(user_id, year, month)
            if cached is not None:
                self.audit.info(
                    "Returning cached report", userid=user_id, year=year, month=month
                )
                return cached

        report = build_report(
            user_id, year, month, self.ledger.query(user_id, year, month)
        )
        if closed:
            self._store(period, report)

        self.audit.info(
            "Report generated",
            userid=user_id,
            year=year,
            month=month,
            closed=closed,
        )
        return report

    def _store(self, period: ReportPeriod, report: Report) -> None:
        try:
            self.cache.insert(report)
        except CacheWriteConflict:
            # Another request cached the same month first; both reports match.
            self.audit.info(
                "Report already cached",
                userid=period.user_id,
                year=period.year,
                month=period.month,
            )
            return
        except StorageError as exc:
            self.audit.warn(
                "Could not cache report",
                userid=period.user_id,
                year=period.year,
                month=period.month,
                error=str(exc),
            )
            return
        self.audit.info(
            "Report cached for past month",
            userid=period.user_id,
            year=period.year,
            month=period.month,
        )


@dataclass(frozen=True)
class UserDetails:
    id: int
    first_name: str
    last_name: str
    total: Decimal


class UserService:
    def __init__(
        self,
        users: UserDirectory,
        ledger: CostLedger,
        audit: Optional[AuditSink] = None,
    ) -> None:
        self.users = users
        self.ledger = ledger
        self.audit = audit or AuditSink()

    def list_all(self) -> Sequence[User]:
        users = self.users.list_all()
        self.audit.info("Users retrieved", count=len(users))
        return users

    def details(self, user_id: int) -> UserDetails:
        user = self.users.find(user_id)
        if user is None:
            self.audit.warn("User not found", userid=user_id)
            raise NotFoundError("User not found", user_id)
        total = self.ledger.total_for_user(user_id)
        self.audit.info("User details retrieved", userid=user_id, total=str(total))
        return UserDetails(
            id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            total=total,
        )

    def create(self, payload: object) -> User:
        data = parse_payload(UserIn, payload, subject_from(payload, "id"))
        if self.users.exists(data.id):
            self.audit.warn("User with this ID already exists", userid=data.id)
            raise ValidationError("A user with this ID already exists", data.id)
        user = self.users.add(
            User(
                id=data.id,
                first_name=data.first_name,
                last_name=data.last_name,
                birthday=data.birthday,
            )
        )
        self.audit.info("User added", userid=user.id)
        return user


class LogService:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list_all(self) -> list[LogEntry]:
        stmt = select(LogEntry).order_by(LogEntry.timestamp.desc(), LogEntry.id.desc())
        return list(self.session.scalars(stmt).all())


def list_developers(settings: Optional[Settings] = None) -> list[dict[str, str]]:
    settings = settings or get_settings()
    return [
        {"first_name": first, "last_name": last} for first, last in settings.developers
    ]
