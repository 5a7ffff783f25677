"""Store handles the services are built on.

The protocols describe what the services need; the ``Sql*`` classes back
them with a SQLAlchemy session.
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from errors import CacheWriteConflict, StorageError, ValidationError
from models import CachedReport, Cost, User, cents_to_decimal
from reports import Report

logger = logging.getLogger(__name__)


class UserDirectory(Protocol):
    def exists(self, user_id: int) -> bool: ...

    def find(self, user_id: int) -> Optional[User]: ...

    def list_all(self) -> Sequence[User]: ...

    def add(self, user: User) -> User: ...


class CostLedger(Protocol):
    def insert(self, cost: Cost) -> Cost: ...

    def query(self, user_id: int, year: int, month: int) -> Sequence[Cost]: ...

    def total_for_user(self, user_id: int) -> Decimal: ...


class ReportCache(Protocol):
    def find(self, user_id: int, year: int, month: int) -> Optional[Report]: ...

    def insert(self, report: Report) -> None: ...


class SqlUserDirectory:
    def __init__(self, session: Session) -> None:
        self.session = session

    def exists(self, user_id: int) -> bool:
        return self.find(user_id) is not None

    def find(self, user_id: int) -> Optional[User]:
        try:
            return self.session.get(User, user_id)
        except SQLAlchemyError as exc:
            raise StorageError("Could not read users", user_id) from exc

    def list_all(self) -> Sequence[User]:
        try:
            return self.session.scalars(select(User).order_by(User.id)).all()
        except SQLAlchemyError as exc:
            raise StorageError("Could not read users") from exc

    def add(self, user: User) -> User:
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise ValidationError("A user with this ID already exists", user.id) from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageError("Could not save user", user.id) from exc
        self.session.refresh(user)
        return user


class SqlCostLedger:
    def __init__(self, session: Session) -> None:
        self.session = session

    def insert(self, cost: Cost) -> Cost:
        self.session.add(cost)
        try:
            self.session.commit()
        except (SQLAlchemyError, OverflowError) as exc:
            self.session.rollback()
            raise StorageError("Could not save cost", cost.user_id) from exc
        self.session.refresh(cost)
        return cost

    def query(self, user_id: int, year: int, month: int) -> Sequence[Cost]:
        stmt = (
            select(Cost)
            .where(Cost.user_id == user_id, Cost.year == year, Cost.month == month)
            .order_by(Cost.id)
        )
        try:
            return self.session.scalars(stmt).all()
        except SQLAlchemyError as exc:
            raise StorageError("Could not read costs", user_id) from exc

    def total_for_user(self, user_id: int) -> Decimal:
        stmt = select(func.coalesce(func.sum(Cost.amount_cents), 0)).where(
            Cost.user_id == user_id
        )
        try:
            cents = int(self.session.execute(stmt).scalar_one() or 0)
        except SQLAlchemyError as exc:
            raise StorageError("Could not read costs", user_id) from exc
        return cents_to_decimal(cents)


class SqlReportCache:
    def __init__(self, session: Session) -> None:
        self.session = session

    def find(self, user_id: int, year: int, month: int) -> Optional[Report]:
        stmt = select(CachedReport).where(
            CachedReport.user_id == user_id,
            CachedReport.year == year,
            CachedReport.month == month,
        )
        try:
            row = self.session.scalar(stmt)
        except SQLAlchemyError as exc:
            raise StorageError("Could not read cached report", user_id) from exc
        if row is None:
            return None
        return Report.from_payload(
            row.user_id, row.year, row.month, json.loads(row.categories_json)
        )

    def insert(self, report: Report) -> None:
        row = CachedReport(
            user_id=report.user_id,
            year=report.year,
            month=report.month,
            categories_json=json.dumps(report.categories_payload()),
        )
        self.session.add(row)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise CacheWriteConflict(
                f"Report for {report.year:04d}-{report.month:02d} is already cached",
                report.user_id,
            ) from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageError("Could not cache report", report.user_id) from exc
        logger.debug(
            "report_cached: user_id=%s period=%04d-%02d",
            report.user_id,
            report.year,
            report.month,
        )
