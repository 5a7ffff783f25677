import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base


class CostCategory(str, Enum):
    food = "food"
    health = "health"
    housing = "housing"
    sports = "sports"
    education = "education"


# Canonical order of report buckets.
CATEGORY_ORDER: tuple[CostCategory, ...] = tuple(CostCategory)

COST_CATEGORY_ENUM = SAEnum(
    CostCategory,
    name="costcategory",
    values_callable=lambda enum_cls: [member.value for member in enum_cls],
)


def cents_to_decimal(cents: int) -> Decimal:
    return Decimal(cents) / Decimal(100)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    birthday: Mapped[date] = mapped_column(Date, nullable=False)

    costs: Mapped[list["Cost"]] = relationship("Cost", back_populates="user")


class Cost(Base):
    __tablename__ = "costs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[CostCategory] = mapped_column(COST_CATEGORY_ENUM, nullable=False)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    day: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )

    user: Mapped["User"] = relationship("User", back_populates="costs")

    __table_args__ = (
        Index("ix_costs_user_year_month", "user_id", "year", "month"),
        CheckConstraint("amount_cents >= 0", name="ck_costs_amount_positive"),
        CheckConstraint("day BETWEEN 1 AND 31", name="ck_costs_day_range"),
        CheckConstraint("month BETWEEN 1 AND 12", name="ck_costs_month_range"),
        CheckConstraint("year >= 1900", name="ck_costs_year_min"),
    )

    @property
    def amount(self) -> Decimal:
        return cents_to_decimal(self.amount_cents)


class CachedReport(Base):
    __tablename__ = "reports"
    __table_args__ = (
        UniqueConstraint("user_id", "year", "month", name="uq_report_user_month"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    categories_json: Mapped[str] = mapped_column(Text, nullable=False)
    computed_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )


class LogEntry(Base):
    __tablename__ = "logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    level: Mapped[str] = mapped_column(String(10), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    service: Mapped[str] = mapped_column(String(60), nullable=False)
    method: Mapped[Optional[str]] = mapped_column(String(10))
    url: Mapped[Optional[str]] = mapped_column(Text)
    status_code: Mapped[Optional[int]] = mapped_column(Integer)
    response_time_ms: Mapped[Optional[int]] = mapped_column(Integer)
    data_json: Mapped[Optional[str]] = mapped_column(Text)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )

    __table_args__ = (Index("ix_logs_timestamp", "timestamp"),)

    @property
    def data(self) -> Optional[dict[str, object]]:
        if not self.data_json:
            return None
        return json.loads(self.data_json)
