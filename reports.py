"""Monthly report values and the category grouping that produces them."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from models import CATEGORY_ORDER, Cost, CostCategory, cents_to_decimal


@dataclass(frozen=True)
class ReportItem:
    amount: Decimal
    description: str
    day: int


CategoryBuckets = tuple[tuple[CostCategory, tuple[ReportItem, ...]], ...]


@dataclass(frozen=True)
class Report:
    user_id: int
    year: int
    month: int
    categories: CategoryBuckets

    def item_count(self) -> int:
        return sum(len(items) for _, items in self.categories)

    def bucket(self, category: CostCategory) -> tuple[ReportItem, ...]:
        for name, items in self.categories:
            if name == category:
                return items
        return ()

    def categories_payload(self) -> list[dict[str, list[dict[str, object]]]]:
        """Bucket sequence with amounts in integer cents, for the cache row."""
        return [
            {
                category.value: [
                    {
                        "amount_cents": int(item.amount * 100),
                        "description": item.description,
                        "day": item.day,
                    }
                    for item in items
                ]
            }
            for category, items in self.categories
        ]

    @classmethod
    def from_payload(
        cls,
        user_id: int,
        year: int,
        month: int,
        payload: list[dict[str, list[dict[str, object]]]],
    ) -> Report:
        categories = []
        for entry in payload:
            for name, items in entry.items():
                categories.append(
                    (
                        CostCategory(name),
                        tuple(
                            ReportItem(
                                amount=cents_to_decimal(int(item["amount_cents"])),
                                description=str(item["description"]),
                                day=int(item["day"]),
                            )
                            for item in items
                        ),
                    )
                )
        return cls(user_id=user_id, year=year, month=month, categories=tuple(categories))

    def to_response(self) -> dict[str, object]:
        return {
            "userId": self.user_id,
            "year": self.year,
            "month": self.month,
            "categories": [
                {
                    category.value: [
                        {
                            "amount": float(item.amount),
                            "description": item.description,
                            "day": item.day,
                        }
                        for item in items
                    ]
                }
                for category, items in self.categories
            ],
        }


def group_by_category(costs: Iterable[Cost]) -> CategoryBuckets:
    """Partition costs into one bucket per category, in canonical order.

    Costs keep the order they were given in; every category gets a bucket
    even when nothing matched it.
    """
    buckets: dict[CostCategory, list[ReportItem]] = {c: [] for c in CATEGORY_ORDER}
    for cost in costs:
        buckets[CostCategory(cost.category)].append(
            ReportItem(amount=cost.amount, description=cost.description, day=cost.day)
        )
    return tuple((category, tuple(buckets[category])) for category in CATEGORY_ORDER)


def build_report(user_id: int, year: int, month: int, costs: Iterable[Cost]) -> Report:
    return Report(
        user_id=user_id,
        year=year,
        month=month,
        categories=group_by_category(costs),
    )
