from collections.abc import Mapping
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from rapidfuzz.distance import Levenshtein

from errors import ValidationError
from models import CATEGORY_ORDER, CostCategory

ModelT = TypeVar("ModelT", bound=BaseModel)

CENT = Decimal("0.01")
MAX_AMOUNT = Decimal("9999999999999.99")


def _suggest_category(value: str) -> Optional[CostCategory]:
    best: Optional[CostCategory] = None
    best_distance: Optional[int] = None
    for category in CATEGORY_ORDER:
        dist = int(Levenshtein.distance(value, category.value))
        if best_distance is None or dist < best_distance:
            best, best_distance = category, dist
    if best_distance is not None and best_distance <= 1:
        return best
    return None


def normalize_category(value: object) -> CostCategory:
    if not isinstance(value, str) or not value.strip():
        raise ValueError("Category is required and must be a string")
    normalized = value.strip().lower()
    try:
        return CostCategory(normalized)
    except ValueError:
        choices = ", ".join(c.value for c in CATEGORY_ORDER)
        message = f"Category must be one of: {choices}"
        suggestion = _suggest_category(normalized)
        if suggestion is not None:
            message += f" (did you mean '{suggestion.value}'?)"
        raise ValueError(message) from None


def _error_message(exc: PydanticValidationError) -> str:
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error.get("loc", ()))
    msg = str(error.get("msg", "Invalid value")).removeprefix("Value error, ")
    return f"{field}: {msg}" if field else msg


def parse_payload(
    model: type[ModelT], data: object, subject_id: Optional[object] = None
) -> ModelT:
    """Validate ``data`` against ``model``, raising the API's ValidationError."""
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(_error_message(exc), subject_id) from exc


def subject_from(data: object, *keys: str) -> Optional[object]:
    if not isinstance(data, Mapping):
        return None
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


class CostIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    description: str = Field(..., min_length=1, max_length=500)
    category: CostCategory
    user_id: int = Field(..., validation_alias=AliasChoices("userId", "userid", "user_id"))
    amount: Decimal = Field(
        ..., ge=0, le=MAX_AMOUNT, validation_alias=AliasChoices("amount", "sum")
    )
    day: Optional[int] = Field(default=None, ge=1, le=31)
    month: Optional[int] = Field(default=None, ge=1, le=12)
    year: Optional[int] = Field(default=None, ge=1900)

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, value: object) -> CostCategory:
        return normalize_category(value)

    @field_validator("amount")
    @classmethod
    def _quantize_amount(cls, value: Decimal) -> Decimal:
        return value.quantize(CENT, rounding=ROUND_HALF_UP)

    @property
    def amount_cents(self) -> int:
        return int(self.amount * 100)


class CostOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    description: str
    category: CostCategory
    user_id: int = Field(..., alias="userId")
    amount: float
    day: int
    month: int
    year: int


class ReportQuery(BaseModel):
    user_id: int = Field(..., validation_alias=AliasChoices("id", "userId", "userid"))
    year: int
    month: int


class ReportItemOut(BaseModel):
    amount: float
    description: str
    day: int


class ReportOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(..., alias="userId")
    year: int
    month: int
    categories: list[dict[str, list[ReportItemOut]]]


class UserIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    id: int
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    birthday: date


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    birthday: date


class UserDetailOut(BaseModel):
    id: int
    first_name: str
    last_name: str
    total: float


class LogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    level: str
    message: str
    service: str
    method: Optional[str] = None
    url: Optional[str] = None
    status_code: Optional[int] = None
    response_time_ms: Optional[int] = None
    data: Optional[dict[str, object]] = None
    timestamp: datetime


class DeveloperOut(BaseModel):
    first_name: str
    last_name: str
