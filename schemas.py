from __future__ import annotations

from datetime import date
from typing import Any, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ALL_CATEGORIES = "Todos"

CATEGORIES = (
    ALL_CATEGORIES,
    "Música",
    "Teatro",
    "Cinema",
    "Arte",
    "Dança",
    "Literatura",
    "Gastronomia",
    "Exposição",
    "Festival",
    "Workshop",
    "Esporte",
)

PRICE_CEILING = 500.0
PRICE_STEP = 10.0
DEFAULT_PRICE_RANGE: Tuple[float, float] = (0.0, PRICE_CEILING)


class Event(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    date_start: Optional[str] = Field(
        default=None, description="ISO8601 e.g. 2025-11-05T19:00:00-03:00"
    )
    location: Optional[str] = None
    price_min: Optional[float] = Field(default=None, ge=0)
    price_max: Optional[float] = Field(default=None, ge=0)
    category: Optional[str] = None
    image_url: Optional[str] = None
    organizer: Optional[str] = None
    is_sponsored: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_text(cls, v: Any) -> Any:
        # uuid / bigint primary keys come back as non-str from the store
        if v is not None and not isinstance(v, str):
            return str(v)
        return v

    @field_validator("is_sponsored", mode="before")
    @classmethod
    def _null_is_not_sponsored(cls, v: Any) -> Any:
        return False if v is None else v

    @model_validator(mode="after")
    def _price_bounds_ordered(self) -> "Event":
        if (
            self.price_min is not None
            and self.price_max is not None
            and self.price_min > self.price_max
        ):
            raise ValueError("price_min must not exceed price_max")
        return self


class FilterSpec(BaseModel):
    """
    The user's current search intent. Every field always has a value; unset
    filters hold their neutral value so the predicate never has to tell a
    missing filter apart from missing event data.
    """

    model_config = ConfigDict(frozen=True)

    search: str = ""
    category: str = ALL_CATEGORIES
    location: str = ""
    price_range: Tuple[float, float] = DEFAULT_PRICE_RANGE
    date_from: str = Field(default="", description="YYYY-MM-DD or empty")
    date_to: str = Field(default="", description="YYYY-MM-DD or empty")

    @field_validator("search", "location", "date_from", "date_to", mode="before")
    @classmethod
    def _none_is_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("category", mode="before")
    @classmethod
    def _none_is_all(cls, v: Any) -> Any:
        return ALL_CATEGORIES if v in (None, "") else v

    @field_validator("date_from", "date_to")
    @classmethod
    def _iso_date_or_empty(cls, v: str) -> str:
        v = v.strip()
        if v:
            date.fromisoformat(v)
        return v

    @field_validator("price_range")
    @classmethod
    def _valid_interval(cls, v: Tuple[float, float]) -> Tuple[float, float]:
        low, high = v
        if low < 0 or high < 0:
            raise ValueError("price bounds must be non-negative")
        if low > high:
            raise ValueError("price_range low must not exceed high")
        return v


class Notification(BaseModel):
    """A toast shown to the user; 'destructive' marks failures."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: Optional[str] = None
    variant: Literal["default", "destructive"] = "default"


class User(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    email: Optional[str] = None
