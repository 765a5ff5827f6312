"""RawEventRecord, RawMarketRecord - typed Gamma API payloads.

Gamma returns loosely-typed JSON: numerics arrive as numbers or numeric
strings, label lists as objects or plain strings, and outcome arrays as
JSON-encoded strings. All of that is resolved here, at the boundary, by the
explicit coercion functions below so the normalizer only sees typed fields.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def coerce_float(value: Any) -> float:
    """Number or numeric string -> float. Absent or unparsable -> 0.0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        result = float(value)
    except (TypeError, ValueError):
        return 0.0
    if result != result or result in (float("inf"), float("-inf")):
        return 0.0
    return result


def coerce_optional_float(value: Any) -> float | None:
    """Like coerce_float, but keeps absence (None / empty string) as None."""
    if value is None or value == "":
        return None
    return coerce_float(value)


def coerce_bool(value: Any) -> bool | None:
    """Tri-state flag: True/False when given (bool or 'true'/'false'), else None."""
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        v = value.strip().lower()
        if v in ("true", "1", "yes"):
            return True
        if v in ("false", "0", "no"):
            return False
        return None
    if isinstance(value, (int, float)):
        return bool(value)
    return None


def coerce_labels(value: Any) -> list[str]:
    """Tag/category list -> label strings. Accepts [{label, slug}] or [str]."""
    if not isinstance(value, list):
        return []
    labels = []
    for item in value:
        if isinstance(item, dict):
            label = item.get("label") or item.get("name") or item.get("slug")
        else:
            label = item
        if isinstance(label, str) and label.strip():
            labels.append(label.strip())
    return labels


def _coerce_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


class _RawRecord(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    @field_validator("id", mode="before", check_fields=False)
    @classmethod
    def _id(cls, v: Any) -> str:
        return _coerce_str(v)

    @field_validator("description", "slug", "start_date", "end_date", "created_at", mode="before", check_fields=False)
    @classmethod
    def _optional_str(cls, v: Any) -> str | None:
        if v is None or v == "":
            return None
        return str(v)

    @field_validator("active", "closed", mode="before", check_fields=False)
    @classmethod
    def _flag(cls, v: Any) -> bool | None:
        return coerce_bool(v)

    @field_validator("tags", "categories", mode="before", check_fields=False)
    @classmethod
    def _labels(cls, v: Any) -> list[str]:
        return coerce_labels(v)

    @property
    def is_open(self) -> bool:
        """Not closed and not explicitly inactive (absent `active` counts as open)."""
        return self.closed is not True and self.active is not False


class EventRef(BaseModel):
    """Back-reference from a /markets item to its parent event."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    title: str = ""
    slug: str | None = None

    @field_validator("id", "title", mode="before")
    @classmethod
    def _str(cls, v: Any) -> str:
        return _coerce_str(v)


class RawMarketRecord(_RawRecord):
    """Standalone Gamma market (also used for an event's nested sub-markets)."""

    id: str
    question: str = ""
    description: str | None = None
    slug: str | None = None
    # Parallel arrays, usually JSON-encoded strings; parsed by the normalizer
    outcomes: str | list[Any] | None = None
    outcome_prices: str | list[Any] | None = Field(None, alias="outcomePrices")
    volume: float = 0.0
    liquidity: float = 0.0
    volume_24h: float = Field(0.0, alias="volume24hr")
    start_date: str | None = Field(None, alias="startDate")
    end_date: str | None = Field(None, alias="endDate")
    created_at: str | None = Field(None, alias="createdAt")
    active: bool | None = None
    closed: bool | None = None
    featured: bool = False
    new: bool = False
    events: list[EventRef] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _prefer_numeric_totals(cls, data: Any) -> Any:
        # Gamma sends volumeNum/liquidityNum alongside string volume/liquidity
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for num_key, key in (("volumeNum", "volume"), ("liquidityNum", "liquidity")):
            if data.get(num_key) is not None:
                data[key] = data[num_key]
        return data

    @field_validator("question", mode="before")
    @classmethod
    def _question(cls, v: Any) -> str:
        return _coerce_str(v)

    @field_validator("outcomes", "outcome_prices", mode="before")
    @classmethod
    def _raw_array(cls, v: Any) -> str | list[Any] | None:
        if v is None or isinstance(v, (str, list)):
            return v
        return None

    @field_validator("volume", "liquidity", "volume_24h", mode="before")
    @classmethod
    def _numeric(cls, v: Any) -> float:
        return coerce_float(v)

    @field_validator("featured", "new", mode="before")
    @classmethod
    def _upstream_flag(cls, v: Any) -> bool:
        return bool(coerce_bool(v))

    @field_validator("events", mode="before")
    @classmethod
    def _event_refs(cls, v: Any) -> list[dict[str, Any]]:
        if not isinstance(v, list):
            return []
        return [e for e in v if isinstance(e, EventRef) or (isinstance(e, dict) and e.get("id") is not None)]


class RawEventRecord(_RawRecord):
    """Gamma event; `markets` is only populated reliably on the detail endpoint."""

    id: str
    title: str = ""
    slug: str | None = None
    description: str | None = None
    start_date: str | None = Field(None, alias="startDate")
    end_date: str | None = Field(None, alias="endDate")
    created_at: str | None = Field(None, alias="createdAt")
    active: bool | None = None
    closed: bool | None = None
    # None means the event did not supply its own total
    volume: float | None = None
    liquidity: float | None = None
    volume_24h: float = Field(0.0, alias="volume24hr")
    markets: list[RawMarketRecord] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, v: Any) -> str:
        return _coerce_str(v)

    @field_validator("volume", "liquidity", mode="before")
    @classmethod
    def _optional_numeric(cls, v: Any) -> float | None:
        return coerce_optional_float(v)

    @field_validator("volume_24h", mode="before")
    @classmethod
    def _numeric(cls, v: Any) -> float:
        return coerce_float(v)

    @field_validator("markets", mode="before")
    @classmethod
    def _sub_markets(cls, v: Any) -> list[dict[str, Any]]:
        if not isinstance(v, list):
            return []
        return [
            m for m in v if isinstance(m, RawMarketRecord) or (isinstance(m, dict) and m.get("id") is not None)
        ]

