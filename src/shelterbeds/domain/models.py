"""Record types handed between repositories, the allocation engine and routes.

Rows come out of psycopg2 as tuples; repositories turn them into these
dataclasses so the engine never indexes into a raw row.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, time
from decimal import Decimal
from typing import Any

# Fields that travel with a guest: written by assign, cleared by deassign,
# moved by reassign.
ASSIGNMENT_FIELDS = (
    "comments",
    "guest_id",
    "payment_amount",
    "payment_type",
    "shower_time",
    "wakeup_time",
)

PAYMENT_TYPES = ("$$", "AG", "CT", "FM", "MM", "SW", "UK")

# Every non-empty combination of H, S, W in that fixed order
FEATURE_VALUES = ("H", "S", "W", "HS", "HW", "SW", "HSW")


@dataclass(frozen=True)
class Assignment:
    """Payload of an assign call. Omitted fields are stored as null."""

    guest_id: int
    comments: str | None = None
    payment_amount: Decimal | None = None
    payment_type: str | None = None
    shower_time: time | None = None
    wakeup_time: time | None = None


@dataclass(frozen=True)
class Registration:
    """One mat, on one date, at one facility, optionally bound to a guest."""

    id: int | None
    facility_id: int
    registration_date: date
    mat_number: int
    guest_id: int | None = None
    features: str | None = None
    payment_type: str | None = None
    payment_amount: Decimal | None = None
    shower_time: time | None = None
    wakeup_time: time | None = None
    comments: str | None = None

    @property
    def assigned(self) -> bool:
        return self.guest_id is not None

    def assignment(self) -> Assignment | None:
        """Assignment fields currently carried by this row, or None."""
        if self.guest_id is None:
            return None
        return Assignment(**{name: getattr(self, name) for name in ASSIGNMENT_FIELDS})

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["registration_date"] = self.registration_date.isoformat()
        data["payment_amount"] = (
            str(self.payment_amount) if self.payment_amount is not None else None
        )
        for name in ("shower_time", "wakeup_time"):
            value = data[name]
            data[name] = value.strftime("%H:%M") if value is not None else None
        return data


@dataclass(frozen=True)
class Guest:
    id: int
    facility_id: int
    first_name: str
    last_name: str
    comments: str | None = None
    active: bool = True
    favorite: int | None = None


@dataclass(frozen=True)
class Template:
    """Per-facility blueprint of mats and their feature flags."""

    id: int | None
    facility_id: int
    name: str
    all_mats: str
    handicap_mats: str | None = None
    socket_mats: str | None = None
    work_mats: str | None = None
    comments: str | None = None
    active: bool = True

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
