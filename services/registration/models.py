"""
Warranty Record Domain Models
=============================

Store-agnostic view of a warranty record, the three-way lookup
classification, and the warranty plan catalogue.

Version: 0.1.0
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from enum import Enum
from typing import Any


class WarrantyPlan(str, Enum):
    """Warranty plans a customer can pick at registration."""

    STANDARD = "standard"
    CAMPAIGN = "campaign"
    M = "m"
    S = "s"


@dataclass(frozen=True)
class PlanInfo:
    """Display and billing details of a warranty plan."""

    plan: WarrantyPlan
    label: str
    months: int
    price_yen: int


PLAN_CATALOGUE: dict[WarrantyPlan, PlanInfo] = {
    WarrantyPlan.STANDARD: PlanInfo(WarrantyPlan.STANDARD, "通常保証（1ヶ月）", 1, 0),
    WarrantyPlan.CAMPAIGN: PlanInfo(WarrantyPlan.CAMPAIGN, "キャンペーン保証（3ヶ月）", 3, 0),
    WarrantyPlan.M: PlanInfo(WarrantyPlan.M, "Mプラン（6ヶ月）", 6, 1500),
    WarrantyPlan.S: PlanInfo(WarrantyPlan.S, "Sプラン（12ヶ月）", 12, 2980),
}


class Classification(str, Enum):
    """Outcome of looking up a management id."""

    NOT_FOUND = "not_found"
    UNREGISTERED = "unregistered"
    REGISTERED = "registered"


@dataclass
class WarrantyRecord:
    """
    One warranty record, one per physical unit sold.

    Created out-of-band with the management id and product fields populated.
    Customer fields stay empty until the single registration write.
    """

    internal_id: str
    management_id: str
    revision: str | None = None

    # Customer fields
    full_name: str = ""
    furigana: str = ""
    phone: str = ""
    postal_code: str = ""
    address: str = ""

    # Product fields (read-only here)
    maker: str = ""
    model: str = ""
    serial: str = ""
    purchase_site: str = ""
    purchase_date: date | None = None
    purchase_amount: int | None = None

    # Warranty fields
    warranty_plan: str = ""
    warranty_period: int | None = None
    warranty_end_date: date | None = None

    review_pledge: bool | None = None
    terms_agreed: bool | None = None

    @property
    def is_registered(self) -> bool:
        """A populated name or phone is the only registration signal."""
        return bool(self.full_name or self.phone)


@dataclass
class LookupResult:
    """Classification of a management id plus the matching record, if any."""

    management_id: str
    classification: Classification
    record: WarrantyRecord | None = None
    phone_matches: bool | None = None


@dataclass
class RegistrationUpdate:
    """Fields merged into an unregistered record."""

    phone: str
    full_name: str
    furigana: str
    postal_code: str
    address: str
    warranty_plan: str
    warranty_period: int
    warranty_end_date: date | None
    review_pledge: bool
    terms_agreed: bool

    def as_fields(self, include_empty: bool = False) -> dict[str, Any]:
        """Semantic field name -> value, skipping unset optional values."""
        fields = asdict(self)
        if include_empty:
            return fields
        return {key: value for key, value in fields.items() if value is not None}


@dataclass
class WriteResult:
    """Identifier and revision assigned by the store after an update."""

    id: str
    revision: str | None = None


def classify(record: WarrantyRecord | None) -> Classification:
    """Classify a lookup result."""
    if record is None:
        return Classification.NOT_FOUND
    if record.is_registered:
        return Classification.REGISTERED
    return Classification.UNREGISTERED
