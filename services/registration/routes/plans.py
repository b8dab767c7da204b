"""
Plan Routes
===========

Warranty plan catalogue for the registration form.

Version: 0.1.0
"""

from fastapi import APIRouter

from shared.models.common import ApiModel
from services.registration.models import PLAN_CATALOGUE, WarrantyPlan


router = APIRouter()


class PlanView(ApiModel):
    """One selectable warranty plan."""

    plan: WarrantyPlan
    label: str
    months: int
    price_yen: int


@router.get("/plans", response_model=list[PlanView], summary="List warranty plans")
async def list_plans() -> list[PlanView]:
    """List the warranty plans offered at registration."""
    return [
        PlanView(plan=info.plan, label=info.label, months=info.months, price_yen=info.price_yen)
        for info in PLAN_CATALOGUE.values()
    ]
