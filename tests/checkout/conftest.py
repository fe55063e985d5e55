"""Checkout fixtures: an open checkout for the default tenant plus checklist builders."""

from datetime import date
from decimal import Decimal

import pytest

from property_modules.checkout import (
    CheckoutReason,
    CheckoutRequest,
    InspectionItem,
    InspectionSection,
    ItemCondition,
)


def make_checklist(*repair_costs: str) -> tuple[InspectionSection, ...]:
    """One living-room section with a DAMAGED item per repair cost."""
    return (
        InspectionSection(
            name="living_room",
            display_name="Living Room",
            items=tuple(
                InspectionItem(
                    name=f"item_{i}",
                    condition=ItemCondition.DAMAGED,
                    repair_cost=Decimal(cost),
                    damage_description="Scuffed",
                )
                for i, cost in enumerate(repair_costs)
            ),
        ),
        InspectionSection(
            name="kitchen",
            items=(InspectionItem(name="oven", condition=ItemCondition.GOOD),),
        ),
    )


@pytest.fixture
def checklist_of():
    return make_checklist


@pytest.fixture
def checkout_request(tenant):
    return CheckoutRequest(
        tenant_id=tenant.id,
        notice_date=date(2026, 2, 1),
        expected_move_out_date=date(2026, 3, 1),
        checkout_reason=CheckoutReason.LEASE_END,
    )


@pytest.fixture
def checkout(checkout_service, checkout_request, actor_id):
    result = checkout_service.initiate_checkout(checkout_request, actor_id)
    assert result.is_success, result.message
    return result.value
