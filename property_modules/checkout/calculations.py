"""
Deposit Settlement Calculator (``property_modules.checkout.calculations``).

Pure functions, no I/O.  Given the original deposit and the deductions
taken from it, works out what is refunded to the tenant or owed by them and
whether the refund needs a second-person approval.

Rules:
    total_deductions      = sum(deductions), rounded half-up after each add
    net_refund            = max(0, original_deposit - total_deductions)
    amount_owed_by_tenant = total_deductions - original_deposit, if positive
    requires_approval     = net_refund > approval_threshold   (strict)
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Sequence

from property_kernel.domain.money import ZERO, money_sum, to_money
from property_modules.checkout.models import Deduction, DeductionType, InspectionSection

DAMAGE_DEDUCTION_DESCRIPTION = "Damage repairs from inspection"


@dataclass(frozen=True)
class SettlementBreakdown:
    total_deductions: Decimal
    net_refund: Decimal
    amount_owed_by_tenant: Decimal | None
    requires_approval: bool


def calculate_settlement(
    original_deposit: Decimal,
    deductions: Iterable[Decimal],
    approval_threshold: Decimal,
) -> SettlementBreakdown:
    """
    Settle a deposit against deduction amounts.

    >>> calculate_settlement(Decimal("3000"), [Decimal("2000"), Decimal("1500")], Decimal("5000"))
    SettlementBreakdown(total_deductions=Decimal('3500.00'), net_refund=Decimal('0.00'), amount_owed_by_tenant=Decimal('500.00'), requires_approval=False)
    """
    deposit = to_money(original_deposit)
    total = money_sum(deductions)
    balance = deposit - total

    if balance >= ZERO:
        net_refund, owed = balance, None
    else:
        net_refund, owed = ZERO, -balance

    return SettlementBreakdown(
        total_deductions=total,
        net_refund=net_refund,
        amount_owed_by_tenant=owed,
        requires_approval=net_refund > to_money(approval_threshold),
    )


def sum_repair_costs(checklist: Sequence[InspectionSection]) -> Decimal:
    """Total repair cost across every item of every section."""
    return money_sum(
        item.repair_cost
        for section in checklist
        for item in section.items
        if item.repair_cost is not None
    )


def merge_damage_deduction(
    deductions: Sequence[Deduction],
    damage_total: Decimal,
    description: str = DAMAGE_DEDUCTION_DESCRIPTION,
) -> tuple[Deduction, ...]:
    """
    Replace the auto-calculated damage deduction with one for ``damage_total``.

    Manually entered deductions (including manual DAMAGE_REPAIRS lines) keep
    their order.  A zero total only removes the previous auto entry.
    """
    kept = tuple(d for d in deductions if not _is_auto_damage(d))
    damage_total = to_money(damage_total)
    if damage_total <= ZERO:
        return kept
    return kept + (
        Deduction(
            type=DeductionType.DAMAGE_REPAIRS,
            description=description,
            amount=damage_total,
            auto_calculated=True,
        ),
    )


def _is_auto_damage(deduction: Deduction) -> bool:
    return deduction.auto_calculated and deduction.type == DeductionType.DAMAGE_REPAIRS
