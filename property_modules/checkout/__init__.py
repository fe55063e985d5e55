"""
Tenant Checkout Module.

Handles the move-out workflow: notice, inspection, deposit settlement with
an approval threshold, refund payout and final hand-back of the unit.

Usage:
    from property_modules.checkout import CheckoutService, CheckoutRequest
"""

from property_modules.checkout.calculations import (
    SettlementBreakdown,
    calculate_settlement,
    merge_damage_deduction,
    sum_repair_costs,
)
from property_modules.checkout.config import CheckoutConfig
from property_modules.checkout.models import (
    CheckoutCompletion,
    CheckoutFilter,
    CheckoutReason,
    CheckoutRequest,
    CheckoutStatus,
    CompletionRequest,
    Deduction,
    DeductionType,
    DepositRefund,
    DocumentType,
    InspectionItem,
    InspectionPhoto,
    InspectionRequest,
    InspectionSection,
    InspectionTimeSlot,
    ItemCondition,
    PhotoType,
    PhotoUpload,
    RefundMethod,
    RefundRequest,
    RefundStatus,
    SettlementType,
    TenantCheckout,
    TenantCheckoutSummary,
)
from property_modules.checkout.service import CheckoutService
from property_modules.checkout.validation import is_valid_uae_iban, mask_iban
from property_modules.checkout.workflows import CHECKOUT_WORKFLOW, REFUND_WORKFLOW

__all__ = [
    "CHECKOUT_WORKFLOW",
    "REFUND_WORKFLOW",
    "CheckoutCompletion",
    "CheckoutFilter",
    "CheckoutConfig",
    "CheckoutReason",
    "CheckoutRequest",
    "CheckoutService",
    "CheckoutStatus",
    "CompletionRequest",
    "Deduction",
    "DeductionType",
    "DepositRefund",
    "DocumentType",
    "InspectionItem",
    "InspectionPhoto",
    "InspectionRequest",
    "InspectionSection",
    "InspectionTimeSlot",
    "ItemCondition",
    "PhotoType",
    "PhotoUpload",
    "RefundMethod",
    "RefundRequest",
    "RefundStatus",
    "SettlementBreakdown",
    "SettlementType",
    "TenantCheckout",
    "TenantCheckoutSummary",
    "calculate_settlement",
    "is_valid_uae_iban",
    "mask_iban",
    "merge_damage_deduction",
    "sum_repair_costs",
]
