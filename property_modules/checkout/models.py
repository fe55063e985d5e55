"""
Tenant Checkout Domain Models (``property_modules.checkout.models``).

Responsibility
--------------
Frozen dataclass value objects for the move-out workflow: the checkout
record, its one-to-one deposit refund, the inspection checklist, the
deductions taken from the deposit, and the caller-supplied request objects
for each workflow step.

Invariants enforced
-------------------
* All models are ``frozen=True``; collections are tuples.
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* ``DepositRefund.net_refund`` and ``amount_owed_by_tenant`` are never both
  non-zero.
* The IBAN leaves the module only in masked form.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


class CheckoutReason(str, Enum):
    LEASE_END = "LEASE_END"
    EARLY_TERMINATION = "EARLY_TERMINATION"
    EVICTION = "EVICTION"
    MUTUAL_AGREEMENT = "MUTUAL_AGREEMENT"
    OTHER = "OTHER"


class CheckoutStatus(str, Enum):
    """Move-out workflow states."""
    PENDING = "PENDING"
    INSPECTION_SCHEDULED = "INSPECTION_SCHEDULED"
    INSPECTION_COMPLETE = "INSPECTION_COMPLETE"
    DEPOSIT_CALCULATED = "DEPOSIT_CALCULATED"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    REFUND_PROCESSING = "REFUND_PROCESSING"
    REFUND_PROCESSED = "REFUND_PROCESSED"
    COMPLETED = "COMPLETED"
    ON_HOLD = "ON_HOLD"
    CANCELLED = "CANCELLED"


class RefundMethod(str, Enum):
    BANK_TRANSFER = "BANK_TRANSFER"
    CHEQUE = "CHEQUE"
    CASH = "CASH"


class RefundStatus(str, Enum):
    CALCULATED = "CALCULATED"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    ON_HOLD = "ON_HOLD"


class ItemCondition(str, Enum):
    GOOD = "GOOD"
    FAIR = "FAIR"
    DAMAGED = "DAMAGED"
    MISSING = "MISSING"


class DeductionType(str, Enum):
    UNPAID_RENT = "UNPAID_RENT"
    UNPAID_UTILITIES = "UNPAID_UTILITIES"
    DAMAGE_REPAIRS = "DAMAGE_REPAIRS"
    CLEANING_FEE = "CLEANING_FEE"
    KEY_REPLACEMENT = "KEY_REPLACEMENT"
    EARLY_TERMINATION_PENALTY = "EARLY_TERMINATION_PENALTY"
    OTHER = "OTHER"


class InspectionTimeSlot(str, Enum):
    MORNING = "MORNING"
    AFTERNOON = "AFTERNOON"
    SPECIFIC = "SPECIFIC"


class PhotoType(str, Enum):
    BEFORE = "BEFORE"
    AFTER = "AFTER"
    DAMAGE = "DAMAGE"


class SettlementType(str, Enum):
    FULL = "FULL"
    PARTIAL = "PARTIAL"


class DocumentType(str, Enum):
    """Stored checkout documents, keyed by their URL slug."""
    INSPECTION_REPORT = "inspection-report"
    DEPOSIT_STATEMENT = "deposit-statement"
    FINAL_SETTLEMENT = "final-settlement"
    REFUND_RECEIPT = "refund-receipt"


# -----------------------------------------------------------------------------
# Inspection
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class InspectionItem:
    """One line of the move-out checklist."""
    name: str
    condition: ItemCondition
    repair_cost: Decimal | None = None
    damage_description: str | None = None
    notes: str | None = None
    display_name: str | None = None


@dataclass(frozen=True)
class InspectionSection:
    """A room or area of the unit; items keep their checklist order."""
    name: str
    items: tuple[InspectionItem, ...] = ()
    display_name: str | None = None


@dataclass(frozen=True)
class InspectionPhoto:
    id: UUID
    file_name: str
    file_path: str
    file_size: int
    photo_type: PhotoType
    uploaded_at: datetime
    section: str | None = None


@dataclass(frozen=True)
class PhotoUpload:
    """Raw file handed to ``upload_inspection_photos``."""
    file_name: str
    content: bytes
    content_type: str = "image/jpeg"


# -----------------------------------------------------------------------------
# Deposit
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class Deduction:
    """An amount withheld from the security deposit."""
    type: DeductionType
    description: str
    amount: Decimal
    auto_calculated: bool = False
    notes: str | None = None
    invoice_id: UUID | None = None


@dataclass(frozen=True)
class DepositRefund:
    """Settlement of the security deposit for one checkout."""
    id: UUID
    checkout_id: UUID
    original_deposit: Decimal
    deductions: tuple[Deduction, ...] = ()
    total_deductions: Decimal = Decimal("0")
    net_refund: Decimal = Decimal("0")
    amount_owed_by_tenant: Decimal | None = None
    refund_status: RefundStatus = RefundStatus.CALCULATED
    refund_method: RefundMethod | None = None
    refund_reference: str | None = None
    refund_date: date | None = None
    bank_name: str | None = None
    account_holder_name: str | None = None
    masked_iban: str | None = None
    swift_code: str | None = None
    cheque_number: str | None = None
    cheque_date: date | None = None
    approved_by: UUID | None = None
    approved_at: datetime | None = None
    processed_at: datetime | None = None
    transaction_id: str | None = None
    has_receipt: bool = False
    notes: str | None = None


# -----------------------------------------------------------------------------
# Checkout
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class TenantCheckout:
    """The move-out record, from notice to unit hand-back."""
    id: UUID
    checkout_number: str
    tenant_id: UUID
    notice_date: date
    expected_move_out_date: date
    checkout_reason: CheckoutReason
    status: CheckoutStatus = CheckoutStatus.PENDING
    property_id: UUID | None = None
    unit_id: UUID | None = None
    actual_move_out_date: date | None = None
    reason_notes: str | None = None
    inspection_date: date | None = None
    inspection_time: str | None = None
    inspection_time_slot: InspectionTimeSlot | None = None
    inspector_id: UUID | None = None
    checklist: tuple[InspectionSection, ...] = ()
    overall_condition: int | None = None
    inspection_notes: str | None = None
    photos: tuple[InspectionPhoto, ...] = ()
    has_inspection_report: bool = False
    has_deposit_statement: bool = False
    has_final_settlement: bool = False
    settlement_type: SettlementType | None = None
    settlement_notes: str | None = None
    completed_at: datetime | None = None
    completed_by: UUID | None = None
    created_by: UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_editable(self) -> bool:
        return self.status not in (CheckoutStatus.COMPLETED, CheckoutStatus.CANCELLED)

    @property
    def is_early_termination(self) -> bool:
        return self.checkout_reason == CheckoutReason.EARLY_TERMINATION


@dataclass(frozen=True)
class CheckoutCompletion:
    """Final state of both records after ``complete_checkout``."""
    checkout: TenantCheckout
    refund: DepositRefund | None


@dataclass(frozen=True)
class TenantCheckoutSummary:
    """What a property manager sees before initiating a tenant's checkout.

    ``days_until_lease_end`` is negative once the lease has ended and None
    when the tenant directory has no lease end date.
    """
    tenant_id: UUID
    tenant_name: str
    email: str | None
    tenant_status: str
    security_deposit: Decimal
    property_id: UUID | None = None
    unit_id: UUID | None = None
    lease_end_date: date | None = None
    days_until_lease_end: int | None = None
    has_active_checkout: bool = False
    active_checkout_id: UUID | None = None


# -----------------------------------------------------------------------------
# Requests
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class CheckoutRequest:
    tenant_id: UUID
    notice_date: date
    expected_move_out_date: date
    checkout_reason: CheckoutReason
    reason_notes: str | None = None


@dataclass(frozen=True)
class InspectionRequest:
    inspection_date: date | None = None
    inspection_time: str | None = None
    inspection_time_slot: InspectionTimeSlot | None = None
    inspector_id: UUID | None = None
    checklist: tuple[InspectionSection, ...] = ()
    overall_condition: int | None = None
    inspection_notes: str | None = None
    send_notification: bool = False


@dataclass(frozen=True)
class RefundRequest:
    """Method-specific payout details for ``process_refund``."""
    refund_method: RefundMethod
    refund_date: date | None = None
    bank_name: str | None = None
    account_holder_name: str | None = None
    iban: str | None = None
    swift_code: str | None = None
    cheque_number: str | None = None
    cheque_date: date | None = None
    cash_acknowledged: bool = False
    transaction_id: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class CompletionRequest:
    acknowledge_finalization: bool = False
    settlement_type: SettlementType | None = None
    settlement_notes: str | None = None
    actual_move_out_date: date | None = None


@dataclass(frozen=True)
class CheckoutFilter:
    """Criteria for the paged checkout listing.

    The date bounds are inclusive on ``expected_move_out_date``; ``search``
    matches checkout numbers case-insensitively.
    """
    status: CheckoutStatus | None = None
    property_id: UUID | None = None
    from_date: date | None = None
    to_date: date | None = None
    search: str | None = None
    page: int = 0
    size: int = 20

