"""
Post-Dated Cheque Domain Models (``property_modules.pdc.models``).

Responsibility
--------------
Frozen dataclass value objects for the PDC lifecycle: the cheque itself,
the caller-supplied draft used by create/bulk create/replace, and the
read-side summaries (withdrawal history, tenant cheque history).

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* The original/replacement link is an ID reference on both records.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


class PDCStatus(str, Enum):
    """Cheque lifecycle states."""
    RECEIVED = "RECEIVED"
    DUE = "DUE"
    DEPOSITED = "DEPOSITED"
    CLEARED = "CLEARED"
    BOUNCED = "BOUNCED"
    REPLACED = "REPLACED"
    WITHDRAWN = "WITHDRAWN"
    CANCELLED = "CANCELLED"


class NewPaymentMethod(str, Enum):
    """How a withdrawn cheque's amount will be paid instead."""
    BANK_TRANSFER = "BANK_TRANSFER"
    CASH = "CASH"
    NEW_CHEQUE = "NEW_CHEQUE"
    CREDIT_CARD = "CREDIT_CARD"
    OTHER = "OTHER"


@dataclass(frozen=True)
class PDCDraft:
    """Caller input for one cheque (create, bulk create, replace)."""
    cheque_number: str
    bank_name: str
    amount: Decimal
    cheque_date: date
    invoice_id: UUID | None = None
    lease_id: UUID | None = None
    notes: str | None = None


@dataclass(frozen=True)
class PDC:
    """A post-dated cheque received from a tenant."""
    id: UUID
    tenant_id: UUID
    cheque_number: str
    bank_name: str
    amount: Decimal
    cheque_date: date
    status: PDCStatus = PDCStatus.RECEIVED
    invoice_id: UUID | None = None
    lease_id: UUID | None = None
    deposit_date: date | None = None
    bank_account_id: UUID | None = None
    cleared_date: date | None = None
    bounced_date: date | None = None
    bounce_reason: str | None = None
    withdrawal_date: date | None = None
    withdrawal_reason: str | None = None
    new_payment_method: NewPaymentMethod | None = None
    transaction_id: str | None = None
    original_pdc_id: UUID | None = None
    replacement_pdc_id: UUID | None = None
    notes: str | None = None
    created_by: UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (
            PDCStatus.CLEARED,
            PDCStatus.REPLACED,
            PDCStatus.WITHDRAWN,
            PDCStatus.CANCELLED,
        )


@dataclass(frozen=True)
class ReplacementOutcome:
    """Both sides of a replace: the now-REPLACED source and the new cheque."""
    original: PDC
    replacement: PDC


@dataclass(frozen=True)
class WithdrawalRecord:
    """One withdrawn cheque, as shown in withdrawal history."""
    pdc_id: UUID
    tenant_id: UUID
    cheque_number: str
    amount: Decimal
    withdrawal_date: date | None
    withdrawal_reason: str | None
    new_payment_method: NewPaymentMethod | None
    transaction_id: str | None


@dataclass(frozen=True)
class TenantPDCHistory:
    """Cheque track record of one tenant."""
    tenant_id: UUID
    total_cheques: int
    cleared_count: int
    bounced_count: int
    pending_count: int
    total_value: Decimal
    bounce_rate_percent: Decimal


@dataclass(frozen=True)
class PDCFilter:
    """Criteria for the paged cheque listing.

    ``search`` matches cheque numbers case-insensitively; ``bank_name`` is a
    case-insensitive substring; the date bounds are inclusive on
    ``cheque_date``.  Omitted criteria do not filter.
    """
    search: str | None = None
    status: PDCStatus | None = None
    tenant_id: UUID | None = None
    bank_name: str | None = None
    from_date: date | None = None
    to_date: date | None = None
    page: int = 0
    size: int = 20
    sort_by: str = "cheque_date"
    descending: bool = False
