"""
Post-Dated Cheque ORM Models (``property_modules.pdc.orm``).

Maps the frozen ``PDC`` dataclass to the ``pdcs`` table.  The
original/replacement link is stored as two plain UUID columns rather than
a relationship, so no object graph cycle exists between the two rows.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from property_kernel.db.base import TrackedBase


class PDCModel(TrackedBase):
    """
    ORM model for post-dated cheques.

    Guarantees:
        - cheque_number is unique per tenant (uq_pdcs_tenant_cheque_number).
        - status stored as the string enum value.
    """

    __tablename__ = "pdcs"

    __table_args__ = (
        UniqueConstraint("tenant_id", "cheque_number", name="uq_pdcs_tenant_cheque_number"),
        Index("idx_pdcs_tenant_id", "tenant_id"),
        Index("idx_pdcs_status_cheque_date", "status", "cheque_date"),
        Index("idx_pdcs_invoice_id", "invoice_id"),
    )

    tenant_id: Mapped[UUID] = mapped_column(nullable=False)
    cheque_number: Mapped[str] = mapped_column(String(50), nullable=False)
    bank_name: Mapped[str] = mapped_column(String(100), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    cheque_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="RECEIVED")
    invoice_id: Mapped[UUID | None] = mapped_column(nullable=True)
    lease_id: Mapped[UUID | None] = mapped_column(nullable=True)

    deposit_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    bank_account_id: Mapped[UUID | None] = mapped_column(nullable=True)
    cleared_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    bounced_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    bounce_reason: Mapped[str | None] = mapped_column(String(255), nullable=True)

    withdrawal_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    withdrawal_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    new_payment_method: Mapped[str | None] = mapped_column(String(20), nullable=True)
    transaction_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    original_pdc_id: Mapped[UUID | None] = mapped_column(nullable=True)
    replacement_pdc_id: Mapped[UUID | None] = mapped_column(nullable=True)

    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    def to_dto(self):
        """Convert ORM model to frozen dataclass."""
        from property_modules.pdc.models import PDC, NewPaymentMethod, PDCStatus

        return PDC(
            id=self.id,
            tenant_id=self.tenant_id,
            cheque_number=self.cheque_number,
            bank_name=self.bank_name,
            amount=self.amount,
            cheque_date=self.cheque_date,
            status=PDCStatus(self.status),
            invoice_id=self.invoice_id,
            lease_id=self.lease_id,
            deposit_date=self.deposit_date,
            bank_account_id=self.bank_account_id,
            cleared_date=self.cleared_date,
            bounced_date=self.bounced_date,
            bounce_reason=self.bounce_reason,
            withdrawal_date=self.withdrawal_date,
            withdrawal_reason=self.withdrawal_reason,
            new_payment_method=(
                NewPaymentMethod(self.new_payment_method) if self.new_payment_method else None
            ),
            transaction_id=self.transaction_id,
            original_pdc_id=self.original_pdc_id,
            replacement_pdc_id=self.replacement_pdc_id,
            notes=self.notes,
            created_by=self.created_by_id,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_draft(
        cls,
        draft,
        tenant_id: UUID,
        created_by_id: UUID,
        original_pdc_id: UUID | None = None,
    ) -> "PDCModel":
        """Create a RECEIVED cheque row from a ``PDCDraft``."""
        return cls(
            tenant_id=tenant_id,
            cheque_number=draft.cheque_number.strip(),
            bank_name=draft.bank_name.strip(),
            amount=draft.amount,
            cheque_date=draft.cheque_date,
            status="RECEIVED",
            invoice_id=draft.invoice_id,
            lease_id=draft.lease_id,
            notes=draft.notes,
            original_pdc_id=original_pdc_id,
            created_by_id=created_by_id,
        )

    def __repr__(self) -> str:
        return f"<PDCModel {self.cheque_number} [{self.status}] {self.amount}>"
