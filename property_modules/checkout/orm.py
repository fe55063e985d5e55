"""
Tenant Checkout ORM Models (``property_modules.checkout.orm``).

Three tables:

    tenant_checkouts    one row per move-out; checklist and photos as JSON
    deposit_refunds     1:1 with a checkout (unique checkout_id)
    deposit_deductions  ordered child rows of a refund

Monetary values in JSON (checklist repair costs) are stored as strings so
they round-trip as exact ``Decimal``.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import JSON, Date, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from property_kernel.db.base import TrackedBase


# ---------------------------------------------------------------------------
# 1. CheckoutModel
# ---------------------------------------------------------------------------


class CheckoutModel(TrackedBase):
    """
    ORM model for the tenant move-out record.

    Guarantees:
        - checkout_number unique (uq_tenant_checkouts_number).
        - refund relationship is one-to-one and created in the same flush.
    """

    __tablename__ = "tenant_checkouts"

    __table_args__ = (
        UniqueConstraint("checkout_number", name="uq_tenant_checkouts_number"),
        Index("idx_tenant_checkouts_tenant_id", "tenant_id"),
        Index("idx_tenant_checkouts_status", "status"),
    )

    checkout_number: Mapped[str] = mapped_column(String(20), nullable=False)
    tenant_id: Mapped[UUID] = mapped_column(nullable=False)
    property_id: Mapped[UUID | None] = mapped_column(nullable=True)
    unit_id: Mapped[UUID | None] = mapped_column(nullable=True)

    notice_date: Mapped[date] = mapped_column(Date, nullable=False)
    expected_move_out_date: Mapped[date] = mapped_column(Date, nullable=False)
    actual_move_out_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    checkout_reason: Mapped[str] = mapped_column(String(30), nullable=False)
    reason_notes: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    status: Mapped[str] = mapped_column(String(30), nullable=False, default="PENDING")

    inspection_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    inspection_time: Mapped[str | None] = mapped_column(String(20), nullable=True)
    inspection_time_slot: Mapped[str | None] = mapped_column(String(20), nullable=True)
    inspector_id: Mapped[UUID | None] = mapped_column(nullable=True)
    inspection_checklist: Mapped[list | None] = mapped_column(JSON, nullable=True)
    overall_condition: Mapped[int | None] = mapped_column(nullable=True)
    inspection_notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    inspection_photos: Mapped[list | None] = mapped_column(JSON, nullable=True)

    inspection_report_path: Mapped[str | None] = mapped_column(String(500), nullable=True)
    deposit_statement_path: Mapped[str | None] = mapped_column(String(500), nullable=True)
    final_settlement_path: Mapped[str | None] = mapped_column(String(500), nullable=True)

    settlement_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    settlement_notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    completed_by_id: Mapped[UUID | None] = mapped_column(nullable=True)

    refund: Mapped["DepositRefundModel"] = relationship(
        back_populates="checkout",
        cascade="all, delete-orphan",
        uselist=False,
        lazy="selectin",
    )

    @property
    def is_editable(self) -> bool:
        return self.status not in ("COMPLETED", "CANCELLED")

    def to_dto(self):
        """Convert ORM model to frozen dataclass."""
        from property_modules.checkout.models import (
            CheckoutReason,
            CheckoutStatus,
            InspectionTimeSlot,
            SettlementType,
            TenantCheckout,
        )

        return TenantCheckout(
            id=self.id,
            checkout_number=self.checkout_number,
            tenant_id=self.tenant_id,
            notice_date=self.notice_date,
            expected_move_out_date=self.expected_move_out_date,
            checkout_reason=CheckoutReason(self.checkout_reason),
            status=CheckoutStatus(self.status),
            property_id=self.property_id,
            unit_id=self.unit_id,
            actual_move_out_date=self.actual_move_out_date,
            reason_notes=self.reason_notes,
            inspection_date=self.inspection_date,
            inspection_time=self.inspection_time,
            inspection_time_slot=(
                InspectionTimeSlot(self.inspection_time_slot) if self.inspection_time_slot else None
            ),
            inspector_id=self.inspector_id,
            checklist=checklist_from_json(self.inspection_checklist),
            overall_condition=self.overall_condition,
            inspection_notes=self.inspection_notes,
            photos=photos_from_json(self.inspection_photos),
            has_inspection_report=self.inspection_report_path is not None,
            has_deposit_statement=self.deposit_statement_path is not None,
            has_final_settlement=self.final_settlement_path is not None,
            settlement_type=SettlementType(self.settlement_type) if self.settlement_type else None,
            settlement_notes=self.settlement_notes,
            completed_at=self.completed_at,
            completed_by=self.completed_by_id,
            created_by=self.created_by_id,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def __repr__(self) -> str:
        return f"<CheckoutModel {self.checkout_number} [{self.status}]>"


# ---------------------------------------------------------------------------
# 2. DepositRefundModel
# ---------------------------------------------------------------------------


class DepositRefundModel(TrackedBase):
    """
    ORM model for the deposit settlement of one checkout.

    Guarantees:
        - checkout_id unique (one refund per checkout).
        - original_deposit written once at initiation.
        - iban stored in full; only ``to_dto`` masks it.
    """

    __tablename__ = "deposit_refunds"

    __table_args__ = (
        UniqueConstraint("checkout_id", name="uq_deposit_refunds_checkout_id"),
        UniqueConstraint("refund_reference", name="uq_deposit_refunds_reference"),
        Index("idx_deposit_refunds_status", "refund_status"),
    )

    checkout_id: Mapped[UUID] = mapped_column(
        ForeignKey("tenant_checkouts.id"), nullable=False
    )
    original_deposit: Mapped[Decimal] = mapped_column(nullable=False)
    total_deductions: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    net_refund: Mapped[Decimal] = mapped_column(nullable=False)
    amount_owed_by_tenant: Mapped[Decimal | None] = mapped_column(nullable=True)
    refund_status: Mapped[str] = mapped_column(String(30), nullable=False, default="CALCULATED")

    refund_method: Mapped[str | None] = mapped_column(String(20), nullable=True)
    refund_reference: Mapped[str | None] = mapped_column(String(20), nullable=True)
    refund_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    bank_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    account_holder_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    iban: Mapped[str | None] = mapped_column(String(34), nullable=True)
    swift_code: Mapped[str | None] = mapped_column(String(11), nullable=True)
    cheque_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    cheque_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    approved_by_id: Mapped[UUID | None] = mapped_column(nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    transaction_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    receipt_path: Mapped[str | None] = mapped_column(String(500), nullable=True)
    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    checkout: Mapped["CheckoutModel"] = relationship(back_populates="refund")

    deductions: Mapped[list["DeductionModel"]] = relationship(
        back_populates="refund",
        cascade="all, delete-orphan",
        order_by="DeductionModel.position",
        lazy="selectin",
    )

    def to_dto(self):
        """Convert ORM model to frozen dataclass."""
        from property_modules.checkout.models import DepositRefund, RefundMethod, RefundStatus
        from property_modules.checkout.validation import mask_iban

        return DepositRefund(
            id=self.id,
            checkout_id=self.checkout_id,
            original_deposit=self.original_deposit,
            deductions=tuple(d.to_dto() for d in self.deductions),
            total_deductions=self.total_deductions,
            net_refund=self.net_refund,
            amount_owed_by_tenant=self.amount_owed_by_tenant,
            refund_status=RefundStatus(self.refund_status),
            refund_method=RefundMethod(self.refund_method) if self.refund_method else None,
            refund_reference=self.refund_reference,
            refund_date=self.refund_date,
            bank_name=self.bank_name,
            account_holder_name=self.account_holder_name,
            masked_iban=mask_iban(self.iban),
            swift_code=self.swift_code,
            cheque_number=self.cheque_number,
            cheque_date=self.cheque_date,
            approved_by=self.approved_by_id,
            approved_at=self.approved_at,
            processed_at=self.processed_at,
            transaction_id=self.transaction_id,
            has_receipt=self.receipt_path is not None,
            notes=self.notes,
        )

    def __repr__(self) -> str:
        return (
            f"<DepositRefundModel checkout={self.checkout_id} "
            f"status={self.refund_status} net={self.net_refund}>"
        )


# ---------------------------------------------------------------------------
# 3. DeductionModel
# ---------------------------------------------------------------------------


class DeductionModel(TrackedBase):
    """One deduction line; ``position`` preserves the caller's order."""

    __tablename__ = "deposit_deductions"

    __table_args__ = (
        Index("idx_deposit_deductions_refund_id", "refund_id"),
    )

    refund_id: Mapped[UUID] = mapped_column(
        ForeignKey("deposit_refunds.id"), nullable=False
    )
    position: Mapped[int] = mapped_column(nullable=False)
    deduction_type: Mapped[str] = mapped_column(String(40), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    auto_calculated: Mapped[bool] = mapped_column(nullable=False, default=False)
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)
    invoice_id: Mapped[UUID | None] = mapped_column(nullable=True)

    refund: Mapped["DepositRefundModel"] = relationship(back_populates="deductions")

    def to_dto(self):
        from property_modules.checkout.models import Deduction, DeductionType

        return Deduction(
            type=DeductionType(self.deduction_type),
            description=self.description,
            amount=self.amount,
            auto_calculated=self.auto_calculated,
            notes=self.notes,
            invoice_id=self.invoice_id,
        )

    @classmethod
    def from_dto(cls, dto, position: int, created_by_id: UUID) -> "DeductionModel":
        return cls(
            position=position,
            deduction_type=dto.type.value,
            description=dto.description,
            amount=dto.amount,
            auto_calculated=dto.auto_calculated,
            notes=dto.notes,
            invoice_id=dto.invoice_id,
            created_by_id=created_by_id,
        )


# ---------------------------------------------------------------------------
# JSON mapping helpers
# ---------------------------------------------------------------------------


def checklist_to_json(checklist) -> list[dict]:
    return [
        {
            "name": section.name,
            "display_name": section.display_name,
            "items": [
                {
                    "name": item.name,
                    "display_name": item.display_name,
                    "condition": item.condition.value,
                    "repair_cost": str(item.repair_cost) if item.repair_cost is not None else None,
                    "damage_description": item.damage_description,
                    "notes": item.notes,
                }
                for item in section.items
            ],
        }
        for section in checklist
    ]


def checklist_from_json(data: list | None) -> tuple:
    from property_modules.checkout.models import InspectionItem, InspectionSection, ItemCondition

    return tuple(
        InspectionSection(
            name=section["name"],
            display_name=section.get("display_name"),
            items=tuple(
                InspectionItem(
                    name=item["name"],
                    display_name=item.get("display_name"),
                    condition=ItemCondition(item["condition"]),
                    repair_cost=(
                        Decimal(item["repair_cost"]) if item.get("repair_cost") is not None else None
                    ),
                    damage_description=item.get("damage_description"),
                    notes=item.get("notes"),
                )
                for item in section.get("items", [])
            ),
        )
        for section in data or []
    )


def photo_to_json(photo) -> dict:
    return {
        "id": str(photo.id),
        "file_name": photo.file_name,
        "file_path": photo.file_path,
        "file_size": photo.file_size,
        "photo_type": photo.photo_type.value,
        "section": photo.section,
        "uploaded_at": photo.uploaded_at.isoformat(),
    }


def photos_from_json(data: list | None) -> tuple:
    from property_modules.checkout.models import InspectionPhoto, PhotoType

    return tuple(
        InspectionPhoto(
            id=UUID(p["id"]),
            file_name=p["file_name"],
            file_path=p["file_path"],
            file_size=p["file_size"],
            photo_type=PhotoType(p["photo_type"]),
            section=p.get("section"),
            uploaded_at=datetime.fromisoformat(p["uploaded_at"]),
        )
        for p in data or []
    )
