"""
Module: property_kernel.models.audit_entry
Responsibility: ORM persistence for the tamper-evident audit hash chain.

Invariants enforced:
    - Entries are append-only.
    - hash = H(entity_type | entity_id | event_type | payload_hash | prev_hash).
    - seq is monotonically increasing, allocated by SequenceService.
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import JSON, BigInteger, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from property_kernel.db.base import Base, UUIDString


class AuditEventType(str, Enum):
    """Auditable state transitions."""

    # PDC lifecycle
    PDC_CREATED = "PDC_CREATED"
    PDC_DEPOSITED = "PDC_DEPOSITED"
    PDC_CLEARED = "PDC_CLEARED"
    PDC_BOUNCED = "PDC_BOUNCED"
    PDC_REPLACED = "PDC_REPLACED"
    PDC_WITHDRAWN = "PDC_WITHDRAWN"
    PDC_CANCELLED = "PDC_CANCELLED"
    PDC_DUE = "PDC_DUE"

    # Checkout lifecycle
    CHECKOUT_INITIATED = "CHECKOUT_INITIATED"
    INSPECTION_SAVED = "INSPECTION_SAVED"
    DEPOSIT_CALCULATED = "DEPOSIT_CALCULATED"
    REFUND_APPROVED = "REFUND_APPROVED"
    REFUND_PROCESSING = "REFUND_PROCESSING"
    CHECKOUT_COMPLETED = "CHECKOUT_COMPLETED"
    CHECKOUT_CANCELLED = "CHECKOUT_CANCELLED"
    INSPECTION_PHOTOS_UPLOADED = "INSPECTION_PHOTOS_UPLOADED"
    INSPECTION_PHOTO_DELETED = "INSPECTION_PHOTO_DELETED"
    CHECKOUT_DOCUMENT_ATTACHED = "CHECKOUT_DOCUMENT_ATTACHED"


class AuditEntryModel(Base):
    """
    One link in the audit hash chain.

    Does NOT check hash correctness at insert time; AuditTrail does.
    """

    __tablename__ = "audit_entries"

    __table_args__ = (
        Index("idx_audit_entity", "entity_type", "entity_id"),
        Index("idx_audit_event_type", "event_type"),
    )

    seq: Mapped[int] = mapped_column(BigInteger, nullable=False, unique=True)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    event_type: Mapped[str] = mapped_column(String(50), nullable=False)
    actor_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    payload: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    payload_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    prev_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    hash: Mapped[str] = mapped_column(String(64), nullable=False)

    def __repr__(self) -> str:
        return f"<AuditEntry {self.seq} {self.event_type} on {self.entity_type}:{self.entity_id}>"

    @property
    def is_genesis(self) -> bool:
        return self.prev_hash is None
