"""
property_services.collaborators -- boundary contracts.

Responsibility:
    Protocols for everything the PDC and checkout services call but do not
    own: invoice lookup and payment recording, tenant/unit/user status,
    file storage, notifications and audit logging.  Services receive
    implementations through their constructors; nothing is looked up from a
    global container.

Architecture position:
    Services layer.  Imports only from property_kernel.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Protocol, runtime_checkable
from uuid import UUID


class TenantStatus(str, Enum):
    """Tenant lifecycle states as reported by the tenant directory."""

    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    EXPIRING_SOON = "EXPIRING_SOON"
    EXPIRED = "EXPIRED"
    TERMINATED = "TERMINATED"


class UnitStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"
    UNDER_MAINTENANCE = "UNDER_MAINTENANCE"
    RESERVED = "RESERVED"


class NotificationKind(str, Enum):
    CHECKOUT_INITIATED = "CHECKOUT_INITIATED"
    INSPECTION_SCHEDULED = "INSPECTION_SCHEDULED"
    CHECKOUT_COMPLETED = "CHECKOUT_COMPLETED"
    PDC_DUE_REMINDER = "PDC_DUE_REMINDER"


@dataclass(frozen=True)
class TenantSnapshot:
    """What the checkout workflow needs to know about a tenant."""
    id: UUID
    name: str
    email: str | None
    status: TenantStatus
    security_deposit: Decimal
    property_id: UUID | None = None
    unit_id: UUID | None = None
    user_id: UUID | None = None
    lease_end_date: date | None = None


@dataclass(frozen=True)
class Notification:
    """A fire-and-forget message to a tenant or staff member."""
    kind: NotificationKind
    recipient_id: UUID
    recipient_email: str | None
    subject: str
    context: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class InvoiceDirectory(Protocol):
    def exists(self, invoice_id: UUID) -> bool: ...


@runtime_checkable
class InvoicePaymentRecorder(Protocol):
    """Records a payment against an invoice (invoked once per PDC clear)."""

    def record_payment(
        self,
        invoice_id: UUID,
        amount: Decimal,
        method: str,
        reference: str,
        payment_date: date,
        notes: str | None = None,
        actor_id: UUID | None = None,
    ) -> Any: ...


@runtime_checkable
class TenantDirectory(Protocol):
    def get_tenant(self, tenant_id: UUID) -> TenantSnapshot | None: ...

    def set_tenant_status(self, tenant_id: UUID, status: TenantStatus) -> None: ...

    def set_unit_status(self, unit_id: UUID, status: UnitStatus) -> None: ...

    def deactivate_user(self, user_id: UUID) -> None: ...


@runtime_checkable
class FileStorage(Protocol):
    """Object storage.  The core keeps only the returned paths."""

    def upload(self, path: str, content: bytes, content_type: str) -> str: ...

    def delete(self, path: str) -> None: ...

    def presign(self, path: str, expires_in_seconds: int) -> str: ...


@runtime_checkable
class Notifier(Protocol):
    def notify(self, notification: Notification) -> None: ...


@runtime_checkable
class AuditLogger(Protocol):
    """Structured event record for every state transition."""

    def record(
        self,
        event_type: str,
        actor_id: UUID | None,
        entity_type: str,
        entity_id: UUID,
        payload: dict[str, Any] | None = None,
    ) -> Any: ...
