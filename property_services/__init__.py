"""
property_services -- collaborator contracts and side-effect plumbing.

Dependency direction:
    property_modules/ -> property_services/ -> property_kernel/
    property_kernel/ never imports from this package.
"""

from property_services.collaborators import (
    AuditLogger,
    FileStorage,
    InvoiceDirectory,
    InvoicePaymentRecorder,
    Notification,
    NotificationKind,
    Notifier,
    TenantDirectory,
    TenantSnapshot,
    TenantStatus,
    UnitStatus,
)
from property_services.notifications import LoggingNotifier
from property_services.side_effects import SideEffectRunner

__all__ = [
    "AuditLogger",
    "FileStorage",
    "InvoiceDirectory",
    "InvoicePaymentRecorder",
    "LoggingNotifier",
    "Notification",
    "NotificationKind",
    "Notifier",
    "SideEffectRunner",
    "TenantDirectory",
    "TenantSnapshot",
    "TenantStatus",
    "UnitStatus",
]
