"""Kernel ORM models."""

from property_kernel.models.audit_entry import AuditEntryModel, AuditEventType

__all__ = ["AuditEntryModel", "AuditEventType"]
