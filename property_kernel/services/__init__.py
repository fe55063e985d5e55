"""Kernel services (write side)."""

from property_kernel.services.audit_trail import AuditTrail, AuditTraceEntry
from property_kernel.services.sequence_service import SequenceService

__all__ = ["AuditTrail", "AuditTraceEntry", "SequenceService"]
