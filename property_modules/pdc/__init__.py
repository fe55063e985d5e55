"""
Post-Dated Cheques (PDC) Module.

Handles registration, clearance, bounce/replacement, withdrawal and listing
of the cheques tenants hand over at lease signing, plus the daily job that
marks cheques as DUE.

Usage:
    from property_modules.pdc import PDCService, PDCDraft
"""

from property_modules.pdc.config import PDCConfig
from property_modules.pdc.models import (
    PDC,
    NewPaymentMethod,
    PDCDraft,
    PDCFilter,
    PDCStatus,
    ReplacementOutcome,
    TenantPDCHistory,
    WithdrawalRecord,
)
from property_modules.pdc.service import PDCService
from property_modules.pdc.workflows import PDC_WORKFLOW

__all__ = [
    "PDC",
    "PDCConfig",
    "PDCDraft",
    "PDCFilter",
    "PDCService",
    "PDCStatus",
    "PDC_WORKFLOW",
    "NewPaymentMethod",
    "ReplacementOutcome",
    "TenantPDCHistory",
    "WithdrawalRecord",
]
