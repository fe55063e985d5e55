"""
Post-Dated Cheque Configuration Schema.

Defaults match the reference back office: a 7-day due window and at most
24 cheques per bulk submission (two years of monthly rent).
"""

from dataclasses import dataclass
from typing import Self

from property_kernel.logging_config import get_logger

logger = get_logger("modules.pdc.config")


@dataclass
class PDCConfig:
    """
    Configuration schema for the PDC module.

        config = PDCConfig(due_window_days=10, **settings["pdc"])
    """

    # Scheduler
    due_window_days: int = 7
    reminder_lead_days: int = 3

    # Bulk registration
    max_bulk_cheques: int = 24

    # Field limits
    cheque_number_min_length: int = 3
    cheque_number_max_length: int = 50
    bank_name_max_length: int = 100
    notes_max_length: int = 500
    bounce_reason_max_length: int = 255

    # Payment recorded against the invoice when a cheque clears
    payment_method: str = "PDC"
    payment_reference_prefix: str = "PDC-"

    def __post_init__(self):
        if self.due_window_days < 0:
            raise ValueError("due_window_days cannot be negative")
        if self.reminder_lead_days < 0:
            raise ValueError("reminder_lead_days cannot be negative")
        if self.max_bulk_cheques <= 0:
            raise ValueError("max_bulk_cheques must be positive")
        if not 0 < self.cheque_number_min_length <= self.cheque_number_max_length:
            raise ValueError(
                "cheque_number_min_length must be positive and not exceed "
                "cheque_number_max_length"
            )
        if not self.payment_method.strip():
            raise ValueError("payment_method cannot be empty")

        logger.info(
            "pdc_config_initialized",
            extra={
                "due_window_days": self.due_window_days,
                "max_bulk_cheques": self.max_bulk_cheques,
            },
        )

    @classmethod
    def with_defaults(cls) -> Self:
        logger.info("pdc_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary (e.g., loaded from a settings file)."""
        logger.info(
            "pdc_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)
