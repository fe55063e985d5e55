"""
Tenant Checkout Configuration Schema.

Defaults match the reference back office: refunds above AED 5,000 need a
second approval, checkout numbers look like ``CHK-2026-0001`` and refund
references like ``REF-2026-0001``.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Self

from property_kernel.logging_config import get_logger

logger = get_logger("modules.checkout.config")


@dataclass
class CheckoutConfig:
    """
    Configuration schema for the checkout module.

        config = CheckoutConfig.from_dict(settings["checkout"])
    """

    # Approval
    approval_threshold: Decimal = Decimal("5000.00")

    # Numbering
    checkout_number_prefix: str = "CHK"
    refund_reference_prefix: str = "REF"
    number_width: int = 4

    # Eligibility
    eligible_tenant_statuses: tuple[str, ...] = ("ACTIVE", "EXPIRING_SOON")

    # Storage
    photo_base_path: str = "inspections"
    document_base_path: str = "checkouts"
    presign_expiry_seconds: int = 3600
    max_photos_per_upload: int = 20

    def __post_init__(self):
        if isinstance(self.approval_threshold, float):
            raise ValueError("approval_threshold must be a Decimal, not a float")
        self.approval_threshold = Decimal(str(self.approval_threshold))
        if self.approval_threshold < 0:
            raise ValueError("approval_threshold cannot be negative")
        if self.number_width <= 0:
            raise ValueError("number_width must be positive")
        if not self.checkout_number_prefix or not self.refund_reference_prefix:
            raise ValueError("number prefixes cannot be empty")
        if not self.eligible_tenant_statuses:
            raise ValueError("at least one eligible tenant status is required")
        self.eligible_tenant_statuses = tuple(self.eligible_tenant_statuses)
        if self.presign_expiry_seconds <= 0:
            raise ValueError("presign_expiry_seconds must be positive")
        if self.max_photos_per_upload <= 0:
            raise ValueError("max_photos_per_upload must be positive")

        logger.info(
            "checkout_config_initialized",
            extra={
                "approval_threshold": str(self.approval_threshold),
                "checkout_number_prefix": self.checkout_number_prefix,
                "eligible_tenant_statuses": list(self.eligible_tenant_statuses),
            },
        )

    @classmethod
    def with_defaults(cls) -> Self:
        logger.info("checkout_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary (e.g., loaded from a settings file)."""
        logger.info(
            "checkout_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)
