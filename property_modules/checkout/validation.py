"""UAE IBAN checks for bank-transfer refunds."""

import re

_UAE_IBAN = re.compile(r"^AE\d{2}[A-Z0-9]{19}$")
_WHITESPACE = re.compile(r"\s+")


def normalize_iban(iban: str | None) -> str:
    """Strip all whitespace and upper-case."""
    return _WHITESPACE.sub("", iban or "").upper()


def is_valid_uae_iban(iban: str | None) -> bool:
    """``AE`` + 2 check digits + 19 alphanumerics, whitespace and case ignored.

    Format only; the mod-97 checksum is not verified.
    """
    if iban is None:
        return False
    return _UAE_IBAN.match(normalize_iban(iban)) is not None


def mask_iban(iban: str | None) -> str | None:
    """Keep the country code and last four characters: ``AE**...**0123``."""
    if not iban:
        return None
    clean = normalize_iban(iban)
    if len(clean) <= 6:
        return "*" * len(clean)
    return clean[:2] + "*" * (len(clean) - 6) + clean[-4:]
