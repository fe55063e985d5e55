"""
property_services.side_effects -- best-effort collaborator calls.

Responsibility:
    Runs the calls that follow a state change (payment recording,
    notifications, audit entries) so that their failure is logged and
    swallowed instead of undoing the change that triggered them.

Invariants enforced:
    - Each call runs inside its own SAVEPOINT when a session is given, so a
      collaborator that writes through the shared session can only roll
      back its own partial writes.
    - A failure is reported as a ``side_effect_failed`` warning carrying a
      ``SideEffectError`` and never propagates.
"""

from __future__ import annotations

from typing import Any, Callable

from sqlalchemy.orm import Session

from property_kernel.exceptions import SideEffectError
from property_kernel.logging_config import get_logger

logger = get_logger("services.side_effects")


class SideEffectRunner:
    """Executes post-transition collaborator calls with failure isolation."""

    def __init__(self, session: Session | None = None):
        self._session = session

    def run(self, effect: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> bool:
        """Call ``fn``; return True on success, False if it raised."""
        savepoint = self._session.begin_nested() if self._session is not None else None
        try:
            fn(*args, **kwargs)
            if savepoint is not None:
                savepoint.commit()
        except Exception as exc:
            if savepoint is not None:
                savepoint.rollback()
            failure = SideEffectError(effect, f"{type(exc).__name__}: {exc}")
            logger.warning(
                "side_effect_failed",
                extra={
                    "effect": effect,
                    "error_code": failure.code,
                    "reason": failure.reason,
                },
                exc_info=True,
            )
            return False

        logger.debug("side_effect_completed", extra={"effect": effect})
        return True
