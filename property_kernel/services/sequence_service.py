"""
SequenceService -- monotonic sequence allocation via locked counter rows.

Responsibility:
    Hands out strictly increasing numbers for audit entries and for the
    human-readable document numbers (``CHK-2026-0001``, ``REF-2026-0001``).
    A dedicated counter row per sequence name is locked with
    ``SELECT ... FOR UPDATE`` and incremented; the aggregate max-plus-one
    query is never used.

Failure modes:
    - IntegrityError on a concurrent first-use race is absorbed by a
      savepoint and a re-read of the winning row.
"""

from sqlalchemy import BigInteger, String, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Mapped, Session, mapped_column

from property_kernel.db.base import Base
from property_kernel.logging_config import get_logger

logger = get_logger("services.sequence")


class SequenceCounter(Base):
    """One row per named sequence holding its current value."""

    __tablename__ = "sequence_counters"

    name: Mapped[str] = mapped_column(String(80), nullable=False, unique=True)
    current_value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)


class SequenceService:
    """
    Transactional sequence numbers.

    The increment only becomes visible when the caller's transaction
    commits; a rollback returns the value.  Does NOT commit.
    """

    AUDIT_ENTRY = "audit_entry"

    def __init__(self, session: Session):
        self._session = session

    def next_value(self, sequence_name: str) -> int:
        """Lock (or create) the counter row, increment it, return the new value."""
        counter = self._locked_counter(sequence_name)

        if counter is None:
            savepoint = self._session.begin_nested()
            try:
                counter = SequenceCounter(name=sequence_name, current_value=1)
                self._session.add(counter)
                self._session.flush()
                savepoint.commit()
                logger.debug(
                    "sequence_allocated",
                    extra={"sequence_name": sequence_name, "value": 1},
                )
                return 1
            except IntegrityError:
                logger.debug(
                    "sequence_counter_race_retry",
                    extra={"sequence_name": sequence_name},
                )
                savepoint.rollback()
                counter = self._locked_counter(sequence_name)
                if counter is None:
                    raise

        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def current_value(self, sequence_name: str) -> int | None:
        counter = self._session.execute(
            select(SequenceCounter).where(SequenceCounter.name == sequence_name)
        ).scalar_one_or_none()
        return counter.current_value if counter else None

    def next_document_number(self, prefix: str, year: int, width: int = 4) -> str:
        """Allocate ``<prefix>-<year>-<zero-padded seq>``; numbering restarts each year."""
        value = self.next_value(f"{prefix}:{year}")
        return f"{prefix}-{year}-{value:0{width}d}"

    def _locked_counter(self, sequence_name: str) -> SequenceCounter | None:
        return self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
