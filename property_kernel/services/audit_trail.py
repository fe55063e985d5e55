"""
AuditTrail -- hash-chained audit entries for every state transition.

Responsibility:
    Default implementation of the ``AuditLogger`` collaborator.  Each call to
    ``record()`` appends one ``AuditEntryModel`` whose hash links to the
    previous entry, so tampering with history is detectable by
    ``validate_chain()``.

Non-goals:
    - Does NOT commit; the calling service owns the transaction boundary.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from property_kernel.domain.clock import Clock, SystemClock
from property_kernel.exceptions import AuditChainBrokenError
from property_kernel.logging_config import get_logger
from property_kernel.models.audit_entry import AuditEntryModel
from property_kernel.services.sequence_service import SequenceService
from property_kernel.utils.hashing import hash_audit_entry, hash_payload, to_json_safe

logger = get_logger("services.audit_trail")


@dataclass(frozen=True)
class AuditTraceEntry:
    """A single entry in an entity's audit trace."""

    seq: int
    event_type: str
    occurred_at: datetime
    actor_id: UUID | None
    payload: dict[str, Any]
    hash: str


class AuditTrail:
    """Append-only, hash-chained audit log backed by the shared session."""

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()
        self._sequences = SequenceService(session)

    def record(
        self,
        event_type: str,
        actor_id: UUID | None,
        entity_type: str,
        entity_id: UUID,
        payload: dict[str, Any] | None = None,
    ) -> AuditEntryModel:
        """Append one entry.  Flushes but does not commit."""
        event_value = getattr(event_type, "value", event_type)
        seq = self._sequences.next_value(SequenceService.AUDIT_ENTRY)
        prev_hash = self._last_hash()

        payload_data = to_json_safe(payload or {})
        payload_hash = hash_payload(payload_data)
        entry_hash = hash_audit_entry(
            entity_type=entity_type,
            entity_id=str(entity_id),
            event_type=event_value,
            payload_hash=payload_hash,
            prev_hash=prev_hash,
        )

        entry = AuditEntryModel(
            seq=seq,
            entity_type=entity_type,
            entity_id=entity_id,
            event_type=event_value,
            actor_id=actor_id,
            occurred_at=self._clock.now(),
            payload=payload_data,
            payload_hash=payload_hash,
            prev_hash=prev_hash,
            hash=entry_hash,
        )
        self._session.add(entry)
        self._session.flush()

        logger.info(
            "audit_entry_created",
            extra={
                "entity_type": entity_type,
                "entity_id": str(entity_id),
                "event_type": event_value,
                "seq": seq,
            },
        )
        return entry

    def trace_for(self, entity_type: str, entity_id: UUID) -> tuple[AuditTraceEntry, ...]:
        """All entries for one entity, oldest first."""
        rows = self._session.execute(
            select(AuditEntryModel)
            .where(
                AuditEntryModel.entity_type == entity_type,
                AuditEntryModel.entity_id == entity_id,
            )
            .order_by(AuditEntryModel.seq)
        ).scalars().all()
        return tuple(
            AuditTraceEntry(
                seq=row.seq,
                event_type=row.event_type,
                occurred_at=row.occurred_at,
                actor_id=row.actor_id,
                payload=row.payload or {},
                hash=row.hash,
            )
            for row in rows
        )

    def validate_chain(self) -> bool:
        """
        Recompute every hash and check every back-link.

        Raises:
            AuditChainBrokenError: at the first entry that does not verify.
        """
        entries = self._session.execute(
            select(AuditEntryModel).order_by(AuditEntryModel.seq)
        ).scalars().all()

        expected_prev: str | None = None
        for entry in entries:
            if entry.prev_hash != expected_prev:
                logger.critical(
                    "audit_chain_broken",
                    extra={"audit_entry_id": str(entry.id), "seq": entry.seq},
                )
                raise AuditChainBrokenError(
                    str(entry.id), expected_prev or "None", entry.prev_hash or "None"
                )
            expected_hash = hash_audit_entry(
                entity_type=entry.entity_type,
                entity_id=str(entry.entity_id),
                event_type=entry.event_type,
                payload_hash=hash_payload(entry.payload or {}),
                prev_hash=entry.prev_hash,
            )
            if entry.hash != expected_hash:
                logger.critical(
                    "audit_chain_broken",
                    extra={"audit_entry_id": str(entry.id), "seq": entry.seq},
                )
                raise AuditChainBrokenError(str(entry.id), expected_hash, entry.hash)
            expected_prev = entry.hash

        return True

    def _last_hash(self) -> str | None:
        last = self._session.execute(
            select(AuditEntryModel).order_by(AuditEntryModel.seq.desc()).limit(1)
        ).scalar_one_or_none()
        return last.hash if last else None
