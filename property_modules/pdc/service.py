"""
PDC Lifecycle Manager - owns the post-dated cheque state machine.

Thin glue layer that:
1. Validates input and the PDC_WORKFLOW guard for each action
2. Mutates the cheque row through PDCStore
3. Runs follow-up side effects (invoice payment, audit entry, reminder)
   through SideEffectRunner so their failure never undoes the transition

This service owns the transaction boundary: it commits on success and
rolls back on failure.  Every public operation returns an
``OperationResult``; domain errors never escape as exceptions.

Usage:
    service = PDCService(session, invoices, payments, tenants, clock=clock)
    result = service.clear(pdc_id, actor_id=actor_id)
    if not result.is_success:
        print(result.error_code, result.message)
"""

from __future__ import annotations

from collections import Counter
from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Sequence, TypeVar
from uuid import UUID

from sqlalchemy.orm import Session

from property_kernel.domain.clock import Clock, SystemClock
from property_kernel.domain.money import ZERO, money_sum, parse_money, round_money, to_money
from property_kernel.domain.results import OperationResult, Page, check_paging
from property_kernel.domain.workflow import require_transition
from property_kernel.exceptions import (
    BulkLimitExceededError,
    ChequeNotFoundError,
    DuplicateChequeNumberError,
    EmptyBatchError,
    InvalidDateRangeError,
    InvalidFieldError,
    InvoiceNotFoundError,
    MissingFieldError,
    OutsideDueWindowError,
    PropertyKernelError,
    TenantNotFoundError,
)
from property_kernel.logging_config import LogContext, get_logger
from property_kernel.models.audit_entry import AuditEventType
from property_kernel.services.audit_trail import AuditTrail
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
from property_modules.pdc.orm import PDCModel
from property_modules.pdc.store import SORTABLE_COLUMNS, PDCStore
from property_modules.pdc.workflows import PDC_WORKFLOW
from property_services.collaborators import (
    AuditLogger,
    InvoiceDirectory,
    InvoicePaymentRecorder,
    Notification,
    NotificationKind,
    Notifier,
    TenantDirectory,
)
from property_services.notifications import LoggingNotifier
from property_services.side_effects import SideEffectRunner

logger = get_logger("modules.pdc.service")

T = TypeVar("T")

_ENTITY = "PDC"
_PENDING_STATUSES = (PDCStatus.RECEIVED, PDCStatus.DUE, PDCStatus.DEPOSITED)


class PDCService:
    """
    Orchestrates the post-dated cheque lifecycle.

    Transitions:
        RECEIVED -> DUE -> DEPOSITED -> CLEARED | BOUNCED
        BOUNCED -> REPLACED (spawns a new RECEIVED cheque)
        RECEIVED | DUE -> DEPOSITED | WITHDRAWN | CANCELLED
    """

    def __init__(
        self,
        session: Session,
        invoices: InvoiceDirectory,
        payments: InvoicePaymentRecorder,
        tenants: TenantDirectory,
        notifier: Notifier | None = None,
        audit: AuditLogger | None = None,
        clock: Clock | None = None,
        config: PDCConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or PDCConfig.with_defaults()
        self._store = PDCStore(session)
        self._invoices = invoices
        self._payments = payments
        self._tenants = tenants
        self._notifier = notifier or LoggingNotifier()
        self._audit = audit or AuditTrail(session, self._clock)
        self._effects = SideEffectRunner(session)

    # =========================================================================
    # Registration
    # =========================================================================

    def create(
        self,
        tenant_id: UUID,
        draft: PDCDraft,
        actor_id: UUID,
    ) -> OperationResult[PDC]:
        """Register one cheque in RECEIVED status."""

        def _create() -> PDC:
            self._require_tenant(tenant_id)
            self._validate_draft(draft)
            number = draft.cheque_number.strip()
            if self._store.exists_cheque_number(tenant_id, number):
                raise DuplicateChequeNumberError(tenant_id, (number,))
            if draft.invoice_id is not None:
                self._require_invoice(draft.invoice_id)

            model = self._store.add(
                PDCModel.from_draft(
                    self._normalized(draft), tenant_id=tenant_id, created_by_id=actor_id
                )
            )
            self._session.flush()
            self._audit_transition(AuditEventType.PDC_CREATED, actor_id, model)
            return model.to_dto()

        return self._execute(
            "create",
            _create,
            tenant_id=str(tenant_id),
            cheque_number=draft.cheque_number,
            amount=str(draft.amount),
        )

    def create_bulk(
        self,
        tenant_id: UUID,
        drafts: Sequence[PDCDraft],
        actor_id: UUID,
    ) -> OperationResult[tuple[PDC, ...]]:
        """
        Register up to ``max_bulk_cheques`` cheques for one tenant.

        The whole batch is validated before anything is written; any
        violation rejects the batch and nothing is persisted.
        """

        def _create_bulk() -> tuple[PDC, ...]:
            self._require_tenant(tenant_id)
            if not drafts:
                raise EmptyBatchError()
            if len(drafts) > self._config.max_bulk_cheques:
                raise BulkLimitExceededError(len(drafts), self._config.max_bulk_cheques)

            for draft in drafts:
                self._validate_draft(draft)

            numbers = [d.cheque_number.strip() for d in drafts]
            repeated = sorted(n for n, count in Counter(numbers).items() if count > 1)
            if repeated:
                raise DuplicateChequeNumberError(tenant_id, tuple(repeated), within_batch=True)

            existing = self._store.existing_cheque_numbers(tenant_id, numbers)
            if existing:
                raise DuplicateChequeNumberError(tenant_id, tuple(sorted(existing)))

            for invoice_id in sorted({d.invoice_id for d in drafts if d.invoice_id}, key=str):
                self._require_invoice(invoice_id)

            models = self._store.add_all([
                PDCModel.from_draft(
                    self._normalized(d), tenant_id=tenant_id, created_by_id=actor_id
                )
                for d in drafts
            ])
            self._session.flush()
            for model in models:
                self._audit_transition(AuditEventType.PDC_CREATED, actor_id, model)
            return tuple(m.to_dto() for m in models)

        return self._execute(
            "create_bulk",
            _create_bulk,
            tenant_id=str(tenant_id),
            cheque_count=len(drafts),
        )

    # =========================================================================
    # Clearance
    # =========================================================================

    def deposit(
        self,
        pdc_id: UUID,
        bank_account_id: UUID,
        actor_id: UUID,
        deposit_date: date | None = None,
    ) -> OperationResult[PDC]:
        """RECEIVED | DUE -> DEPOSITED."""

        def _deposit() -> PDC:
            model = self._require_cheque(pdc_id)
            transition = require_transition(PDC_WORKFLOW, _ENTITY, pdc_id, model.status, "deposit")
            if bank_account_id is None:
                raise MissingFieldError("bank_account_id", "deposit")
            model.status = transition.to_state
            model.deposit_date = deposit_date or self._clock.today()
            model.bank_account_id = bank_account_id
            model.updated_by_id = actor_id
            self._session.flush()
            self._audit_transition(
                AuditEventType.PDC_DEPOSITED,
                actor_id,
                model,
                deposit_date=model.deposit_date,
                bank_account_id=bank_account_id,
            )
            return model.to_dto()

        return self._execute("deposit", _deposit, pdc_id=str(pdc_id))

    def clear(
        self,
        pdc_id: UUID,
        actor_id: UUID,
        cleared_date: date | None = None,
    ) -> OperationResult[PDC]:
        """
        DEPOSITED -> CLEARED.

        When the cheque is linked to an invoice, a payment is recorded
        against it.  A failing payment recorder is logged and the cheque
        stays CLEARED.
        """

        def _clear() -> PDC:
            model = self._require_cheque(pdc_id)
            transition = require_transition(PDC_WORKFLOW, _ENTITY, pdc_id, model.status, "clear")
            model.status = transition.to_state
            model.cleared_date = cleared_date or self._clock.today()
            model.updated_by_id = actor_id
            self._session.flush()

            payment_recorded = None
            if model.invoice_id is not None:
                payment_recorded = self._effects.run(
                    "record_invoice_payment",
                    self._payments.record_payment,
                    invoice_id=model.invoice_id,
                    amount=model.amount,
                    method=self._config.payment_method,
                    reference=f"{self._config.payment_reference_prefix}{model.cheque_number}",
                    payment_date=model.cleared_date,
                    notes=f"Payment from PDC: {model.cheque_number}",
                    actor_id=actor_id,
                )
            self._audit_transition(
                AuditEventType.PDC_CLEARED,
                actor_id,
                model,
                cleared_date=model.cleared_date,
                invoice_id=model.invoice_id,
                payment_recorded=payment_recorded,
            )
            logger.info(
                "pdc_payment_recording_outcome",
                extra={
                    "pdc_id": str(pdc_id),
                    "invoice_id": str(model.invoice_id) if model.invoice_id else None,
                    "payment_recorded": payment_recorded,
                },
            )
            return model.to_dto()

        return self._execute("clear", _clear, pdc_id=str(pdc_id))

    def bounce(
        self,
        pdc_id: UUID,
        reason: str,
        actor_id: UUID,
        bounced_date: date | None = None,
    ) -> OperationResult[PDC]:
        """DEPOSITED -> BOUNCED.  A non-blank reason is required."""

        def _bounce() -> PDC:
            model = self._require_cheque(pdc_id)
            transition = require_transition(PDC_WORKFLOW, _ENTITY, pdc_id, model.status, "bounce")
            if not reason or not reason.strip():
                raise MissingFieldError("bounce_reason", "bounce")
            self._check_length("bounce_reason", reason, self._config.bounce_reason_max_length)
            model.status = transition.to_state
            model.bounced_date = bounced_date or self._clock.today()
            model.bounce_reason = reason.strip()
            model.updated_by_id = actor_id
            self._session.flush()
            self._audit_transition(
                AuditEventType.PDC_BOUNCED,
                actor_id,
                model,
                bounced_date=model.bounced_date,
                bounce_reason=model.bounce_reason,
            )
            return model.to_dto()

        return self._execute("bounce", _bounce, pdc_id=str(pdc_id))

    def replace(
        self,
        pdc_id: UUID,
        new_cheque_number: str,
        bank_name: str,
        amount: Decimal,
        cheque_date: date,
        actor_id: UUID,
        notes: str | None = None,
    ) -> OperationResult[ReplacementOutcome]:
        """
        BOUNCED -> REPLACED.

        Creates a new RECEIVED cheque for the same tenant, invoice and lease,
        linked back to the bounced one; the bounced cheque gets the forward
        link and becomes immutable.
        """

        def _replace() -> ReplacementOutcome:
            original = self._require_cheque(pdc_id)
            transition = require_transition(
                PDC_WORKFLOW, _ENTITY, pdc_id, original.status, "replace"
            )
            draft = PDCDraft(
                cheque_number=new_cheque_number or "",
                bank_name=bank_name or "",
                amount=amount,
                cheque_date=cheque_date,
                invoice_id=original.invoice_id,
                lease_id=original.lease_id,
                notes=notes,
            )
            self._validate_draft(draft)
            number = draft.cheque_number.strip()
            if self._store.exists_cheque_number(original.tenant_id, number):
                raise DuplicateChequeNumberError(original.tenant_id, (number,))

            replacement = self._store.add(
                PDCModel.from_draft(
                    self._normalized(draft),
                    tenant_id=original.tenant_id,
                    created_by_id=actor_id,
                    original_pdc_id=original.id,
                )
            )
            self._session.flush()

            original.status = transition.to_state
            original.replacement_pdc_id = replacement.id
            original.updated_by_id = actor_id
            self._session.flush()

            self._audit_transition(
                AuditEventType.PDC_REPLACED,
                actor_id,
                original,
                replacement_pdc_id=replacement.id,
                replacement_cheque_number=replacement.cheque_number,
            )
            self._audit_transition(
                AuditEventType.PDC_CREATED,
                actor_id,
                replacement,
                original_pdc_id=original.id,
            )
            return ReplacementOutcome(original=original.to_dto(), replacement=replacement.to_dto())

        return self._execute(
            "replace",
            _replace,
            pdc_id=str(pdc_id),
            new_cheque_number=new_cheque_number,
        )

    def withdraw(
        self,
        pdc_id: UUID,
        reason: str,
        new_payment_method: NewPaymentMethod,
        actor_id: UUID,
        transaction_id: str | None = None,
        withdrawal_date: date | None = None,
    ) -> OperationResult[PDC]:
        """RECEIVED | DUE -> WITHDRAWN, recording how the amount will be paid instead."""

        def _withdraw() -> PDC:
            model = self._require_cheque(pdc_id)
            transition = require_transition(PDC_WORKFLOW, _ENTITY, pdc_id, model.status, "withdraw")
            if not reason or not reason.strip():
                raise MissingFieldError("withdrawal_reason", "withdraw")
            if new_payment_method is None:
                raise MissingFieldError("new_payment_method", "withdraw")
            try:
                method = NewPaymentMethod(new_payment_method)
            except ValueError:
                raise InvalidFieldError(
                    "new_payment_method", f"unknown payment method {new_payment_method!r}"
                ) from None
            model.status = transition.to_state
            model.withdrawal_date = withdrawal_date or self._clock.today()
            model.withdrawal_reason = reason.strip()
            model.new_payment_method = method.value
            model.transaction_id = transaction_id
            model.updated_by_id = actor_id
            self._session.flush()
            self._audit_transition(
                AuditEventType.PDC_WITHDRAWN,
                actor_id,
                model,
                withdrawal_reason=model.withdrawal_reason,
                new_payment_method=model.new_payment_method,
                transaction_id=transaction_id,
            )
            return model.to_dto()

        return self._execute("withdraw", _withdraw, pdc_id=str(pdc_id))

    def cancel(
        self,
        pdc_id: UUID,
        actor_id: UUID,
        reason: str | None = None,
    ) -> OperationResult[PDC]:
        """RECEIVED | DUE -> CANCELLED."""

        def _cancel() -> PDC:
            model = self._require_cheque(pdc_id)
            transition = require_transition(PDC_WORKFLOW, _ENTITY, pdc_id, model.status, "cancel")
            model.status = transition.to_state
            if reason and reason.strip():
                model.notes = self._append_note(model.notes, f"Cancelled: {reason.strip()}")
            model.updated_by_id = actor_id
            self._session.flush()
            self._audit_transition(AuditEventType.PDC_CANCELLED, actor_id, model, reason=reason)
            return model.to_dto()

        return self._execute("cancel", _cancel, pdc_id=str(pdc_id))

    # =========================================================================
    # Scheduler
    # =========================================================================

    def due_window(self, as_of: date | None = None) -> tuple[date, date]:
        """Inclusive ``(today, today + due_window_days)``."""
        today = as_of or self._clock.today()
        return today, today + timedelta(days=self._config.due_window_days)

    def due_candidates(self, as_of: date | None = None) -> tuple[PDC, ...]:
        start, end = self.due_window(as_of)
        return tuple(m.to_dto() for m in self._store.find_received_within_window(start, end))

    def advance_to_due(
        self,
        pdc_id: UUID,
        as_of: date | None = None,
        actor_id: UUID | None = None,
    ) -> PDC:
        """
        Move one RECEIVED cheque inside the due window to DUE.

        Building block for the scheduler: flushes but does NOT commit and
        raises ``PropertyKernelError`` instead of returning a result, so the
        caller can wrap each item in its own savepoint.
        """
        with LogContext.bind(entity_id=str(pdc_id)):
            model = self._require_cheque(pdc_id)
            transition = require_transition(PDC_WORKFLOW, _ENTITY, pdc_id, model.status, "mark_due")
            start, end = self.due_window(as_of)
            if not start <= model.cheque_date <= end:
                raise OutsideDueWindowError(pdc_id, model.cheque_date, start, end)
            model.status = transition.to_state
            model.updated_by_id = actor_id
            self._session.flush()
            self._audit_transition(AuditEventType.PDC_DUE, actor_id, model, as_of=start)
            return model.to_dto()

    def transition_received_to_due(
        self,
        as_of: date | None = None,
        actor_id: UUID | None = None,
    ) -> int:
        """
        Daily job: move every RECEIVED cheque dated within the due window to DUE.

        Items are processed one by one, each inside its own savepoint; a
        failing cheque is logged and skipped.  Returns the number of cheques
        moved.
        """
        start, end = self.due_window(as_of)
        candidates = self._store.find_received_within_window(start, end)
        logger.info(
            "pdc_due_transition_started",
            extra={
                "window_start": start.isoformat(),
                "window_end": end.isoformat(),
                "candidate_count": len(candidates),
            },
        )

        succeeded = 0
        for model in candidates:
            pdc_id, cheque_number = model.id, model.cheque_number
            with LogContext.bind(entity_id=str(pdc_id), tenant_id=str(model.tenant_id)):
                savepoint = self._session.begin_nested()
                try:
                    self.advance_to_due(pdc_id, as_of=start, actor_id=actor_id)
                    savepoint.commit()
                    succeeded += 1
                except Exception:
                    savepoint.rollback()
                    logger.warning(
                        "pdc_due_transition_item_failed",
                        extra={"pdc_id": str(pdc_id), "cheque_number": cheque_number},
                        exc_info=True,
                    )

        self._session.commit()
        logger.info(
            "pdc_due_transition_completed",
            extra={
                "candidate_count": len(candidates),
                "transitioned": succeeded,
                "failed": len(candidates) - succeeded,
            },
        )
        return succeeded

    def reminder_date(self, as_of: date | None = None) -> date:
        """Cheque date that gets a reminder when the job runs on ``as_of``."""
        return (as_of or self._clock.today()) + timedelta(days=self._config.reminder_lead_days)

    def find_due_for_reminder(self, reminder_date: date) -> tuple[PDC, ...]:
        """DUE cheques whose cheque date is exactly ``reminder_date``."""
        return tuple(m.to_dto() for m in self._store.find_due_on(reminder_date))

    def send_due_reminder(self, pdc: PDC) -> bool:
        """Notify the tenant that a cheque is about to be presented (best effort)."""
        tenant = self._tenants.get_tenant(pdc.tenant_id)
        if tenant is None:
            logger.warning(
                "pdc_reminder_tenant_missing",
                extra={"pdc_id": str(pdc.id), "tenant_id": str(pdc.tenant_id)},
            )
            return False
        notification = Notification(
            kind=NotificationKind.PDC_DUE_REMINDER,
            recipient_id=tenant.id,
            recipient_email=tenant.email,
            subject=f"Cheque {pdc.cheque_number} will be presented on {pdc.cheque_date.isoformat()}",
            context={
                "tenant_name": tenant.name,
                "cheque_number": pdc.cheque_number,
                "bank_name": pdc.bank_name,
                "amount": str(pdc.amount),
                "cheque_date": pdc.cheque_date.isoformat(),
            },
        )
        return self._effects.run("notify_pdc_due", self._notifier.notify, notification)

    def send_due_reminders(self, reminder_date: date) -> int:
        """Send one reminder per DUE cheque dated ``reminder_date``; returns how many went out."""
        sent = sum(1 for pdc in self.find_due_for_reminder(reminder_date) if self.send_due_reminder(pdc))
        logger.info(
            "pdc_due_reminders_sent",
            extra={"reminder_date": reminder_date.isoformat(), "sent": sent},
        )
        return sent

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, pdc_id: UUID) -> OperationResult[PDC]:
        model = self._store.get(pdc_id)
        if model is None:
            return OperationResult.from_error(ChequeNotFoundError(pdc_id))
        return OperationResult.success(model.to_dto())

    def list_for_tenant(self, tenant_id: UUID) -> tuple[PDC, ...]:
        return tuple(m.to_dto() for m in self._store.find_by_tenant(tenant_id))

    def search(self, criteria: PDCFilter | None = None) -> OperationResult[Page[PDC]]:
        """One page of cheques matching ``criteria`` (all cheques when omitted)."""
        criteria = criteria or PDCFilter()
        try:
            self._validate_filter(criteria)
        except PropertyKernelError as exc:
            logger.debug(
                "pdc_search_rejected", extra={"error_code": exc.code, "reason": str(exc)}
            )
            return OperationResult.from_error(exc)

        models, total = self._store.search(criteria)
        return OperationResult.success(
            Page(
                items=tuple(m.to_dto() for m in models),
                total=total,
                page=criteria.page,
                size=criteria.size,
            )
        )

    def distinct_bank_names(self) -> tuple[str, ...]:
        """Bank names on file, alphabetical, for listing filters."""
        return tuple(self._store.distinct_bank_names())

    def list_for_invoice(self, invoice_id: UUID) -> tuple[PDC, ...]:
        return tuple(m.to_dto() for m in self._store.find_by_invoice(invoice_id))

    def cheque_number_exists(self, tenant_id: UUID, cheque_number: str) -> bool:
        return self._store.exists_cheque_number(tenant_id, cheque_number)

    def withdrawal_history(self, tenant_id: UUID | None = None) -> tuple[WithdrawalRecord, ...]:
        return tuple(
            WithdrawalRecord(
                pdc_id=m.id,
                tenant_id=m.tenant_id,
                cheque_number=m.cheque_number,
                amount=m.amount,
                withdrawal_date=m.withdrawal_date,
                withdrawal_reason=m.withdrawal_reason,
                new_payment_method=(
                    NewPaymentMethod(m.new_payment_method) if m.new_payment_method else None
                ),
                transaction_id=m.transaction_id,
            )
            for m in self._store.find_withdrawn(tenant_id)
        )

    def tenant_history(self, tenant_id: UUID) -> OperationResult[TenantPDCHistory]:
        """Cheque counts and bounce rate (bounced / (cleared + bounced))."""
        if self._tenants.get_tenant(tenant_id) is None:
            return OperationResult.from_error(TenantNotFoundError(tenant_id))

        cheques = self._store.find_by_tenant(tenant_id)
        statuses = Counter(PDCStatus(m.status) for m in cheques)
        cleared = statuses[PDCStatus.CLEARED]
        bounced = statuses[PDCStatus.BOUNCED]
        processed = cleared + bounced
        bounce_rate = (
            round_money(Decimal(bounced) * Decimal(100) / Decimal(processed))
            if processed
            else ZERO
        )
        return OperationResult.success(
            TenantPDCHistory(
                tenant_id=tenant_id,
                total_cheques=len(cheques),
                cleared_count=cleared,
                bounced_count=bounced,
                pending_count=sum(statuses[s] for s in _PENDING_STATUSES),
                total_value=money_sum(m.amount for m in cheques),
                bounce_rate_percent=bounce_rate,
            )
        )

    # =========================================================================
    # Internals
    # =========================================================================

    def _execute(self, operation: str, fn: Callable[[], T], **log_fields) -> OperationResult[T]:
        """Run ``fn`` as one unit of work and tag the outcome.

        Context fields set while ``fn`` runs are dropped when it returns.
        """
        with LogContext.bind():
            logger.info(f"pdc_{operation}_started", extra=log_fields)
            try:
                value = fn()
            except PropertyKernelError as exc:
                self._session.rollback()
                logger.warning(
                    f"pdc_{operation}_rejected",
                    extra={**log_fields, "error_code": exc.code, "reason": str(exc)},
                )
                return OperationResult.from_error(exc)
            except Exception:
                self._session.rollback()
                raise

            self._session.commit()
            logger.info(f"pdc_{operation}_committed", extra=log_fields)
            return OperationResult.success(value)

    def _require_cheque(self, pdc_id: UUID) -> PDCModel:
        model = self._store.get(pdc_id)
        if model is None:
            raise ChequeNotFoundError(pdc_id)
        LogContext.set(entity_id=str(pdc_id), tenant_id=str(model.tenant_id))
        return model

    def _require_tenant(self, tenant_id: UUID) -> None:
        if self._tenants.get_tenant(tenant_id) is None:
            raise TenantNotFoundError(tenant_id)

    def _require_invoice(self, invoice_id: UUID) -> None:
        if not self._invoices.exists(invoice_id):
            raise InvoiceNotFoundError(invoice_id)

    def _validate_draft(self, draft: PDCDraft) -> None:
        cfg = self._config
        number = (draft.cheque_number or "").strip()
        if not number:
            raise MissingFieldError("cheque_number", "cheque registration")
        if not cfg.cheque_number_min_length <= len(number) <= cfg.cheque_number_max_length:
            raise InvalidFieldError(
                "cheque_number",
                f"must be {cfg.cheque_number_min_length}-{cfg.cheque_number_max_length} characters",
            )
        if not (draft.bank_name or "").strip():
            raise MissingFieldError("bank_name", "cheque registration")
        self._check_length("bank_name", draft.bank_name.strip(), cfg.bank_name_max_length)
        if draft.amount is None:
            raise MissingFieldError("amount", "cheque registration")
        if parse_money("amount", draft.amount) <= ZERO:
            raise InvalidFieldError("amount", "must be at least 0.01")
        if draft.cheque_date is None:
            raise MissingFieldError("cheque_date", "cheque registration")
        if draft.notes:
            self._check_length("notes", draft.notes, cfg.notes_max_length)

    @staticmethod
    def _validate_filter(criteria: PDCFilter) -> None:
        check_paging(criteria.page, criteria.size)
        if criteria.sort_by not in SORTABLE_COLUMNS:
            raise InvalidFieldError(
                "sort_by", f"must be one of {', '.join(sorted(SORTABLE_COLUMNS))}"
            )
        if criteria.status is not None:
            try:
                PDCStatus(criteria.status)
            except ValueError:
                raise InvalidFieldError(
                    "status", f"unknown cheque status {criteria.status!r}"
                ) from None
        if (
            criteria.from_date is not None
            and criteria.to_date is not None
            and criteria.to_date < criteria.from_date
        ):
            raise InvalidDateRangeError(
                "from_date", criteria.from_date, "to_date", criteria.to_date
            )

    @staticmethod
    def _check_length(field_name: str, value: str, limit: int) -> None:
        if len(value) > limit:
            raise InvalidFieldError(field_name, f"must not exceed {limit} characters")

    @staticmethod
    def _normalized(draft: PDCDraft) -> PDCDraft:
        return PDCDraft(
            cheque_number=draft.cheque_number.strip(),
            bank_name=draft.bank_name.strip(),
            amount=to_money(draft.amount),
            cheque_date=draft.cheque_date,
            invoice_id=draft.invoice_id,
            lease_id=draft.lease_id,
            notes=draft.notes,
        )

    @staticmethod
    def _append_note(existing: str | None, note: str) -> str:
        return f"{existing}\n{note}" if existing else note

    def _audit_transition(
        self,
        event_type: AuditEventType,
        actor_id: UUID | None,
        model: PDCModel,
        **details,
    ) -> bool:
        payload = {
            "cheque_number": model.cheque_number,
            "tenant_id": str(model.tenant_id),
            "amount": str(model.amount),
            "status": model.status,
            **{k: (str(v) if isinstance(v, (UUID, date, Decimal)) else v) for k, v in details.items()},
        }
        return self._effects.run(
            "audit",
            self._audit.record,
            event_type.value,
            actor_id,
            _ENTITY,
            model.id,
            payload,
        )
