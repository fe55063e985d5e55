"""
Checkout Workflow Orchestrator - owns the tenant move-out lifecycle.

Thin glue layer that:
1. Guards each step against CHECKOUT_WORKFLOW / REFUND_WORKFLOW
2. Settles the deposit through the pure calculator in ``calculations``
3. Persists the checkout and its deposit refund through CheckoutStore
4. Hands audit entries and notifications to SideEffectRunner, so a failing
   collaborator never undoes a committed step

This service owns the transaction boundary: it commits on success and
rolls back on failure.  Every public operation returns an
``OperationResult``.

Usage:
    service = CheckoutService(session, tenants, storage, clock=clock)
    result = service.initiate_checkout(request, actor_id=actor_id)
    checkout = result.value
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Callable, Sequence, TypeVar
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from property_kernel.domain.clock import Clock, SystemClock
from property_kernel.domain.money import ZERO, parse_money, to_money
from property_kernel.domain.results import OperationResult, Page, check_paging
from property_kernel.domain.workflow import require_transition
from property_kernel.exceptions import (
    AcknowledgementRequiredError,
    ActiveCheckoutExistsError,
    CheckoutNotEditableError,
    CheckoutNotFoundError,
    CheckoutOwnershipError,
    DepositRefundNotFoundError,
    DocumentNotFoundError,
    InvalidDateRangeError,
    InvalidFieldError,
    InvalidIbanError,
    MissingFieldError,
    PropertyKernelError,
    RefundApprovalRequiredError,
    TenantNotEligibleError,
    TenantNotFoundError,
    UnknownDocumentTypeError,
)
from property_kernel.logging_config import LogContext, get_logger
from property_kernel.models.audit_entry import AuditEventType
from property_kernel.services.audit_trail import AuditTrail
from property_kernel.services.sequence_service import SequenceService
from property_modules.checkout.calculations import (
    SettlementBreakdown,
    calculate_settlement,
    merge_damage_deduction,
    sum_repair_costs,
)
from property_modules.checkout.config import CheckoutConfig
from property_modules.checkout.models import (
    CheckoutCompletion,
    CheckoutFilter,
    CheckoutReason,
    CheckoutRequest,
    CheckoutStatus,
    CompletionRequest,
    Deduction,
    DepositRefund,
    DocumentType,
    InspectionPhoto,
    InspectionRequest,
    PhotoType,
    PhotoUpload,
    RefundMethod,
    RefundRequest,
    RefundStatus,
    TenantCheckout,
    TenantCheckoutSummary,
)
from property_modules.checkout.orm import (
    CheckoutModel,
    DeductionModel,
    DepositRefundModel,
    checklist_to_json,
    photo_to_json,
    photos_from_json,
)
from property_modules.checkout.store import CheckoutStore
from property_modules.checkout.validation import is_valid_uae_iban, mask_iban, normalize_iban
from property_modules.checkout.workflows import CHECKOUT_WORKFLOW, REFUND_WORKFLOW
from property_services.collaborators import (
    AuditLogger,
    FileStorage,
    Notification,
    NotificationKind,
    Notifier,
    TenantDirectory,
    TenantSnapshot,
    TenantStatus,
    UnitStatus,
)
from property_services.notifications import LoggingNotifier
from property_services.side_effects import SideEffectRunner

logger = get_logger("modules.checkout.service")

T = TypeVar("T")

_CHECKOUT = "TenantCheckout"
_REFUND = "DepositRefund"

_SETTLEABLE_REFUND_STATES = (
    RefundStatus.CALCULATED.value,
    RefundStatus.PENDING_APPROVAL.value,
    RefundStatus.APPROVED.value,
    RefundStatus.PROCESSING.value,
)

_URL_DOCUMENTS = {
    DocumentType.INSPECTION_REPORT: "inspection_report_path",
    DocumentType.DEPOSIT_STATEMENT: "deposit_statement_path",
    DocumentType.FINAL_SETTLEMENT: "final_settlement_path",
}


class CheckoutService:
    """
    Orchestrates tenant checkout and deposit settlement.

    Flow:
        initiate_checkout -> save_inspection -> save_deposit_calculation
        -> [approve_refund when net refund > threshold] -> process_refund
        -> complete_checkout
    """

    def __init__(
        self,
        session: Session,
        tenants: TenantDirectory,
        storage: FileStorage,
        notifier: Notifier | None = None,
        audit: AuditLogger | None = None,
        clock: Clock | None = None,
        config: CheckoutConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or CheckoutConfig.with_defaults()
        self._store = CheckoutStore(session)
        self._sequences = SequenceService(session)
        self._tenants = tenants
        self._storage = storage
        self._notifier = notifier or LoggingNotifier()
        self._audit = audit or AuditTrail(session, self._clock)
        self._effects = SideEffectRunner(session)

    # =========================================================================
    # Initiation
    # =========================================================================

    def initiate_checkout(
        self,
        request: CheckoutRequest,
        actor_id: UUID,
    ) -> OperationResult[TenantCheckout]:
        """Open a checkout (PENDING) and its deposit refund (CALCULATED) together."""

        def _initiate() -> TenantCheckout:
            tenant = self._require_tenant(request.tenant_id)
            status = TenantStatus(tenant.status).value
            if status not in self._config.eligible_tenant_statuses:
                raise TenantNotEligibleError(tenant.id, status)

            active = self._store.find_active_for_tenant(tenant.id)
            if active is not None:
                raise ActiveCheckoutExistsError(tenant.id, active.checkout_number)

            if request.expected_move_out_date < request.notice_date:
                raise InvalidDateRangeError(
                    "notice_date",
                    request.notice_date,
                    "expected_move_out_date",
                    request.expected_move_out_date,
                )
            if request.checkout_reason == CheckoutReason.OTHER and not (
                request.reason_notes and request.reason_notes.strip()
            ):
                raise MissingFieldError("reason_notes", "checkout reason OTHER")

            deposit = to_money(tenant.security_deposit)
            model = CheckoutModel(
                checkout_number=self._next_number(self._config.checkout_number_prefix),
                tenant_id=tenant.id,
                property_id=tenant.property_id,
                unit_id=tenant.unit_id,
                notice_date=request.notice_date,
                expected_move_out_date=request.expected_move_out_date,
                checkout_reason=CheckoutReason(request.checkout_reason).value,
                reason_notes=request.reason_notes,
                status=CHECKOUT_WORKFLOW.initial_state,
                created_by_id=actor_id,
            )
            model.refund = DepositRefundModel(
                original_deposit=deposit,
                total_deductions=ZERO,
                net_refund=deposit,
                refund_status=REFUND_WORKFLOW.initial_state,
                created_by_id=actor_id,
            )
            self._store.add(model)
            self._session.flush()
            LogContext.set(entity_id=str(model.id), tenant_id=str(tenant.id))

            self._audit_step(
                AuditEventType.CHECKOUT_INITIATED,
                actor_id,
                model,
                original_deposit=deposit,
                message=f"Checkout initiated for {tenant.name}",
            )
            self._notify(
                NotificationKind.CHECKOUT_INITIATED,
                tenant,
                f"Checkout {model.checkout_number} initiated",
                model,
            )
            return model.to_dto()

        return self._execute(
            "initiate",
            _initiate,
            tenant_id=str(request.tenant_id),
            checkout_reason=getattr(request.checkout_reason, "value", request.checkout_reason),
        )

    # =========================================================================
    # Inspection
    # =========================================================================

    def save_inspection(
        self,
        tenant_id: UUID,
        checkout_id: UUID,
        request: InspectionRequest,
        actor_id: UUID,
    ) -> OperationResult[TenantCheckout]:
        """
        Record the move-out inspection.

        A non-empty checklist completes the inspection and turns the summed
        repair costs into the single auto-calculated DAMAGE_REPAIRS
        deduction, replacing the one from any earlier save.  The checkout
        stays INSPECTION_COMPLETE, but the refund is re-settled: above the
        approval threshold it goes (back) to PENDING_APPROVAL, otherwise to
        CALCULATED.  Any earlier approval is void once the totals change.
        """

        def _save() -> TenantCheckout:
            model = self._require_editable(checkout_id, tenant_id)
            if request.overall_condition is not None and not 1 <= request.overall_condition <= 10:
                raise InvalidFieldError("overall_condition", "must be between 1 and 10")
            for section in request.checklist:
                for item in section.items:
                    if item.repair_cost is None:
                        continue
                    if parse_money("repair_cost", item.repair_cost) < ZERO:
                        raise InvalidFieldError(
                            "repair_cost", f"{section.name}/{item.name} cannot be negative"
                        )

            model.inspection_date = request.inspection_date
            model.inspection_time = request.inspection_time
            model.inspection_time_slot = (
                request.inspection_time_slot.value if request.inspection_time_slot else None
            )
            if request.inspector_id is not None:
                model.inspector_id = request.inspector_id
            model.overall_condition = request.overall_condition
            model.inspection_notes = request.inspection_notes
            model.updated_by_id = actor_id

            if model.status == CheckoutStatus.PENDING.value:
                self._advance_checkout(model, "schedule_inspection")

            damage_total = None
            if request.checklist:
                model.inspection_checklist = checklist_to_json(request.checklist)
                self._advance_checkout(model, "complete_inspection")
                refund = self._require_refund(model)
                damage_total = sum_repair_costs(request.checklist)
                current = tuple(d.to_dto() for d in refund.deductions)
                breakdown = self._replace_deductions(
                    refund, merge_damage_deduction(current, damage_total), actor_id
                )
                self._refresh_refund_approval(model, refund, breakdown)

            self._session.flush()
            self._audit_step(
                AuditEventType.INSPECTION_SAVED,
                actor_id,
                model,
                status=model.status,
                damage_total=damage_total,
            )
            if request.send_notification:
                tenant = self._tenants.get_tenant(model.tenant_id)
                if tenant is not None:
                    self._notify(
                        NotificationKind.INSPECTION_SCHEDULED,
                        tenant,
                        f"Move-out inspection scheduled for checkout {model.checkout_number}",
                        model,
                    )
            return model.to_dto()

        return self._execute("save_inspection", _save, checkout_id=str(checkout_id))

    def upload_inspection_photos(
        self,
        tenant_id: UUID,
        checkout_id: UUID,
        photos: Sequence[PhotoUpload],
        photo_type: PhotoType,
        actor_id: UUID,
        section: str | None = None,
    ) -> OperationResult[tuple[InspectionPhoto, ...]]:
        """
        Store inspection photos under
        ``inspections/<tenant>/<checkout>/<photo id>_<file name>``.

        If any upload fails, photos already stored by this call are deleted
        and the error propagates.
        """

        def _upload() -> tuple[InspectionPhoto, ...]:
            model = self._require_editable(checkout_id, tenant_id)
            if not photos:
                raise MissingFieldError("photos", "inspection photo upload")
            if len(photos) > self._config.max_photos_per_upload:
                raise InvalidFieldError(
                    "photos", f"at most {self._config.max_photos_per_upload} per upload"
                )

            base = f"{self._config.photo_base_path}/{model.tenant_id}/{model.id}"
            uploaded: list[InspectionPhoto] = []
            try:
                for upload in photos:
                    photo_id = uuid4()
                    stored = self._storage.upload(
                        f"{base}/{photo_id}_{upload.file_name}",
                        upload.content,
                        upload.content_type,
                    )
                    uploaded.append(
                        InspectionPhoto(
                            id=photo_id,
                            file_name=upload.file_name,
                            file_path=stored,
                            file_size=len(upload.content),
                            photo_type=PhotoType(photo_type),
                            section=section,
                            uploaded_at=self._clock.now(),
                        )
                    )
            except Exception:
                for photo in uploaded:
                    self._effects.run("delete_orphaned_photo", self._storage.delete, photo.file_path)
                raise

            model.inspection_photos = [
                *(model.inspection_photos or []),
                *(photo_to_json(p) for p in uploaded),
            ]
            model.updated_by_id = actor_id
            self._session.flush()
            self._audit_step(
                AuditEventType.INSPECTION_PHOTOS_UPLOADED,
                actor_id,
                model,
                photo_count=len(uploaded),
                photo_type=PhotoType(photo_type).value,
                section=section,
            )
            return tuple(uploaded)

        return self._execute(
            "upload_photos", _upload, checkout_id=str(checkout_id), photo_count=len(photos)
        )

    def delete_inspection_photo(
        self,
        checkout_id: UUID,
        photo_id: UUID,
        actor_id: UUID,
    ) -> OperationResult[TenantCheckout]:
        """Drop the photo reference; the stored file is deleted best effort."""

        def _delete() -> TenantCheckout:
            model = self._require_editable(checkout_id)
            photos = photos_from_json(model.inspection_photos)
            target = next((p for p in photos if p.id == photo_id), None)
            if target is None:
                raise DocumentNotFoundError(checkout_id, f"photo:{photo_id}")

            model.inspection_photos = [photo_to_json(p) for p in photos if p.id != photo_id]
            model.updated_by_id = actor_id
            self._session.flush()
            self._effects.run("delete_photo_file", self._storage.delete, target.file_path)
            self._audit_step(
                AuditEventType.INSPECTION_PHOTO_DELETED,
                actor_id,
                model,
                photo_id=photo_id,
                file_path=target.file_path,
            )
            return model.to_dto()

        return self._execute(
            "delete_photo", _delete, checkout_id=str(checkout_id), photo_id=str(photo_id)
        )

    # =========================================================================
    # Deposit
    # =========================================================================

    def save_deposit_calculation(
        self,
        tenant_id: UUID,
        checkout_id: UUID,
        deductions: Sequence[Deduction],
        actor_id: UUID,
        adjustment_reason: str | None = None,
    ) -> OperationResult[TenantCheckout]:
        """
        Replace the whole deduction list and settle the deposit.

        Refunds strictly above the approval threshold move both records to
        PENDING_APPROVAL; otherwise the checkout is DEPOSIT_CALCULATED.
        """

        def _save() -> TenantCheckout:
            model = self._require_editable(checkout_id, tenant_id)
            refund = self._require_refund(model)
            for deduction in deductions:
                self._validate_deduction(deduction)

            breakdown = self._replace_deductions(refund, tuple(deductions), actor_id)
            self._apply_approval_status(model, refund, breakdown)
            if adjustment_reason is not None:
                refund.notes = adjustment_reason
            model.updated_by_id = actor_id
            refund.updated_by_id = actor_id
            self._session.flush()
            self._audit_step(
                AuditEventType.DEPOSIT_CALCULATED,
                actor_id,
                model,
                total_deductions=breakdown.total_deductions,
                net_refund=breakdown.net_refund,
                amount_owed_by_tenant=breakdown.amount_owed_by_tenant,
                requires_approval=breakdown.requires_approval,
            )
            return model.to_dto()

        return self._execute(
            "save_deposit_calculation",
            _save,
            checkout_id=str(checkout_id),
            deduction_count=len(deductions),
        )

    def recalculate_deposit(
        self,
        checkout_id: UUID,
        actor_id: UUID,
    ) -> OperationResult[DepositRefund]:
        """Re-settle the stored deductions (e.g. after the threshold changed)."""

        def _recalculate() -> DepositRefund:
            model = self._require_editable(checkout_id)
            refund = self._require_refund(model)
            breakdown = self._settle(refund, [d.amount for d in refund.deductions])
            self._apply_approval_status(model, refund, breakdown)
            refund.updated_by_id = actor_id
            self._session.flush()
            self._audit_step(
                AuditEventType.DEPOSIT_CALCULATED,
                actor_id,
                model,
                total_deductions=breakdown.total_deductions,
                net_refund=breakdown.net_refund,
                requires_approval=breakdown.requires_approval,
                recalculated=True,
            )
            return refund.to_dto()

        return self._execute("recalculate_deposit", _recalculate, checkout_id=str(checkout_id))

    def approve_refund(
        self,
        checkout_id: UUID,
        actor_id: UUID,
        notes: str | None = None,
    ) -> OperationResult[DepositRefund]:
        """PENDING_APPROVAL -> APPROVED on both the refund and the checkout."""

        def _approve() -> DepositRefund:
            model = self._require_editable(checkout_id)
            refund = self._require_refund(model)
            self._advance_refund(refund, "approve")
            self._advance_checkout(model, "approve_refund")
            refund.approved_by_id = actor_id
            refund.approved_at = self._clock.now()
            if notes:
                refund.notes = _append_note(refund.notes, notes)
            refund.updated_by_id = actor_id
            model.updated_by_id = actor_id
            self._session.flush()
            self._audit_step(
                AuditEventType.REFUND_APPROVED,
                actor_id,
                model,
                net_refund=refund.net_refund,
            )
            return refund.to_dto()

        return self._execute("approve_refund", _approve, checkout_id=str(checkout_id))

    def process_refund(
        self,
        checkout_id: UUID,
        request: RefundRequest,
        actor_id: UUID,
    ) -> OperationResult[DepositRefund]:
        """
        Pay out a CALCULATED or APPROVED refund.

        A CALCULATED refund above the approval threshold is refused with
        REFUND_APPROVAL_REQUIRED, whichever path left it CALCULATED.
        BANK_TRANSFER needs bank name, account holder and a UAE IBAN; CASH
        needs an explicit hand-over acknowledgement.
        """

        def _process() -> DepositRefund:
            model = self._require_editable(checkout_id)
            refund = self._require_refund(model)
            if (
                refund.refund_status == RefundStatus.CALCULATED.value
                and to_money(refund.net_refund) > self._config.approval_threshold
            ):
                raise RefundApprovalRequiredError(
                    model.id, refund.net_refund, self._config.approval_threshold
                )
            self._advance_refund(refund, "process")
            self._advance_checkout(model, "process_refund")
            method = self._validate_payout(request)

            refund.refund_method = method.value
            refund.refund_date = request.refund_date or self._clock.today()
            refund.refund_reference = self._next_number(self._config.refund_reference_prefix)
            refund.bank_name = _clean(request.bank_name)
            refund.account_holder_name = _clean(request.account_holder_name)
            refund.iban = normalize_iban(request.iban) if request.iban else None
            refund.swift_code = _clean(request.swift_code)
            refund.cheque_number = _clean(request.cheque_number)
            refund.cheque_date = request.cheque_date
            refund.transaction_id = request.transaction_id
            if request.notes:
                refund.notes = _append_note(refund.notes, request.notes)
            refund.processed_at = self._clock.now()
            refund.updated_by_id = actor_id
            model.updated_by_id = actor_id
            self._session.flush()
            self._audit_step(
                AuditEventType.REFUND_PROCESSING,
                actor_id,
                model,
                refund_method=method.value,
                refund_reference=refund.refund_reference,
                amount=refund.net_refund,
            )
            return refund.to_dto()

        return self._execute(
            "process_refund",
            _process,
            checkout_id=str(checkout_id),
            refund_method=getattr(request.refund_method, "value", request.refund_method),
        )

    # =========================================================================
    # Completion
    # =========================================================================

    def complete_checkout(
        self,
        tenant_id: UUID,
        checkout_id: UUID,
        request: CompletionRequest,
        actor_id: UUID,
    ) -> OperationResult[CheckoutCompletion]:
        """
        Finalize the move-out.

        Requires ``acknowledge_finalization``.  Terminates the tenant, frees
        the unit and deactivates the tenant's user account; the checkout and
        refund both become COMPLETED.
        """

        def _complete() -> CheckoutCompletion:
            model = self._require_checkout(checkout_id)
            self._check_ownership(model, tenant_id)
            if not request.acknowledge_finalization:
                raise AcknowledgementRequiredError("checkout finalization")
            self._check_editable(model)
            tenant = self._require_tenant(model.tenant_id)
            refund = self._store.get_refund(model.id)

            self._advance_checkout(model, "complete")
            now = self._clock.now()
            model.completed_at = now
            model.completed_by_id = actor_id
            model.actual_move_out_date = request.actual_move_out_date or now.date()
            model.settlement_type = (
                request.settlement_type.value if request.settlement_type else None
            )
            model.settlement_notes = request.settlement_notes
            model.updated_by_id = actor_id
            if refund is not None:
                self._advance_refund(refund, "complete")
                refund.updated_by_id = actor_id
            self._session.flush()

            self._tenants.set_tenant_status(tenant.id, TenantStatus.TERMINATED)
            unit_id = model.unit_id or tenant.unit_id
            if unit_id is not None:
                self._tenants.set_unit_status(unit_id, UnitStatus.AVAILABLE)
            if tenant.user_id is not None:
                self._tenants.deactivate_user(tenant.user_id)

            self._audit_step(
                AuditEventType.CHECKOUT_COMPLETED,
                actor_id,
                model,
                unit_id=unit_id,
                refund_id=refund.id if refund is not None else None,
                message=f"Tenant {tenant.name} checked out",
            )
            self._notify(
                NotificationKind.CHECKOUT_COMPLETED,
                tenant,
                f"Checkout {model.checkout_number} completed",
                model,
            )
            return CheckoutCompletion(
                checkout=model.to_dto(),
                refund=refund.to_dto() if refund is not None else None,
            )

        return self._execute(
            "complete", _complete, checkout_id=str(checkout_id), tenant_id=str(tenant_id)
        )

    def cancel_checkout(
        self,
        checkout_id: UUID,
        actor_id: UUID,
        reason: str | None = None,
    ) -> OperationResult[TenantCheckout]:
        """Abandon an open checkout; its refund goes ON_HOLD."""

        def _cancel() -> TenantCheckout:
            model = self._require_editable(checkout_id)
            refund = self._store.get_refund(model.id)
            self._advance_checkout(model, "cancel")
            if refund is not None and not REFUND_WORKFLOW.is_terminal(refund.refund_status):
                self._advance_refund(refund, "hold")
                refund.updated_by_id = actor_id
            if reason and reason.strip():
                model.settlement_notes = _append_note(
                    model.settlement_notes, f"Cancelled: {reason.strip()}"
                )
            model.updated_by_id = actor_id
            self._session.flush()
            self._audit_step(AuditEventType.CHECKOUT_CANCELLED, actor_id, model, reason=reason)
            return model.to_dto()

        return self._execute("cancel", _cancel, checkout_id=str(checkout_id))

    # =========================================================================
    # Documents
    # =========================================================================

    def attach_document(
        self,
        checkout_id: UUID,
        document_type: str,
        content: bytes,
        actor_id: UUID,
        content_type: str = "application/pdf",
    ) -> OperationResult[str]:
        """Upload a generated document and keep its storage path."""

        def _attach() -> str:
            doc_type = _parse_document_type(document_type)
            model = self._require_checkout(checkout_id)
            refund = None
            if doc_type == DocumentType.REFUND_RECEIPT:
                refund = self._require_refund(model)

            path = self._storage.upload(
                f"{self._config.document_base_path}/{model.tenant_id}/{model.id}/"
                f"{doc_type.value}-{model.checkout_number}.pdf",
                content,
                content_type,
            )
            if refund is not None:
                refund.receipt_path = path
                refund.updated_by_id = actor_id
            else:
                setattr(model, _URL_DOCUMENTS[doc_type], path)
            model.updated_by_id = actor_id
            self._session.flush()
            self._audit_step(
                AuditEventType.CHECKOUT_DOCUMENT_ATTACHED,
                actor_id,
                model,
                document_type=doc_type.value,
                path=path,
            )
            return path

        return self._execute(
            "attach_document", _attach, checkout_id=str(checkout_id), document_type=document_type
        )

    def get_document_url(self, checkout_id: UUID, document_type: str) -> OperationResult[str]:
        """Presigned URL for inspection-report, deposit-statement or final-settlement."""

        def _url() -> str:
            doc_type = _parse_document_type(document_type)
            if doc_type not in _URL_DOCUMENTS:
                raise UnknownDocumentTypeError(document_type)
            model = self._require_checkout(checkout_id)
            path = getattr(model, _URL_DOCUMENTS[doc_type])
            if path is None:
                raise DocumentNotFoundError(checkout_id, doc_type.value)
            return self._storage.presign(path, self._config.presign_expiry_seconds)

        return self._read("get_document_url", _url)

    def get_refund_receipt_url(self, checkout_id: UUID) -> OperationResult[str]:
        def _url() -> str:
            refund = self._store.get_refund(checkout_id)
            if refund is None:
                raise DepositRefundNotFoundError(checkout_id)
            if refund.receipt_path is None:
                raise DocumentNotFoundError(checkout_id, DocumentType.REFUND_RECEIPT.value)
            return self._storage.presign(refund.receipt_path, self._config.presign_expiry_seconds)

        return self._read("get_refund_receipt_url", _url)

    # =========================================================================
    # Queries
    # =========================================================================

    def get_checkout(self, checkout_id: UUID) -> OperationResult[TenantCheckout]:
        return self._read("get_checkout", lambda: self._require_checkout(checkout_id).to_dto())

    def get_checkout_for_tenant(self, tenant_id: UUID) -> OperationResult[TenantCheckout]:
        """The tenant's most recent checkout."""

        def _latest() -> TenantCheckout:
            checkouts = self._store.find_by_tenant(tenant_id)
            if not checkouts:
                raise CheckoutNotFoundError(tenant_id)
            return checkouts[0].to_dto()

        return self._read("get_checkout_for_tenant", _latest)

    def list_checkouts(
        self, criteria: CheckoutFilter | None = None
    ) -> OperationResult[Page[TenantCheckout]]:
        """One page of checkouts matching ``criteria`` (all checkouts when omitted)."""
        criteria = criteria or CheckoutFilter()

        def _list() -> Page[TenantCheckout]:
            self._validate_filter(criteria)
            models, total = self._store.search(criteria)
            return Page(
                items=tuple(m.to_dto() for m in models),
                total=total,
                page=criteria.page,
                size=criteria.size,
            )

        return self._read("list_checkouts", _list)

    def tenant_checkout_summary(self, tenant_id: UUID) -> OperationResult[TenantCheckoutSummary]:
        """Tenant, lease and deposit facts shown before a checkout is initiated."""

        def _summary() -> TenantCheckoutSummary:
            tenant = self._require_tenant(tenant_id)
            active = self._store.find_active_for_tenant(tenant_id)
            days_left = (
                (tenant.lease_end_date - self._clock.today()).days
                if tenant.lease_end_date is not None
                else None
            )
            return TenantCheckoutSummary(
                tenant_id=tenant.id,
                tenant_name=tenant.name,
                email=tenant.email,
                tenant_status=TenantStatus(tenant.status).value,
                security_deposit=to_money(tenant.security_deposit),
                property_id=tenant.property_id,
                unit_id=tenant.unit_id,
                lease_end_date=tenant.lease_end_date,
                days_until_lease_end=days_left,
                has_active_checkout=active is not None,
                active_checkout_id=active.id if active is not None else None,
            )

        return self._read("tenant_checkout_summary", _summary)

    def get_deposit_refund(self, checkout_id: UUID) -> OperationResult[DepositRefund]:
        def _refund() -> DepositRefund:
            refund = self._store.get_refund(checkout_id)
            if refund is None:
                raise DepositRefundNotFoundError(checkout_id)
            return refund.to_dto()

        return self._read("get_deposit_refund", _refund)

    def checkout_counts(self) -> dict[CheckoutStatus, int]:
        """Checkouts per status; statuses with no checkouts count as zero."""
        counts = self._store.counts_by_status()
        return {status: counts.get(status.value, 0) for status in CheckoutStatus}

    def pending_refunds_count(self) -> int:
        """Refunds awaiting approval or approved but not yet paid out."""
        return self._store.count_refunds_with_status(
            (RefundStatus.PENDING_APPROVAL.value, RefundStatus.APPROVED.value)
        )

    def refunds_requiring_approval(self) -> tuple[TenantCheckout, ...]:
        return tuple(
            m.to_dto()
            for m in self._store.find_checkouts_with_refund_status(
                RefundStatus.PENDING_APPROVAL.value
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
            logger.info(f"checkout_{operation}_started", extra=log_fields)
            try:
                value = fn()
            except PropertyKernelError as exc:
                self._session.rollback()
                logger.warning(
                    f"checkout_{operation}_rejected",
                    extra={**log_fields, "error_code": exc.code, "reason": str(exc)},
                )
                return OperationResult.from_error(exc)
            except Exception:
                self._session.rollback()
                raise

            self._session.commit()
            logger.info(f"checkout_{operation}_committed", extra=log_fields)
            return OperationResult.success(value)

    def _read(self, operation: str, fn: Callable[[], T]) -> OperationResult[T]:
        with LogContext.bind():
            try:
                return OperationResult.success(fn())
            except PropertyKernelError as exc:
                logger.debug(
                    f"checkout_{operation}_failed",
                    extra={"error_code": exc.code, "reason": str(exc)},
                )
                return OperationResult.from_error(exc)

    def _require_tenant(self, tenant_id: UUID) -> TenantSnapshot:
        tenant = self._tenants.get_tenant(tenant_id)
        if tenant is None:
            raise TenantNotFoundError(tenant_id)
        return tenant

    def _require_checkout(self, checkout_id: UUID) -> CheckoutModel:
        model = self._store.get(checkout_id)
        if model is None:
            raise CheckoutNotFoundError(checkout_id)
        LogContext.set(entity_id=str(checkout_id), tenant_id=str(model.tenant_id))
        return model

    def _require_editable(self, checkout_id: UUID, tenant_id: UUID | None = None) -> CheckoutModel:
        model = self._require_checkout(checkout_id)
        if tenant_id is not None:
            self._check_ownership(model, tenant_id)
        self._check_editable(model)
        return model

    def _require_refund(self, model: CheckoutModel) -> DepositRefundModel:
        refund = self._store.get_refund(model.id)
        if refund is None:
            raise DepositRefundNotFoundError(model.id)
        return refund

    @staticmethod
    def _check_ownership(model: CheckoutModel, tenant_id: UUID) -> None:
        if model.tenant_id != tenant_id:
            raise CheckoutOwnershipError(model.id, tenant_id)

    @staticmethod
    def _check_editable(model: CheckoutModel) -> None:
        if not model.is_editable:
            raise CheckoutNotEditableError(model.id, model.status)

    @staticmethod
    def _advance_checkout(model: CheckoutModel, action: str) -> None:
        transition = require_transition(CHECKOUT_WORKFLOW, _CHECKOUT, model.id, model.status, action)
        model.status = transition.to_state

    @staticmethod
    def _advance_refund(refund: DepositRefundModel, action: str) -> None:
        transition = require_transition(
            REFUND_WORKFLOW, _REFUND, refund.id, refund.refund_status, action
        )
        refund.refund_status = transition.to_state

    def _settle(self, refund: DepositRefundModel, amounts) -> SettlementBreakdown:
        breakdown = calculate_settlement(
            refund.original_deposit, amounts, self._config.approval_threshold
        )
        refund.total_deductions = breakdown.total_deductions
        refund.net_refund = breakdown.net_refund
        refund.amount_owed_by_tenant = breakdown.amount_owed_by_tenant
        return breakdown

    def _replace_deductions(
        self,
        refund: DepositRefundModel,
        deductions: tuple[Deduction, ...],
        actor_id: UUID,
    ) -> SettlementBreakdown:
        refund.deductions = [
            DeductionModel.from_dto(
                Deduction(
                    type=d.type,
                    description=d.description.strip(),
                    amount=to_money(d.amount),
                    auto_calculated=d.auto_calculated,
                    notes=d.notes,
                    invoice_id=d.invoice_id,
                ),
                position=i,
                created_by_id=actor_id,
            )
            for i, d in enumerate(deductions)
        ]
        return self._settle(refund, [d.amount for d in deductions])

    def _apply_approval_status(
        self,
        model: CheckoutModel,
        refund: DepositRefundModel,
        breakdown: SettlementBreakdown,
    ) -> None:
        self._refresh_refund_approval(model, refund, breakdown)
        self._advance_checkout(
            model,
            "escalate_for_approval" if breakdown.requires_approval else "calculate_deposit",
        )

    def _refresh_refund_approval(
        self,
        model: CheckoutModel,
        refund: DepositRefundModel,
        breakdown: SettlementBreakdown,
    ) -> None:
        """Move the refund to PENDING_APPROVAL or CALCULATED to match ``breakdown``.

        An earlier approval does not carry over to new totals.  Closed and
        on-hold refunds are left alone.
        """
        if refund.refund_status not in _SETTLEABLE_REFUND_STATES:
            return
        if breakdown.requires_approval:
            self._advance_refund(refund, "escalate")
            logger.info(
                "checkout_refund_escalated_for_approval",
                extra={
                    "checkout_id": str(model.id),
                    "net_refund": str(breakdown.net_refund),
                    "approval_threshold": str(self._config.approval_threshold),
                },
            )
        else:
            self._advance_refund(refund, "recalculate")

    @staticmethod
    def _validate_filter(criteria: CheckoutFilter) -> None:
        check_paging(criteria.page, criteria.size)
        if criteria.status is not None:
            try:
                CheckoutStatus(criteria.status)
            except ValueError:
                raise InvalidFieldError(
                    "status", f"unknown checkout status {criteria.status!r}"
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
    def _validate_deduction(deduction: Deduction) -> None:
        if not (deduction.description or "").strip():
            raise MissingFieldError("description", f"{deduction.type} deduction")
        if deduction.amount is None:
            raise MissingFieldError("amount", f"{deduction.type} deduction")
        if parse_money("amount", deduction.amount) < ZERO:
            raise InvalidFieldError("amount", "deductions cannot be negative")

    @staticmethod
    def _validate_payout(request: RefundRequest) -> RefundMethod:
        if request.refund_method is None:
            raise MissingFieldError("refund_method", "refund processing")
        try:
            method = RefundMethod(request.refund_method)
        except ValueError:
            raise InvalidFieldError(
                "refund_method", f"unknown refund method {request.refund_method!r}"
            ) from None

        if method == RefundMethod.BANK_TRANSFER:
            for field_name in ("bank_name", "account_holder_name", "iban"):
                if not _clean(getattr(request, field_name)):
                    raise MissingFieldError(field_name, "bank transfer refund")
            if not is_valid_uae_iban(request.iban):
                raise InvalidIbanError(mask_iban(request.iban))
        elif method == RefundMethod.CASH and not request.cash_acknowledged:
            raise AcknowledgementRequiredError("cash refund hand-over")
        return method

    def _next_number(self, prefix: str) -> str:
        return self._sequences.next_document_number(
            prefix, self._clock.today().year, self._config.number_width
        )

    def _audit_step(
        self,
        event_type: AuditEventType,
        actor_id: UUID | None,
        model: CheckoutModel,
        **details,
    ) -> bool:
        payload = {
            "checkout_number": model.checkout_number,
            "tenant_id": str(model.tenant_id),
            "status": model.status,
            **{
                k: (str(v) if isinstance(v, (UUID, date, Decimal)) else v)
                for k, v in details.items()
            },
        }
        return self._effects.run(
            "audit", self._audit.record, event_type.value, actor_id, _CHECKOUT, model.id, payload
        )

    def _notify(
        self,
        kind: NotificationKind,
        tenant: TenantSnapshot,
        subject: str,
        model: CheckoutModel,
    ) -> bool:
        notification = Notification(
            kind=kind,
            recipient_id=tenant.id,
            recipient_email=tenant.email,
            subject=subject,
            context={
                "tenant_name": tenant.name,
                "checkout_number": model.checkout_number,
                "expected_move_out_date": model.expected_move_out_date.isoformat(),
                "inspection_date": (
                    model.inspection_date.isoformat() if model.inspection_date else None
                ),
            },
        )
        return self._effects.run(f"notify_{kind.value.lower()}", self._notifier.notify, notification)


def _parse_document_type(document_type: str) -> DocumentType:
    try:
        return DocumentType(document_type)
    except ValueError:
        raise UnknownDocumentTypeError(document_type) from None


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def _append_note(existing: str | None, note: str) -> str:
    return f"{existing}\n{note}" if existing else note
