"""
Typed exception hierarchy for the property back office.

Every error carries a class-level ``code`` (machine-readable, API-safe) and
keeps its context as attributes instead of baking it into the message.
Services never let these escape: they are caught at the service boundary and
turned into an ``OperationResult`` whose status is derived from the category
below.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PropertyKernelError (base)
    |
    +-- EntityNotFoundError                      -> NOT_FOUND
    |   +-- TenantNotFoundError
    |   +-- InvoiceNotFoundError
    |   +-- ChequeNotFoundError
    |   +-- CheckoutNotFoundError
    |   +-- DepositRefundNotFoundError
    |   +-- DocumentNotFoundError
    |
    +-- ValidationError                          -> VALIDATION_FAILED
    |   +-- InvalidTransitionError
    |   +-- OutsideDueWindowError
    |   +-- CheckoutNotEditableError
    |   +-- BulkLimitExceededError
    |   +-- EmptyBatchError
    |   +-- MissingFieldError
    |   +-- InvalidFieldError
    |   +-- InvalidIbanError
    |   +-- AcknowledgementRequiredError
    |   +-- RefundApprovalRequiredError
    |   +-- InvalidDateRangeError
    |   +-- TenantNotEligibleError
    |   +-- CheckoutOwnershipError
    |   +-- UnknownDocumentTypeError
    |
    +-- ConflictError                            -> CONFLICT
    |   +-- DuplicateChequeNumberError
    |   +-- ActiveCheckoutExistsError
    |
    +-- SideEffectError                          (logged, never surfaced)
    |
    +-- AuditError
    |   +-- AuditChainBrokenError
    |
    +-- BatchError
        +-- TaskNotRegisteredError

===============================================================================
HANDLING PATTERN
===============================================================================

    try:
        cheque = self._require_cheque(cheque_id)
        ...
    except PropertyKernelError as exc:
        self._session.rollback()
        return OperationResult.from_error(exc)
"""


class PropertyKernelError(Exception):
    """
    Base exception for all back-office domain errors.

    All subclasses must define a ``code`` class attribute.
    """

    code: str = "PROPERTY_KERNEL_ERROR"


# Not-found errors


class EntityNotFoundError(PropertyKernelError):
    """A referenced entity does not exist."""

    code: str = "NOT_FOUND"
    entity_type: str = "Entity"

    def __init__(self, entity_id: str):
        self.entity_id = str(entity_id)
        super().__init__(f"{self.entity_type} not found: {entity_id}")


class TenantNotFoundError(EntityNotFoundError):
    code: str = "TENANT_NOT_FOUND"
    entity_type = "Tenant"


class InvoiceNotFoundError(EntityNotFoundError):
    code: str = "INVOICE_NOT_FOUND"
    entity_type = "Invoice"


class ChequeNotFoundError(EntityNotFoundError):
    code: str = "CHEQUE_NOT_FOUND"
    entity_type = "PDC"


class CheckoutNotFoundError(EntityNotFoundError):
    code: str = "CHECKOUT_NOT_FOUND"
    entity_type = "TenantCheckout"


class DepositRefundNotFoundError(EntityNotFoundError):
    code: str = "DEPOSIT_REFUND_NOT_FOUND"
    entity_type = "DepositRefund"


class DocumentNotFoundError(EntityNotFoundError):
    """A checkout document or photo has not been stored yet."""

    code: str = "DOCUMENT_NOT_FOUND"
    entity_type = "Document"

    def __init__(self, checkout_id: str, document_type: str):
        self.checkout_id = str(checkout_id)
        self.document_type = document_type
        super().__init__(f"{checkout_id}/{document_type}")


# Validation errors


class ValidationError(PropertyKernelError):
    """Base for guard and input violations."""

    code: str = "VALIDATION_FAILED"


class InvalidTransitionError(ValidationError):
    """The entity's current status does not allow the requested action."""

    code: str = "INVALID_TRANSITION"

    def __init__(
        self,
        entity_type: str,
        entity_id: str,
        current_status: str,
        requested_status: str,
        action: str,
    ):
        self.entity_type = entity_type
        self.entity_id = str(entity_id)
        self.current_status = current_status
        self.requested_status = requested_status
        self.action = action
        super().__init__(
            f"Cannot {action} {entity_type} {entity_id}: "
            f"transition {current_status} -> {requested_status} is not allowed"
        )


class OutsideDueWindowError(ValidationError):
    """Cheque date is not inside the window that allows RECEIVED -> DUE."""

    code: str = "OUTSIDE_DUE_WINDOW"

    def __init__(self, pdc_id: str, cheque_date, window_start, window_end):
        self.pdc_id = str(pdc_id)
        self.cheque_date = cheque_date
        self.window_start = window_start
        self.window_end = window_end
        super().__init__(
            f"Cheque {pdc_id} dated {cheque_date} is outside the due window "
            f"{window_start}..{window_end}"
        )


class CheckoutNotEditableError(ValidationError):
    code: str = "CHECKOUT_NOT_EDITABLE"

    def __init__(self, checkout_id: str, status: str):
        self.checkout_id = str(checkout_id)
        self.status = status
        super().__init__(
            f"Checkout {checkout_id} can no longer be modified (status {status})"
        )


class BulkLimitExceededError(ValidationError):
    code: str = "BULK_LIMIT_EXCEEDED"

    def __init__(self, submitted: int, limit: int):
        self.submitted = submitted
        self.limit = limit
        super().__init__(
            f"Bulk request has {submitted} cheques; at most {limit} are allowed"
        )


class EmptyBatchError(ValidationError):
    code: str = "EMPTY_BATCH"

    def __init__(self):
        super().__init__("Bulk request contains no cheques")


class MissingFieldError(ValidationError):
    """A field required in this context was not supplied."""

    code: str = "MISSING_FIELD"

    def __init__(self, field_name: str, context: str):
        self.field_name = field_name
        self.context = context
        super().__init__(f"{field_name} is required for {context}")


class InvalidFieldError(ValidationError):
    code: str = "INVALID_FIELD"

    def __init__(self, field_name: str, reason: str):
        self.field_name = field_name
        self.reason = reason
        super().__init__(f"Invalid {field_name}: {reason}")


class InvalidIbanError(ValidationError):
    """IBAN is not in UAE format (AE + 2 check digits + 19 alphanumerics)."""

    code: str = "INVALID_IBAN"

    def __init__(self, masked_iban: str):
        self.masked_iban = masked_iban
        super().__init__(
            f"Invalid UAE IBAN {masked_iban}: expected AE followed by "
            "2 check digits and 19 alphanumeric characters"
        )


class AcknowledgementRequiredError(ValidationError):
    code: str = "ACKNOWLEDGEMENT_REQUIRED"

    def __init__(self, acknowledgement: str):
        self.acknowledgement = acknowledgement
        super().__init__(f"Explicit acknowledgement required: {acknowledgement}")


class RefundApprovalRequiredError(ValidationError):
    """Net refund is above the approval threshold and has not been approved."""

    code: str = "REFUND_APPROVAL_REQUIRED"

    def __init__(self, checkout_id: str, net_refund, threshold):
        self.checkout_id = str(checkout_id)
        self.net_refund = net_refund
        self.threshold = threshold
        super().__init__(
            f"Refund of {net_refund} for checkout {checkout_id} exceeds the "
            f"approval threshold {threshold} and must be approved before payout"
        )


class InvalidDateRangeError(ValidationError):
    code: str = "INVALID_DATE_RANGE"

    def __init__(self, start_field: str, start, end_field: str, end):
        self.start_field = start_field
        self.start = start
        self.end_field = end_field
        self.end = end
        super().__init__(
            f"{end_field} ({end}) cannot be before {start_field} ({start})"
        )


class TenantNotEligibleError(ValidationError):
    """Tenant status does not allow a checkout to be initiated."""

    code: str = "TENANT_NOT_ELIGIBLE"

    def __init__(self, tenant_id: str, status: str):
        self.tenant_id = str(tenant_id)
        self.status = status
        super().__init__(
            f"Tenant {tenant_id} has status {status}; checkout requires "
            "ACTIVE or EXPIRING_SOON"
        )


class CheckoutOwnershipError(ValidationError):
    code: str = "CHECKOUT_OWNERSHIP_MISMATCH"

    def __init__(self, checkout_id: str, tenant_id: str):
        self.checkout_id = str(checkout_id)
        self.tenant_id = str(tenant_id)
        super().__init__(
            f"Checkout {checkout_id} does not belong to tenant {tenant_id}"
        )


class UnknownDocumentTypeError(ValidationError):
    code: str = "UNKNOWN_DOCUMENT_TYPE"

    def __init__(self, document_type: str):
        self.document_type = document_type
        super().__init__(f"Unknown checkout document type: {document_type}")


# Conflict errors


class ConflictError(PropertyKernelError):
    """The request collides with existing state."""

    code: str = "CONFLICT"


class DuplicateChequeNumberError(ConflictError):
    """
    Cheque number(s) already used for the tenant, or repeated within the
    submitted batch.
    """

    code: str = "DUPLICATE_CHEQUE_NUMBER"

    def __init__(
        self,
        tenant_id: str,
        cheque_numbers: tuple[str, ...],
        within_batch: bool = False,
    ):
        self.tenant_id = str(tenant_id)
        self.cheque_numbers = cheque_numbers
        self.within_batch = within_batch
        where = "in the submitted batch" if within_batch else "for this tenant"
        super().__init__(
            f"Duplicate cheque number(s) {where}: {', '.join(cheque_numbers)}"
        )


class ActiveCheckoutExistsError(ConflictError):
    code: str = "ACTIVE_CHECKOUT_EXISTS"

    def __init__(self, tenant_id: str, checkout_number: str):
        self.tenant_id = str(tenant_id)
        self.checkout_number = checkout_number
        super().__init__(
            f"Tenant {tenant_id} already has an active checkout {checkout_number}"
        )


# Side effects


class SideEffectError(PropertyKernelError):
    """A collaborator call made after a state change failed."""

    code: str = "SIDE_EFFECT_FAILED"

    def __init__(self, effect: str, reason: str):
        self.effect = effect
        self.reason = reason
        super().__init__(f"Side effect {effect} failed: {reason}")


# Audit


class AuditError(PropertyKernelError):
    code: str = "AUDIT_ERROR"


class AuditChainBrokenError(AuditError):
    """Audit hash chain validation failed."""

    code: str = "AUDIT_CHAIN_BROKEN"

    def __init__(self, audit_entry_id: str, expected_hash: str, actual_hash: str):
        self.audit_entry_id = audit_entry_id
        self.expected_hash = expected_hash
        self.actual_hash = actual_hash
        super().__init__(
            f"Audit chain broken at {audit_entry_id}: "
            f"expected {expected_hash}, found {actual_hash}"
        )


# Batch


class BatchError(PropertyKernelError):
    code: str = "BATCH_ERROR"


class TaskNotRegisteredError(BatchError):
    code: str = "TASK_NOT_REGISTERED"

    def __init__(self, task_type: str, available: tuple[str, ...]):
        self.task_type = task_type
        self.available = available
        super().__init__(
            f"No task registered for type '{task_type}'. Available: {list(available)}"
        )
