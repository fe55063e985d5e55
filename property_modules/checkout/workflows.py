"""
Tenant Checkout Workflows.

Two coupled state machines: the checkout record and its deposit refund.
Every checkout action is available from any editable state (anything but
COMPLETED and CANCELLED); the refund machine carries the real guards for
approval and payout.
"""

from property_kernel.domain.workflow import Guard, Transition, Workflow
from property_kernel.logging_config import get_logger
from property_modules.checkout.models import CheckoutStatus, RefundStatus

logger = get_logger("modules.checkout.workflows")


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

CHECKLIST_PRESENT = Guard(
    name="checklist_present",
    description="Inspection carries a non-empty checklist",
)

ABOVE_APPROVAL_THRESHOLD = Guard(
    name="above_approval_threshold",
    description="Net refund is strictly greater than the approval threshold",
)

PAYOUT_DETAILS_VALID = Guard(
    name="payout_details_valid",
    description="Method-specific refund fields are present (IBAN, cash acknowledgement)",
)

FINALIZATION_ACKNOWLEDGED = Guard(
    name="finalization_acknowledged",
    description="Caller explicitly acknowledged checkout finalization",
)


# -----------------------------------------------------------------------------
# Checkout
# -----------------------------------------------------------------------------

CLOSED_CHECKOUT_STATES = (CheckoutStatus.COMPLETED.value, CheckoutStatus.CANCELLED.value)
EDITABLE_CHECKOUT_STATES = tuple(
    s.value for s in CheckoutStatus if s.value not in CLOSED_CHECKOUT_STATES
)


def _from_editable(to_state: CheckoutStatus, action: str, **kwargs) -> tuple[Transition, ...]:
    return tuple(
        Transition(state, to_state.value, action=action, **kwargs)
        for state in EDITABLE_CHECKOUT_STATES
    )


CHECKOUT_WORKFLOW = Workflow(
    name="tenant_checkout",
    description="Tenant move-out from notice to unit hand-back",
    initial_state=CheckoutStatus.PENDING.value,
    states=tuple(s.value for s in CheckoutStatus),
    transitions=(
        Transition(
            CheckoutStatus.PENDING.value,
            CheckoutStatus.INSPECTION_SCHEDULED.value,
            action="schedule_inspection",
        ),
        *_from_editable(CheckoutStatus.INSPECTION_COMPLETE, "complete_inspection", guard=CHECKLIST_PRESENT),
        *_from_editable(CheckoutStatus.DEPOSIT_CALCULATED, "calculate_deposit"),
        *_from_editable(
            CheckoutStatus.PENDING_APPROVAL,
            "escalate_for_approval",
            guard=ABOVE_APPROVAL_THRESHOLD,
            requires_approval=True,
        ),
        *_from_editable(CheckoutStatus.APPROVED, "approve_refund"),
        *_from_editable(CheckoutStatus.REFUND_PROCESSING, "process_refund", guard=PAYOUT_DETAILS_VALID),
        *_from_editable(CheckoutStatus.COMPLETED, "complete", guard=FINALIZATION_ACKNOWLEDGED),
        *_from_editable(CheckoutStatus.CANCELLED, "cancel"),
    ),
    terminal_states=CLOSED_CHECKOUT_STATES,
)


# -----------------------------------------------------------------------------
# Deposit refund
# -----------------------------------------------------------------------------

_CALC = RefundStatus.CALCULATED.value
_PEND = RefundStatus.PENDING_APPROVAL.value
_APPR = RefundStatus.APPROVED.value
_PROC = RefundStatus.PROCESSING.value
_HOLD = RefundStatus.ON_HOLD.value
_OPEN_REFUND_STATES = (_CALC, _PEND, _APPR, _PROC)

REFUND_WORKFLOW = Workflow(
    name="deposit_refund",
    description="Security deposit settlement and payout",
    initial_state=_CALC,
    states=tuple(s.value for s in RefundStatus),
    transitions=(
        *(Transition(s, _CALC, action="recalculate") for s in _OPEN_REFUND_STATES),
        *(
            Transition(s, _PEND, action="escalate", guard=ABOVE_APPROVAL_THRESHOLD)
            for s in _OPEN_REFUND_STATES
        ),
        Transition(_PEND, _APPR, action="approve", requires_approval=True),
        Transition(_CALC, _PROC, action="process", guard=PAYOUT_DETAILS_VALID),
        Transition(_APPR, _PROC, action="process", guard=PAYOUT_DETAILS_VALID),
        *(
            Transition(s, RefundStatus.COMPLETED.value, action="complete")
            for s in (*_OPEN_REFUND_STATES, _HOLD)
        ),
        *(Transition(s, _HOLD, action="hold") for s in _OPEN_REFUND_STATES),
    ),
    terminal_states=(RefundStatus.COMPLETED.value,),
)


for _workflow in (CHECKOUT_WORKFLOW, REFUND_WORKFLOW):
    logger.info(
        "checkout_workflow_registered",
        extra={
            "workflow_name": _workflow.name,
            "state_count": len(_workflow.states),
            "transition_count": len(_workflow.transitions),
            "initial_state": _workflow.initial_state,
        },
    )
