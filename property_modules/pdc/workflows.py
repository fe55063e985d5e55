"""
Post-Dated Cheque Workflow.

State machine for the cheque clearance lifecycle.
"""

from property_kernel.domain.workflow import Guard, Transition, Workflow
from property_kernel.logging_config import get_logger
from property_modules.pdc.models import PDCStatus

logger = get_logger("modules.pdc.workflows")


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

WITHIN_DUE_WINDOW = Guard(
    name="within_due_window",
    description="Cheque date is between today and today + due window",
)

BOUNCE_REASON_GIVEN = Guard(
    name="bounce_reason_given",
    description="A non-blank bounce reason was supplied",
)

REPLACEMENT_NUMBER_UNIQUE = Guard(
    name="replacement_number_unique",
    description="Replacement cheque number is unused for the tenant",
)


_R = PDCStatus.RECEIVED.value
_D = PDCStatus.DUE.value
_DEP = PDCStatus.DEPOSITED.value

PDC_WORKFLOW = Workflow(
    name="pdc_lifecycle",
    description="Post-dated cheque clearance lifecycle",
    initial_state=_R,
    states=tuple(s.value for s in PDCStatus),
    transitions=(
        Transition(_R, _D, action="mark_due", guard=WITHIN_DUE_WINDOW),
        Transition(_R, _DEP, action="deposit"),
        Transition(_D, _DEP, action="deposit"),
        Transition(_DEP, PDCStatus.CLEARED.value, action="clear"),
        Transition(_DEP, PDCStatus.BOUNCED.value, action="bounce", guard=BOUNCE_REASON_GIVEN),
        Transition(
            PDCStatus.BOUNCED.value,
            PDCStatus.REPLACED.value,
            action="replace",
            guard=REPLACEMENT_NUMBER_UNIQUE,
        ),
        Transition(_R, PDCStatus.WITHDRAWN.value, action="withdraw"),
        Transition(_D, PDCStatus.WITHDRAWN.value, action="withdraw"),
        Transition(_R, PDCStatus.CANCELLED.value, action="cancel"),
        Transition(_D, PDCStatus.CANCELLED.value, action="cancel"),
    ),
    terminal_states=(
        PDCStatus.CLEARED.value,
        PDCStatus.REPLACED.value,
        PDCStatus.WITHDRAWN.value,
        PDCStatus.CANCELLED.value,
    ),
)

logger.info(
    "pdc_workflow_registered",
    extra={
        "workflow_name": PDC_WORKFLOW.name,
        "state_count": len(PDC_WORKFLOW.states),
        "transition_count": len(PDC_WORKFLOW.transitions),
        "initial_state": PDC_WORKFLOW.initial_state,
    },
)
