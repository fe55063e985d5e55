"""
Tests for the PDC and checkout state machine definitions and the shared
Workflow value objects.
"""

import pytest

from property_kernel.domain.workflow import Guard, Transition, Workflow, require_transition
from property_kernel.exceptions import InvalidTransitionError
from property_modules.checkout import workflows as checkout_workflows
from property_modules.checkout.models import CheckoutStatus, RefundStatus
from property_modules.checkout.workflows import CHECKOUT_WORKFLOW, REFUND_WORKFLOW
from property_modules.pdc import PDC_WORKFLOW, PDCStatus


class TestPDCWorkflow:
    def test_initial_state_is_received(self):
        assert PDC_WORKFLOW.initial_state == PDCStatus.RECEIVED.value

    @pytest.mark.parametrize(
        "action, sources",
        [
            ("mark_due", {"RECEIVED"}),
            ("deposit", {"RECEIVED", "DUE"}),
            ("clear", {"DEPOSITED"}),
            ("bounce", {"DEPOSITED"}),
            ("replace", {"BOUNCED"}),
            ("withdraw", {"RECEIVED", "DUE"}),
            ("cancel", {"RECEIVED", "DUE"}),
        ],
    )
    def test_action_sources(self, action, sources):
        assert PDC_WORKFLOW.sources_for(action) == frozenset(sources)

    @pytest.mark.parametrize("state", ["CLEARED", "REPLACED", "WITHDRAWN", "CANCELLED"])
    def test_terminal_states_have_no_exits(self, state):
        assert PDC_WORKFLOW.is_terminal(state)
        assert not [t for t in PDC_WORKFLOW.transitions if t.from_state == state]

    def test_bounced_is_not_terminal(self):
        assert not PDC_WORKFLOW.is_terminal(PDCStatus.BOUNCED.value)

    def test_require_transition_names_both_statuses(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            require_transition(PDC_WORKFLOW, "PDC", "abc", "CLEARED", "bounce")

        assert exc_info.value.current_status == "CLEARED"
        assert exc_info.value.requested_status == "BOUNCED"
        assert exc_info.value.code == "INVALID_TRANSITION"


class TestCheckoutWorkflows:
    @pytest.mark.parametrize("state", ["COMPLETED", "CANCELLED"])
    def test_closed_checkout_accepts_nothing(self, state):
        assert CHECKOUT_WORKFLOW.is_terminal(state)
        assert CHECKOUT_WORKFLOW.find_transition(state, "cancel") is None

    def test_cancel_allowed_from_every_open_state(self):
        open_states = {s.value for s in CheckoutStatus} - {"COMPLETED", "CANCELLED"}
        assert CHECKOUT_WORKFLOW.sources_for("cancel") == frozenset(open_states)

    def test_inspection_scheduled_only_from_pending(self):
        assert CHECKOUT_WORKFLOW.sources_for("schedule_inspection") == {"PENDING"}

    def test_refund_approval_only_from_pending_approval(self):
        assert REFUND_WORKFLOW.sources_for("approve") == {RefundStatus.PENDING_APPROVAL.value}

    def test_refund_processing_needs_calculated_or_approved(self):
        assert REFUND_WORKFLOW.sources_for("process") == {"CALCULATED", "APPROVED"}

    def test_completed_refund_is_terminal(self):
        assert REFUND_WORKFLOW.is_terminal(RefundStatus.COMPLETED.value)

    def test_every_declared_guard_gates_a_transition(self):
        declared = {
            value for value in vars(checkout_workflows).values() if isinstance(value, Guard)
        }
        attached = {
            t.guard
            for workflow in (CHECKOUT_WORKFLOW, REFUND_WORKFLOW)
            for t in workflow.transitions
            if t.guard is not None
        }

        assert declared
        assert declared == attached


class TestWorkflowDefinition:
    def test_undeclared_state_rejected(self):
        with pytest.raises(ValueError, match="undeclared state"):
            Workflow(
                name="broken",
                description="",
                initial_state="A",
                states=("A",),
                transitions=(Transition("A", "B", action="go"),),
            )

    def test_exit_from_terminal_rejected(self):
        with pytest.raises(ValueError, match="terminal state"):
            Workflow(
                name="broken",
                description="",
                initial_state="A",
                states=("A", "B"),
                transitions=(Transition("B", "A", action="back"),),
                terminal_states=("B",),
            )

    def test_unknown_action_has_no_target(self):
        with pytest.raises(KeyError):
            PDC_WORKFLOW.target_of("teleport")
