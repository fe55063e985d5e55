"""
Tests for deposit settlement, approval, refund payout, completion and
cancellation through CheckoutService.

The default tenant holds a 10,000.00 deposit and the approval threshold is
5,000.00, so deductions below 5,000.00 push the refund into approval.
"""

from datetime import date
from decimal import Decimal

import pytest

from property_kernel.domain.results import OperationStatus
from property_modules.checkout import (
    CheckoutConfig,
    CheckoutService,
    CheckoutStatus,
    CompletionRequest,
    Deduction,
    DeductionType,
    InspectionRequest,
    RefundMethod,
    RefundRequest,
    RefundStatus,
    SettlementType,
)
from property_services.collaborators import NotificationKind, TenantStatus, UnitStatus

VALID_IBAN = "ae07 0331 2345 6789 0123 456"


def _deductions(*amounts: str) -> list[Deduction]:
    return [
        Deduction(type=DeductionType.CLEANING_FEE, description=f"Line {i}", amount=Decimal(a))
        for i, a in enumerate(amounts)
    ]


def _bank_transfer(**overrides) -> RefundRequest:
    fields = {
        "refund_method": RefundMethod.BANK_TRANSFER,
        "bank_name": "Emirates NBD",
        "account_holder_name": "Layla Haddad",
        "iban": VALID_IBAN,
    }
    fields.update(overrides)
    return RefundRequest(**fields)


@pytest.fixture
def settle(checkout_service, checkout, tenant, actor_id):
    def _settle(*amounts: str):
        result = checkout_service.save_deposit_calculation(
            tenant.id, checkout.id, _deductions(*amounts), actor_id
        )
        assert result.is_success, result.message
        return result.value
    return _settle


# =============================================================================
# Settlement
# =============================================================================


class TestSaveDepositCalculation:
    def test_small_refund_is_calculated(self, checkout_service, checkout, settle):
        result = settle("4000.00", "2000.00")

        assert result.status == CheckoutStatus.DEPOSIT_CALCULATED
        refund = checkout_service.get_deposit_refund(checkout.id).value
        assert refund.refund_status == RefundStatus.CALCULATED
        assert refund.total_deductions == Decimal("6000.00")
        assert refund.net_refund == Decimal("4000.00")
        assert refund.amount_owed_by_tenant is None

    def test_large_refund_needs_approval(self, checkout_service, checkout, settle):
        result = settle("1500.00")

        assert result.status == CheckoutStatus.PENDING_APPROVAL
        refund = checkout_service.get_deposit_refund(checkout.id).value
        assert refund.refund_status == RefundStatus.PENDING_APPROVAL
        assert [c.id for c in checkout_service.refunds_requiring_approval()] == [checkout.id]
        assert checkout_service.pending_refunds_count() == 1

    def test_refund_equal_to_threshold_needs_no_approval(self, checkout_service, checkout, settle):
        assert settle("5000.00").status == CheckoutStatus.DEPOSIT_CALCULATED

    def test_deductions_over_deposit_are_owed_by_tenant(self, checkout_service, checkout, settle):
        settle("9000.00", "3250.75")

        refund = checkout_service.get_deposit_refund(checkout.id).value
        assert refund.net_refund == Decimal("0.00")
        assert refund.amount_owed_by_tenant == Decimal("2250.75")

    def test_recalculating_can_drop_out_of_approval(self, checkout_service, checkout, settle):
        settle("100.00")

        assert settle("7000.00").status == CheckoutStatus.DEPOSIT_CALCULATED
        assert checkout_service.pending_refunds_count() == 0

    def test_list_is_replaced_not_appended(self, checkout_service, checkout, settle):
        settle("6000.00", "100.00")
        settle("6500.00")

        refund = checkout_service.get_deposit_refund(checkout.id).value
        assert [d.amount for d in refund.deductions] == [Decimal("6500.00")]

    def test_adjustment_reason_recorded(self, checkout_service, checkout, tenant, actor_id):
        checkout_service.save_deposit_calculation(
            tenant.id, checkout.id, _deductions("6000.00"), actor_id,
            adjustment_reason="Waived late fee",
        )

        assert checkout_service.get_deposit_refund(checkout.id).value.notes == "Waived late fee"

    def test_negative_deduction_rejected(self, checkout_service, checkout, tenant, actor_id):
        result = checkout_service.save_deposit_calculation(
            tenant.id, checkout.id, _deductions("-1.00"), actor_id
        )

        assert result.error_code == "INVALID_FIELD"

    @pytest.mark.parametrize("amount", [250.0, "two hundred", "NaN"])
    def test_unusable_amount_rejected(self, checkout_service, checkout, tenant, actor_id, amount):
        deduction = Deduction(type=DeductionType.KEY_REPLACEMENT, description="Keys", amount=amount)

        result = checkout_service.save_deposit_calculation(tenant.id, checkout.id, [deduction], actor_id)

        assert result.status == OperationStatus.VALIDATION_FAILED
        assert result.error_code == "INVALID_FIELD"
        assert checkout_service.get_deposit_refund(checkout.id).value.deductions == ()

    def test_blank_description_rejected(self, checkout_service, checkout, tenant, actor_id):
        deduction = Deduction(type=DeductionType.OTHER, description=" ", amount=Decimal("10"))

        result = checkout_service.save_deposit_calculation(tenant.id, checkout.id, [deduction], actor_id)

        assert result.error_code == "MISSING_FIELD"

    def test_recalculate_after_threshold_change(
        self, session, tenants, storage, notifier, clock, checkout, settle, actor_id
    ):
        settle("6000.00")
        stricter = CheckoutService(
            session, tenants, storage, notifier=notifier, clock=clock,
            config=CheckoutConfig(approval_threshold=Decimal("1000.00")),
        )

        refund = stricter.recalculate_deposit(checkout.id, actor_id).value

        assert refund.refund_status == RefundStatus.PENDING_APPROVAL
        assert stricter.get_checkout(checkout.id).value.status == CheckoutStatus.PENDING_APPROVAL


# =============================================================================
# Approval and payout
# =============================================================================


class TestApproveRefund:
    def test_approve_pending_refund(self, checkout_service, checkout, settle, actor_id):
        settle("1000.00")

        refund = checkout_service.approve_refund(checkout.id, actor_id, notes="Checked by FM").value

        assert refund.refund_status == RefundStatus.APPROVED
        assert refund.approved_by == actor_id
        assert refund.notes == "Checked by FM"
        assert checkout_service.get_checkout(checkout.id).value.status == CheckoutStatus.APPROVED

    def test_approve_without_escalation_is_invalid(self, checkout_service, checkout, settle, actor_id):
        settle("8000.00")

        result = checkout_service.approve_refund(checkout.id, actor_id)

        assert result.error_code == "INVALID_TRANSITION"
        assert "CALCULATED" in result.message


class TestProcessRefund:
    def test_bank_transfer_payout(self, checkout_service, checkout, settle, actor_id, clock):
        settle("6000.00")

        refund = checkout_service.process_refund(checkout.id, _bank_transfer(), actor_id).value

        assert refund.refund_status == RefundStatus.PROCESSING
        assert refund.refund_method == RefundMethod.BANK_TRANSFER
        assert refund.refund_reference == "REF-2026-0001"
        assert refund.refund_date == clock.today()
        assert refund.masked_iban == "AE" + "*" * 17 + "3456"
        assert checkout_service.get_checkout(checkout.id).value.status == CheckoutStatus.REFUND_PROCESSING

    def test_approved_refund_can_be_paid(self, checkout_service, checkout, settle, actor_id):
        settle("10.00")
        checkout_service.approve_refund(checkout.id, actor_id)

        result = checkout_service.process_refund(
            checkout.id, RefundRequest(RefundMethod.CHEQUE, cheque_number="000981"), actor_id
        )

        assert result.value.refund_status == RefundStatus.PROCESSING

    def test_unapproved_refund_cannot_be_paid(self, checkout_service, checkout, settle, actor_id):
        settle("10.00")

        result = checkout_service.process_refund(checkout.id, _bank_transfer(), actor_id)

        assert result.error_code == "INVALID_TRANSITION"

    def test_full_deposit_cannot_be_paid_straight_after_initiation(
        self, checkout_service, checkout, actor_id
    ):
        result = checkout_service.process_refund(checkout.id, _bank_transfer(), actor_id)

        assert result.status == OperationStatus.VALIDATION_FAILED
        assert result.error_code == "REFUND_APPROVAL_REQUIRED"
        assert "10000.00" in result.message
        refund = checkout_service.get_deposit_refund(checkout.id).value
        assert refund.refund_status == RefundStatus.CALCULATED
        assert refund.refund_reference is None
        assert checkout_service.get_checkout(checkout.id).value.status == CheckoutStatus.PENDING

    def test_reinspection_that_raises_the_refund_needs_approval_again(
        self, checkout_service, checkout, tenant, actor_id, checklist_of
    ):
        checkout_service.save_inspection(
            tenant.id, checkout.id, InspectionRequest(checklist=checklist_of("6000.00")), actor_id
        )
        current = checkout_service.get_deposit_refund(checkout.id).value.deductions
        checkout_service.save_deposit_calculation(tenant.id, checkout.id, list(current), actor_id)
        assert checkout_service.get_deposit_refund(checkout.id).value.net_refund == Decimal("4000.00")

        inspected = checkout_service.save_inspection(
            tenant.id, checkout.id, InspectionRequest(checklist=checklist_of()), actor_id
        )
        paid = checkout_service.process_refund(checkout.id, _bank_transfer(), actor_id)

        assert inspected.value.status == CheckoutStatus.INSPECTION_COMPLETE
        assert paid.error_code == "INVALID_TRANSITION"
        refund = checkout_service.get_deposit_refund(checkout.id).value
        assert refund.net_refund == Decimal("10000.00")
        assert refund.refund_status == RefundStatus.PENDING_APPROVAL
        assert refund.refund_reference is None

    def test_reinspection_voids_an_earlier_approval(
        self, checkout_service, checkout, settle, tenant, actor_id, checklist_of
    ):
        settle("1000.00")
        checkout_service.approve_refund(checkout.id, actor_id)

        checkout_service.save_inspection(
            tenant.id, checkout.id, InspectionRequest(checklist=checklist_of("250.00")), actor_id
        )

        refund = checkout_service.get_deposit_refund(checkout.id).value
        assert refund.net_refund == Decimal("8750.00")
        assert refund.refund_status == RefundStatus.PENDING_APPROVAL

    def test_reinspection_below_threshold_can_be_paid(
        self, checkout_service, checkout, tenant, actor_id, checklist_of
    ):
        checkout_service.save_inspection(
            tenant.id, checkout.id, InspectionRequest(checklist=checklist_of("5200.00")), actor_id
        )

        result = checkout_service.process_refund(checkout.id, _bank_transfer(), actor_id)

        assert result.is_success, result.message
        assert result.value.net_refund == Decimal("4800.00")
        assert result.value.refund_status == RefundStatus.PROCESSING

    def test_lowered_threshold_blocks_unapproved_payout(
        self, session, tenants, storage, notifier, clock, checkout, settle, actor_id
    ):
        settle("6000.00")
        stricter = CheckoutService(
            session, tenants, storage, notifier=notifier, clock=clock,
            config=CheckoutConfig(approval_threshold=Decimal("1000.00")),
        )

        result = stricter.process_refund(checkout.id, _bank_transfer(), actor_id)

        assert result.error_code == "REFUND_APPROVAL_REQUIRED"

    def test_invalid_iban_rolls_back(self, checkout_service, checkout, settle, actor_id):
        settle("6000.00")

        result = checkout_service.process_refund(
            checkout.id, _bank_transfer(iban="GB29NWBK60161331926819"), actor_id
        )

        assert result.error_code == "INVALID_IBAN"
        assert "GB29NWBK" not in result.message
        refund = checkout_service.get_deposit_refund(checkout.id).value
        assert refund.refund_status == RefundStatus.CALCULATED
        assert refund.refund_reference is None

    @pytest.mark.parametrize("missing", ["bank_name", "account_holder_name", "iban"])
    def test_bank_transfer_fields_required(self, checkout_service, checkout, settle, actor_id, missing):
        settle("6000.00")

        result = checkout_service.process_refund(
            checkout.id, _bank_transfer(**{missing: None}), actor_id
        )

        assert result.error_code == "MISSING_FIELD"
        assert missing in result.message

    def test_cash_needs_acknowledgement(self, checkout_service, checkout, settle, actor_id):
        settle("6000.00")

        refused = checkout_service.process_refund(checkout.id, RefundRequest(RefundMethod.CASH), actor_id)
        accepted = checkout_service.process_refund(
            checkout.id, RefundRequest(RefundMethod.CASH, cash_acknowledged=True), actor_id
        )

        assert refused.error_code == "ACKNOWLEDGEMENT_REQUIRED"
        assert accepted.is_success
        assert accepted.value.refund_reference == "REF-2026-0001"


# =============================================================================
# Completion and cancellation
# =============================================================================


class TestCompleteCheckout:
    def test_completion_hands_back_the_unit(
        self, checkout_service, checkout, settle, tenant, tenants, actor_id, notifier, clock
    ):
        settle("6000.00")
        checkout_service.process_refund(checkout.id, _bank_transfer(), actor_id)

        result = checkout_service.complete_checkout(
            tenant.id, checkout.id,
            CompletionRequest(acknowledge_finalization=True, settlement_type=SettlementType.FULL),
            actor_id,
        )

        assert result.is_success
        completion = result.value
        assert completion.checkout.status == CheckoutStatus.COMPLETED
        assert completion.checkout.completed_by == actor_id
        assert completion.checkout.actual_move_out_date == clock.today()
        assert completion.checkout.settlement_type == SettlementType.FULL
        assert completion.refund.refund_status == RefundStatus.COMPLETED
        assert tenants.tenant_status_changes == [(tenant.id, TenantStatus.TERMINATED)]
        assert tenants.unit_status_changes == [(tenant.unit_id, UnitStatus.AVAILABLE)]
        assert tenants.deactivated_users == [tenant.user_id]
        assert notifier.sent[-1].kind == NotificationKind.CHECKOUT_COMPLETED

    def test_acknowledgement_required(self, checkout_service, checkout, tenant, tenants, actor_id):
        result = checkout_service.complete_checkout(
            tenant.id, checkout.id, CompletionRequest(), actor_id
        )

        assert result.error_code == "ACKNOWLEDGEMENT_REQUIRED"
        assert tenants.tenant_status_changes == []

    def test_completed_checkout_is_read_only(self, checkout_service, checkout, tenant, actor_id):
        ack = CompletionRequest(acknowledge_finalization=True, actual_move_out_date=date(2026, 2, 28))
        checkout_service.complete_checkout(tenant.id, checkout.id, ack, actor_id)

        again = checkout_service.complete_checkout(tenant.id, checkout.id, ack, actor_id)
        edit = checkout_service.save_deposit_calculation(
            tenant.id, checkout.id, _deductions("1.00"), actor_id
        )

        assert again.error_code == "CHECKOUT_NOT_EDITABLE"
        assert edit.error_code == "CHECKOUT_NOT_EDITABLE"
        assert checkout_service.get_checkout(checkout.id).value.actual_move_out_date == date(2026, 2, 28)

    def test_directory_failure_undoes_completion(self, checkout_service, checkout, tenant, tenants, actor_id):
        tenants.fail_on_terminate = True

        with pytest.raises(RuntimeError):
            checkout_service.complete_checkout(
                tenant.id, checkout.id, CompletionRequest(acknowledge_finalization=True), actor_id
            )

        assert checkout_service.get_checkout(checkout.id).value.status == CheckoutStatus.PENDING
        assert checkout_service.get_deposit_refund(checkout.id).value.refund_status == RefundStatus.CALCULATED

    def test_wrong_tenant(self, checkout_service, checkout, tenants, actor_id):
        other = tenants.add(name="Omar Saeed")

        result = checkout_service.complete_checkout(
            other.id, checkout.id, CompletionRequest(acknowledge_finalization=True), actor_id
        )

        assert result.status == OperationStatus.VALIDATION_FAILED
        assert result.error_code == "CHECKOUT_OWNERSHIP_MISMATCH"


class TestCancelCheckout:
    def test_cancel_puts_refund_on_hold(self, checkout_service, checkout, actor_id):
        result = checkout_service.cancel_checkout(checkout.id, actor_id, reason="Tenant renewed")

        assert result.value.status == CheckoutStatus.CANCELLED
        assert result.value.settlement_notes == "Cancelled: Tenant renewed"
        assert checkout_service.get_deposit_refund(checkout.id).value.refund_status == RefundStatus.ON_HOLD

    def test_cancel_twice(self, checkout_service, checkout, actor_id):
        checkout_service.cancel_checkout(checkout.id, actor_id)

        assert checkout_service.cancel_checkout(checkout.id, actor_id).error_code == "CHECKOUT_NOT_EDITABLE"
