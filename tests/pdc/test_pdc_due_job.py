"""
Tests for the PDC scheduler operations: due window, RECEIVED -> DUE
transition job and due reminders.

Clock is pinned to 2026-02-01, so the default 7-day window is
2026-02-01..2026-02-08 and reminders go out for cheques dated 2026-02-04.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from property_kernel.exceptions import (
    ChequeNotFoundError,
    InvalidTransitionError,
    OutsideDueWindowError,
)
from property_kernel.logging_config import LogContext
from property_modules.pdc import PDCConfig, PDCDraft, PDCService, PDCStatus
from property_services.collaborators import NotificationKind


@pytest.fixture
def register(pdc_service, tenant, actor_id):
    def _register(number: str, cheque_date: date):
        draft = PDCDraft(
            cheque_number=number,
            bank_name="Dubai Islamic Bank",
            amount=Decimal("4250.00"),
            cheque_date=cheque_date,
        )
        result = pdc_service.create(tenant.id, draft, actor_id)
        assert result.is_success
        return result.value
    return _register


class TestDueWindow:
    def test_window_is_inclusive_week_from_today(self, pdc_service):
        assert pdc_service.due_window() == (date(2026, 2, 1), date(2026, 2, 8))

    def test_window_follows_explicit_date(self, pdc_service):
        assert pdc_service.due_window(date(2026, 5, 30)) == (date(2026, 5, 30), date(2026, 6, 6))

    def test_candidates_are_received_cheques_inside_window(self, pdc_service, register, actor_id):
        in_window = register("500001", date(2026, 2, 5))
        on_edge = register("500002", date(2026, 2, 8))
        register("500003", date(2026, 2, 9))
        register("500004", date(2026, 1, 31))
        deposited = register("500005", date(2026, 2, 3))
        pdc_service.deposit(deposited.id, uuid4(), actor_id)

        candidates = pdc_service.due_candidates()

        assert [p.id for p in candidates] == [in_window.id, on_edge.id]


class TestAdvanceToDue:
    def test_moves_cheque_to_due(self, pdc_service, register, session):
        pdc = register("510001", date(2026, 2, 2))

        result = pdc_service.advance_to_due(pdc.id)
        session.commit()

        assert result.status == PDCStatus.DUE
        assert pdc_service.get(pdc.id).value.status == PDCStatus.DUE

    def test_outside_window_raises(self, pdc_service, register):
        pdc = register("510002", date(2026, 3, 1))

        with pytest.raises(OutsideDueWindowError):
            pdc_service.advance_to_due(pdc.id)

    def test_not_received_raises(self, pdc_service, register, actor_id):
        pdc = register("510003", date(2026, 2, 2))
        pdc_service.cancel(pdc.id, actor_id)

        with pytest.raises(InvalidTransitionError):
            pdc_service.advance_to_due(pdc.id)

    def test_unknown_cheque_raises(self, pdc_service):
        with pytest.raises(ChequeNotFoundError):
            pdc_service.advance_to_due(uuid4())


class TestTransitionJob:
    def test_moves_every_candidate(self, pdc_service, register):
        first = register("520001", date(2026, 2, 1))
        second = register("520002", date(2026, 2, 7))
        later = register("520003", date(2026, 2, 20))

        moved = pdc_service.transition_received_to_due()

        assert moved == 2
        assert pdc_service.get(first.id).value.status == PDCStatus.DUE
        assert pdc_service.get(second.id).value.status == PDCStatus.DUE
        assert pdc_service.get(later.id).value.status == PDCStatus.RECEIVED

    def test_second_run_moves_nothing(self, pdc_service, register):
        register("520004", date(2026, 2, 3))
        pdc_service.transition_received_to_due()

        assert pdc_service.transition_received_to_due() == 0

    def test_larger_window_from_config(
        self, session, invoices, payments, tenants, tenant, clock, actor_id
    ):
        service = PDCService(
            session, invoices, payments, tenants, clock=clock,
            config=PDCConfig(due_window_days=30),
        )
        draft = PDCDraft("520005", "RAKBANK", Decimal("900.00"), date(2026, 2, 25))
        pdc = service.create(tenant.id, draft, actor_id).value

        assert service.transition_received_to_due() == 1
        assert service.get(pdc.id).value.status == PDCStatus.DUE

    def test_job_logs_summary(self, pdc_service, register, captured_logs):
        register("520006", date(2026, 2, 4))

        pdc_service.transition_received_to_due()

        completed = [r for r in captured_logs() if r["message"] == "pdc_due_transition_completed"]
        assert completed[0]["transitioned"] == 1
        assert completed[0]["failed"] == 0

    def test_failing_cheque_is_skipped_and_others_move(
        self, pdc_service, register, audit_trail, captured_logs, monkeypatch
    ):
        first = register("520008", date(2026, 2, 2))
        broken = register("520009", date(2026, 2, 3))
        last = register("520010", date(2026, 2, 5))
        advance = pdc_service.advance_to_due

        def advance_then_fail_for_broken(pdc_id, **kwargs):
            moved = advance(pdc_id, **kwargs)
            if pdc_id == broken.id:
                raise RuntimeError("ledger unavailable")
            return moved

        monkeypatch.setattr(pdc_service, "advance_to_due", advance_then_fail_for_broken)

        moved = pdc_service.transition_received_to_due()

        assert moved == 2
        assert [pdc_service.get(p.id).value.status for p in (first, broken, last)] == [
            PDCStatus.DUE,
            PDCStatus.RECEIVED,
            PDCStatus.DUE,
        ]
        assert [e.event_type for e in audit_trail.trace_for("PDC", broken.id)] == ["PDC_CREATED"]

        records = captured_logs()
        failed = [r for r in records if r["message"] == "pdc_due_transition_item_failed"]
        assert [r["entity_id"] for r in failed] == [str(broken.id)]
        completed = [r for r in records if r["message"] == "pdc_due_transition_completed"]
        assert completed[-1]["failed"] == 1
        assert "entity_id" not in completed[-1]
        assert LogContext.get_all() == {}

    def test_transition_is_audited(self, pdc_service, register, audit_trail):
        pdc = register("520007", date(2026, 2, 4))

        pdc_service.transition_received_to_due()

        events = [e.event_type for e in audit_trail.trace_for("PDC", pdc.id)]
        assert events == ["PDC_CREATED", "PDC_DUE"]


class TestDueReminders:
    def test_reminder_date_uses_lead_days(self, pdc_service):
        assert pdc_service.reminder_date() == date(2026, 2, 4)

    def test_reminder_sent_for_due_cheque_on_date(self, pdc_service, register, notifier, tenant):
        pdc = register("530001", date(2026, 2, 4))
        register("530002", date(2026, 2, 5))
        pdc_service.transition_received_to_due()

        sent = pdc_service.send_due_reminders(pdc_service.reminder_date())

        assert sent == 1
        assert len(notifier.sent) == 1
        notification = notifier.sent[0]
        assert notification.kind == NotificationKind.PDC_DUE_REMINDER
        assert notification.recipient_id == tenant.id
        assert notification.context["cheque_number"] == pdc.cheque_number
        assert notification.context["amount"] == "4250.00"

    def test_received_cheques_get_no_reminder(self, pdc_service, register, notifier):
        register("530003", date(2026, 2, 4))

        assert pdc_service.find_due_for_reminder(date(2026, 2, 4)) == ()
        assert pdc_service.send_due_reminders(date(2026, 2, 4)) == 0
        assert notifier.sent == []

    def test_failing_notifier_is_swallowed(
        self, session, invoices, payments, tenants, tenant, clock, actor_id, failing_notifier
    ):
        service = PDCService(
            session, invoices, payments, tenants, notifier=failing_notifier, clock=clock
        )
        draft = PDCDraft("530004", "CBD", Decimal("1200.00"), date(2026, 2, 4))
        service.create(tenant.id, draft, actor_id)
        service.transition_received_to_due()
        pdc = service.find_due_for_reminder(date(2026, 2, 4))[0]

        assert service.send_due_reminder(pdc) is False
        assert service.get(pdc.id).value.status == PDCStatus.DUE

    def test_missing_tenant_skips_reminder(self, pdc_service, register, tenants, tenant, notifier):
        register("530005", date(2026, 2, 4))
        pdc_service.transition_received_to_due()
        pdc = pdc_service.find_due_for_reminder(date(2026, 2, 4))[0]
        del tenants.tenants[tenant.id]

        assert pdc_service.send_due_reminder(pdc) is False
        assert notifier.sent == []
