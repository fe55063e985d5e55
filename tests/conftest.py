"""
Pytest fixtures for the property back-office test suite.

Provides:
- In-memory SQLite sessions with the full schema (one database per test)
- A deterministic clock pinned to 2026-02-01 12:00 UTC
- In-memory fakes for every collaborator the services call
- Structured-log capture
"""

import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO
from uuid import UUID, uuid4

import pytest

from property_kernel.db.engine import (
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from property_kernel.domain.clock import DeterministicClock
from property_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from property_kernel.services.audit_trail import AuditTrail
from property_modules._orm_registry import create_all_tables
from property_modules.checkout import CheckoutConfig, CheckoutService
from property_modules.pdc import PDCConfig, PDCService
from property_services.collaborators import (
    Notification,
    TenantSnapshot,
    TenantStatus,
    UnitStatus,
)
from property_services.notifications import LoggingNotifier

TEST_ACTOR_ID = uuid4()
FIXED_NOW = datetime(2026, 2, 1, 12, 0, 0, tzinfo=timezone.utc)
TODAY = date(2026, 2, 1)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture property_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, pdc_service):
            pdc_service.create(...)
            logs = captured_logs()
            assert any(r["message"] == "pdc_create_committed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("property_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def session():
    """Fresh in-memory database with every table created."""
    init_engine_from_url("sqlite://")
    create_all_tables()
    db = get_session()
    try:
        yield db
    finally:
        db.close()
        drop_tables()
        reset_engine()


@pytest.fixture
def clock():
    return DeterministicClock(FIXED_NOW)


@pytest.fixture
def actor_id() -> UUID:
    return TEST_ACTOR_ID


@pytest.fixture
def audit_trail(session, clock):
    return AuditTrail(session, clock)


# =============================================================================
# Collaborator fakes
# =============================================================================


class FakeInvoiceDirectory:
    def __init__(self, invoice_ids=()):
        self.invoice_ids = set(invoice_ids)

    def exists(self, invoice_id: UUID) -> bool:
        return invoice_id in self.invoice_ids


class RecordingPaymentRecorder:
    """Keeps every payment; raises instead when ``fail`` is set."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.payments: list[dict] = []

    def record_payment(self, invoice_id, amount, method, reference, payment_date,
                       notes=None, actor_id=None):
        if self.fail:
            raise RuntimeError("payment gateway unavailable")
        self.payments.append({
            "invoice_id": invoice_id,
            "amount": amount,
            "method": method,
            "reference": reference,
            "payment_date": payment_date,
            "notes": notes,
            "actor_id": actor_id,
        })


class FakeTenantDirectory:
    def __init__(self):
        self.tenants: dict[UUID, TenantSnapshot] = {}
        self.tenant_status_changes: list[tuple[UUID, TenantStatus]] = []
        self.unit_status_changes: list[tuple[UUID, UnitStatus]] = []
        self.deactivated_users: list[UUID] = []
        self.fail_on_terminate = False

    def add(self, status: TenantStatus = TenantStatus.ACTIVE,
            security_deposit: Decimal = Decimal("10000.00"),
            name: str = "Layla Haddad",
            lease_end_date: date | None = None) -> TenantSnapshot:
        tenant = TenantSnapshot(
            id=uuid4(),
            name=name,
            email=f"{name.split()[0].lower()}@example.test",
            status=status,
            security_deposit=security_deposit,
            property_id=uuid4(),
            unit_id=uuid4(),
            user_id=uuid4(),
            lease_end_date=lease_end_date,
        )
        self.tenants[tenant.id] = tenant
        return tenant

    def get_tenant(self, tenant_id: UUID) -> TenantSnapshot | None:
        return self.tenants.get(tenant_id)

    def set_tenant_status(self, tenant_id: UUID, status: TenantStatus) -> None:
        if self.fail_on_terminate:
            raise RuntimeError("tenant directory unavailable")
        self.tenant_status_changes.append((tenant_id, status))

    def set_unit_status(self, unit_id: UUID, status: UnitStatus) -> None:
        self.unit_status_changes.append((unit_id, status))

    def deactivate_user(self, user_id: UUID) -> None:
        self.deactivated_users.append(user_id)


class InMemoryStorage:
    """Object storage fake; ``fail_after`` makes the n-th+1 upload raise."""

    def __init__(self, fail_after: int | None = None):
        self.files: dict[str, bytes] = {}
        self.deleted: list[str] = []
        self.fail_after = fail_after
        self._uploads = 0

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        if self.fail_after is not None and self._uploads >= self.fail_after:
            raise OSError("storage quota exceeded")
        self._uploads += 1
        self.files[path] = content
        return path

    def delete(self, path: str) -> None:
        self.deleted.append(path)
        self.files.pop(path, None)

    def presign(self, path: str, expires_in_seconds: int) -> str:
        return f"https://storage.test/{path}?expires={expires_in_seconds}"


class FailingNotifier:
    def notify(self, notification: Notification) -> None:
        raise ConnectionError("smtp down")


@pytest.fixture
def invoice_id() -> UUID:
    return uuid4()


@pytest.fixture
def invoices(invoice_id):
    return FakeInvoiceDirectory({invoice_id})


@pytest.fixture
def payments():
    return RecordingPaymentRecorder()


@pytest.fixture
def tenants():
    return FakeTenantDirectory()


@pytest.fixture
def tenant(tenants):
    return tenants.add()


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def notifier():
    return LoggingNotifier()


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def pdc_config():
    return PDCConfig()


@pytest.fixture
def pdc_service(session, invoices, payments, tenants, notifier, clock, pdc_config):
    return PDCService(
        session, invoices, payments, tenants,
        notifier=notifier, clock=clock, config=pdc_config,
    )


@pytest.fixture
def pdc_service_factory(invoices, payments, tenants, notifier, clock, pdc_config):
    """Builds a PDCService on whatever session the batch runner hands over."""
    def _factory(db):
        return PDCService(
            db, invoices, payments, tenants,
            notifier=notifier, clock=clock, config=pdc_config,
        )
    return _factory


@pytest.fixture
def checkout_config():
    return CheckoutConfig()


@pytest.fixture
def checkout_service(session, tenants, storage, notifier, clock, checkout_config):
    return CheckoutService(
        session, tenants, storage,
        notifier=notifier, clock=clock, config=checkout_config,
    )


@pytest.fixture
def failing_notifier():
    return FailingNotifier()
