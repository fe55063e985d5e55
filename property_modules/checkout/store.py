"""
Checkout entity store -- query side over ``CheckoutModel`` and
``DepositRefundModel``.
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from property_modules.checkout.models import CheckoutFilter, CheckoutStatus
from property_modules.checkout.orm import CheckoutModel, DepositRefundModel
from property_modules.checkout.workflows import CLOSED_CHECKOUT_STATES


class CheckoutStore:
    def __init__(self, session: Session):
        self._session = session

    def get(self, checkout_id: UUID) -> CheckoutModel | None:
        return self._session.get(CheckoutModel, checkout_id)

    def get_refund(self, checkout_id: UUID) -> DepositRefundModel | None:
        return self._session.execute(
            select(DepositRefundModel).where(DepositRefundModel.checkout_id == checkout_id)
        ).scalar_one_or_none()

    def find_by_tenant(self, tenant_id: UUID) -> list[CheckoutModel]:
        """All checkouts for the tenant, newest first."""
        return list(
            self._session.execute(
                select(CheckoutModel)
                .where(CheckoutModel.tenant_id == tenant_id)
                .order_by(CheckoutModel.created_at.desc(), CheckoutModel.checkout_number.desc())
            ).scalars()
        )

    def find_active_for_tenant(self, tenant_id: UUID) -> CheckoutModel | None:
        return self._session.execute(
            select(CheckoutModel)
            .where(
                CheckoutModel.tenant_id == tenant_id,
                CheckoutModel.status.not_in(CLOSED_CHECKOUT_STATES),
            )
            .limit(1)
        ).scalar_one_or_none()

    def counts_by_status(self) -> dict[str, int]:
        rows = self._session.execute(
            select(CheckoutModel.status, func.count(CheckoutModel.id)).group_by(CheckoutModel.status)
        ).all()
        return {status: count for status, count in rows}

    def count_refunds_with_status(self, statuses) -> int:
        return self._session.execute(
            select(func.count(DepositRefundModel.id)).where(
                DepositRefundModel.refund_status.in_(list(statuses))
            )
        ).scalar_one()

    def find_checkouts_with_refund_status(self, status: str) -> list[CheckoutModel]:
        return list(
            self._session.execute(
                select(CheckoutModel)
                .join(DepositRefundModel, DepositRefundModel.checkout_id == CheckoutModel.id)
                .where(DepositRefundModel.refund_status == status)
                .order_by(CheckoutModel.checkout_number)
            ).scalars()
        )

    def search(self, criteria: CheckoutFilter) -> tuple[list[CheckoutModel], int]:
        """One page of checkouts matching ``criteria``, newest first, and the total."""
        conditions = []
        if criteria.status is not None:
            conditions.append(CheckoutModel.status == CheckoutStatus(criteria.status).value)
        if criteria.property_id is not None:
            conditions.append(CheckoutModel.property_id == criteria.property_id)
        if criteria.from_date is not None:
            conditions.append(CheckoutModel.expected_move_out_date >= criteria.from_date)
        if criteria.to_date is not None:
            conditions.append(CheckoutModel.expected_move_out_date <= criteria.to_date)
        if criteria.search:
            conditions.append(
                CheckoutModel.checkout_number.icontains(
                    criteria.search.strip(), autoescape=True
                )
            )

        total = self._session.execute(
            select(func.count(CheckoutModel.id)).where(*conditions)
        ).scalar_one()
        rows = self._session.execute(
            select(CheckoutModel)
            .where(*conditions)
            .order_by(CheckoutModel.created_at.desc(), CheckoutModel.checkout_number.desc())
            .offset(criteria.page * criteria.size)
            .limit(criteria.size)
        ).scalars()
        return list(rows), total

    def add(self, model: CheckoutModel) -> CheckoutModel:
        self._session.add(model)
        return model
