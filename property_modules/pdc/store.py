"""
PDC entity store -- query side over ``PDCModel``.

Read-only selectors plus ``add``; the service mutates loaded rows and owns
commit/rollback.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from property_modules.pdc.models import PDCFilter, PDCStatus
from property_modules.pdc.orm import PDCModel

SORTABLE_COLUMNS = {
    "cheque_date": PDCModel.cheque_date,
    "cheque_number": PDCModel.cheque_number,
    "amount": PDCModel.amount,
    "status": PDCModel.status,
    "bank_name": PDCModel.bank_name,
    "created_at": PDCModel.created_at,
}


class PDCStore:
    def __init__(self, session: Session):
        self._session = session

    def get(self, pdc_id: UUID) -> PDCModel | None:
        return self._session.get(PDCModel, pdc_id)

    def find_by_tenant(self, tenant_id: UUID) -> list[PDCModel]:
        return list(
            self._session.execute(
                select(PDCModel)
                .where(PDCModel.tenant_id == tenant_id)
                .order_by(PDCModel.cheque_date, PDCModel.cheque_number)
            ).scalars()
        )

    def find_by_invoice(self, invoice_id: UUID) -> list[PDCModel]:
        return list(
            self._session.execute(
                select(PDCModel)
                .where(PDCModel.invoice_id == invoice_id)
                .order_by(PDCModel.cheque_date)
            ).scalars()
        )

    def exists_cheque_number(self, tenant_id: UUID, cheque_number: str) -> bool:
        return bool(self.existing_cheque_numbers(tenant_id, [cheque_number]))

    def existing_cheque_numbers(self, tenant_id: UUID, cheque_numbers) -> set[str]:
        """Subset of ``cheque_numbers`` already on file for the tenant."""
        wanted = {n.strip() for n in cheque_numbers}
        if not wanted:
            return set()
        rows = self._session.execute(
            select(PDCModel.cheque_number).where(
                PDCModel.tenant_id == tenant_id,
                PDCModel.cheque_number.in_(wanted),
            )
        ).scalars()
        return set(rows)

    def find_received_within_window(self, start: date, end: date) -> list[PDCModel]:
        """RECEIVED cheques dated in ``[start, end]``, oldest first."""
        return list(
            self._session.execute(
                select(PDCModel)
                .where(
                    PDCModel.status == PDCStatus.RECEIVED.value,
                    PDCModel.cheque_date >= start,
                    PDCModel.cheque_date <= end,
                )
                .order_by(PDCModel.cheque_date, PDCModel.cheque_number)
            ).scalars()
        )

    def find_due_on(self, cheque_date: date) -> list[PDCModel]:
        return list(
            self._session.execute(
                select(PDCModel)
                .where(
                    PDCModel.status == PDCStatus.DUE.value,
                    PDCModel.cheque_date == cheque_date,
                )
                .order_by(PDCModel.cheque_number)
            ).scalars()
        )

    def find_withdrawn(self, tenant_id: UUID | None = None) -> list[PDCModel]:
        stmt = select(PDCModel).where(PDCModel.status == PDCStatus.WITHDRAWN.value)
        if tenant_id is not None:
            stmt = stmt.where(PDCModel.tenant_id == tenant_id)
        return list(
            self._session.execute(
                stmt.order_by(PDCModel.withdrawal_date.desc())
            ).scalars()
        )

    def search(self, criteria: PDCFilter) -> tuple[list[PDCModel], int]:
        """One page of cheques matching ``criteria`` and the total match count."""
        conditions = []
        if criteria.search:
            conditions.append(
                PDCModel.cheque_number.icontains(
                    criteria.search.strip(), autoescape=True
                )
            )
        if criteria.status is not None:
            conditions.append(PDCModel.status == PDCStatus(criteria.status).value)
        if criteria.tenant_id is not None:
            conditions.append(PDCModel.tenant_id == criteria.tenant_id)
        if criteria.bank_name:
            conditions.append(
                PDCModel.bank_name.icontains(
                    criteria.bank_name.strip(), autoescape=True
                )
            )
        if criteria.from_date is not None:
            conditions.append(PDCModel.cheque_date >= criteria.from_date)
        if criteria.to_date is not None:
            conditions.append(PDCModel.cheque_date <= criteria.to_date)

        total = self._session.execute(
            select(func.count(PDCModel.id)).where(*conditions)
        ).scalar_one()

        sort_column = SORTABLE_COLUMNS[criteria.sort_by]
        order = sort_column.desc() if criteria.descending else sort_column.asc()
        rows = self._session.execute(
            select(PDCModel)
            .where(*conditions)
            .order_by(order, PDCModel.cheque_number, PDCModel.id)
            .offset(criteria.page * criteria.size)
            .limit(criteria.size)
        ).scalars()
        return list(rows), total

    def distinct_bank_names(self) -> list[str]:
        return list(
            self._session.execute(
                select(PDCModel.bank_name).distinct().order_by(PDCModel.bank_name)
            ).scalars()
        )

    def add(self, model: PDCModel) -> PDCModel:
        self._session.add(model)
        return model

    def add_all(self, models: list[PDCModel]) -> list[PDCModel]:
        self._session.add_all(models)
        return models
