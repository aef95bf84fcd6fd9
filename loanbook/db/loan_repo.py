"""Repository for the ``loans`` table — full CRUD, children attached on read."""

from __future__ import annotations

import logging
from typing import Optional

from loanbook.db.database import Database, utc_now
from loanbook.db.payment_repo import SpecialPaymentRepository
from loanbook.errors import NotFoundError, store_errors
from loanbook.models.loan import Loan

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, name, amount, interest_rate, start_date, fixed_interest_years, "
    "repayment_type, repayment_value, created_at, updated_at"
)


class LoanRepository:
    """Single-Responsibility repository for loan persistence.

    Every successful mutation checkpoints the WAL before returning.
    """

    def __init__(self, db: Database, payments: Optional[SpecialPaymentRepository] = None):
        self._db = db
        self._payments = payments or SpecialPaymentRepository(db)

    # -- Read ------------------------------------------------------------------

    def list_all(self) -> list[Loan]:
        """All loans, most recently created first, each with its payments."""
        with store_errors("list loans"):
            rows = self._db.fetchall(
                f"SELECT {_COLUMNS} FROM loans ORDER BY created_at DESC, rowid DESC"
            )
        loans = [Loan.from_row(r) for r in rows]
        for loan in loans:
            loan.special_payments = self._payments.list_for_loan(loan.id)
        return loans

    def get_by_id(self, loan_id: str) -> Optional[Loan]:
        with store_errors("get loan", loan_id):
            row = self._db.fetchone(f"SELECT {_COLUMNS} FROM loans WHERE id = ?", (loan_id,))
        if row is None:
            return None
        loan = Loan.from_row(row)
        loan.special_payments = self._payments.list_for_loan(loan_id)
        return loan

    def exists(self, loan_id: str) -> bool:
        with store_errors("get loan", loan_id):
            return self._db.fetchone("SELECT 1 AS found FROM loans WHERE id = ?", (loan_id,)) is not None

    # -- Create ----------------------------------------------------------------

    def create(self, loan: Loan) -> Loan:
        now = utc_now()
        with store_errors("create loan", loan.id):
            with self._db.transaction() as conn:
                conn.execute(
                    f"INSERT INTO loans ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        loan.id, loan.name, loan.amount, loan.interest_rate,
                        loan.start_date, loan.fixed_interest_years,
                        _enum_value(loan.repayment_type), loan.repayment_value,
                        now, now,
                    ),
                )

        loan.created_at = now
        loan.updated_at = now
        loan.special_payments = []
        self._db.checkpoint()
        logger.info(f"Created loan {loan.id}: {loan.name}")
        return loan

    # -- Update ----------------------------------------------------------------

    def update(self, loan: Loan) -> Loan:
        """Replace every mutable column of an existing row.

        Partial updates are merged by the caller; this always writes the full row.
        """
        now = utc_now()
        with store_errors("update loan", loan.id):
            with self._db.transaction() as conn:
                cursor = conn.execute(
                    """UPDATE loans
                       SET name = ?, amount = ?, interest_rate = ?, start_date = ?,
                           fixed_interest_years = ?, repayment_type = ?,
                           repayment_value = ?, updated_at = ?
                       WHERE id = ?""",
                    (
                        loan.name, loan.amount, loan.interest_rate, loan.start_date,
                        loan.fixed_interest_years, _enum_value(loan.repayment_type),
                        loan.repayment_value, now, loan.id,
                    ),
                )
                if cursor.rowcount == 0:
                    raise NotFoundError(loan.id, "loan")

        loan.updated_at = now
        self._db.checkpoint()
        logger.info(f"Updated loan {loan.id}: {loan.name}")
        return loan

    # -- Delete ----------------------------------------------------------------

    def delete(self, loan_id: str) -> None:
        """Delete a loan and all of its special payments in one transaction."""
        with store_errors("delete loan", loan_id):
            with self._db.transaction() as conn:
                removed = conn.execute(
                    "DELETE FROM special_payments WHERE loan_id = ?", (loan_id,)
                ).rowcount
                cursor = conn.execute("DELETE FROM loans WHERE id = ?", (loan_id,))
                if cursor.rowcount == 0:
                    raise NotFoundError(loan_id, "loan")

        self._db.checkpoint()
        logger.info(f"Deleted loan {loan_id} and {removed} special payment(s)")


def _enum_value(value: object) -> object:
    return getattr(value, "value", value)
