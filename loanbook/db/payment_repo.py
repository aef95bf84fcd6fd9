"""Repository for the ``special_payments`` table."""

from __future__ import annotations

import logging
import sqlite3

from loanbook.db.database import Database, utc_now
from loanbook.errors import LoanNotFoundError, PaymentNotFoundError, store_errors
from loanbook.models.special_payment import SpecialPayment

logger = logging.getLogger(__name__)

_COLUMNS = "id, loan_id, date, amount, note, created_at, updated_at"


class SpecialPaymentRepository:
    """Persistence for special payments, always scoped by their parent loan."""

    def __init__(self, db: Database):
        self._db = db

    # -- Read ------------------------------------------------------------------

    def list_for_loan(self, loan_id: str) -> list[SpecialPayment]:
        """Payments of one loan, earliest date first. Unknown loans yield ``[]``."""
        with store_errors("list special payments", loan_id):
            rows = self._db.fetchall(
                f"SELECT {_COLUMNS} FROM special_payments "
                "WHERE loan_id = ? ORDER BY date ASC, rowid ASC",
                (loan_id,),
            )
        return [SpecialPayment.from_row(r) for r in rows]

    # -- Create ----------------------------------------------------------------

    def create(self, payment: SpecialPayment) -> SpecialPayment:
        """Insert a payment after checking its loan exists.

        The existence check and the insert share one write transaction. If the
        loan still disappears underneath us, the foreign key rejects the row
        and that is reported the same way as a failed check.
        """
        now = utc_now()
        note = payment.note_or_null()
        with store_errors("create special payment", payment.id):
            try:
                with self._db.transaction() as conn:
                    found = conn.execute(
                        "SELECT 1 FROM loans WHERE id = ?", (payment.loan_id,)
                    ).fetchone()
                    if found is None:
                        raise LoanNotFoundError(payment.loan_id)
                    conn.execute(
                        f"INSERT INTO special_payments ({_COLUMNS}) "
                        "VALUES (?, ?, ?, ?, ?, ?, ?)",
                        (payment.id, payment.loan_id, payment.date, payment.amount,
                         note, now, now),
                    )
            except sqlite3.IntegrityError as exc:
                if "FOREIGN KEY" in str(exc):
                    raise LoanNotFoundError(payment.loan_id) from exc
                raise

        payment.note = note
        payment.created_at = now
        payment.updated_at = now
        self._db.checkpoint()
        logger.info(f"Created special payment {payment.id} for loan {payment.loan_id}")
        return payment

    # -- Delete ----------------------------------------------------------------

    def delete(self, loan_id: str, payment_id: str) -> None:
        """Delete ``payment_id`` only if it belongs to ``loan_id``."""
        with store_errors("delete special payment", payment_id):
            with self._db.transaction() as conn:
                found = conn.execute("SELECT 1 FROM loans WHERE id = ?", (loan_id,)).fetchone()
                if found is None:
                    raise LoanNotFoundError(loan_id)
                cursor = conn.execute(
                    "DELETE FROM special_payments WHERE id = ? AND loan_id = ?",
                    (payment_id, loan_id),
                )
                if cursor.rowcount == 0:
                    raise PaymentNotFoundError(payment_id)

        self._db.checkpoint()
        logger.info(f"Deleted special payment {payment_id} from loan {loan_id}")
