"""
Loan service — the entry point the HTTP layer calls.

Validates untrusted input before any store call, merges partial updates
against the stored loan, and turns missing rows into ``NotFoundError``.
"""

from __future__ import annotations

from loanbook.db.database import Database
from loanbook.db.loan_repo import LoanRepository
from loanbook.db.payment_repo import SpecialPaymentRepository
from loanbook.errors import NotFoundError
from loanbook.models.loan import Loan, LoanPatch
from loanbook.models.special_payment import SpecialPayment
from loanbook.validation import (
    validate_loan_create,
    validate_loan_update,
    validate_special_payment,
)


class LoanService:
    """CRUD for loans and their special payments."""

    def __init__(self, db: Database):
        self._db = db
        self._payments = SpecialPaymentRepository(db)
        self._loans = LoanRepository(db, self._payments)

    # -- Loans -----------------------------------------------------------------

    def list_loans(self) -> list[Loan]:
        return self._loans.list_all()

    def get_loan(self, loan_id: str) -> Loan:
        loan = self._loans.get_by_id(loan_id)
        if loan is None:
            raise NotFoundError(loan_id, "loan")
        return loan

    def create_loan(self, loan: Loan) -> Loan:
        validate_loan_create(loan)
        return self._loans.create(loan)

    def update_loan(self, loan_id: str, patch: LoanPatch) -> Loan:
        """Apply the supplied fields of ``patch`` to the stored loan.

        Returns the reloaded loan, special payments included.
        """
        validate_loan_update(patch)
        existing = self.get_loan(loan_id)
        merged = patch.apply_to(existing)
        self._loans.update(merged)
        return self.get_loan(loan_id)

    def delete_loan(self, loan_id: str) -> None:
        self._loans.delete(loan_id)

    # -- Special payments ------------------------------------------------------

    def list_special_payments(self, loan_id: str) -> list[SpecialPayment]:
        return self._payments.list_for_loan(loan_id)

    def create_special_payment(self, loan_id: str, payment: SpecialPayment) -> SpecialPayment:
        validate_special_payment(payment)
        payment.loan_id = loan_id
        return self._payments.create(payment)

    def delete_special_payment(self, loan_id: str, payment_id: str) -> None:
        self._payments.delete(loan_id, payment_id)
