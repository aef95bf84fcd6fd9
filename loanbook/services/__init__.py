"""Service layer."""

from loanbook.services.loan_service import LoanService

__all__ = ["LoanService"]
