"""Domain models."""

from loanbook.models.loan import Loan, LoanPatch, RepaymentType
from loanbook.models.special_payment import SpecialPayment

__all__ = ["Loan", "LoanPatch", "RepaymentType", "SpecialPayment"]
