"""Field-level validation for loans and special payments.

Pure functions: nothing here touches the database. Each check raises
:class:`~loanbook.errors.ValidationFailure` on the first violation.
"""

from __future__ import annotations

import math
import re
from datetime import datetime
from typing import Any

from loanbook.errors import ValidationFailure
from loanbook.models.loan import Loan, LoanPatch, RepaymentType
from loanbook.models.special_payment import SpecialPayment

_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}", re.ASCII)

MIN_INTEREST_RATE = 0.0
MAX_INTEREST_RATE = 20.0
MIN_FIXED_YEARS = 1
MAX_FIXED_YEARS = 50


def is_valid_date(value: Any) -> bool:
    """``YYYY-MM-DD`` that also names a real calendar day."""
    if not isinstance(value, str) or not _DATE_RE.fullmatch(value):
        return False
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return False
    return True


# -- per-field rules -----------------------------------------------------------

def _is_number(value: Any) -> bool:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    return math.isfinite(value)


def _check_name(name: Any) -> None:
    if not isinstance(name, str) or not name.strip():
        raise ValidationFailure("name is required")


def _check_amount(amount: Any) -> None:
    if not _is_number(amount) or amount <= 0:
        raise ValidationFailure("amount must be > 0")


def _check_interest_rate(rate: Any) -> None:
    if not _is_number(rate) or not MIN_INTEREST_RATE <= rate <= MAX_INTEREST_RATE:
        raise ValidationFailure("interestRate must be between 0 and 20")


def _check_start_date(start_date: Any) -> None:
    if not is_valid_date(start_date):
        raise ValidationFailure("startDate must be in YYYY-MM-DD format")


def _check_fixed_years(years: Any) -> None:
    if (
        not isinstance(years, int)
        or isinstance(years, bool)
        or not MIN_FIXED_YEARS <= years <= MAX_FIXED_YEARS
    ):
        raise ValidationFailure("fixedInterestYears must be between 1 and 50")


def _check_repayment_type(repayment_type: Any) -> None:
    if repayment_type not in [t.value for t in RepaymentType]:
        raise ValidationFailure("repaymentType must be PERCENTAGE or ABSOLUTE")


def _check_repayment_value(value: Any) -> None:
    if not _is_number(value) or value <= 0:
        raise ValidationFailure("repaymentValue must be > 0")


# Field order matches the order errors are reported in.
_LOAN_RULES = (
    ("name", _check_name),
    ("amount", _check_amount),
    ("interest_rate", _check_interest_rate),
    ("start_date", _check_start_date),
    ("fixed_interest_years", _check_fixed_years),
    ("repayment_type", _check_repayment_type),
    ("repayment_value", _check_repayment_value),
)


# -- public API ----------------------------------------------------------------

def validate_loan_create(loan: Loan) -> None:
    """Strict mode: every field must satisfy its rule."""
    for attr, rule in _LOAN_RULES:
        rule(getattr(loan, attr))


def validate_loan_update(patch: LoanPatch) -> None:
    """Lenient mode: fields that were not supplied are skipped.

    A supplied field is held to the same rule as on create, so an explicit
    ``amount=0`` is rejected while an explicit ``interest_rate=0`` is accepted.
    """
    supplied = patch.supplied()
    for attr, rule in _LOAN_RULES:
        if attr in supplied:
            rule(supplied[attr])


def validate_special_payment(payment: SpecialPayment) -> None:
    if not payment.date:
        raise ValidationFailure("date is required")
    if not is_valid_date(payment.date):
        raise ValidationFailure("date must be in YYYY-MM-DD format")
    if not _is_number(payment.amount) or payment.amount <= 0:
        raise ValidationFailure("amount must be > 0")
