"""Loan domain model — a mortgage loan and its partial-update payload."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional

from loanbook.models.special_payment import SpecialPayment


class RepaymentType(str, Enum):
    PERCENTAGE = "PERCENTAGE"
    ABSOLUTE = "ABSOLUTE"


@dataclass
class Loan:
    """A mortgage loan. ``special_payments`` is re-derived from its own table on read."""

    name: str
    amount: float
    interest_rate: float
    start_date: str
    fixed_interest_years: int
    repayment_type: str
    repayment_value: float
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    special_payments: list[SpecialPayment] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Wire representation (camelCase)."""
        return {
            "id": self.id,
            "name": self.name,
            "amount": self.amount,
            "interestRate": self.interest_rate,
            "startDate": self.start_date,
            "fixedInterestYears": self.fixed_interest_years,
            "repaymentType": getattr(self.repayment_type, "value", self.repayment_type),
            "repaymentValue": self.repayment_value,
            "specialPayments": [p.to_dict() for p in self.special_payments],
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Loan":
        return cls(
            id=row["id"],
            name=row["name"],
            amount=row["amount"],
            interest_rate=row["interest_rate"],
            start_date=row["start_date"],
            fixed_interest_years=row["fixed_interest_years"],
            repayment_type=row["repayment_type"],
            repayment_value=row["repayment_value"],
            created_at=row.get("created_at") or "",
            updated_at=row.get("updated_at") or "",
        )


@dataclass
class LoanPatch:
    """Fields supplied by a partial update. ``None`` means "not supplied"."""

    name: Optional[str] = None
    amount: Optional[float] = None
    interest_rate: Optional[float] = None
    start_date: Optional[str] = None
    fixed_interest_years: Optional[int] = None
    repayment_type: Optional[str] = None
    repayment_value: Optional[float] = None

    def supplied(self) -> dict[str, Any]:
        return {k: v for k, v in self.__dict__.items() if v is not None}

    def apply_to(self, loan: Loan) -> Loan:
        """Return a copy of ``loan`` with the supplied fields replaced."""
        return replace(loan, **self.supplied())
