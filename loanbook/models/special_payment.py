"""SpecialPayment domain model — an out-of-schedule principal payment."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class SpecialPayment:
    date: str
    amount: float
    loan_id: str = ""
    note: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: str = ""
    updated_at: str = ""

    def note_or_null(self) -> Optional[str]:
        """Value for the nullable ``note`` column; blank notes are stored as NULL."""
        return self.note if self.note else None

    def to_dict(self) -> dict[str, Any]:
        """Wire representation. ``loanId`` and ``note`` are omitted when empty."""
        data: dict[str, Any] = {"id": self.id}
        if self.loan_id:
            data["loanId"] = self.loan_id
        data["date"] = self.date
        data["amount"] = self.amount
        if self.note:
            data["note"] = self.note
        data["createdAt"] = self.created_at
        data["updatedAt"] = self.updated_at
        return data

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "SpecialPayment":
        return cls(
            id=row["id"],
            loan_id=row["loan_id"],
            date=row["date"],
            amount=row["amount"],
            note=row.get("note"),
            created_at=row.get("created_at") or "",
            updated_at=row.get("updated_at") or "",
        )
