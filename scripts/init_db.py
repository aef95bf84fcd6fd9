#!/usr/bin/env python3
"""Initialize the database and optionally seed it with loans from a YAML file."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from loanbook.db.database import Database
from loanbook.errors import LoanBookError
from loanbook.models.loan import Loan
from loanbook.models.special_payment import SpecialPayment
from loanbook.services.loan_service import LoanService


def main():
    parser = argparse.ArgumentParser(description="Initialize the database")
    parser.add_argument("--seed-loans", type=str, help="YAML file with loan definitions")
    parser.add_argument("--db-path", type=str, help="Override database path")
    args = parser.parse_args()

    db = Database(args.db_path) if args.db_path else Database.from_config()
    db.initialize()
    print(f"Database initialized at: {db.path}")

    if args.seed_loans:
        seed_loans(LoanService(db), Path(args.seed_loans))

    db.shutdown()
    print("Done.")


def seed_loans(service: LoanService, path: Path) -> int:
    """Create every loan (and its special payments) listed in ``path``.

    Entries that fail validation are reported and skipped. Returns the number
    of loans created.
    """
    import yaml
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    created = 0
    for entry in data.get("loans", []):
        try:
            loan = service.create_loan(Loan(
                name=entry.get("name", ""),
                amount=entry.get("amount", 0),
                interest_rate=entry.get("interestRate", 0),
                start_date=str(entry.get("startDate", "")),
                fixed_interest_years=entry.get("fixedInterestYears", 0),
                repayment_type=entry.get("repaymentType", ""),
                repayment_value=entry.get("repaymentValue", 0),
            ))
        except LoanBookError as e:
            print(f"  Skipping {entry.get('name', '?')}: {e}")
            continue
        created += 1
        print(f"  Created loan: {loan.name} ({loan.id})")

        for p in entry.get("specialPayments", []):
            try:
                service.create_special_payment(loan.id, SpecialPayment(
                    date=str(p.get("date", "")),
                    amount=p.get("amount", 0),
                    note=p.get("note"),
                ))
            except LoanBookError as e:
                print(f"    Skipping payment {p.get('date', '?')}: {e}")
    return created


if __name__ == "__main__":
    main()
