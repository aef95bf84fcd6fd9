"""
Example usage of loanbook

This script walks through the lifecycle of a loan:
1. Create a loan
2. Attach special payments
3. Apply a partial update
4. Delete the loan (its payments go with it)
"""

import logging
import tempfile
from pathlib import Path

from loanbook.db.database import Database
from loanbook.errors import NotFoundError, ValidationFailure
from loanbook.logging import setup_logging
from loanbook.models import Loan, LoanPatch, SpecialPayment
from loanbook.services import LoanService

logger = logging.getLogger(__name__)


def main():
    """Main example workflow"""
    setup_logging("INFO")

    print("=" * 80)
    print("loanbook - Example Usage")
    print("=" * 80)
    print()

    with tempfile.TemporaryDirectory() as tmp:
        db = Database(Path(tmp) / "example.db")
        db.initialize()
        service = LoanService(db)

        print("Step 1: Creating a loan...")
        print("-" * 80)
        loan = service.create_loan(Loan(
            name="Haus",
            amount=300000,
            interest_rate=3.5,
            start_date="2024-01-01",
            fixed_interest_years=10,
            repayment_type="PERCENTAGE",
            repayment_value=2.0,
        ))
        print(f"✓ {loan.name} ({loan.id}) created at {loan.created_at}")

        try:
            service.create_loan(Loan(
                name="Broken", amount=0, interest_rate=25, start_date="2024/01/01",
                fixed_interest_years=0, repayment_type="FOO", repayment_value=0,
            ))
        except ValidationFailure as e:
            print(f"✗ Rejected invalid loan: {e}")
        print()

        print("Step 2: Attaching special payments...")
        print("-" * 80)
        service.create_special_payment(loan.id, SpecialPayment(date="2025-06-01", amount=5000, note="Bonus"))
        service.create_special_payment(loan.id, SpecialPayment(date="2024-06-01", amount=5000))
        for p in service.get_loan(loan.id).special_payments:
            print(f"  {p.date}: {p.amount:,.2f} {p.note or ''}")
        print()

        print("Step 3: Raising the repayment rate...")
        print("-" * 80)
        updated = service.update_loan(loan.id, LoanPatch(repayment_value=3.0))
        print(f"✓ repaymentValue={updated.repayment_value}, updatedAt={updated.updated_at}")
        print()

        print("Step 4: Deleting the loan...")
        print("-" * 80)
        service.delete_loan(loan.id)
        try:
            service.get_loan(loan.id)
        except NotFoundError as e:
            print(f"✓ {e}; remaining payments: {len(service.list_special_payments(loan.id))}")

        db.shutdown()


if __name__ == "__main__":
    main()
