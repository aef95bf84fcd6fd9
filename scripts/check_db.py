"""Quick check of database state."""
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from loanbook.db.database import Database
from loanbook.services.loan_service import LoanService

db = Database.from_config()
db.initialize()

print(f"=== Database: {db.path} ===")
for pragma in ("journal_mode", "synchronous", "foreign_keys"):
    row = db.fetchone(f"PRAGMA {pragma}")
    print(f"  {pragma}: {next(iter(row.values())) if row else 'N/A'}")

print("\n=== Loans ===")
loans = LoanService(db).list_loans()
print(f"Total: {len(loans)}")
for loan in loans:
    print(f"  {loan.id[:8]} | {loan.name[:30]:<30} | {loan.amount:>12,.2f} | "
          f"{loan.interest_rate:>5.2f}% | {loan.start_date}")
    for p in loan.special_payments:
        print(f"      {p.date} | {p.amount:>10,.2f} | {p.note or ''}")

row = db.fetchone("SELECT COUNT(*) AS n FROM special_payments")
print(f"\n=== Special payments: {row['n'] if row else 0} ===")

db.shutdown()
