"""Unit tests for the DB layer — connection manager, schema and repositories.

Every test uses a fresh SQLite file in its own temp directory so tests are
isolated and leave no artefacts on disk.
"""

from __future__ import annotations

import shutil
import sqlite3
import tempfile
import threading
import unittest
from pathlib import Path

from loanbook.db.database import BUSY_TIMEOUT_SECONDS, Database
from loanbook.db.loan_repo import LoanRepository
from loanbook.db.payment_repo import SpecialPaymentRepository
from loanbook.errors import (
    LoanNotFoundError,
    NotFoundError,
    PaymentNotFoundError,
    StoreFailure,
)
from tests.helpers import make_db, sample_loan, sample_payment


# ===========================================================================
# 1. Connection manager
# ===========================================================================

class TestDatabaseCore(unittest.TestCase):
    def setUp(self):
        self.db = make_db(self)

    def test_tables_created(self):
        tables = self.db.fetchall(
            "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
        )
        names = {t["name"] for t in tables}
        self.assertTrue({"loans", "special_payments"}.issubset(names))

    def test_loan_id_index_created(self):
        row = self.db.fetchone(
            "SELECT name FROM sqlite_master WHERE type='index' AND name = ?",
            ("idx_special_payments_loan_id",),
        )
        self.assertIsNotNone(row)

    def test_pragmas(self):
        self.assertEqual(self.db.fetchone("PRAGMA journal_mode")["journal_mode"], "wal")
        self.assertEqual(self.db.fetchone("PRAGMA foreign_keys")["foreign_keys"], 1)
        # 2 == FULL
        self.assertEqual(self.db.fetchone("PRAGMA synchronous")["synchronous"], 2)
        # 2 == MEMORY
        self.assertEqual(self.db.fetchone("PRAGMA temp_store")["temp_store"], 2)

    def test_initialize_is_idempotent(self):
        LoanRepository(self.db).create(sample_loan())
        self.db.initialize()
        self.assertTrue(self.db.initialized)
        self.assertEqual(len(LoanRepository(self.db).list_all()), 1)

    def test_shutdown_twice_is_safe(self):
        self.db.shutdown()
        self.db.shutdown()
        self.assertFalse(self.db.initialized)

    def test_connection_requires_initialize(self):
        self.db.shutdown()
        with self.assertRaises(StoreFailure):
            self.db.fetchone("SELECT 1")

    def test_transaction_commit(self):
        with self.db.transaction() as conn:
            conn.execute(
                "INSERT INTO loans (id, name, amount, interest_rate, start_date,"
                " fixed_interest_years, repayment_type, repayment_value)"
                " VALUES ('l1', 'A', 1, 1, '2024-01-01', 1, 'ABSOLUTE', 1)"
            )
        self.assertIsNotNone(self.db.fetchone("SELECT id FROM loans WHERE id = 'l1'"))

    def test_transaction_rollback(self):
        try:
            with self.db.transaction() as conn:
                conn.execute(
                    "INSERT INTO loans (id, name, amount, interest_rate, start_date,"
                    " fixed_interest_years, repayment_type, repayment_value)"
                    " VALUES ('l2', 'A', 1, 1, '2024-01-01', 1, 'ABSOLUTE', 1)"
                )
                raise ValueError("Force rollback")
        except ValueError:
            pass
        self.assertIsNone(self.db.fetchone("SELECT id FROM loans WHERE id = 'l2'"))

    def _assert_wal_empty(self, step: str) -> None:
        wal = Path(str(self.db.path) + "-wal")
        self.assertTrue(
            not wal.exists() or wal.stat().st_size == 0,
            f"WAL not checkpointed after {step}",
        )

    def test_every_mutation_checkpoints(self):
        payments = SpecialPaymentRepository(self.db)
        loans = LoanRepository(self.db, payments)

        loan = loans.create(sample_loan())
        self._assert_wal_empty("loan create")

        loan.name = "Wohnung"
        loans.update(loan)
        self._assert_wal_empty("loan update")

        payment = payments.create(sample_payment(loan_id=loan.id))
        self._assert_wal_empty("payment create")

        payments.delete(loan.id, payment.id)
        self._assert_wal_empty("payment delete")

        loans.delete(loan.id)
        self._assert_wal_empty("loan delete")

    def test_busy_timeout_configured(self):
        row = self.db.fetchone("PRAGMA busy_timeout")
        self.assertEqual(next(iter(row.values())), int(BUSY_TIMEOUT_SECONDS * 1000))

    def test_committed_write_visible_to_fresh_connection(self):
        loan = LoanRepository(self.db).create(sample_loan())
        conn = sqlite3.connect(str(self.db.path))
        try:
            row = conn.execute("SELECT name FROM loans WHERE id = ?", (loan.id,)).fetchone()
        finally:
            conn.close()
        self.assertEqual(row[0], "Haus")

    def test_verbose_query_logging(self):
        db = make_db(self, log_queries=True)
        with self.assertLogs("loanbook.db.database", level="INFO") as logs:
            db.fetchone("SELECT ? AS answer", (42,))
        self.assertTrue(any("QUERY: SELECT" in line for line in logs.output))
        # Bound parameters are expanded into the logged statement.
        self.assertTrue(any("QUERY:" in line and "42" in line for line in logs.output))


class TestDatabaseInitFailure(unittest.TestCase):
    def test_failed_initialize_leaves_no_state(self):
        tmp = Path(tempfile.mkdtemp(prefix="loanbook-"))
        self.addCleanup(shutil.rmtree, tmp, ignore_errors=True)
        # A directory cannot be opened as a database file.
        target = tmp / "not-a-file"
        target.mkdir()
        db = Database(target)
        with self.assertRaises(StoreFailure) as ctx:
            db.initialize()
        self.assertEqual(ctx.exception.operation, "initialize")
        self.assertFalse(db.initialized)
        with self.assertRaises(StoreFailure):
            db.fetchone("SELECT 1")

    def test_invalid_pool_bounds(self):
        with self.assertRaises(ValueError):
            Database("x.db", max_open_conns=0)
        with self.assertRaises(ValueError):
            Database("x.db", max_open_conns=2, max_idle_conns=3)


class TestConnectionPool(unittest.TestCase):
    def test_excess_callers_queue_instead_of_failing(self):
        db = make_db(self, max_open_conns=1, max_idle_conns=1)
        results: list = []

        def worker():
            results.append(db.fetchone("SELECT 7 AS n"))

        with db.connection():
            t = threading.Thread(target=worker)
            t.start()
            t.join(timeout=0.2)
            self.assertTrue(t.is_alive(), "second caller should wait for a free connection")
        t.join(timeout=5)
        self.assertFalse(t.is_alive())
        self.assertEqual(results, [{"n": 7}])

    def test_idle_connections_are_bounded(self):
        db = make_db(self, max_open_conns=3, max_idle_conns=1)
        with db.connection(), db.connection(), db.connection():
            pass
        self.assertEqual(len(db._idle), 1)


# ===========================================================================
# 2. Loan repository
# ===========================================================================

class TestLoanRepository(unittest.TestCase):
    def setUp(self):
        self.db = make_db(self)
        self.payments = SpecialPaymentRepository(self.db)
        self.repo = LoanRepository(self.db, self.payments)

    def test_create_sets_timestamps_and_empty_payments(self):
        loan = self.repo.create(sample_loan())
        self.assertTrue(loan.id)
        self.assertTrue(loan.created_at)
        self.assertEqual(loan.created_at, loan.updated_at)
        self.assertEqual(loan.special_payments, [])

    def test_create_and_get(self):
        loan = self.repo.create(sample_loan())
        fetched = self.repo.get_by_id(loan.id)
        self.assertIsNotNone(fetched)
        self.assertEqual(fetched.name, "Haus")
        self.assertEqual(fetched.amount, 300000.0)
        self.assertEqual(fetched.fixed_interest_years, 10)
        self.assertEqual(fetched.repayment_type, "PERCENTAGE")
        self.assertEqual(fetched.created_at, loan.created_at)

    def test_get_missing_returns_none(self):
        self.assertIsNone(self.repo.get_by_id("nope"))
        self.assertFalse(self.repo.exists("nope"))

    def test_list_newest_first(self):
        first = self.repo.create(sample_loan(name="A"))
        second = self.repo.create(sample_loan(name="B"))
        third = self.repo.create(sample_loan(name="C"))
        ids = [loan.id for loan in self.repo.list_all()]
        self.assertEqual(ids, [third.id, second.id, first.id])

    def test_list_attaches_payments(self):
        loan = self.repo.create(sample_loan())
        self.payments.create(sample_payment(loan_id=loan.id))
        loans = self.repo.list_all()
        self.assertEqual(len(loans[0].special_payments), 1)

    def test_update_replaces_row(self):
        loan = self.repo.create(sample_loan())
        loan.name = "Wohnung"
        loan.interest_rate = 0.0
        updated = self.repo.update(loan)
        self.assertGreaterEqual(updated.updated_at, updated.created_at)
        fetched = self.repo.get_by_id(loan.id)
        self.assertEqual(fetched.name, "Wohnung")
        self.assertEqual(fetched.interest_rate, 0.0)

    def test_update_unknown_id_raises_not_found(self):
        with self.assertRaises(NotFoundError) as ctx:
            self.repo.update(sample_loan(id="ghost"))
        self.assertEqual(ctx.exception.entity_id, "ghost")
        self.assertIsNone(self.db.fetchone("SELECT id FROM loans WHERE id = 'ghost'"))

    def test_delete(self):
        loan = self.repo.create(sample_loan())
        self.repo.delete(loan.id)
        self.assertIsNone(self.repo.get_by_id(loan.id))

    def test_delete_unknown_id_raises_not_found(self):
        with self.assertRaises(NotFoundError):
            self.repo.delete("ghost")

    def test_delete_cascades_to_payments(self):
        loan = self.repo.create(sample_loan())
        other = self.repo.create(sample_loan(name="Other"))
        for day in ("2024-06-01", "2025-06-01", "2026-06-01"):
            self.payments.create(sample_payment(loan_id=loan.id, date=day))
        self.payments.create(sample_payment(loan_id=other.id))

        self.repo.delete(loan.id)

        self.assertEqual(self.payments.list_for_loan(loan.id), [])
        self.assertEqual(len(self.payments.list_for_loan(other.id)), 1)
        row = self.db.fetchone(
            "SELECT COUNT(*) AS n FROM special_payments WHERE loan_id = ?", (loan.id,)
        )
        self.assertEqual(row["n"], 0)

    def test_engine_level_cascade(self):
        loan = self.repo.create(sample_loan())
        self.payments.create(sample_payment(loan_id=loan.id))
        self.db.execute("DELETE FROM loans WHERE id = ?", (loan.id,))
        self.assertEqual(self.payments.list_for_loan(loan.id), [])

    def test_duplicate_id_is_store_failure(self):
        loan = self.repo.create(sample_loan())
        with self.assertRaises(StoreFailure) as ctx:
            self.repo.create(sample_loan(id=loan.id))
        self.assertEqual(ctx.exception.operation, "create loan")
        self.assertEqual(ctx.exception.entity_id, loan.id)
        self.assertIsInstance(ctx.exception.__cause__, sqlite3.IntegrityError)


# ===========================================================================
# 3. Special payment repository
# ===========================================================================

class TestSpecialPaymentRepository(unittest.TestCase):
    def setUp(self):
        self.db = make_db(self)
        self.loans = LoanRepository(self.db)
        self.repo = SpecialPaymentRepository(self.db)
        self.loan = self.loans.create(sample_loan())

    def _count(self) -> int:
        return self.db.fetchone("SELECT COUNT(*) AS n FROM special_payments")["n"]

    def test_create_sets_timestamps(self):
        p = self.repo.create(sample_payment(loan_id=self.loan.id))
        self.assertTrue(p.created_at)
        self.assertEqual(p.created_at, p.updated_at)

    def test_list_orders_by_date(self):
        self.repo.create(sample_payment(loan_id=self.loan.id, date="2026-01-01"))
        self.repo.create(sample_payment(loan_id=self.loan.id, date="2024-06-01"))
        self.repo.create(sample_payment(loan_id=self.loan.id, date="2025-03-15"))
        dates = [p.date for p in self.repo.list_for_loan(self.loan.id)]
        self.assertEqual(dates, ["2024-06-01", "2025-03-15", "2026-01-01"])

    def test_list_unknown_loan_is_empty(self):
        self.assertEqual(self.repo.list_for_loan("ghost"), [])

    def test_create_for_missing_loan(self):
        with self.assertRaises(LoanNotFoundError):
            self.repo.create(sample_payment(loan_id="ghost"))
        self.assertEqual(self._count(), 0)

    def test_empty_note_stored_as_null(self):
        p = self.repo.create(sample_payment(loan_id=self.loan.id, note=""))
        self.assertIsNone(p.note)
        row = self.db.fetchone("SELECT note FROM special_payments WHERE id = ?", (p.id,))
        self.assertIsNone(row["note"])
        fetched = self.repo.list_for_loan(self.loan.id)[0]
        self.assertIsNone(fetched.note)
        self.assertNotIn("note", fetched.to_dict())

    def test_note_round_trip(self):
        self.repo.create(sample_payment(loan_id=self.loan.id, note="Bonus"))
        self.assertEqual(self.repo.list_for_loan(self.loan.id)[0].note, "Bonus")

    def test_delete(self):
        p = self.repo.create(sample_payment(loan_id=self.loan.id))
        self.repo.delete(self.loan.id, p.id)
        self.assertEqual(self._count(), 0)

    def test_delete_under_wrong_loan(self):
        other = self.loans.create(sample_loan(name="Other"))
        p = self.repo.create(sample_payment(loan_id=self.loan.id))
        with self.assertRaises(PaymentNotFoundError):
            self.repo.delete(other.id, p.id)
        self.assertEqual(self._count(), 1)

    def test_delete_with_missing_loan(self):
        p = self.repo.create(sample_payment(loan_id=self.loan.id))
        with self.assertRaises(LoanNotFoundError):
            self.repo.delete("ghost", p.id)
        self.assertEqual(self._count(), 1)

    def test_delete_unknown_payment(self):
        with self.assertRaises(PaymentNotFoundError):
            self.repo.delete(self.loan.id, "ghost")

    def test_fk_constraint_backstop(self):
        with self.assertRaises(sqlite3.IntegrityError):
            self.db.execute(
                "INSERT INTO special_payments (id, loan_id, date, amount)"
                " VALUES ('p1', 'ghost', '2024-01-01', 1)"
            )


if __name__ == "__main__":
    unittest.main()
