"""Shared helpers for the test suite."""

from __future__ import annotations

import shutil
import tempfile
import unittest
from pathlib import Path

from loanbook.db.database import Database
from loanbook.models.loan import Loan
from loanbook.models.special_payment import SpecialPayment


def make_db(case: unittest.TestCase, **kwargs) -> Database:
    """Return an initialised Database in a fresh temp directory, removed after the test."""
    tmp = Path(tempfile.mkdtemp(prefix="loanbook-"))
    db = Database(tmp / "loans.db", **kwargs)
    db.initialize()
    case.addCleanup(shutil.rmtree, tmp, ignore_errors=True)
    case.addCleanup(db.shutdown)
    return db


def sample_loan(**overrides) -> Loan:
    defaults = dict(
        name="Haus",
        amount=300000.0,
        interest_rate=3.5,
        start_date="2024-01-01",
        fixed_interest_years=10,
        repayment_type="PERCENTAGE",
        repayment_value=2.0,
    )
    defaults.update(overrides)
    return Loan(**defaults)


def sample_payment(**overrides) -> SpecialPayment:
    defaults = dict(date="2024-06-01", amount=5000.0)
    defaults.update(overrides)
    return SpecialPayment(**defaults)
