"""Database schema DDL and connection pragmas."""

# Applied to every new connection. journal_mode=WAL persists in the file,
# the rest are per-connection settings.
PRAGMAS = (
    "PRAGMA journal_mode = WAL",
    "PRAGMA synchronous = FULL",
    "PRAGMA foreign_keys = ON",
    "PRAGMA temp_store = MEMORY",
)

SCHEMA_DDL = """
-- ==========================================================================
-- Loans
-- ==========================================================================
CREATE TABLE IF NOT EXISTS loans (
    id                      TEXT PRIMARY KEY,
    name                    TEXT NOT NULL,
    amount                  REAL NOT NULL,
    interest_rate           REAL NOT NULL,
    start_date              TEXT NOT NULL,
    fixed_interest_years    INTEGER NOT NULL,
    repayment_type          TEXT NOT NULL,
    repayment_value         REAL NOT NULL,
    created_at              TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now')),
    updated_at              TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now'))
);

-- ==========================================================================
-- Special payments (Sondertilgungen)
-- ==========================================================================
CREATE TABLE IF NOT EXISTS special_payments (
    id          TEXT PRIMARY KEY,
    loan_id     TEXT NOT NULL REFERENCES loans(id) ON DELETE CASCADE,
    date        TEXT NOT NULL,
    amount      REAL NOT NULL,
    note        TEXT,
    created_at  TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now')),
    updated_at  TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now'))
);

CREATE INDEX IF NOT EXISTS idx_special_payments_loan_id ON special_payments(loan_id);
"""
