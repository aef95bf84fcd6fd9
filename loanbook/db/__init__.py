"""Database layer — SQLite with a bounded connection pool and repository pattern."""

from loanbook.db.database import Database
from loanbook.db.schema import PRAGMAS, SCHEMA_DDL

__all__ = ["Database", "PRAGMAS", "SCHEMA_DDL"]
