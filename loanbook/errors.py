"""Error taxonomy shared by the store, the service layer and the HTTP server."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Generator, Optional


class LoanBookError(Exception):
    """Base exception for all loanbook errors."""


class ValidationFailure(LoanBookError):
    """A field-level rule was violated. Raised before any store call."""


class NotFoundError(LoanBookError):
    """The entity addressed by id does not exist."""

    entity = "entity"

    def __init__(self, entity_id: str, entity: Optional[str] = None):
        if entity is not None:
            self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{self.entity} not found")


class ReferentialViolation(NotFoundError):
    """A child operation referenced a parent that does not exist."""


class LoanNotFoundError(ReferentialViolation):
    entity = "loan"


class PaymentNotFoundError(NotFoundError):
    entity = "special payment"


class StoreFailure(LoanBookError):
    """Opaque engine failure (I/O, corruption, constraint, pool)."""

    def __init__(self, operation: str, entity_id: Optional[str] = None, detail: str = ""):
        self.operation = operation
        self.entity_id = entity_id
        self.detail = detail
        target = f" [{entity_id}]" if entity_id else ""
        message = f"{operation}{target} failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


@contextmanager
def store_errors(operation: str, entity_id: Optional[str] = None) -> Generator[None, None, None]:
    """Re-raise ``sqlite3.Error`` as :class:`StoreFailure` with context attached."""
    try:
        yield
    except sqlite3.Error as exc:
        raise StoreFailure(operation, entity_id, str(exc)) from exc
