"""loanbook — mortgage loans and special payments on SQLite."""

__version__ = "1.0.0"
