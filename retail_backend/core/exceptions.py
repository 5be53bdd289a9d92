# core/exceptions.py

"""
CORE DOMAIN ERRORS

Root of every error raised by the sale / inventory / receivable services.

Rules:
- Validation errors are local: the caller must fix the input, retrying is pointless.
- PersistenceFailureError is the ONLY retryable kind. It is raised after the
  atomic block rolled back, so the caller may assume nothing was written.
"""


class DomainError(Exception):
    """Base exception for all domain service failures."""

    code = "domain_error"
    retryable = False


class PersistenceFailureError(DomainError):
    """Raised when the database rejected the unit of work (constraint, lock, deadlock)."""

    code = "persistence_failure"

    def __init__(self, message: str, *, operation: str = "", retryable: bool = True):
        super().__init__(message)
        self.operation = operation
        self.retryable = retryable
