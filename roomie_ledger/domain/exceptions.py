"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidExpenseError(DomainException):
    """Expense failed validation (amount, participants or title)"""

    pass


class ForbiddenError(DomainException):
    """Actor is not allowed to perform the operation"""

    pass


class NotFoundError(DomainException):
    """Group, expense or notification does not exist"""

    pass


class ConflictError(DomainException):
    """Ledger changed between snapshot and commit; recompute and retry"""

    pass


class UnavailableError(DomainException):
    """Storage is unreachable or failed mid-operation; retry with backoff"""

    pass
