class BudgetGuardError(Exception):
    """Base class for errors raised by the budget core."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TransactionValidationError(BudgetGuardError):
    """Rejected input. Raised before anything is written."""


class NotFoundError(BudgetGuardError):
    pass


class ConflictError(BudgetGuardError):
    pass
