"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class HouseholdNotFoundError(DomainException):
    """Household does not exist"""

    pass


class AccessDeniedError(DomainException):
    """Caller is not a member of the household"""

    pass


class InvalidExpenseError(DomainException):
    """Expense payload violates share/membership rules"""

    pass


class InvalidSettlementError(DomainException):
    """Settlement payload violates membership rules"""

    pass


class NoMutualDebtsError(DomainException):
    """Netting requested but only one side owes the other"""

    pass


class NotificationDeliveryError(DomainException):
    """Push service rejected or never acknowledged a notification"""

    pass
