"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidPeriodFormatError(DomainException):
    """Period label is not a valid YYYY-MM month"""

    def __init__(self, label: str):
        super().__init__("Invalid period format. Use YYYY-MM")
        self.label = label


class UnauthenticatedCallerError(DomainException):
    """Request carries no caller identity"""

    pass


class StaleReferenceError(DomainException):
    """Referenced category or credit card does not exist for the user"""

    pass


class DuplicateCategoryError(DomainException):
    """User already has a category with this name"""

    pass


class StoreFailureError(DomainException):
    """Persistence layer failed while reading or writing records"""

    pass
