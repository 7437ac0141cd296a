"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class DivisionByZero(DomainException, ZeroDivisionError):
    """Money was divided by exactly zero"""

    pass


class DataSourceError(DomainException):
    """Database read or write failed"""

    pass


class ProviderRequiredError(DomainException):
    """Provider-level operation called without a provider id"""

    pass


class PaymentRejectedError(DomainException):
    """Settlement payment violates the settlement's state or balance"""

    pass
