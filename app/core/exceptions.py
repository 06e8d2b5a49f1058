"""Custom exceptions for the CoopBuy commitment engine."""


class CoopBuyError(Exception):
    """Base exception for the CoopBuy application."""

    pass


class ValidationError(CoopBuyError):
    """Raised when input validation fails."""

    pass


class NotFoundError(CoopBuyError):
    """Raised when a referenced commitment, deal or user does not exist."""

    pass


class AuthorizationError(CoopBuyError):
    """Raised when the actor does not own or administer the referenced deal."""

    pass


class InvalidStateError(CoopBuyError):
    """Raised when a requested transition is not legal from the current state."""

    pass


class PersistenceError(CoopBuyError):
    """Raised when a primary store operation fails."""

    pass


class NotificationError(CoopBuyError):
    """Raised when an outbound notification could not be delivered."""

    pass


class ConfigurationError(CoopBuyError):
    """Raised when configuration is invalid."""

    pass
