"""Exceptions raised by the bookmark vault client."""


class VaultError(RuntimeError):
    """Base class for bookmark vault errors."""


class TransportError(VaultError):
    """The bookmark service could not be reached or returned a non-success status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ValidationRejection(VaultError):
    """An action was refused locally before any request was made."""
