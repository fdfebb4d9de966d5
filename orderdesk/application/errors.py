from typing import Optional, Sequence


class OrderDeskError(Exception):
    """Base class for errors raised by the order desk application layer."""


class ConfigurationError(OrderDeskError):
    """Marketplace credentials are missing from the settings store."""

    def __init__(self, message: str, missing: Sequence[str] = ()):
        super().__init__(message)
        self.message = message
        self.missing = list(missing)


class TransportError(OrderDeskError):
    """The marketplace API was unreachable or answered with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body


class OrderNotFound(OrderDeskError):
    pass


class InvalidStatus(OrderDeskError):
    pass
