"""Application-level exceptions."""


class AppError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, code: str = "APP_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(AppError):
    """Raised when input validation fails."""

    def __init__(self, message: str):
        super().__init__(message, code="VALIDATION_ERROR")


class NotFoundError(AppError):
    """Raised when a requested resource is not found. Never retried."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}", code="NOT_FOUND")


class SourceUnavailableError(AppError):
    """Raised when an external source is temporarily unreachable (timeout, 5xx, rate limit)."""

    def __init__(self, source: str, detail: str):
        self.source = source
        super().__init__(f"{source} unavailable: {detail}", code="SOURCE_UNAVAILABLE")


class ConsistencyFaultError(AppError):
    """
    Raised when stored or fetched data violates an invariant.

    Examples are a disposal exceeding the running quantity, or an external
    number/date that fails normalization.
    """

    def __init__(self, message: str, context: dict | None = None):
        self.context = context or {}
        super().__init__(message, code="CONSISTENCY_FAULT")
