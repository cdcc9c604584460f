"""Exceptions raised by services, models and the datastore."""

from __future__ import annotations


class GenerativeAIError(Exception):
    """Wraps provider and transport failures with context.

    ``cause`` may be the original exception or a plain message. When it is
    an exception it is also set as ``__cause__``.
    """

    def __init__(
        self,
        provider: str,
        operation: str,
        cause: Exception | str,
        retryable: bool = False,
        status_code: int | None = None,
    ) -> None:
        self.provider = provider
        self.operation = operation
        self.retryable = retryable
        self.status_code = status_code
        super().__init__(f"{provider} {operation} failed: {cause}")
        if isinstance(cause, Exception):
            self.__cause__ = cause


class ServiceNotAvailableError(Exception):
    """Raised when no registered service satisfies a lookup."""

    def __init__(self, slug: str | None = None, capabilities: list[str] | None = None):
        self.slug = slug
        self.capabilities = capabilities or []
        if slug:
            msg = f"Service {slug!r} is either not registered or not available"
        else:
            msg = "No service is available"
            if self.capabilities:
                msg += f" with capabilities {', '.join(self.capabilities)}"
        super().__init__(msg)
