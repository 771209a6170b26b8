"""Errors raised inside the execution gateway.

They never reach the HTTP layer as faults: the dispatcher turns provider
errors into results, and the routes turn validation errors into 400s.
"""


class ExecutionGatewayError(Exception):
    """Base class for gateway errors."""


class ExecutionValidationError(ExecutionGatewayError):
    """The request is malformed or names an unsupported language."""


class SecurityRejection(ExecutionGatewayError):
    """The source matched a deny-listed pattern."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ProviderError(ExecutionGatewayError):
    """A provider failed; ``status`` is the result status to report."""

    def __init__(self, message: str, status: str = "error"):
        super().__init__(message)
        self.status = status


class ProviderTimeout(ProviderError):
    def __init__(self, message: str):
        super().__init__(message, status="timeout")
