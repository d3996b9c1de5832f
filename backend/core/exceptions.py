"""Custom exceptions for the workflow automation runtime."""


class AutomationError(Exception):
    """Base exception for the workflow automation runtime."""

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code.

        Args:
            message: Exception message
            status_code: HTTP status code
        """
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundError(AutomationError):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize NotFoundError with 404 status code."""
        super().__init__(message, 404)


class UnauthorizedError(AutomationError):
    """Unauthorized access exception."""

    def __init__(self, message: str = "Unauthorized"):
        """Initialize UnauthorizedError with 401 status code."""
        super().__init__(message, 401)


class ValidationError(AutomationError):
    """Validation error exception."""

    def __init__(self, message: str = "Validation failed"):
        """Initialize ValidationError with 422 status code."""
        super().__init__(message, 422)


class ConflictError(AutomationError):
    """Resource conflict exception."""

    def __init__(self, message: str = "Resource conflict"):
        """Initialize ConflictError with 409 status code."""
        super().__init__(message, 409)


class WorkflowNotFoundError(NotFoundError):
    """Workflow is missing or switched off, so it cannot run."""

    def __init__(self, message: str = "Workflow not found or inactive"):
        super().__init__(message)


class ExecutionNotFoundError(NotFoundError):
    def __init__(self, message: str = "Execution not found"):
        super().__init__(message)


class WebhookNotFoundError(NotFoundError):
    def __init__(self, message: str = "Webhook not found or inactive"):
        super().__init__(message)


class InvalidSignatureError(UnauthorizedError):
    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(message)


class WorkflowDefinitionError(AutomationError):
    """A step definition cannot be executed as written.

    Raised for unknown step kinds, unknown action types or operators,
    loop items that are not a list, and runaway step nesting.
    """

    def __init__(self, message: str):
        super().__init__(message, 422)


class ExecutionCancelledError(ConflictError):
    """The execution was cancelled before it could finish."""

    def __init__(self, message: str = "Execution cancelled"):
        super().__init__(message)
