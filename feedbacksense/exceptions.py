"""
Custom exceptions for the FeedbackSense library.
"""

from typing import Any


class FeedbackSenseError(Exception):
    """Base exception for all FeedbackSense errors."""

    pass


class ConfigurationError(FeedbackSenseError):
    """Raised when configuration parameters are invalid."""

    def __init__(self, message: str, parameter: str = None, suggested_fix: str = None):
        self.parameter = parameter
        self.suggested_fix = suggested_fix

        full_message = f"Configuration Error: {message}"
        if parameter:
            full_message += f" (Parameter: {parameter})"
        if suggested_fix:
            full_message += f" Suggested fix: {suggested_fix}"

        super().__init__(full_message)


class ValidationError(FeedbackSenseError):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: str = None, value: Any = None):
        self.field = field
        self.value = value

        full_message = f"Validation Error: {message}"
        if field:
            full_message += f" (Field: {field})"
        if value is not None:
            full_message += f" (Value: {value})"

        super().__init__(full_message)


class NoValidInputError(ValidationError):
    """Raised when a batch contains no usable feedback text."""

    def __init__(self, message: str = "No valid feedback texts provided", total_items: int = 0):
        self.total_items = total_items
        super().__init__(message, field="texts", value=total_items)


class ServiceUnavailableError(FeedbackSenseError):
    """Raised when the AI service has no credentials configured."""

    def __init__(self, message: str = "AI service not configured", model: str = None):
        self.model = model

        full_message = f"Service Unavailable: {message}"
        if model:
            full_message += f" (Model: {model})"

        super().__init__(full_message)


class RateLimitedError(FeedbackSenseError):
    """Raised when the request window is exhausted."""

    def __init__(self, message: str, limit: int = None, window_seconds: float = None):
        self.limit = limit
        self.window_seconds = window_seconds

        full_message = f"Rate Limited: {message}"
        if limit is not None and window_seconds is not None:
            full_message += f" (Limit: {limit} per {window_seconds:g}s)"

        super().__init__(full_message)


class AIServiceError(FeedbackSenseError):
    """Raised when a call to the AI service fails."""

    def __init__(
        self,
        message: str,
        model: str = None,
        error_type: str = None,
        retry_suggested: bool = True,
    ):
        self.model = model
        self.error_type = error_type
        self.retry_suggested = retry_suggested

        full_message = f"AI Service Error: {message}"
        if model:
            full_message += f" (Model: {model})"
        if error_type:
            full_message += f" (Type: {error_type})"

        super().__init__(full_message)


class InvalidResponseError(AIServiceError):
    """Raised when the AI service output cannot be parsed or fails validation."""

    def __init__(self, message: str, model: str = None, raw_response: str = None):
        self.raw_response = raw_response
        super().__init__(
            message, model=model, error_type="invalid_response", retry_suggested=False
        )


class PromptTooLargeError(AIServiceError):
    """Raised when a prompt exceeds the model's input token budget."""

    def __init__(self, message: str, prompt_tokens: int = None, max_tokens: int = None):
        self.prompt_tokens = prompt_tokens
        self.max_tokens = max_tokens

        if prompt_tokens and max_tokens:
            message += f" (Required: {prompt_tokens}, Available: {max_tokens})"

        super().__init__(message, error_type="prompt_too_large", retry_suggested=True)


class ClassificationCancelledError(FeedbackSenseError):
    """Raised when a running batch is cancelled by the caller."""

    def __init__(self, message: str = "Classification run cancelled", processed: int = 0):
        self.processed = processed

        full_message = f"Cancelled: {message}"
        if processed:
            full_message += f" (Processed before cancel: {processed})"

        super().__init__(full_message)


class DatabaseError(FeedbackSenseError):
    """Raised when database operations fail."""

    def __init__(self, message: str, operation: str = None, table: str = None):
        self.operation = operation
        self.table = table

        full_message = f"Database Error: {message}"
        if operation:
            full_message += f" (Operation: {operation})"
        if table:
            full_message += f" (Table: {table})"

        super().__init__(full_message)


class CorrectionTrackingError(FeedbackSenseError):
    """Raised when a correction record cannot be persisted or loaded."""

    def __init__(self, message: str, operation: str = None):
        self.operation = operation

        full_message = f"Correction Tracking Error: {message}"
        if operation:
            full_message += f" (Operation: {operation})"

        super().__init__(full_message)
