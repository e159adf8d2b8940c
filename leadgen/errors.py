"""
Error taxonomy for the lead generation pipeline.

Every error carries a ``user_message`` that is safe to show as-is. Raw
exceptions from the AI SDK or the JSON decoder are chained as ``__cause__``
and never displayed.
"""
from typing import Optional


class LeadGenerationError(Exception):
    """Base class for every error the pipeline surfaces."""

    user_message = "An unexpected error occurred. Please try again in a moment."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.user_message)

    @property
    def message(self) -> str:
        return str(self)


class ConfigurationError(LeadGenerationError):
    user_message = "The lead generator is not configured correctly."


class EmptyResponse(LeadGenerationError):
    user_message = "The AI returned an empty response."


class UnparsableResponse(LeadGenerationError):
    user_message = "The AI returned a response in an invalid format."

    def __init__(self, message: Optional[str] = None, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class SchemaMismatch(LeadGenerationError):
    """Parsed JSON that is empty or does not have the expected shape."""

    user_message = "The AI returned JSON with an unexpected structure."


class ServiceRefusal(LeadGenerationError):
    user_message = (
        "The AI service declined this request because of its content safety policy. "
        "Please adjust your search criteria or custom research request and try again."
    )

    def __init__(self, message: Optional[str] = None, reason: Optional[str] = None):
        super().__init__(message)
        self.reason = reason


class TransientFault(LeadGenerationError):
    """A failure that is likely temporary (overload, internal error)."""

    user_message = "The AI service had a temporary problem."


class ServiceUnavailable(LeadGenerationError):
    user_message = (
        "There's a problem on our end. The AI service seems to be unavailable or "
        "overloaded. Please try again in a few moments."
    )


class FormatTroubleError(LeadGenerationError):
    user_message = (
        "The AI had trouble producing a well-formed answer. This can be a temporary "
        "issue. Please try again."
    )


class NoResultsError(LeadGenerationError):
    user_message = "No businesses found matching your criteria. Try broadening your search."


class AllResearchFailedError(LeadGenerationError):
    user_message = (
        "There was a problem on our end researching the businesses. The AI service may "
        "be temporarily unavailable. Please try again later."
    )


class QuotaExceededError(LeadGenerationError):
    user_message = "You have reached your daily generation limit. Please try again tomorrow."


class LeadImportError(LeadGenerationError):
    user_message = "The provided lead data could not be imported."
