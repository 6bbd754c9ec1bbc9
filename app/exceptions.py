"""Exceptions raised by the bill analysis pipeline.

Every exception carries a user-facing ``message``; the request handler returns
it verbatim in the ``error`` field of a failed response.
"""


class BillAnalysisError(Exception):
    """Base exception for all bill analysis errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(BillAnalysisError):
    """Required configuration is missing."""
    pass


class AuthenticationError(BillAnalysisError):
    """Missing or invalid bearer token."""
    pass


class InvalidRequestError(BillAnalysisError):
    """Request body is not valid JSON or lacks required fields."""
    pass


class ReceiptNotFoundError(BillAnalysisError):
    """Receipt does not exist or is not owned by the caller."""

    def __init__(self, message: str = "Receipt not found"):
        super().__init__(message)


class ReceiptDownloadError(BillAnalysisError):
    """Receipt file could not be fetched from storage."""

    def __init__(self, message: str = "Failed to download receipt"):
        super().__init__(message)


class OracleError(BillAnalysisError):
    """The AI gateway did not return a usable response."""
    pass


class RateLimitedError(OracleError):
    """AI gateway answered HTTP 429."""

    def __init__(self, message: str = "AI rate limit exceeded. Please try again in a few minutes."):
        super().__init__(message)


class QuotaExhaustedError(OracleError):
    """AI gateway answered HTTP 402."""

    def __init__(self, message: str = "AI credits exhausted. Please add funds to your AI gateway workspace."):
        super().__init__(message)


class OracleUnavailableError(OracleError):
    """Any other gateway failure."""
    pass


class ParseFailure(BillAnalysisError):
    """The AI response did not contain a usable JSON object."""

    def __init__(self, message: str = "Failed to parse AI analysis"):
        super().__init__(message)


class PersistenceError(BillAnalysisError):
    """Writing bill_reviews or bill_errors failed."""
    pass


class DocumentConversionError(BillAnalysisError):
    """A PDF receipt could not be rendered to images."""

    def __init__(self, message: str = "Failed to read receipt PDF"):
        super().__init__(message)
