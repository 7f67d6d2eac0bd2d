"""Custom exceptions with error classification for the article rewrite pipeline."""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Error codes for classification and handling."""
    # Business logic errors
    NO_REFERENCES = "NO_REFERENCES"
    INSUFFICIENT_CONTENT = "INSUFFICIENT_CONTENT"

    # External service errors
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    EXTRACTION_FAILED = "EXTRACTION_FAILED"
    EXTRACTION_TIMEOUT = "EXTRACTION_TIMEOUT"
    EXTRACTION_NETWORK_ERROR = "EXTRACTION_NETWORK_ERROR"
    SEARCH_FAILED = "SEARCH_FAILED"
    GENERATION_FAILED = "GENERATION_FAILED"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    PUBLISH_VALIDATION_FAILED = "PUBLISH_VALIDATION_FAILED"
    DUPLICATE_ARTICLE = "DUPLICATE_ARTICLE"

    # Startup errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


class BaseAppException(Exception):
    """Base exception with error classification and retry information."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        retryable: bool = False,
        retry_after: Optional[int] = None
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        self.retryable = retryable
        self.retry_after = retry_after
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging and serialization."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
            "retryable": self.retryable,
            "retry_after": self.retry_after,
            "type": self.__class__.__name__
        }


# Business Logic Errors
class BusinessLogicError(BaseAppException):
    """Base class for business logic errors."""
    pass


class NoReferencesError(BusinessLogicError):
    """Raised when a rewrite is attempted without any reference article."""

    def __init__(self, source_id: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        message = "No reference articles available for rewrite"
        if source_id is not None:
            message += f" of article {source_id}"
        super().__init__(
            code=ErrorCode.NO_REFERENCES,
            message=message,
            details=details or {"source_id": source_id},
            retryable=False
        )


# External Service Errors
class ExternalServiceError(BaseAppException):
    """Base class for external service errors."""
    pass


class RateLimitExceededError(ExternalServiceError):
    """Raised when a generation backend signals a rate limit."""

    def __init__(self, message: str, retry_after: Optional[int] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            code=ErrorCode.RATE_LIMIT_EXCEEDED,
            message=message,
            details=details,
            retryable=True,
            retry_after=retry_after
        )


class ExtractionError(ExternalServiceError):
    """Base exception for page fetch and extraction failures."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, retryable: bool = False):
        super().__init__(
            code=ErrorCode.EXTRACTION_FAILED,
            message=message,
            details=details,
            retryable=retryable
        )


class ExtractionTimeoutError(ExtractionError):
    """Raised when a page fetch times out."""

    def __init__(self, url: str, timeout: int, details: Optional[Dict[str, Any]] = None):
        message = f"Extraction timeout for {url} after {timeout}s"
        super().__init__(
            message=message,
            details=details or {"url": url, "timeout": timeout}
        )
        self.code = ErrorCode.EXTRACTION_TIMEOUT


class ExtractionParsingError(ExtractionError):
    """Raised when a page yields too little usable content."""

    def __init__(self, url: str, details: Optional[Dict[str, Any]] = None):
        message = f"Insufficient content extracted from {url}"
        super().__init__(
            message=message,
            details=details or {"url": url}
        )
        self.code = ErrorCode.INSUFFICIENT_CONTENT


class ExtractionNetworkError(ExtractionError):
    """Raised on connection failures and non-2xx responses."""

    def __init__(self, url: str, status_code: Optional[int] = None, details: Optional[Dict[str, Any]] = None):
        message = f"Network error fetching {url}"
        if status_code:
            message += f" (status: {status_code})"

        super().__init__(
            message=message,
            details=details or {"url": url, "status_code": status_code}
        )
        self.code = ErrorCode.EXTRACTION_NETWORK_ERROR
        self.status_code = status_code


class SearchProviderError(ExternalServiceError):
    """Raised when a reference search request fails."""

    def __init__(self, provider: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            code=ErrorCode.SEARCH_FAILED,
            message=f"{provider} search failed: {message}",
            details=details or {"provider": provider}
        )


class GenerationBackendError(ExternalServiceError):
    """Raised when a generation backend fails for any reason other than rate limiting."""

    def __init__(self, backend: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            code=ErrorCode.GENERATION_FAILED,
            message=f"{backend} generation failed: {message}",
            details=details or {"backend": backend}
        )


class ArticleStoreError(ExternalServiceError):
    """Raised when the article store cannot be reached or answers unexpectedly."""

    def __init__(self, message: str, status_code: Optional[int] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            code=ErrorCode.STORE_UNAVAILABLE,
            message=message,
            details=details or {"status_code": status_code},
            retryable=True
        )
        self.status_code = status_code


class PublishValidationError(ArticleStoreError):
    """Raised when the article store rejects a payload."""

    def __init__(self, message: str, errors: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=422,
            details={"errors": errors or {}}
        )
        self.code = ErrorCode.PUBLISH_VALIDATION_FAILED
        self.retryable = False
        self.errors = errors or {}


class DuplicateArticleError(PublishValidationError):
    """Raised when the article store rejects a payload on a uniqueness constraint."""

    def __init__(self, message: str, errors: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, errors=errors)
        self.code = ErrorCode.DUPLICATE_ARTICLE


# Startup Errors
class ConfigurationError(BaseAppException):
    """Raised when the pipeline is misconfigured and must refuse to run."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            code=ErrorCode.CONFIGURATION_ERROR,
            message=message,
            details=details,
            retryable=False
        )
