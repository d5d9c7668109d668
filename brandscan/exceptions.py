"""
Custom exception classes for the brand media-value analyzer.

Errors raised inside the analysis pipeline are converted into an error
result by the result shaper; errors raised at the HTTP boundary (bad input,
missing credentials) are surfaced before the pipeline runs.

Hierarchy:
    Exception
    +-- AnalysisBaseError (base for all pipeline-specific errors)
    |   +-- MetricsUnavailableError
    |   +-- LogoDetectionError
    |   +-- AuthenticationError
    +-- ValidationError (ValueError)
    |   +-- ResultInvariantError
    +-- DatabaseError
    +-- ConfigurationError
"""

from typing import List


# =============================================================================
# BASE EXCEPTION
# =============================================================================


class AnalysisBaseError(Exception):
    """Base exception for all analysis-related errors."""

    pass


# =============================================================================
# CORE EXCEPTIONS
# =============================================================================


class ValidationError(ValueError):
    """Raised when input validation fails."""

    pass


class DatabaseError(Exception):
    """Raised when database operations fail."""

    pass


class ConfigurationError(Exception):
    """Raised when system configuration is invalid."""

    pass


# =============================================================================
# PIPELINE EXCEPTIONS
# =============================================================================


class MetricsUnavailableError(AnalysisBaseError):
    """Raised when the metrics source cannot provide metrics for a post.

    Attributes:
        post_url: The post whose metrics were requested, when known.
    """

    def __init__(self, message: str, post_url: str = ""):
        self.post_url = post_url
        super().__init__(message)


class LogoDetectionError(AnalysisBaseError):
    """Raised when the logo detector cannot produce a decision."""

    pass


class AuthenticationError(AnalysisBaseError):
    """Raised when the caller identity is missing or invalid."""

    pass


# =============================================================================
# VALIDATION EXCEPTIONS
# =============================================================================


class ResultInvariantError(ValidationError):
    """Raised when an analysis result mixes payloads of different variants.

    Attributes:
        issues: List of invariant violations found.
    """

    def __init__(self, issues: List[str]):
        self.issues = issues
        super().__init__(f"Invalid analysis result: {issues}")


# =============================================================================
# PUBLIC API
# =============================================================================

__all__ = [
    # Base
    "AnalysisBaseError",
    # Core
    "ValidationError",
    "DatabaseError",
    "ConfigurationError",
    # Pipeline
    "MetricsUnavailableError",
    "LogoDetectionError",
    "AuthenticationError",
    # Validation
    "ResultInvariantError",
]
