"""Custom exception types for the GitHub AI utilization PR report."""


class ReportGeneratorError(Exception):
    """Base exception for all recoverable report generator errors."""


class ConfigurationError(ReportGeneratorError):
    """Raised when runtime configuration values are missing or invalid."""


class AuthenticationError(ReportGeneratorError):
    """Raised when GitHub authentication credentials are unavailable or invalid."""


class ApiError(ReportGeneratorError):
    """Raised when a GitHub API request fails or returns an unexpected response."""


class PaginationLimitError(ApiError):
    """Raised when a repository listing exceeds the configured page ceiling."""


class DataValidationError(ReportGeneratorError):
    """Raised when API payloads or derived report data do not meet expected constraints."""


class OutputError(ReportGeneratorError):
    """Raised when the CSV report cannot be written."""
