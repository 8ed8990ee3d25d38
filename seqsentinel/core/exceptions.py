"""
Custom exceptions for the sequence anomaly engine.

These exceptions provide clear error semantics across the system.
Use them to distinguish between short inputs, unknown baselines, malformed
data, and configuration errors.
"""

from typing import Optional


class AnomalyDetectionError(Exception):
    """Base exception for anomaly detection failures."""
    pass


class InsufficientDataError(AnomalyDetectionError):
    """Raised when a sequence is shorter than an algorithm's minimum length."""

    def __init__(self, operation: str, required: int, actual: Optional[int] = None) -> None:
        self.operation = operation
        self.required = required
        self.actual = actual
        message = f"Insufficient data for {operation}: need at least {required} values"
        if actual is not None:
            message += f", got {actual}"
        super().__init__(message)


class BaselineNotFoundError(AnomalyDetectionError):
    """Raised when a baseline identifier was never stored (or was reset)."""

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(f"Baseline not found for identifier: {identifier!r}")


class ModelNotTrainedError(AnomalyDetectionError):
    """Raised when an isolation forest is scored before it has been fitted."""

    def __init__(self, message: str = "Anomaly model not trained") -> None:
        super().__init__(message)


class DataValidationError(AnomalyDetectionError):
    """Raised when input data is malformed (ragged rows, NaN, bad parameters)."""
    pass


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing."""
    pass
