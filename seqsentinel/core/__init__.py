"""
Core module: Configuration, logging, and exception handling.
"""

from .config import Config, config
from .logging_config import setup_logging
from .exceptions import (
    AnomalyDetectionError,
    BaselineNotFoundError,
    ConfigurationError,
    DataValidationError,
    InsufficientDataError,
    ModelNotTrainedError,
)

__all__ = [
    "Config",
    "config",
    "setup_logging",
    "AnomalyDetectionError",
    "BaselineNotFoundError",
    "ConfigurationError",
    "DataValidationError",
    "InsufficientDataError",
    "ModelNotTrainedError",
]
