"""
Error handling module for the Artemis Cloud system tests.

This module provides the error hierarchy raised by the suite and gives clear
categorization for the different ways a test can fail.
"""

from .systemtest_errors import (
    ConfigurationError,
    KubernetesAPIError,
    MessagingClientError,
    ResourceConflictError,
    ResourceNotFoundError,
    SystemTestError,
    WaitCancelledError,
    WaitTimeoutError,
)

__all__ = [
    "SystemTestError",
    "WaitTimeoutError",
    "WaitCancelledError",
    "ResourceNotFoundError",
    "ResourceConflictError",
    "KubernetesAPIError",
    "ConfigurationError",
    "MessagingClientError",
]
