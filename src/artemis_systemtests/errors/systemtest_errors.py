"""
System test error hierarchy with categorization.

This module defines the error types raised by the suite's cluster façade,
resource manager and messaging clients, so that test failures say what went
wrong and what to look at.
"""


class SystemTestError(Exception):
    """
    Base error class for all system test exceptions.

    Provides categorization and user guidance for resolution.
    """

    def __init__(
        self,
        message: str,
        category: str,
        user_action: str | None = None,
        cause: Exception | None = None,
    ):
        """
        Initialize system test error.

        Args:
            message: Human-readable error description
            category: Error category (wait, lookup, api, configuration, messaging)
            user_action: What the user should check to resolve the issue
            cause: Underlying exception that caused this error
        """
        super().__init__(message)
        self.category = category
        self.user_action = user_action
        self.cause = cause

    def __str__(self) -> str:
        """Enhanced string representation with user guidance."""
        base_msg = super().__str__()
        if self.user_action:
            return f"{base_msg}\nAction required: {self.user_action}"
        return base_msg


class WaitTimeoutError(SystemTestError, TimeoutError):
    """A polled condition did not become true before its deadline."""

    def __init__(self, description: str, timeout: float):
        self.description = description
        self.timeout = timeout
        super().__init__(
            message=f"Timeout after {timeout:g}s while waiting for: {description}",
            category="wait",
            user_action="Inspect the operator logs and events of the test namespace",
        )


class WaitCancelledError(SystemTestError):
    """A polled condition was cancelled before it became true."""

    def __init__(self, description: str, elapsed: float):
        self.description = description
        self.elapsed = elapsed
        super().__init__(
            message=f"Cancelled after {elapsed:.1f}s while waiting for: {description}",
            category="wait",
        )


class ResourceNotFoundError(SystemTestError):
    """A required cluster resource does not exist."""

    def __init__(self, kind: str, name: str, namespace: str | None = None):
        location = f" in namespace {namespace}" if namespace else ""
        super().__init__(
            message=f"{kind} '{name}' not found{location}",
            category="lookup",
        )


class ResourceConflictError(SystemTestError):
    """An upsert refused to touch an object that already exists."""

    def __init__(self, kind: str, name: str, namespace: str | None = None):
        location = f" in namespace {namespace}" if namespace else ""
        super().__init__(
            message=f"{kind} '{name}' already exists{location}",
            category="conflict",
            user_action="Delete the existing object or use a replacing conflict policy",
        )


class KubernetesAPIError(SystemTestError):
    """Error communicating with the Kubernetes API."""

    def __init__(
        self,
        message: str,
        reason: str | None = None,
        cause: Exception | None = None,
    ):
        if reason:
            message = f"{message} (reason: {reason})"
        super().__init__(
            message=f"Kubernetes API error: {message}",
            category="api",
            user_action="Check RBAC permissions and cluster connectivity",
            cause=cause,
        )


class ConfigurationError(SystemTestError):
    """Error in the test suite configuration."""

    def __init__(self, message: str, user_action: str | None = None):
        super().__init__(
            message=message,
            category="configuration",
            user_action=user_action or "Review the suite environment variables",
        )


class MessagingClientError(SystemTestError):
    """A messaging client command failed inside its pod."""

    def __init__(
        self,
        client: str,
        message: str,
        returncode: int | None = None,
        output: str | None = None,
    ):
        self.returncode = returncode
        self.output = output
        if returncode is not None:
            message = f"{message} (exit code {returncode})"
        if output:
            message = f"{message}\n{output[-2000:]}"
        super().__init__(
            message=f"{client}: {message}",
            category="messaging",
            user_action="Check the broker acceptors and the client pod",
        )
