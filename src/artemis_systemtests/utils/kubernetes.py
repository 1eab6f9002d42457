"""
Kubernetes client configuration for the system tests.

The suite runs either from a developer machine (kubeconfig) or from a pod
inside the cluster under test (service account).
"""

import logging

from kubernetes import client, config

logger = logging.getLogger(__name__)


def get_kubernetes_client(context: str | None = None) -> client.ApiClient:
    """
    Get configured Kubernetes API client.

    In-cluster configuration is tried first, then the local kubeconfig.

    Args:
        context: Kubeconfig context to use; the current context when None

    Returns:
        Configured Kubernetes API client
    """
    try:
        config.load_incluster_config()
        logger.debug("Loaded in-cluster Kubernetes configuration")
    except config.ConfigException:
        try:
            config.load_kube_config(context=context)
            logger.debug(
                f"Loaded kubeconfig from local environment (context: {context or 'current'})"
            )
        except config.ConfigException as e:
            logger.error(f"Failed to load Kubernetes configuration: {e}")
            raise

    return client.ApiClient()


def api_exception_reason(exc: Exception) -> str:
    """Short human readable reason of an ApiException."""
    status = getattr(exc, "status", None)
    reason = getattr(exc, "reason", None) or str(exc)
    return f"{status} {reason}" if status else reason
