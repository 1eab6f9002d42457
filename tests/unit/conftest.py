"""Shared pytest fixtures for unit tests of the cluster façade and managers."""

from unittest.mock import MagicMock

import pytest

from artemis_systemtests.services.kube_client import KubeClient
from artemis_systemtests.services.resource_manager import ResourceManager
from artemis_systemtests.services.resource_tracker import ResourceTracker
from artemis_systemtests.settings import Settings


@pytest.fixture(autouse=True)
def no_settle_delays(monkeypatch):
    """Make fixed settle delays instant."""
    monkeypatch.setattr(
        "artemis_systemtests.services.resource_manager.thread_sleep", lambda _: None
    )
    monkeypatch.setattr("artemis_systemtests.messaging.base.thread_sleep", lambda _: None)


@pytest.fixture
def mock_kube_client():
    """Create a KubeClient whose Kubernetes APIs are mocks.

    Uses object.__new__ to create an uninitialized instance, then sets
    required attributes directly so that no kubeconfig is loaded.
    """
    kube = object.__new__(KubeClient)
    kube.namespace = "default"
    kube.api_client = MagicMock()
    kube.core_v1 = MagicMock()
    kube.apps_v1 = MagicMock()
    kube.batch_v1 = MagicMock()
    kube.custom_objects = MagicMock()
    kube.apiextensions_v1 = MagicMock()
    kube.version_api = MagicMock()
    kube._dynamic = MagicMock()
    return kube


@pytest.fixture
def test_settings(tmp_path):
    """Settings independent of the environment of the test run."""
    return Settings(
        CLUSTER_OPERATOR_MANAGED=True,
        OLM=False,
        OPERATOR_REPO=str(tmp_path / "operator"),
        LOGS_LOCATION=str(tmp_path / "logs"),
    )


@pytest.fixture
def tracker():
    return ResourceTracker()


@pytest.fixture
def resource_manager(mock_kube_client, test_settings, tracker):
    return ResourceManager(mock_kube_client, settings=test_settings, tracker=tracker)
