"""
Pytest configuration and fixtures for the system tests.

The tests run against the cluster of the current kubeconfig context (or the
in-cluster service account) and are skipped when no cluster is configured.

Fixture scopes:
- session: settings, Kubernetes façade, resource manager; at the end of the
  session every resource still tracked is removed
- class: one namespace per test class, with the operator under test deployed
  into it
- function: test separators in the log and data collection on failure
"""

import logging

import pytest
from kubernetes import config

from artemis_systemtests.observability.diagnostics import collect_test_data
from artemis_systemtests.observability.logging import (
    log_test_separator,
    set_current_test,
    setup_test_logging,
)
from artemis_systemtests.services.kube_client import KubeClient
from artemis_systemtests.services.resource_manager import ResourceManager
from artemis_systemtests.services.resource_tracker import ResourceTracker, TrackedKind
from artemis_systemtests.settings import settings as suite_settings
from artemis_systemtests.utils.naming import get_random_namespace_name

logger = logging.getLogger("artemis_systemtests.tests")

DEFAULT_NAMESPACE_PREFIX = "systemtests"


@pytest.hookimpl(hookwrapper=True, tryfirst=True)
def pytest_runtest_makereport(item, call):
    """Expose test outcome to fixtures for data collection on failure."""
    outcome = yield
    rep = outcome.get_result()
    setattr(item, "rep_" + rep.when, rep)


@pytest.fixture(scope="session")
def settings():
    """Suite settings loaded from the environment."""
    setup_test_logging(suite_settings.test_log_level, suite_settings.json_logs)
    return suite_settings


@pytest.fixture(scope="session")
def kube_client(settings):
    """Kubernetes façade; skips the session when no cluster is configured."""
    try:
        kube = KubeClient(context=settings.kube_context)
    except config.ConfigException as e:
        pytest.skip(f"No Kubernetes cluster configured: {e}")

    info = kube.get_cluster_info()
    logger.info(
        f"Running against Kubernetes {info['version']} ({info['platform']}), "
        f"{info['nodes']} nodes, {info['workers']} workers"
    )
    return kube


@pytest.fixture(scope="session")
def resource_manager(kube_client, settings):
    """Resource manager whose leftovers are swept at the end of the session."""
    manager = ResourceManager(kube_client, settings=settings, tracker=ResourceTracker())
    yield manager

    tracker = manager.undeploy_all_resources()
    if tracker.has_failures():
        logger.warning(tracker.get_report())


@pytest.fixture(scope="class")
def test_namespace(request, resource_manager, settings):
    """Namespace shared by the tests of a class.

    The prefix comes from the ``namespace_prefix`` attribute of the test
    class, e.g. ``smoke-tests`` gives ``smoke-tests-x7k2qa``.
    """
    prefix = getattr(request.cls, "namespace_prefix", DEFAULT_NAMESPACE_PREFIX)
    name = get_random_namespace_name(prefix, disabled=settings.disable_random_namespaces)
    logger.info(f"[{name}] Creating new namespace to {name}")
    resource_manager.create_namespace(name)
    yield name

    logger.info(f"[{name}] Deleting namespace to {name}")
    resource_manager.delete_namespace(name)


@pytest.fixture(scope="class")
def cluster_operator(resource_manager, test_namespace):
    """Operator under test, deployed into the class namespace when managed."""
    operator = resource_manager.deploy_cluster_operator(test_namespace)
    yield operator

    resource_manager.undeploy_cluster_operator(operator)


@pytest.fixture(autouse=True)
def test_lifecycle(request, kube_client, resource_manager, settings):
    """Log separators around every test and collect cluster state on failure."""
    test_name = request.node.nodeid
    set_current_test(test_name)
    log_test_separator(logger, test_name, "STARTED")
    yield

    rep = getattr(request.node, "rep_call", None)
    if rep is not None and rep.failed and settings.collect_test_data:
        namespaces = [
            entry.name for entry in resource_manager.tracker.get(TrackedKind.NAMESPACE)
        ]
        collect_test_data(kube_client, test_name, namespaces, settings.logs_location)
    log_test_separator(logger, test_name, "FINISHED")
    set_current_test("")
