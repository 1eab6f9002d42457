"""
Collection of cluster state when a system test fails.

Everything a failed test leaves in its namespaces is written below
``<logs location>/<test name>/<namespace>/`` so CI artifacts show what the
operator and the brokers were doing at the time.
"""

import logging
import re
from pathlib import Path
from typing import Any

from kubernetes.client.rest import ApiException

from artemis_systemtests.models import (
    ActiveMQArtemis,
    ActiveMQArtemisAddress,
    ActiveMQArtemisSecurity,
)
from artemis_systemtests.services.kube_client import KubeClient
from artemis_systemtests.utils.manifests import dump_yaml

logger = logging.getLogger(__name__)

COLLECTED_CUSTOM_RESOURCES = (ActiveMQArtemis, ActiveMQArtemisAddress, ActiveMQArtemisSecurity)


def sanitize_test_name(test_name: str) -> str:
    """Turn a pytest node id into a directory name."""
    return re.sub(r"[^A-Za-z0-9_.-]+", "_", test_name).strip("_") or "unknown-test"


class TestDataCollector:
    """Dumps namespaced cluster state of a failed test to disk."""

    __test__ = False  # Not a pytest test class

    def __init__(self, kube_client: KubeClient, logs_location: Path):
        self.kube_client = kube_client
        self.logs_location = Path(logs_location)

    def _to_data(self, objects: list[Any]) -> list[Any]:
        return [self.kube_client.api_client.sanitize_for_serialization(obj) for obj in objects]

    def _write(self, path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    def collect(self, test_name: str, namespaces: list[str]) -> Path:
        """
        Collect the state of each namespace for a failed test.

        Failures while collecting are logged and never raised.

        Returns:
            The directory holding the collected data
        """
        test_dir = self.logs_location / sanitize_test_name(test_name)
        for namespace in namespaces:
            try:
                self.collect_namespace(namespace, test_dir / namespace)
            except Exception as e:
                logger.error(f"[{namespace}] Failed to collect test data: {e!r}")
        logger.info(f"Test data of {test_name} collected into {test_dir}")
        return test_dir

    def collect_namespace(self, namespace: str, target: Path) -> None:
        kube = self.kube_client
        pods = kube.list_pods(namespace)
        sections = {
            "pods.yaml": pods,
            "statefulsets.yaml": kube.list_stateful_sets(namespace),
            "deployments.yaml": kube.list_deployments(namespace),
            "services.yaml": kube.list_services(namespace),
            "events.yaml": kube.list_events(namespace),
        }
        for file_name, objects in sections.items():
            self._write(target / file_name, dump_yaml(self._to_data(objects)))

        for resource_type in COLLECTED_CUSTOM_RESOURCES:
            try:
                items = kube.list_custom_objects(
                    resource_type.GROUP, resource_type.VERSION, resource_type.PLURAL, namespace
                )
            except ApiException as e:
                logger.debug(f"[{namespace}] Cannot list {resource_type.PLURAL}: {e.status}")
                continue
            if items:
                self._write(target / f"{resource_type.PLURAL}.yaml", dump_yaml(items))

        for pod in pods:
            for container in pod.spec.containers:
                log_path = target / "logs" / f"{pod.metadata.name}-{container.name}.log"
                try:
                    log = kube.read_pod_log(namespace, pod.metadata.name, container.name)
                except ApiException as e:
                    log = f"Unable to read log: {e.status} {e.reason}"
                self._write(log_path, log or "")


def collect_test_data(
    kube_client: KubeClient, test_name: str, namespaces: list[str], logs_location: Path
) -> Path:
    """Convenience wrapper used by the pytest failure hook."""
    return TestDataCollector(kube_client, logs_location).collect(test_name, namespaces)
