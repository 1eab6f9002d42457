"""
Cluster resource façade for the system tests.

KubeClient wraps the typed Kubernetes APIs with the lookups, polls and
upserts the tests need. Getters return None when the object does not exist;
any other API failure propagates.
"""

import copy
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

from kubernetes import client, dynamic
from kubernetes.client.rest import ApiException
from kubernetes.stream import stream

from artemis_systemtests.constants import (
    CLIENT_TIMEOUT,
    DURATION_1_MINUTE,
    DURATION_2_SECONDS,
    DURATION_3_MINUTES,
    DURATION_5_SECONDS,
    NODE_ROLE_MASTER_LABEL,
    NODE_ROLE_WORKER_LABEL,
    OPENSHIFT_UID_RANGE_ANNOTATION,
    SYSTEMTESTS_LABEL_KEY,
    SYSTEMTESTS_LABEL_VALUE,
)
from artemis_systemtests.errors import (
    KubernetesAPIError,
    ResourceConflictError,
    ResourceNotFoundError,
    WaitTimeoutError,
)
from artemis_systemtests.utils.kubernetes import (
    api_exception_reason,
    get_kubernetes_client,
)
from artemis_systemtests.utils.waiting import wait_for

logger = logging.getLogger(__name__)


class ConflictPolicy(Enum):
    """What an upsert does when the object already exists."""

    REPLACE = "replace"  # Overwrite with the new body
    KEEP_EXISTING = "keep_existing"  # Leave the cluster object untouched
    FAIL = "fail"  # Raise ResourceConflictError


@dataclass
class ExecResult:
    """Outcome of a command executed inside a pod."""

    returncode: int
    stdout: str
    stderr: str

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        return self.stdout + self.stderr


def _get_or_none(read, **kwargs):
    """Call a read API and map HTTP 404 to None."""
    try:
        return read(**kwargs)
    except ApiException as e:
        if e.status == 404:
            return None
        raise


class KubeClient:
    """Kubernetes operations used by the resource manager and the tests."""

    def __init__(
        self,
        namespace: str = "default",
        api_client: client.ApiClient | None = None,
        context: str | None = None,
    ):
        """
        Initialize the façade.

        Args:
            namespace: Default namespace of namespace-less calls
            api_client: Preconfigured API client; loaded from config when None
            context: Kubeconfig context used when loading the config
        """
        self.namespace = namespace
        self.api_client = api_client or get_kubernetes_client(context)
        self.core_v1 = client.CoreV1Api(self.api_client)
        self.apps_v1 = client.AppsV1Api(self.api_client)
        self.batch_v1 = client.BatchV1Api(self.api_client)
        self.custom_objects = client.CustomObjectsApi(self.api_client)
        self.apiextensions_v1 = client.ApiextensionsV1Api(self.api_client)
        self.version_api = client.VersionApi(self.api_client)
        self._dynamic: dynamic.DynamicClient | None = None

    @property
    def dynamic(self) -> dynamic.DynamicClient:
        """Dynamic client, created on first use (it queries API discovery)."""
        if self._dynamic is None:
            self._dynamic = dynamic.DynamicClient(self.api_client)
        return self._dynamic

    def in_namespace(self, namespace: str) -> "KubeClient":
        """Switch the default namespace and return self for chaining."""
        self.namespace = namespace
        return self

    # ------------------------------------------------------------------
    # Namespaces
    # ------------------------------------------------------------------

    def create_namespace(
        self, name: str, set_namespace: bool = False
    ) -> client.V1Namespace:
        """
        Create a namespace, or reuse it when it already exists.

        Blocks until the namespace is visible.
        """
        logger.debug(f"Creating new namespace: {name}")
        body = client.V1Namespace(
            metadata=client.V1ObjectMeta(
                name=name, labels={SYSTEMTESTS_LABEL_KEY: SYSTEMTESTS_LABEL_VALUE}
            )
        )
        try:
            namespace = self.core_v1.create_namespace(body=body)
        except ApiException as e:
            if e.status != 409:
                raise
            logger.info(f"Namespace {name} already exists, reusing it")
            namespace = self.core_v1.read_namespace(name=name)

        wait_for(
            f"namespace {name} to be created",
            DURATION_2_SECONDS,
            DURATION_3_MINUTES,
            lambda: self.namespace_exists(name),
        )
        if set_namespace:
            self.namespace = name
        return namespace

    def delete_namespace(self, name: str, wait: bool = True) -> None:
        """Delete a namespace and block until it is gone. Missing is fine."""
        logger.debug(f"Deleting namespace: {name}")
        try:
            self.core_v1.delete_namespace(
                name=name,
                body=client.V1DeleteOptions(propagation_policy="Foreground"),
            )
        except ApiException as e:
            if e.status != 404:
                raise
            logger.debug(f"Namespace {name} already deleted")
            return

        if wait:
            wait_for(
                f"namespace {name} to be deleted",
                DURATION_2_SECONDS,
                DURATION_3_MINUTES,
                lambda: not self.namespace_exists(name),
            )

    def get_namespace(self, name: str) -> client.V1Namespace | None:
        return _get_or_none(self.core_v1.read_namespace, name=name)

    def namespace_exists(self, name: str) -> bool:
        return self.get_namespace(name) is not None

    def is_namespace_active(self, name: str) -> bool:
        namespace = self.get_namespace(name)
        return bool(namespace and namespace.status and namespace.status.phase == "Active")

    def get_available_user_id(self, namespace: str, default_user_id: int) -> int:
        """
        User id a pod may run as in the namespace.

        OpenShift assigns every namespace a uid range (annotation value like
        ``1001040000/10000``); the default id is used as an offset into it.
        Elsewhere the default id is returned unchanged.
        """
        ns = self.get_namespace(namespace)
        annotations = (ns.metadata.annotations or {}) if ns and ns.metadata else {}
        uid_range = annotations.get(OPENSHIFT_UID_RANGE_ANNOTATION)
        if not uid_range:
            logger.debug(
                f"[{namespace}] Unable to detect '{OPENSHIFT_UID_RANGE_ANNOTATION}', "
                f"using default userId {default_user_id}"
            )
            return default_user_id
        return int(uid_range.split("/")[0]) + default_user_id

    # ------------------------------------------------------------------
    # Config maps
    # ------------------------------------------------------------------

    def get_config_map(self, namespace: str, name: str) -> client.V1ConfigMap | None:
        return _get_or_none(
            self.core_v1.read_namespaced_config_map, name=name, namespace=namespace
        )

    def config_map_exists(self, namespace: str, name: str) -> bool:
        return self.get_config_map(namespace, name) is not None

    # ------------------------------------------------------------------
    # Pods
    # ------------------------------------------------------------------

    def list_pods(self, namespace: str | None = None) -> list[client.V1Pod]:
        return self.core_v1.list_namespaced_pod(
            namespace=namespace or self.namespace
        ).items

    def list_pods_by_prefix_in_name(
        self, namespace: str, prefix: str
    ) -> list[client.V1Pod]:
        """Pods whose name starts with prefix."""
        return [
            pod for pod in self.list_pods(namespace) if pod.metadata.name.startswith(prefix)
        ]

    def list_pods_by_label(
        self, namespace: str, label_selector: str
    ) -> list[client.V1Pod]:
        return self.core_v1.list_namespaced_pod(
            namespace=namespace, label_selector=label_selector
        ).items

    def get_pod(self, namespace: str, name: str) -> client.V1Pod | None:
        return _get_or_none(
            self.core_v1.read_namespaced_pod, name=name, namespace=namespace
        )

    def get_first_pod_by_prefix_name(
        self, namespace: str, prefix: str
    ) -> client.V1Pod | None:
        pods = self.list_pods_by_prefix_in_name(namespace, prefix)
        if len(pods) > 1:
            logger.warning(
                f"[{namespace}] Returning first found pod with name '{prefix}' "
                f"of many ({len(pods)})!"
            )
        return pods[0] if pods else None

    @staticmethod
    def is_pod_ready(pod: client.V1Pod | None) -> bool:
        """Pod is running and its Ready condition is true."""
        if pod is None or pod.status is None or pod.status.phase != "Running":
            return False
        for condition in pod.status.conditions or []:
            if condition.type == "Ready":
                return condition.status == "True"
        return False

    def wait_until_pod_is_ready(
        self, namespace: str, pod_name: str, timeout: float = DURATION_3_MINUTES
    ) -> None:
        wait_for(
            f"pod {pod_name} to be ready",
            DURATION_2_SECONDS,
            timeout,
            lambda: self.is_pod_ready(self.get_pod(namespace, pod_name)),
        )

    def wait_for_pod_reload(
        self,
        namespace: str,
        pod: client.V1Pod,
        pod_name_prefix: str,
        timeout: float = DURATION_1_MINUTE,
    ) -> client.V1Pod:
        """
        Wait until the pod was recreated (new UID) and the new pod is ready.

        Args:
            namespace: Namespace of the pod
            pod: The pod as it was before the reload
            pod_name_prefix: Name prefix identifying the replacement pod
            timeout: Seconds to wait for the replacement pod to appear

        Returns:
            The ready replacement pod
        """
        original_uid = pod.metadata.uid
        logger.info(f"[{namespace}] Waiting for pod {pod_name_prefix} reload")

        def reloaded():
            new_pod = self.get_first_pod_by_prefix_name(namespace, pod_name_prefix)
            return new_pod if new_pod and new_pod.metadata.uid != original_uid else None

        new_pod = wait_for(
            f"pod {pod_name_prefix} to be reloaded",
            DURATION_5_SECONDS,
            timeout,
            reloaded,
        )
        self.wait_until_pod_is_ready(namespace, new_pod.metadata.name)
        return self.get_pod(namespace, new_pod.metadata.name)

    def reload_pod_with_wait(
        self, namespace: str, pod: client.V1Pod, pod_name_prefix: str
    ) -> client.V1Pod:
        """Delete a pod and wait for its controller to bring up a ready one."""
        self.core_v1.delete_namespaced_pod(name=pod.metadata.name, namespace=namespace)
        return self.wait_for_pod_reload(namespace, pod, pod_name_prefix)

    # ------------------------------------------------------------------
    # Stateful sets
    # ------------------------------------------------------------------

    def get_stateful_set(
        self, namespace: str, name: str
    ) -> client.V1StatefulSet | None:
        return _get_or_none(
            self.apps_v1.read_namespaced_stateful_set, name=name, namespace=namespace
        )

    def list_stateful_sets(self, namespace: str) -> list[client.V1StatefulSet]:
        return self.apps_v1.list_namespaced_stateful_set(namespace=namespace).items

    @staticmethod
    def is_stateful_set_ready(stateful_set: client.V1StatefulSet | None) -> bool:
        """Ready replicas equal the desired replicas."""
        if stateful_set is None or stateful_set.status is None:
            return False
        desired = stateful_set.spec.replicas if stateful_set.spec else None
        if desired is None:
            desired = 1
        return (stateful_set.status.ready_replicas or 0) == desired

    # ------------------------------------------------------------------
    # Deployments
    # ------------------------------------------------------------------

    def get_deployment(self, namespace: str, name: str) -> client.V1Deployment | None:
        return _get_or_none(
            self.apps_v1.read_namespaced_deployment, name=name, namespace=namespace
        )

    def list_deployments(self, namespace: str) -> list[client.V1Deployment]:
        return self.apps_v1.list_namespaced_deployment(namespace=namespace).items

    def get_deployment_from_any_namespace(self, name: str) -> client.V1Deployment:
        """
        Find a deployment by name across all namespaces.

        Raises:
            ResourceNotFoundError: If no namespace has such a deployment
        """
        for deployment in self.apps_v1.list_deployment_for_all_namespaces().items:
            if deployment.metadata.name == name:
                return deployment
        raise ResourceNotFoundError("Deployment", name)

    def get_deployment_selectors(
        self, namespace: str, name: str
    ) -> client.V1LabelSelector:
        deployment = self.get_deployment(namespace, name)
        if deployment is None:
            raise ResourceNotFoundError("Deployment", name, namespace)
        return deployment.spec.selector

    @staticmethod
    def is_deployment_ready(deployment: client.V1Deployment | None) -> bool:
        if deployment is None or deployment.status is None:
            return False
        desired = deployment.spec.replicas if deployment.spec else None
        if desired is None:
            desired = 1
        return (deployment.status.ready_replicas or 0) >= desired

    def wait_for_deployment_ready(
        self, namespace: str, name: str, timeout: float = DURATION_3_MINUTES
    ) -> client.V1Deployment:
        def ready_deployment():
            deployment = self.get_deployment(namespace, name)
            return deployment if self.is_deployment_ready(deployment) else None

        return wait_for(
            f"deployment {name} to be ready",
            DURATION_5_SECONDS,
            timeout,
            ready_deployment,
        )

    def delete_deployment(self, namespace: str, name: str) -> bool:
        """Delete a deployment; returns False when it did not exist."""
        try:
            self.apps_v1.delete_namespaced_deployment(
                name=name,
                namespace=namespace,
                body=client.V1DeleteOptions(propagation_policy="Foreground"),
            )
        except ApiException as e:
            if e.status == 404:
                return False
            raise
        logger.debug(f"[{namespace}] Deleted deployment {name}")
        return True

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------

    def get_service(self, namespace: str, name: str) -> client.V1Service | None:
        return _get_or_none(
            self.core_v1.read_namespaced_service, name=name, namespace=namespace
        )

    def list_services(self, namespace: str) -> list[client.V1Service]:
        return self.core_v1.list_namespaced_service(namespace=namespace).items

    def get_service_broker_acceptor(
        self, namespace: str, broker_name: str, acceptor_name: str
    ) -> client.V1Service:
        """
        Service the operator created for a broker acceptor.

        The operator names these ``<broker>-<acceptor>-<n>-svc``.

        Raises:
            ResourceNotFoundError: If no matching service exists
        """
        prefix = f"{broker_name}-{acceptor_name}"
        for service in self.list_services(namespace):
            if service.metadata.name.startswith(prefix):
                return service
        raise ResourceNotFoundError("Service", f"{prefix}*", namespace)

    def get_service_port_number(
        self, namespace: str, service_name: str, port_name: str
    ) -> int:
        """
        Port number of a named service port.

        Raises:
            ResourceNotFoundError: If the service or the port does not exist
        """
        service = self.get_service(namespace, service_name)
        if service is None:
            raise ResourceNotFoundError("Service", service_name, namespace)
        for port in service.spec.ports or []:
            if port.name == port_name:
                return port.port
        raise ResourceNotFoundError(
            "Service port", f"{service_name}:{port_name}", namespace
        )

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    def list_nodes(self) -> list[client.V1Node]:
        return self.core_v1.list_node().items

    def list_worker_nodes(self) -> list[client.V1Node]:
        return [
            node
            for node in self.list_nodes()
            if NODE_ROLE_WORKER_LABEL in (node.metadata.labels or {})
        ]

    def list_master_nodes(self) -> list[client.V1Node]:
        return [
            node
            for node in self.list_nodes()
            if NODE_ROLE_MASTER_LABEL in (node.metadata.labels or {})
        ]

    def get_node_address(self) -> str:
        """First address of the first node."""
        nodes = self.list_nodes()
        if not nodes or not nodes[0].status.addresses:
            raise ResourceNotFoundError("Node address", "any")
        return nodes[0].status.addresses[0].address

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    def list_jobs(self, prefix: str = "", namespace: str | None = None) -> list[client.V1Job]:
        jobs = self.batch_v1.list_namespaced_job(namespace=namespace or self.namespace).items
        return [job for job in jobs if job.metadata.name.startswith(prefix)]

    def job_exists(self, prefix: str, namespace: str | None = None) -> bool:
        """Whether any job name starts with prefix."""
        return bool(self.list_jobs(prefix, namespace))

    def get_job(self, name: str, namespace: str | None = None) -> client.V1Job | None:
        return _get_or_none(
            self.batch_v1.read_namespaced_job,
            name=name,
            namespace=namespace or self.namespace,
        )

    def get_job_status(
        self, name: str, namespace: str | None = None
    ) -> client.V1JobStatus:
        job = self.get_job(name, namespace)
        if job is None:
            raise ResourceNotFoundError("Job", name, namespace or self.namespace)
        return job.status

    def check_succeeded_job_status(
        self, name: str, namespace: str | None = None, expected_succeeded_pods: int = 1
    ) -> bool:
        return (self.get_job_status(name, namespace).succeeded or 0) == expected_succeeded_pods

    def check_failed_job_status(
        self, name: str, namespace: str | None = None, expected_failed_pods: int = 1
    ) -> bool:
        return (self.get_job_status(name, namespace).failed or 0) == expected_failed_pods

    # ------------------------------------------------------------------
    # Custom objects
    # ------------------------------------------------------------------

    def get_custom_object(
        self, group: str, version: str, plural: str, namespace: str, name: str
    ) -> dict[str, Any] | None:
        return _get_or_none(
            self.custom_objects.get_namespaced_custom_object,
            group=group,
            version=version,
            namespace=namespace,
            plural=plural,
            name=name,
        )

    def list_custom_objects(
        self, group: str, version: str, plural: str, namespace: str
    ) -> list[dict[str, Any]]:
        response = self.custom_objects.list_namespaced_custom_object(
            group=group, version=version, namespace=namespace, plural=plural
        )
        return response.get("items", [])

    def create_or_replace_custom_object(
        self,
        group: str,
        version: str,
        plural: str,
        namespace: str,
        body: dict[str, Any],
        conflict_policy: ConflictPolicy = ConflictPolicy.REPLACE,
    ) -> dict[str, Any]:
        """
        Idempotent upsert of a namespaced custom object.

        The object is created; when it already exists (HTTP 409) the conflict
        policy decides whether it is replaced, kept, or reported.

        Returns:
            The object as stored by the API server

        Raises:
            ResourceConflictError: On conflict under ConflictPolicy.FAIL
            KubernetesAPIError: On any other API failure
        """
        name = body["metadata"]["name"]
        kind = body.get("kind", plural)
        coordinates = {
            "group": group,
            "version": version,
            "namespace": namespace,
            "plural": plural,
        }
        try:
            created = self.custom_objects.create_namespaced_custom_object(
                body=body, **coordinates
            )
            logger.debug(f"[{namespace}] Created {kind} {name}")
            return created
        except ApiException as e:
            if e.status != 409:
                raise KubernetesAPIError(
                    f"Failed to create {kind} {name} in {namespace}",
                    reason=api_exception_reason(e),
                    cause=e,
                ) from e

        if conflict_policy is ConflictPolicy.FAIL:
            raise ResourceConflictError(kind, name, namespace)

        try:
            existing = self.custom_objects.get_namespaced_custom_object(
                name=name, **coordinates
            )
            if conflict_policy is ConflictPolicy.KEEP_EXISTING:
                logger.debug(f"[{namespace}] Keeping existing {kind} {name}")
                return existing

            replacement = copy.deepcopy(body)
            replacement["metadata"]["resourceVersion"] = existing["metadata"][
                "resourceVersion"
            ]
            replaced = self.custom_objects.replace_namespaced_custom_object(
                name=name, body=replacement, **coordinates
            )
        except ApiException as e:
            raise KubernetesAPIError(
                f"Failed to replace {kind} {name} in {namespace}",
                reason=api_exception_reason(e),
                cause=e,
            ) from e
        logger.debug(f"[{namespace}] Replaced {kind} {name}")
        return replaced

    def delete_custom_object(
        self, group: str, version: str, plural: str, namespace: str, name: str
    ) -> bool:
        """Delete a custom object; returns False when it did not exist."""
        try:
            self.custom_objects.delete_namespaced_custom_object(
                group=group,
                version=version,
                namespace=namespace,
                plural=plural,
                name=name,
            )
        except ApiException as e:
            if e.status == 404:
                return False
            raise
        return True

    # ------------------------------------------------------------------
    # Generic manifests
    # ------------------------------------------------------------------

    def apply_manifest(
        self,
        manifest: dict[str, Any],
        namespace: str | None = None,
        conflict_policy: ConflictPolicy = ConflictPolicy.REPLACE,
    ) -> dict[str, Any]:
        """
        Create-or-replace an arbitrary manifest through the dynamic client.

        Cluster scoped kinds ignore the namespace.
        """
        kind = manifest["kind"]
        name = manifest["metadata"]["name"]
        resource = self.dynamic.resources.get(
            api_version=manifest["apiVersion"], kind=kind
        )
        target_namespace = (namespace or self.namespace) if resource.namespaced else None

        try:
            created = resource.create(body=manifest, namespace=target_namespace)
            logger.debug(f"[{target_namespace or 'cluster'}] Created {kind} {name}")
            return created.to_dict()
        except ApiException as e:
            if e.status != 409:
                raise KubernetesAPIError(
                    f"Failed to create {kind} {name}",
                    reason=api_exception_reason(e),
                    cause=e,
                ) from e

        if conflict_policy is ConflictPolicy.FAIL:
            raise ResourceConflictError(kind, name, target_namespace)

        existing = resource.get(name=name, namespace=target_namespace)
        if conflict_policy is ConflictPolicy.KEEP_EXISTING:
            return existing.to_dict()

        replacement = copy.deepcopy(manifest)
        replacement["metadata"]["resourceVersion"] = existing.metadata.resourceVersion
        try:
            replaced = resource.replace(body=replacement, namespace=target_namespace)
        except ApiException as e:
            raise KubernetesAPIError(
                f"Failed to replace {kind} {name}",
                reason=api_exception_reason(e),
                cause=e,
            ) from e
        logger.debug(f"[{target_namespace or 'cluster'}] Replaced {kind} {name}")
        return replaced.to_dict()

    def delete_manifest(
        self, manifest: dict[str, Any], namespace: str | None = None
    ) -> bool:
        """Delete the object a manifest describes; False when it did not exist."""
        resource = self.dynamic.resources.get(
            api_version=manifest["apiVersion"], kind=manifest["kind"]
        )
        target_namespace = (namespace or self.namespace) if resource.namespaced else None
        try:
            resource.delete(name=manifest["metadata"]["name"], namespace=target_namespace)
        except ApiException as e:
            if e.status == 404:
                return False
            raise
        return True

    # ------------------------------------------------------------------
    # Pod exec
    # ------------------------------------------------------------------

    def start_exec_in_pod(
        self,
        namespace: str,
        pod_name: str,
        command: list[str],
        container: str | None = None,
    ):
        """
        Start a command in a pod and return the open exec stream.

        The stream must be drained with ``collect_exec``.
        """
        logger.debug(f"[{namespace}] Exec in {pod_name}: {' '.join(command)}")
        kwargs: dict[str, Any] = {
            "command": command,
            "stderr": True,
            "stdin": False,
            "stdout": True,
            "tty": False,
            "_preload_content": False,
        }
        if container:
            kwargs["container"] = container
        return stream(
            self.core_v1.connect_get_namespaced_pod_exec, pod_name, namespace, **kwargs
        )

    @staticmethod
    def collect_exec(
        response, timeout: float = CLIENT_TIMEOUT, description: str = "pod command"
    ) -> ExecResult:
        """
        Drain an exec stream until the command exits.

        Raises:
            WaitTimeoutError: If the command is still running after timeout seconds
        """
        deadline = time.monotonic() + timeout
        stdout: list[str] = []
        stderr: list[str] = []

        while response.is_open():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                response.close()
                raise WaitTimeoutError(description, timeout)
            response.update(timeout=min(DURATION_2_SECONDS, remaining))
            if response.peek_stdout():
                stdout.append(response.read_stdout())
            if response.peek_stderr():
                stderr.append(response.read_stderr())

        stdout.append(response.read_stdout() or "")
        stderr.append(response.read_stderr() or "")
        try:
            returncode = response.returncode
        except (TypeError, KeyError, ValueError) as e:
            # Status channel missing or malformed: connection dropped mid command
            logger.warning(f"Could not read exit status of {description}: {e}")
            returncode = -1
        return ExecResult(
            returncode=returncode if returncode is not None else -1,
            stdout="".join(stdout),
            stderr="".join(stderr),
        )

    def exec_in_pod(
        self,
        namespace: str,
        pod_name: str,
        command: list[str],
        container: str | None = None,
        timeout: float = CLIENT_TIMEOUT,
    ) -> ExecResult:
        """Run a command in a pod and wait for it to finish."""
        response = self.start_exec_in_pod(namespace, pod_name, command, container)
        return self.collect_exec(
            response, timeout=timeout, description=f"exec in pod {pod_name}"
        )

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def read_pod_log(
        self,
        namespace: str,
        pod_name: str,
        container: str | None = None,
        tail_lines: int | None = None,
    ) -> str:
        kwargs: dict[str, Any] = {"name": pod_name, "namespace": namespace}
        if container:
            kwargs["container"] = container
        if tail_lines:
            kwargs["tail_lines"] = tail_lines
        return self.core_v1.read_namespaced_pod_log(**kwargs)

    def list_events(self, namespace: str) -> list[client.CoreV1Event]:
        return self.core_v1.list_namespaced_event(namespace=namespace).items

    def get_cluster_info(self) -> dict[str, Any]:
        """Server version and node counts, logged at the start of a run."""
        version = self.version_api.get_code()
        nodes = self.list_nodes()
        return {
            "version": version.git_version,
            "platform": version.platform,
            "nodes": len(nodes),
            "workers": len(
                [n for n in nodes if NODE_ROLE_WORKER_LABEL in (n.metadata.labels or {})]
            ),
        }
