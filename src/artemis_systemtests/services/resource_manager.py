"""
Lifecycle of the Artemis resources used by the system tests.

The ResourceManager creates broker, address and security custom resources,
the operator under test and the clients container, waits until they are
usable, and records each of them in a ResourceTracker so that
``undeploy_all_resources`` can remove whatever the tests left behind.
"""

import logging
import time
from pathlib import Path
from typing import IO

from kubernetes import client

from artemis_systemtests.constants import (
    BROKER_BASE_TIMEOUT,
    BROKER_PER_REPLICA_TIMEOUT,
    DEFAULT_ACCEPTOR_PORT,
    DURATION_1_MINUTE,
    DURATION_2_SECONDS,
    DURATION_3_MINUTES,
    DURATION_5_SECONDS,
    PREFIX_SYSTEMTESTS_CLIENTS,
    ROUTING_TYPE_ANYCAST,
    STATEFUL_SET_SUFFIX,
)
from artemis_systemtests.messaging.deployment import deploy_clients_container
from artemis_systemtests.models import (
    Acceptor,
    ActiveMQArtemis,
    ActiveMQArtemisAddress,
    ActiveMQArtemisAddressSpec,
    ActiveMQArtemisSecurity,
    ActiveMQArtemisSpec,
    CustomResource,
    DeploymentPlan,
    Upgrades,
    object_meta,
)
from artemis_systemtests.services.cluster_operator import (
    ArtemisCloudClusterOperator,
    ArtemisCloudClusterOperatorFile,
    ArtemisCloudClusterOperatorOlm,
)
from artemis_systemtests.services.kube_client import ConflictPolicy, KubeClient
from artemis_systemtests.services.resource_tracker import ResourceTracker, TrackedKind
from artemis_systemtests.settings import Settings
from artemis_systemtests.settings import settings as default_settings
from artemis_systemtests.utils.waiting import thread_sleep, wait_for

logger = logging.getLogger(__name__)


def broker_wait_timeout(size: int) -> float:
    """Readiness timeout of a broker: base time plus time per replica when clustered."""
    timeout = BROKER_BASE_TIMEOUT
    if size > 1:
        timeout += BROKER_PER_REPLICA_TIMEOUT * size
    return timeout


def log_resource_event(
    message: str,
    namespace: str,
    resource: CustomResource,
    operation: str,
    duration: float | None = None,
) -> None:
    """Log a lifecycle step of a custom resource with structured fields."""
    extra = {
        "namespace": namespace,
        "resource_type": resource.KIND,
        "resource_name": resource.name,
        "operation": operation,
    }
    if duration is not None:
        extra["duration"] = duration
    logger.info(f"[{namespace}] {message}", extra=extra)


class ResourceManager:
    """Creates, waits for, tracks and removes the suite's resources."""

    def __init__(
        self,
        kube_client: KubeClient,
        settings: Settings | None = None,
        tracker: ResourceTracker | None = None,
    ):
        """
        Initialize the manager.

        Args:
            kube_client: Cluster façade
            settings: Suite settings; the environment settings when None
            tracker: Tracking context; a fresh one when None
        """
        self.kube_client = kube_client
        self.settings = settings or default_settings
        self.tracker = tracker if tracker is not None else ResourceTracker()

    # ------------------------------------------------------------------
    # Custom resource helpers
    # ------------------------------------------------------------------

    def _apply(
        self,
        namespace: str,
        resource: CustomResource,
        conflict_policy: ConflictPolicy = ConflictPolicy.REPLACE,
    ) -> CustomResource:
        """Create-or-replace a custom resource and return the stored version."""
        manifest = resource.to_manifest(server_fields=False)
        manifest["metadata"]["namespace"] = namespace
        stored = self.kube_client.create_or_replace_custom_object(
            resource.GROUP,
            resource.VERSION,
            resource.PLURAL,
            namespace,
            manifest,
            conflict_policy,
        )
        return type(resource).from_manifest(stored)

    def _delete(self, namespace: str, resource: CustomResource) -> bool:
        return self.kube_client.delete_custom_object(
            resource.GROUP, resource.VERSION, resource.PLURAL, namespace, resource.name
        )

    # ------------------------------------------------------------------
    # Brokers
    # ------------------------------------------------------------------

    def build_artemis(
        self,
        name: str,
        size: int = 1,
        upgrade_enabled: bool = False,
        upgrade_minor: bool = False,
    ) -> ActiveMQArtemis:
        """Broker CR with persistence and message migration enabled."""
        return ActiveMQArtemis(
            metadata=object_meta(name),
            spec=ActiveMQArtemisSpec(
                deployment_plan=DeploymentPlan(
                    size=size,
                    persistence_enabled=True,
                    message_migration=True,
                    image=self.settings.broker_image,
                ),
                upgrades=Upgrades(enabled=upgrade_enabled, minor=upgrade_minor),
            ),
        )

    def create_artemis(
        self,
        namespace: str,
        name: str,
        size: int = 1,
        upgrade_enabled: bool = False,
        upgrade_minor: bool = False,
    ) -> ActiveMQArtemis:
        """Deploy a broker and wait until all its replicas are ready."""
        broker = self.build_artemis(name, size, upgrade_enabled, upgrade_minor)
        return self.create_artemis_from_resource(
            namespace, broker, wait=True, timeout=broker_wait_timeout(size)
        )

    def create_artemis_from_resource(
        self,
        namespace: str,
        broker: ActiveMQArtemis,
        wait: bool = True,
        timeout: float = DURATION_1_MINUTE,
    ) -> ActiveMQArtemis:
        broker = self._apply(namespace, broker)
        log_resource_event(f"Created ActiveMQArtemis {broker.name}", namespace, broker, "create")
        if wait:
            started = time.monotonic()
            self.wait_for_broker_deployment(namespace, broker, timeout=timeout)
            log_resource_event(
                f"ActiveMQArtemis {broker.name} is ready",
                namespace,
                broker,
                "ready",
                duration=time.monotonic() - started,
            )
        self.tracker.track(TrackedKind.BROKER, broker.name, namespace, broker)
        return broker

    def create_artemis_from_file(
        self, namespace: str, file_path: str | Path, wait: bool = True
    ) -> ActiveMQArtemis:
        broker = ActiveMQArtemis.from_file(file_path)
        return self.create_artemis_from_resource(
            namespace, broker, wait=wait, timeout=broker_wait_timeout(broker.size)
        )

    def create_artemis_from_yaml(
        self, namespace: str, content: str | IO[str], wait: bool = True
    ) -> ActiveMQArtemis:
        logger.debug(f"[{namespace}] Deploying broker from YAML")
        broker = ActiveMQArtemis.from_yaml(content)
        return self.create_artemis_from_resource(
            namespace, broker, wait=wait, timeout=broker_wait_timeout(broker.size)
        )

    def wait_for_broker_deployment(
        self,
        namespace: str,
        broker: ActiveMQArtemis,
        reload_existing: bool = False,
        timeout: float = DURATION_1_MINUTE,
        old_stateful_set: client.V1StatefulSet | None = None,
    ) -> client.V1StatefulSet:
        """
        Wait until the broker's stateful set has all desired replicas ready.

        Args:
            namespace: Namespace of the broker
            broker: Broker CR
            reload_existing: The broker existed before and is being reconfigured
            timeout: Seconds to wait
            old_stateful_set: With reload_existing, the stateful set before the
                change; the wait then also requires a recreated stateful set

        Returns:
            The ready stateful set
        """
        logger.info(f"[{namespace}] Waiting {timeout:g}s for creation of broker {broker.name}")
        if reload_existing:
            logger.info(
                f"[{namespace}] Reloading existing broker {broker.name}, sleeping for some time"
            )
            thread_sleep(DURATION_5_SECONDS)

        old_uid = old_stateful_set.metadata.uid if old_stateful_set is not None else None

        def stateful_set_ready():
            stateful_set = self.kube_client.get_stateful_set(
                namespace, broker.stateful_set_name
            )
            if not self.kube_client.is_stateful_set_ready(stateful_set):
                return None
            if reload_existing and old_uid and stateful_set.metadata.uid == old_uid:
                return None
            return stateful_set

        return wait_for(
            f"StatefulSet {broker.stateful_set_name} to be ready",
            DURATION_5_SECONDS,
            timeout,
            stateful_set_ready,
        )

    def wait_for_broker_deletion(
        self, namespace: str, broker_name: str, timeout: float = DURATION_1_MINUTE
    ) -> None:
        logger.info(f"[{namespace}] Waiting {timeout:g}s for deletion of broker {broker_name}")
        stateful_set_name = f"{broker_name}{STATEFUL_SET_SUFFIX}"

        def broker_gone():
            return (
                self.kube_client.get_stateful_set(namespace, stateful_set_name) is None
                and not self.kube_client.list_pods_by_prefix_in_name(namespace, broker_name)
            )

        wait_for(
            "ActiveMQArtemis StatefulSet and related pods to be removed",
            DURATION_5_SECONDS,
            timeout,
            broker_gone,
        )

    def delete_artemis(
        self,
        namespace: str,
        broker: ActiveMQArtemis,
        wait: bool = True,
        timeout: float = DURATION_1_MINUTE,
    ) -> None:
        self._delete(namespace, broker)
        if wait:
            self.wait_for_broker_deletion(namespace, broker.name, timeout)
        self.tracker.untrack(TrackedKind.BROKER, broker.name, namespace)
        log_resource_event(f"Deleted ActiveMQArtemis {broker.name}", namespace, broker, "delete")

    @staticmethod
    def create_acceptor(
        name: str,
        protocols: str | list[str],
        port: int = DEFAULT_ACCEPTOR_PORT,
        expose: bool = False,
    ) -> Acceptor:
        if not isinstance(protocols, str):
            protocols = ",".join(protocols)
        return Acceptor(name=name, protocols=protocols, port=port, expose=expose)

    def add_acceptors_wait_for_pod_reload(
        self,
        namespace: str,
        acceptors: list[Acceptor],
        broker: ActiveMQArtemis,
    ) -> ActiveMQArtemis:
        """
        Add acceptors to a running broker and wait for its pod to restart.

        Returns:
            The updated broker CR
        """
        broker_pod = self.kube_client.get_first_pod_by_prefix_name(namespace, broker.name)
        broker.add_acceptors(acceptors)
        broker = self._apply(namespace, broker)
        logger.info(
            f"[{namespace}] Added acceptors {[a.name for a in acceptors]} to {broker.name}"
        )
        if broker_pod is not None:
            self.kube_client.wait_for_pod_reload(
                namespace, broker_pod, broker.name, timeout=broker_wait_timeout(broker.size)
            )
        self.tracker.track(TrackedKind.BROKER, broker.name, namespace, broker)
        return broker

    # ------------------------------------------------------------------
    # Addresses
    # ------------------------------------------------------------------

    def create_artemis_address(
        self,
        namespace: str,
        address_name: str,
        queue_name: str | None = None,
        routing_type: str = ROUTING_TYPE_ANYCAST,
    ) -> ActiveMQArtemisAddress:
        """
        Create an address (and queue) on the brokers of the namespace.

        The CR is named after the address, or ``<address>-<queue>`` when a
        distinct queue name is given; the queue defaults to the address name.
        """
        cr_name = address_name
        if not queue_name:
            queue_name = address_name
        else:
            cr_name = f"{address_name}-{queue_name}"

        address = ActiveMQArtemisAddress(
            metadata=object_meta(cr_name),
            spec=ActiveMQArtemisAddressSpec(
                address_name=address_name,
                queue_name=queue_name,
                routing_type=routing_type,
            ),
        )
        return self.create_artemis_address_from_resource(namespace, address)

    def create_artemis_address_from_resource(
        self, namespace: str, address: ActiveMQArtemisAddress
    ) -> ActiveMQArtemisAddress:
        address = self._apply(namespace, address)
        # TODO: poll the broker address list through jolokia instead of sleeping
        thread_sleep(DURATION_5_SECONDS)
        self.tracker.track(TrackedKind.ADDRESS, address.name, namespace, address)
        log_resource_event(
            f"Created ActiveMQArtemisAddress {address.name}", namespace, address, "create"
        )
        return address

    def create_artemis_address_from_file(
        self, namespace: str, file_path: str | Path
    ) -> ActiveMQArtemisAddress:
        return self.create_artemis_address_from_resource(
            namespace, ActiveMQArtemisAddress.from_file(file_path)
        )

    def delete_artemis_address(
        self, namespace: str, address: ActiveMQArtemisAddress
    ) -> None:
        self._delete(namespace, address)
        self.tracker.untrack(TrackedKind.ADDRESS, address.name, namespace)
        log_resource_event(
            f"Deleted ActiveMQArtemisAddress {address.name}", namespace, address, "delete"
        )

    # ------------------------------------------------------------------
    # Security
    # ------------------------------------------------------------------

    def create_artemis_security(
        self, namespace: str, security: ActiveMQArtemisSecurity
    ) -> ActiveMQArtemisSecurity:
        security = self._apply(namespace, security)
        log_resource_event(
            f"Created ActiveMQArtemisSecurity {security.name}", namespace, security, "create"
        )
        self.tracker.track(TrackedKind.SECURITY, security.name, namespace, security)
        return security

    def create_artemis_security_from_file(
        self, namespace: str, file_path: str | Path
    ) -> ActiveMQArtemisSecurity:
        return self.create_artemis_security(
            namespace, ActiveMQArtemisSecurity.from_file(file_path)
        )

    def delete_artemis_security(
        self, namespace: str, security: ActiveMQArtemisSecurity
    ) -> None:
        self._delete(namespace, security)
        log_resource_event(
            f"Deleted ActiveMQArtemisSecurity {security.name}", namespace, security, "delete"
        )
        self.tracker.untrack(TrackedKind.SECURITY, security.name, namespace)

    # ------------------------------------------------------------------
    # Cluster operator
    # ------------------------------------------------------------------

    def is_cluster_operator_managed(self) -> bool:
        return self.settings.cluster_operator_managed

    def deploy_cluster_operator(
        self, namespace: str, watched_namespaces: list[str] | None = None
    ) -> ArtemisCloudClusterOperator | None:
        """
        Deploy the operator under test into a namespace.

        Without watched namespaces the operator is namespaced; with them it
        is clustered. The installer (files or OLM) follows the settings.
        """
        if not self.is_cluster_operator_managed():
            logger.warning(
                "Not deploying operator! 'CLUSTER_OPERATOR_MANAGED' is 'false'"
            )
            return None

        logger.info("Deploying Artemis CO")
        namespaced = not watched_namespaces
        installer = (
            ArtemisCloudClusterOperatorOlm
            if self.settings.olm_installation
            else ArtemisCloudClusterOperatorFile
        )
        operator = installer(
            self.kube_client, self.settings, namespace, namespaced, watched_namespaces
        )
        return self._install_operator(operator, namespace)

    def deploy_cluster_operator_olm(
        self,
        namespace: str,
        watched_namespaces: list[str] | None = None,
        channel: str | None = None,
        index_image_bundle: str | None = None,
    ) -> ArtemisCloudClusterOperatorOlm | None:
        """Deploy the operator through OLM from a specific channel or index."""
        if not self.settings.olm_installation:
            logger.warning("Not deploying operator! Not an OLM installation type.")
            return None

        operator = ArtemisCloudClusterOperatorOlm(
            self.kube_client,
            self.settings,
            namespace,
            True,
            watched_namespaces,
            channel=channel,
            index_image_bundle=index_image_bundle,
        )
        return self._install_operator(operator, namespace)

    def _install_operator(
        self, operator: ArtemisCloudClusterOperator, namespace: str
    ) -> ArtemisCloudClusterOperator:
        """
        Deploy an operator and track it.

        A failed install is tracked too: objects it already applied, cluster
        scoped RBAC included, outlive the namespace and must be swept.
        """
        try:
            operator.deploy_operator(wait=True)
        except Exception:
            logger.error(f"[{namespace}] Deployment of {operator} failed, tracking it for removal")
            self.tracker.track(TrackedKind.OPERATOR, operator.operator_name, namespace, operator)
            raise
        self.tracker.track(TrackedKind.OPERATOR, operator.operator_name, namespace, operator)
        return operator

    def undeploy_cluster_operator(self, operator: ArtemisCloudClusterOperator | None) -> None:
        if not self.is_cluster_operator_managed() or operator is None:
            logger.warning(
                "Not undeploying operator! 'CLUSTER_OPERATOR_MANAGED' is 'false'"
            )
            return
        operator.undeploy_operator(wait=True)
        self.tracker.untrack(
            TrackedKind.OPERATOR, operator.operator_name, operator.deployment_namespace
        )

    def deploy_cluster_operator_crds(self) -> None:
        if not self.is_cluster_operator_managed():
            logger.warning(
                "Not deploying operator CRDs! 'CLUSTER_OPERATOR_MANAGED' is 'false'"
            )
            return
        ArtemisCloudClusterOperatorFile.deploy_operator_crds(self.kube_client, self.settings)

    def undeploy_cluster_operator_crds(self) -> None:
        if not self.is_cluster_operator_managed():
            logger.warning(
                "Not undeploying operator CRDs! 'CLUSTER_OPERATOR_MANAGED' is 'false'"
            )
            return
        ArtemisCloudClusterOperatorFile.undeploy_operator_crds(self.kube_client, self.settings)

    def get_cluster_operators(self) -> list[ArtemisCloudClusterOperator]:
        return [entry.resource for entry in self.tracker.get(TrackedKind.OPERATOR)]

    def get_cluster_operator(self, namespace: str) -> ArtemisCloudClusterOperator | None:
        for operator in self.get_cluster_operators():
            if operator.deployment_namespace == namespace:
                return operator
        return None

    # ------------------------------------------------------------------
    # Clients container
    # ------------------------------------------------------------------

    def deploy_clients_container(
        self, namespace: str, secrets: list[str] | None = None
    ) -> client.V1Deployment:
        deployment = deploy_clients_container(
            self.kube_client, namespace, self.settings.clients_image, secrets
        )
        self.tracker.track(
            TrackedKind.CLIENTS, PREFIX_SYSTEMTESTS_CLIENTS, namespace, deployment
        )
        return deployment

    def undeploy_clients_container(
        self, namespace: str, deployment: client.V1Deployment | None = None
    ) -> None:
        name = deployment.metadata.name if deployment is not None else PREFIX_SYSTEMTESTS_CLIENTS
        self.kube_client.delete_deployment(namespace, name)
        self.tracker.untrack(TrackedKind.CLIENTS, name, namespace)
        logger.info(f"[{namespace}] Undeployed clients container {name}")

    # ------------------------------------------------------------------
    # Namespaces
    # ------------------------------------------------------------------

    def create_namespace(self, name: str) -> client.V1Namespace:
        namespace = self.kube_client.create_namespace(name)
        self.tracker.track(TrackedKind.NAMESPACE, name)
        return namespace

    def delete_namespace(self, name: str) -> None:
        self.kube_client.delete_namespace(name)
        self.tracker.untrack(TrackedKind.NAMESPACE, name)

    # ------------------------------------------------------------------
    # Teardown sweep
    # ------------------------------------------------------------------

    def undeploy_all_resources(self) -> ResourceTracker:
        """
        Remove every tracked resource.

        Order: clients containers, operators, security, addresses, brokers,
        then namespaces. Resources already gone are fine; other failures are
        recorded on the tracker and the sweep continues.

        Returns:
            The tracker, whose report lists what could not be removed
        """
        for entry in self.tracker.get(TrackedKind.CLIENTS):
            logger.warning(
                f"[{entry.namespace}] Undeploying orphaned MessagingClient {entry.name}!"
            )
            self._sweep(entry, lambda e: self.kube_client.delete_deployment(e.namespace, e.name))

        for entry in self.tracker.get(TrackedKind.OPERATOR):
            logger.warning(
                f"[{entry.namespace}] Undeploying orphaned ArtemisOperator {entry.name}!"
            )
            self._sweep(entry, lambda e: e.resource.undeploy_operator(wait=True))

        for kind in (TrackedKind.SECURITY, TrackedKind.ADDRESS, TrackedKind.BROKER):
            for entry in self.tracker.get(kind):
                logger.warning(f"[{entry.namespace}] Undeploying orphaned {kind.value} {entry.name}!")
                self._sweep(entry, lambda e: self._delete(e.namespace, e.resource))

        namespaces = self.tracker.get(TrackedKind.NAMESPACE)
        deleting = []
        for entry in namespaces:
            logger.warning(f"Undeploying orphaned namespace {entry.name}!")
            if self._sweep(
                entry, lambda e: self.kube_client.delete_namespace(e.name, wait=False), untrack=False
            ):
                deleting.append(entry)
        for entry in deleting:
            self._sweep(
                entry,
                lambda e: wait_for(
                    f"deletion of namespace {e.name}",
                    DURATION_2_SECONDS,
                    DURATION_3_MINUTES,
                    lambda: not self.kube_client.namespace_exists(e.name),
                ),
            )

        if self.tracker.has_failures():
            logger.error(self.tracker.get_report())
        return self.tracker

    def _sweep(self, entry, remove, untrack: bool = True) -> bool:
        """Run one teardown step; record failures instead of raising them."""
        try:
            remove(entry)
        except Exception as e:
            logger.error(f"Failed to remove {entry.kind.value} {entry.name}: {e!r}")
            self.tracker.record_failure(entry.kind, entry.name, entry.namespace, str(e))
            self.tracker.untrack(entry.kind, entry.name, entry.namespace)
            return False
        if untrack:
            self.tracker.untrack(entry.kind, entry.name, entry.namespace)
        return True
