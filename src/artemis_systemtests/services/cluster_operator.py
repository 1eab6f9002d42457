"""
Installation of the Artemis Cloud operator under test.

Two installers exist: one applying the install files of an operator
repository checkout, and one subscribing to the operator through OLM.
"""

import copy
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from artemis_systemtests.constants import (
    CLUSTER_SCOPED_KINDS,
    CSV_PHASE_SUCCEEDED,
    DURATION_5_MINUTES,
    DURATION_5_SECONDS,
    DURATION_10_SECONDS,
    DURATION_3_MINUTES,
    ERROR_MISSING_OPERATOR_FILE,
    ERROR_OPERATOR_REPO_UNSET,
    OLM_CATALOG_SOURCE_NAME,
    OLM_GROUP,
    OLM_OPERATOR_GROUP_NAME,
    OLM_VERSION,
    OLM_VERSION_ALPHA,
    OPERATOR_CLUSTERED_FILES,
    OPERATOR_CRDS_DIR,
    OPERATOR_DEPLOYMENT_NAME,
    OPERATOR_NAMESPACED_FILES,
    OPERATOR_OPTIONAL_FILES,
    PLURAL_CATALOG_SOURCE,
    PLURAL_CSV,
    PLURAL_OPERATOR_GROUP,
    PLURAL_SUBSCRIPTION,
    WATCH_ALL_NAMESPACES,
    WATCH_NAMESPACE_ENV,
)
from artemis_systemtests.errors import ConfigurationError
from artemis_systemtests.services.kube_client import KubeClient
from artemis_systemtests.settings import Settings
from artemis_systemtests.utils.manifests import load_yaml_file
from artemis_systemtests.utils.waiting import wait_for

logger = logging.getLogger(__name__)


class ArtemisCloudClusterOperator(ABC):
    """
    An operator installation the suite deployed and must remove again.

    A namespaced operator watches only its own namespace; a clustered one
    watches the given namespaces, or every namespace when none are given.
    """

    def __init__(
        self,
        kube_client: KubeClient,
        settings: Settings,
        namespace: str,
        namespaced: bool = True,
        watched_namespaces: list[str] | None = None,
    ):
        self.kube_client = kube_client
        self.settings = settings
        self.deployment_namespace = namespace
        self.namespaced = namespaced
        self.watched_namespaces = list(watched_namespaces or [])
        self.operator_name = OPERATOR_DEPLOYMENT_NAME

    @property
    def watch_namespace_value(self) -> str:
        """Value of the operator's WATCH_NAMESPACE variable."""
        if self.namespaced:
            return self.deployment_namespace
        if not self.watched_namespaces:
            return WATCH_ALL_NAMESPACES
        return ",".join(self.watched_namespaces)

    @abstractmethod
    def deploy_operator(self, wait: bool = True) -> None:
        """Install the operator into the deployment namespace."""

    @abstractmethod
    def undeploy_operator(self, wait: bool = True) -> None:
        """Remove everything deploy_operator installed."""

    def wait_for_operator_ready(self, timeout: float = DURATION_3_MINUTES) -> None:
        logger.info(
            f"[{self.deployment_namespace}] Waiting for operator {self.operator_name} to be ready"
        )
        self.kube_client.wait_for_deployment_ready(
            self.deployment_namespace, self.operator_name, timeout=timeout
        )

    def wait_for_operator_removal(self, timeout: float = DURATION_3_MINUTES) -> None:
        namespace = self.deployment_namespace
        wait_for(
            f"operator {self.operator_name} to be removed",
            DURATION_5_SECONDS,
            timeout,
            lambda: self.kube_client.get_deployment(namespace, self.operator_name) is None
            and not self.kube_client.list_pods_by_prefix_in_name(namespace, self.operator_name),
        )

    def __repr__(self) -> str:
        mode = "namespaced" if self.namespaced else f"watching {self.watch_namespace_value}"
        return (
            f"{self.__class__.__name__}({self.deployment_namespace}/{self.operator_name}, {mode})"
        )


class ArtemisCloudClusterOperatorFile(ArtemisCloudClusterOperator):
    """Operator installed from the deploy/ files of an operator repository."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.applied_manifests: list[dict[str, Any]] = []

    @staticmethod
    def _deploy_dir(settings: Settings) -> Path:
        deploy_dir = settings.operator_deploy_dir
        if deploy_dir is None:
            raise ConfigurationError(
                ERROR_OPERATOR_REPO_UNSET,
                user_action="Export OPERATOR_REPO=/path/to/activemq-artemis-operator",
            )
        return deploy_dir

    @property
    def install_files(self) -> list[Path]:
        """Install files in apply order, skipping missing optional ones."""
        deploy_dir = self._deploy_dir(self.settings)
        names = OPERATOR_NAMESPACED_FILES if self.namespaced else OPERATOR_CLUSTERED_FILES
        files = []
        for name in names:
            path = deploy_dir / name
            if path.is_file():
                files.append(path)
            elif name in OPERATOR_OPTIONAL_FILES:
                logger.debug(f"Optional operator file {path} not present, skipping")
            else:
                raise ConfigurationError(ERROR_MISSING_OPERATOR_FILE.format(path))
        return files

    def customize_manifest(self, manifest: dict[str, Any]) -> dict[str, Any]:
        """
        Adapt one install manifest to this installation.

        Namespaced objects and service account subjects move to the deployment
        namespace; the operator Deployment gets the image override and the
        watched namespaces.
        """
        manifest = copy.deepcopy(manifest)
        kind = manifest.get("kind")
        metadata = manifest.setdefault("metadata", {})
        if kind not in CLUSTER_SCOPED_KINDS:
            metadata["namespace"] = self.deployment_namespace

        if kind in ("RoleBinding", "ClusterRoleBinding"):
            for subject in manifest.get("subjects", []):
                if subject.get("kind") == "ServiceAccount":
                    subject["namespace"] = self.deployment_namespace

        if kind == "Deployment":
            self.operator_name = metadata["name"]
            containers = manifest["spec"]["template"]["spec"]["containers"]
            if self.settings.operator_image:
                containers[0]["image"] = self.settings.operator_image
            if not self.namespaced:
                env = [
                    var
                    for var in containers[0].get("env", [])
                    if var.get("name") != WATCH_NAMESPACE_ENV
                ]
                env.append({"name": WATCH_NAMESPACE_ENV, "value": self.watch_namespace_value})
                containers[0]["env"] = env
        return manifest

    def deploy_operator(self, wait: bool = True) -> None:
        logger.info(f"[{self.deployment_namespace}] Deploying Artemis cluster operator {self}")
        for path in self.install_files:
            for document in load_yaml_file(path):
                manifest = self.customize_manifest(document)
                self.kube_client.apply_manifest(manifest, self.deployment_namespace)
                self.applied_manifests.append(manifest)
                logger.debug(
                    f"[{self.deployment_namespace}] Applied {manifest['kind']} "
                    f"{manifest['metadata']['name']} from {path.name}"
                )
        if wait:
            self.wait_for_operator_ready()

    def undeploy_operator(self, wait: bool = True) -> None:
        logger.info(f"[{self.deployment_namespace}] Undeploying Artemis cluster operator {self}")
        for manifest in reversed(self.applied_manifests):
            self.kube_client.delete_manifest(manifest, self.deployment_namespace)
        self.applied_manifests.clear()
        if wait:
            self.wait_for_operator_removal()

    @classmethod
    def crd_files(cls, settings: Settings) -> list[Path]:
        crds_dir = cls._deploy_dir(settings) / OPERATOR_CRDS_DIR
        files = sorted(crds_dir.glob("*.yaml"))
        if not files:
            raise ConfigurationError(ERROR_MISSING_OPERATOR_FILE.format(crds_dir / "*.yaml"))
        return files

    @classmethod
    def deploy_operator_crds(cls, kube_client: KubeClient, settings: Settings) -> None:
        """Create or replace the broker.amq.io CustomResourceDefinitions."""
        for path in cls.crd_files(settings):
            for manifest in load_yaml_file(path):
                kube_client.apply_manifest(manifest)
                logger.info(f"Deployed CRD {manifest['metadata']['name']}")

    @classmethod
    def undeploy_operator_crds(cls, kube_client: KubeClient, settings: Settings) -> None:
        for path in cls.crd_files(settings):
            for manifest in load_yaml_file(path):
                if kube_client.delete_manifest(manifest):
                    logger.info(f"Undeployed CRD {manifest['metadata']['name']}")


class ArtemisCloudClusterOperatorOlm(ArtemisCloudClusterOperator):
    """Operator installed through an OLM catalog source and subscription."""

    def __init__(
        self,
        *args,
        channel: str | None = None,
        index_image_bundle: str | None = None,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.channel = channel or self.settings.olm_channel
        self.index_image_bundle = index_image_bundle or self.settings.olm_index_image_bundle
        self.package_name = self.settings.olm_package_name
        self.subscription_name = self.package_name
        self.installed_csv: str | None = None

    def catalog_source_manifest(self) -> dict[str, Any]:
        return {
            "apiVersion": f"{OLM_GROUP}/{OLM_VERSION_ALPHA}",
            "kind": "CatalogSource",
            "metadata": {
                "name": OLM_CATALOG_SOURCE_NAME,
                "namespace": self.deployment_namespace,
            },
            "spec": {
                "sourceType": "grpc",
                "image": self.index_image_bundle,
                "displayName": "Artemis system tests catalog",
            },
        }

    def operator_group_manifest(self) -> dict[str, Any]:
        spec: dict[str, Any] = {}
        if self.namespaced:
            spec["targetNamespaces"] = [self.deployment_namespace]
        elif self.watched_namespaces:
            spec["targetNamespaces"] = list(self.watched_namespaces)
        return {
            "apiVersion": f"{OLM_GROUP}/{OLM_VERSION}",
            "kind": "OperatorGroup",
            "metadata": {
                "name": OLM_OPERATOR_GROUP_NAME,
                "namespace": self.deployment_namespace,
            },
            "spec": spec,
        }

    def subscription_manifest(self) -> dict[str, Any]:
        return {
            "apiVersion": f"{OLM_GROUP}/{OLM_VERSION_ALPHA}",
            "kind": "Subscription",
            "metadata": {
                "name": self.subscription_name,
                "namespace": self.deployment_namespace,
            },
            "spec": {
                "channel": self.channel,
                "name": self.package_name,
                "source": OLM_CATALOG_SOURCE_NAME,
                "sourceNamespace": self.deployment_namespace,
                "installPlanApproval": "Automatic",
            },
        }

    def _succeeded_csv(self) -> dict[str, Any] | None:
        """The installed ClusterServiceVersion once OLM reports it succeeded."""
        subscription = self.kube_client.get_custom_object(
            OLM_GROUP,
            OLM_VERSION_ALPHA,
            PLURAL_SUBSCRIPTION,
            self.deployment_namespace,
            self.subscription_name,
        )
        csv_name = ((subscription or {}).get("status") or {}).get("installedCSV")
        if not csv_name:
            return None
        csv = self.kube_client.get_custom_object(
            OLM_GROUP, OLM_VERSION_ALPHA, PLURAL_CSV, self.deployment_namespace, csv_name
        )
        if csv and (csv.get("status") or {}).get("phase") == CSV_PHASE_SUCCEEDED:
            return csv
        return None

    def deploy_operator(self, wait: bool = True) -> None:
        namespace = self.deployment_namespace
        logger.info(
            f"[{namespace}] Deploying Artemis cluster operator via OLM "
            f"(channel {self.channel}, index {self.index_image_bundle})"
        )
        self.kube_client.create_or_replace_custom_object(
            OLM_GROUP, OLM_VERSION_ALPHA, PLURAL_CATALOG_SOURCE, namespace,
            self.catalog_source_manifest(),
        )
        self.kube_client.create_or_replace_custom_object(
            OLM_GROUP, OLM_VERSION, PLURAL_OPERATOR_GROUP, namespace,
            self.operator_group_manifest(),
        )
        self.kube_client.create_or_replace_custom_object(
            OLM_GROUP, OLM_VERSION_ALPHA, PLURAL_SUBSCRIPTION, namespace,
            self.subscription_manifest(),
        )
        if not wait:
            return

        csv = wait_for(
            f"ClusterServiceVersion of {self.package_name} to succeed",
            DURATION_10_SECONDS,
            DURATION_5_MINUTES,
            self._succeeded_csv,
        )
        self.installed_csv = csv["metadata"]["name"]
        deployments = csv["spec"]["install"]["spec"].get("deployments", [])
        if deployments:
            self.operator_name = deployments[0]["name"]
        self.wait_for_operator_ready()

    def undeploy_operator(self, wait: bool = True) -> None:
        namespace = self.deployment_namespace
        logger.info(f"[{namespace}] Undeploying Artemis cluster operator {self}")
        self.kube_client.delete_custom_object(
            OLM_GROUP, OLM_VERSION_ALPHA, PLURAL_SUBSCRIPTION, namespace, self.subscription_name
        )
        if self.installed_csv:
            self.kube_client.delete_custom_object(
                OLM_GROUP, OLM_VERSION_ALPHA, PLURAL_CSV, namespace, self.installed_csv
            )
        self.kube_client.delete_custom_object(
            OLM_GROUP, OLM_VERSION, PLURAL_OPERATOR_GROUP, namespace, OLM_OPERATOR_GROUP_NAME
        )
        self.kube_client.delete_custom_object(
            OLM_GROUP, OLM_VERSION_ALPHA, PLURAL_CATALOG_SOURCE, namespace, OLM_CATALOG_SOURCE_NAME
        )
        if wait:
            self.wait_for_operator_removal()
