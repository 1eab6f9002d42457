"""Tests for the operator installers."""

from unittest.mock import MagicMock

import pytest
import yaml
from kubernetes import client
from kubernetes.client.rest import ApiException

from artemis_systemtests.constants import OPERATOR_NAMESPACED_FILES
from artemis_systemtests.errors import ConfigurationError
from artemis_systemtests.services.cluster_operator import (
    ArtemisCloudClusterOperatorFile,
    ArtemisCloudClusterOperatorOlm,
)
from artemis_systemtests.settings import Settings

OPERATOR_DEPLOYMENT = {
    "apiVersion": "apps/v1",
    "kind": "Deployment",
    "metadata": {"name": "activemq-artemis-controller-manager"},
    "spec": {
        "template": {
            "spec": {
                "containers": [
                    {
                        "name": "manager",
                        "image": "quay.io/artemiscloud/activemq-artemis-operator:latest",
                        "env": [
                            {"name": "WATCH_NAMESPACE", "valueFrom": {"fieldRef": {}}},
                            {"name": "OPERATOR_NAME", "value": "activemq-artemis-operator"},
                        ],
                    }
                ]
            }
        }
    },
}


def _write_operator_repo(root, names=OPERATOR_NAMESPACED_FILES):
    deploy = root / "deploy"
    deploy.mkdir(parents=True)
    for name in names:
        if name == "operator.yaml":
            content = yaml.safe_dump(OPERATOR_DEPLOYMENT)
        else:
            kind = "ServiceAccount" if name == "service_account.yaml" else "Role"
            content = yaml.safe_dump(
                {"apiVersion": "v1", "kind": kind, "metadata": {"name": name[:-5].replace("_", "-")}}
            )
        (deploy / name).write_text(content)
    return deploy


@pytest.fixture
def ready_operator(mock_kube_client):
    mock_kube_client.apps_v1.read_namespaced_deployment.return_value = client.V1Deployment(
        metadata=client.V1ObjectMeta(name="activemq-artemis-controller-manager"),
        spec=client.V1DeploymentSpec(
            replicas=1, selector=client.V1LabelSelector(), template=client.V1PodTemplateSpec()
        ),
        status=client.V1DeploymentStatus(ready_replicas=1),
    )
    return mock_kube_client


class TestWatchNamespace:
    def test_namespaced_watches_own_namespace(self, mock_kube_client, test_settings):
        operator = ArtemisCloudClusterOperatorFile(mock_kube_client, test_settings, "op-ns")

        assert operator.watch_namespace_value == "op-ns"

    def test_clustered_without_list_watches_all(self, mock_kube_client, test_settings):
        operator = ArtemisCloudClusterOperatorFile(
            mock_kube_client, test_settings, "op-ns", namespaced=False
        )

        assert operator.watch_namespace_value == "*"

    def test_clustered_with_list(self, mock_kube_client, test_settings):
        operator = ArtemisCloudClusterOperatorFile(
            mock_kube_client, test_settings, "op-ns", False, ["ns-a", "ns-b"]
        )

        assert operator.watch_namespace_value == "ns-a,ns-b"
        assert "watching ns-a,ns-b" in repr(operator)


class TestFileInstaller:
    def test_repo_unset(self, mock_kube_client, tmp_path):
        settings = Settings(OPERATOR_REPO=None, LOGS_LOCATION=str(tmp_path))
        operator = ArtemisCloudClusterOperatorFile(mock_kube_client, settings, "op-ns")

        with pytest.raises(ConfigurationError, match="OPERATOR_REPO"):
            operator.install_files

    def test_missing_required_file(self, mock_kube_client, test_settings):
        _write_operator_repo(test_settings.operator_repo_path, names=["service_account.yaml"])
        operator = ArtemisCloudClusterOperatorFile(mock_kube_client, test_settings, "op-ns")

        with pytest.raises(ConfigurationError, match="role.yaml"):
            operator.install_files

    def test_optional_file_skipped(self, mock_kube_client, test_settings):
        names = [n for n in OPERATOR_NAMESPACED_FILES if n != "operator_config.yaml"]
        _write_operator_repo(test_settings.operator_repo_path, names=names)
        operator = ArtemisCloudClusterOperatorFile(mock_kube_client, test_settings, "op-ns")

        assert [p.name for p in operator.install_files] == names

    def test_customize_namespaced_deployment(self, mock_kube_client, test_settings):
        test_settings.operator_image = "registry.local/operator:dev"
        operator = ArtemisCloudClusterOperatorFile(mock_kube_client, test_settings, "op-ns")

        manifest = operator.customize_manifest(OPERATOR_DEPLOYMENT)

        container = manifest["spec"]["template"]["spec"]["containers"][0]
        assert manifest["metadata"]["namespace"] == "op-ns"
        assert container["image"] == "registry.local/operator:dev"
        assert container["env"] == OPERATOR_DEPLOYMENT["spec"]["template"]["spec"]["containers"][0]["env"]
        assert "namespace" not in OPERATOR_DEPLOYMENT["metadata"]

    def test_customize_clustered_deployment_sets_watch_namespace(
        self, mock_kube_client, test_settings
    ):
        operator = ArtemisCloudClusterOperatorFile(
            mock_kube_client, test_settings, "op-ns", False, ["ns-a"]
        )

        manifest = operator.customize_manifest(OPERATOR_DEPLOYMENT)

        env = manifest["spec"]["template"]["spec"]["containers"][0]["env"]
        assert {"name": "WATCH_NAMESPACE", "value": "ns-a"} in env
        assert len([e for e in env if e["name"] == "WATCH_NAMESPACE"]) == 1

    def test_customize_cluster_role_binding(self, mock_kube_client, test_settings):
        operator = ArtemisCloudClusterOperatorFile(
            mock_kube_client, test_settings, "op-ns", namespaced=False
        )
        binding = {
            "apiVersion": "rbac.authorization.k8s.io/v1",
            "kind": "ClusterRoleBinding",
            "metadata": {"name": "activemq-artemis-operator"},
            "subjects": [
                {"kind": "ServiceAccount", "name": "activemq-artemis-controller-manager"},
                {"kind": "Group", "name": "admins"},
            ],
        }

        manifest = operator.customize_manifest(binding)

        assert "namespace" not in manifest["metadata"]
        assert manifest["subjects"][0]["namespace"] == "op-ns"
        assert "namespace" not in manifest["subjects"][1]

    def test_deploy_and_undeploy(self, ready_operator, test_settings):
        _write_operator_repo(test_settings.operator_repo_path)
        ready_operator.apply_manifest = MagicMock()
        ready_operator.delete_manifest = MagicMock()
        operator = ArtemisCloudClusterOperatorFile(ready_operator, test_settings, "op-ns")

        operator.deploy_operator()

        applied = [call[0][0]["kind"] for call in ready_operator.apply_manifest.call_args_list]
        assert applied[0] == "ServiceAccount"
        assert applied[-1] == "Deployment"
        assert operator.operator_name == "activemq-artemis-controller-manager"

        ready_operator.apps_v1.read_namespaced_deployment.side_effect = ApiException(
            status=404
        )
        ready_operator.core_v1.list_namespaced_pod.return_value.items = []
        operator.undeploy_operator()

        deleted = [call[0][0]["kind"] for call in ready_operator.delete_manifest.call_args_list]
        assert deleted == list(reversed(applied))
        assert operator.applied_manifests == []

    def test_crd_files_required(self, mock_kube_client, test_settings):
        (test_settings.operator_repo_path / "deploy" / "crds").mkdir(parents=True)

        with pytest.raises(ConfigurationError):
            ArtemisCloudClusterOperatorFile.crd_files(test_settings)

    def test_deploy_crds(self, mock_kube_client, test_settings):
        crds = test_settings.operator_repo_path / "deploy" / "crds"
        crds.mkdir(parents=True)
        for plural in ("activemqartemises", "activemqartemisaddresses"):
            (crds / f"broker_{plural}_crd.yaml").write_text(
                yaml.safe_dump(
                    {
                        "apiVersion": "apiextensions.k8s.io/v1",
                        "kind": "CustomResourceDefinition",
                        "metadata": {"name": f"{plural}.broker.amq.io"},
                    }
                )
            )
        mock_kube_client.apply_manifest = MagicMock()

        ArtemisCloudClusterOperatorFile.deploy_operator_crds(mock_kube_client, test_settings)

        names = [c[0][0]["metadata"]["name"] for c in mock_kube_client.apply_manifest.call_args_list]
        assert names == ["activemqartemisaddresses.broker.amq.io", "activemqartemises.broker.amq.io"]


class TestOlmInstaller:
    def _operator(self, kube, settings, **kwargs):
        return ArtemisCloudClusterOperatorOlm(kube, settings, "op-ns", **kwargs)

    def test_manifests(self, mock_kube_client, test_settings):
        operator = self._operator(
            mock_kube_client, test_settings, channel="7.11.x", index_image_bundle="registry/index:1"
        )

        catalog = operator.catalog_source_manifest()
        group = operator.operator_group_manifest()
        subscription = operator.subscription_manifest()

        assert catalog["spec"]["image"] == "registry/index:1"
        assert catalog["spec"]["sourceType"] == "grpc"
        assert group["spec"] == {"targetNamespaces": ["op-ns"]}
        assert subscription["spec"]["channel"] == "7.11.x"
        assert subscription["spec"]["source"] == catalog["metadata"]["name"]
        assert subscription["spec"]["sourceNamespace"] == "op-ns"

    def test_defaults_from_settings(self, mock_kube_client, test_settings):
        operator = self._operator(mock_kube_client, test_settings)

        assert operator.channel == test_settings.olm_channel
        assert operator.index_image_bundle == test_settings.olm_index_image_bundle

    def test_all_namespaces_operator_group(self, mock_kube_client, test_settings):
        operator = ArtemisCloudClusterOperatorOlm(
            mock_kube_client, test_settings, "op-ns", False, None
        )

        assert operator.operator_group_manifest()["spec"] == {}

    def test_deploy_waits_for_csv(self, ready_operator, test_settings):
        ready_operator.create_or_replace_custom_object = MagicMock()
        csv = {
            "metadata": {"name": "activemq-artemis-operator.v1.0.0"},
            "spec": {"install": {"spec": {"deployments": [{"name": "activemq-artemis-controller-manager"}]}}},
            "status": {"phase": "Succeeded"},
        }
        subscription = {"status": {"installedCSV": "activemq-artemis-operator.v1.0.0"}}
        ready_operator.custom_objects.get_namespaced_custom_object.side_effect = (
            lambda plural, **kwargs: subscription if plural == "subscriptions" else csv
        )
        operator = self._operator(ready_operator, test_settings)

        operator.deploy_operator()

        kinds = [
            c[0][4]["kind"] for c in ready_operator.create_or_replace_custom_object.call_args_list
        ]
        assert kinds == ["CatalogSource", "OperatorGroup", "Subscription"]
        assert operator.installed_csv == "activemq-artemis-operator.v1.0.0"
        assert operator.operator_name == "activemq-artemis-controller-manager"
