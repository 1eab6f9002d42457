"""Deployment of the systemtests-clients container."""

import logging

from kubernetes import client
from kubernetes.client.rest import ApiException

from artemis_systemtests.constants import (
    CLIENTS_APP_LABEL,
    CLIENTS_CONTAINER_NAME,
    PREFIX_SYSTEMTESTS_CLIENTS,
    SECRETS_MOUNT_ROOT,
    SYSTEMTESTS_LABEL_KEY,
    SYSTEMTESTS_LABEL_VALUE,
)
from artemis_systemtests.services.kube_client import KubeClient

logger = logging.getLogger(__name__)


def build_clients_deployment(
    namespace: str, image: str, secrets: list[str] | None = None
) -> client.V1Deployment:
    """
    Deployment running the clients image idle, ready for exec.

    Every secret is mounted read-only at ``/etc/<secret>``.
    """
    labels = {
        "app": CLIENTS_APP_LABEL,
        SYSTEMTESTS_LABEL_KEY: SYSTEMTESTS_LABEL_VALUE,
    }
    volumes = []
    volume_mounts = []
    for secret in secrets or []:
        volumes.append(
            client.V1Volume(
                name=secret, secret=client.V1SecretVolumeSource(secret_name=secret)
            )
        )
        volume_mounts.append(
            client.V1VolumeMount(
                name=secret, mount_path=f"{SECRETS_MOUNT_ROOT}/{secret}", read_only=True
            )
        )

    container = client.V1Container(
        name=CLIENTS_CONTAINER_NAME,
        image=image,
        image_pull_policy="IfNotPresent",
        command=["sleep", "infinity"],
        volume_mounts=volume_mounts or None,
    )
    return client.V1Deployment(
        metadata=client.V1ObjectMeta(
            name=PREFIX_SYSTEMTESTS_CLIENTS, namespace=namespace, labels=labels
        ),
        spec=client.V1DeploymentSpec(
            replicas=1,
            selector=client.V1LabelSelector(match_labels={"app": CLIENTS_APP_LABEL}),
            template=client.V1PodTemplateSpec(
                metadata=client.V1ObjectMeta(labels=labels),
                spec=client.V1PodSpec(containers=[container], volumes=volumes or None),
            ),
        ),
    )


def deploy_clients_container(
    kube_client: KubeClient,
    namespace: str,
    image: str,
    secrets: list[str] | None = None,
) -> client.V1Deployment:
    """Create the clients Deployment (or reuse it) and wait until it is ready."""
    body = build_clients_deployment(namespace, image, secrets)
    logger.info(f"[{namespace}] Deploying {PREFIX_SYSTEMTESTS_CLIENTS} with image {image}")
    try:
        kube_client.apps_v1.create_namespaced_deployment(namespace=namespace, body=body)
    except ApiException as e:
        if e.status != 409:
            raise
        logger.info(f"[{namespace}] {PREFIX_SYSTEMTESTS_CLIENTS} already deployed, reusing it")
    return kube_client.wait_for_deployment_ready(namespace, PREFIX_SYSTEMTESTS_CLIENTS)


def get_clients_pod(kube_client: KubeClient, namespace: str) -> client.V1Pod | None:
    """Running pod of the clients Deployment."""
    return kube_client.get_first_pod_by_prefix_name(namespace, PREFIX_SYSTEMTESTS_CLIENTS)
