"""Lookups and assertions shared by the system tests."""

import logging

from artemis_systemtests.constants import ALL_PORT_NAME, HEADLESS_SERVICE_SUFFIX
from artemis_systemtests.messaging import MessagingClient
from artemis_systemtests.models import ActiveMQArtemis
from artemis_systemtests.services.kube_client import KubeClient

logger = logging.getLogger(__name__)


def headless_service_name(broker: ActiveMQArtemis) -> str:
    return f"{broker.name}{HEADLESS_SERVICE_SUFFIX}"


def broker_all_port(kube_client: KubeClient, namespace: str, broker: ActiveMQArtemis) -> int:
    """Port of the default "all" acceptor on the broker's headless service."""
    return kube_client.get_service_port_number(
        namespace, headless_service_name(broker), ALL_PORT_NAME
    )


def get_broker_pod(kube_client: KubeClient, namespace: str, broker: ActiveMQArtemis):
    pod = kube_client.get_first_pod_by_prefix_name(namespace, broker.name)
    assert pod is not None, f"No pod of broker {broker.name} in {namespace}"
    return pod


def assert_messages_exchanged(client: MessagingClient, expected: int) -> None:
    """Send and receive through the client and check nothing was lost."""
    sent = client.send_messages()
    received = client.receive_messages()
    logger.info(f"[{client.namespace}] Sent {sent} - Received {received}")

    assert sent == expected
    assert received == sent
    assert client.compare_messages() is True
