"""
Messaging clients exercising the brokers under test.

Bundled clients run the broker image's own CLI inside a broker pod;
container clients run the cli-java clients in the systemtests-clients pod.
"""

from .base import MessagingClient
from .bundled import (
    BundledAmqpMessagingClient,
    BundledClient,
    BundledCoreMessagingClient,
    BundledOpenwireMessagingClient,
)
from .containers import AmqpQpidClient, ContainerClient, OpenwireActivemqClient
from .deployment import (
    build_clients_deployment,
    deploy_clients_container,
    get_clients_pod,
)

__all__ = [
    "MessagingClient",
    "BundledClient",
    "BundledCoreMessagingClient",
    "BundledAmqpMessagingClient",
    "BundledOpenwireMessagingClient",
    "ContainerClient",
    "AmqpQpidClient",
    "OpenwireActivemqClient",
    "build_clients_deployment",
    "deploy_clients_container",
    "get_clients_pod",
]
