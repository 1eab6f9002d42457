"""
Common contract of the messaging clients.

A client runs a sender and a receiver command inside a pod, keeps what was
sent and received, and compares the two.
"""

import logging
from abc import ABC, abstractmethod
from collections import Counter
from collections.abc import Hashable
from typing import Any

from kubernetes import client

from artemis_systemtests.constants import (
    CLIENT_TIMEOUT,
    DEFAULT_MESSAGE_COUNT,
    QUEUE_PREFIX,
    SUBSCRIBER_SETTLE_TIME,
    TOPIC_PREFIX,
)
from artemis_systemtests.errors import MessagingClientError, WaitTimeoutError
from artemis_systemtests.services.kube_client import ExecResult, KubeClient
from artemis_systemtests.utils.waiting import thread_sleep

logger = logging.getLogger(__name__)


class MessagingClient(ABC):
    """
    Base class of the messaging clients.

    Subclasses build the sender and receiver commands and parse their
    output; execution, subscription and comparison live here.
    """

    name = "messaging client"

    def __init__(
        self,
        kube_client: KubeClient,
        pod: client.V1Pod,
        destination_address: str,
        destination_port: int,
        address_name: str,
        queue_name: str | None = None,
        message_count: int = DEFAULT_MESSAGE_COUNT,
        timeout: float = CLIENT_TIMEOUT,
        container: str | None = None,
    ):
        """
        Initialize the client.

        Args:
            kube_client: Cluster façade used to exec into the pod
            pod: Pod the client commands run in
            destination_address: Host of the broker acceptor
            destination_port: Port of the broker acceptor
            address_name: Broker address to send to
            queue_name: Queue to receive from; defaults to the address name
            message_count: Number of messages to send and expect
            timeout: Seconds a single client command may run
            container: Container of the pod to exec into
        """
        self.kube_client = kube_client
        self.pod = pod
        self.destination_address = destination_address
        self.destination_port = destination_port
        self.address_name = address_name
        self.queue_name = queue_name or address_name
        self.message_count = message_count
        self.timeout = timeout
        self.container = container
        self.sent_messages: list[Any] = []
        self.received_messages: list[Any] = []
        self.subscribed = False
        self._subscriber_stream = None

    @property
    def namespace(self) -> str:
        return self.pod.metadata.namespace

    @property
    def pod_name(self) -> str:
        return self.pod.metadata.name

    @property
    def send_destination(self) -> str:
        prefix = TOPIC_PREFIX if self.subscribed else QUEUE_PREFIX
        return f"{prefix}{self.address_name}"

    @property
    def receive_destination(self) -> str:
        if self.subscribed:
            return f"{TOPIC_PREFIX}{self.address_name}"
        return f"{QUEUE_PREFIX}{self.queue_name}"

    @abstractmethod
    def sender_command(self) -> list[str]:
        """Command producing message_count messages."""

    @abstractmethod
    def receiver_command(self) -> list[str]:
        """Command consuming message_count messages."""

    @abstractmethod
    def parse_sent(self, output: str) -> list[Any]:
        """Messages reported by the sender output."""

    @abstractmethod
    def parse_received(self, output: str) -> list[Any]:
        """Messages reported by the receiver output."""

    def message_key(self, message: Any) -> Hashable:
        """What identifies a message when sent and received are compared."""
        return message

    def _check(self, result: ExecResult, action: str) -> ExecResult:
        if not result.succeeded:
            raise MessagingClientError(
                self.name,
                f"{action} failed in pod {self.pod_name}",
                returncode=result.returncode,
                output=result.output,
            )
        return result

    def _execute(self, command: list[str], action: str) -> ExecResult:
        try:
            result = self.kube_client.exec_in_pod(
                self.namespace, self.pod_name, command, self.container, self.timeout
            )
        except WaitTimeoutError as e:
            raise MessagingClientError(
                self.name, f"{action} did not finish within {self.timeout:g}s"
            ) from e
        return self._check(result, action)

    def send_messages(self) -> int:
        """Send message_count messages; returns how many were sent."""
        logger.info(
            f"[{self.namespace}] {self.name}: sending {self.message_count} messages "
            f"to {self.send_destination}"
        )
        result = self._execute(self.sender_command(), "Sending messages")
        self.sent_messages = self.parse_sent(result.stdout)
        logger.debug(f"[{self.namespace}] {self.name}: sent {len(self.sent_messages)} messages")
        return len(self.sent_messages)

    def receive_messages(self) -> int:
        """
        Receive messages; returns how many were received.

        After subscribe() this drains the already running subscriber instead
        of starting a new receiver.
        """
        if self._subscriber_stream is not None:
            response, self._subscriber_stream = self._subscriber_stream, None
            try:
                result = self.kube_client.collect_exec(
                    response, self.timeout, f"{self.name} subscriber"
                )
            except WaitTimeoutError as e:
                raise MessagingClientError(
                    self.name, f"Subscriber did not finish within {self.timeout:g}s"
                ) from e
            self._check(result, "Subscribing")
        else:
            logger.info(
                f"[{self.namespace}] {self.name}: receiving messages from {self.receive_destination}"
            )
            result = self._execute(self.receiver_command(), "Receiving messages")
        self.received_messages = self.parse_received(result.stdout)
        logger.debug(
            f"[{self.namespace}] {self.name}: received {len(self.received_messages)} messages"
        )
        return len(self.received_messages)

    def subscribe(self) -> None:
        """
        Switch to publish/subscribe and start the subscriber in the background.

        Messages sent afterwards go to the multicast address; call
        receive_messages() to wait for the subscriber and collect them.
        """
        self.subscribed = True
        logger.info(
            f"[{self.namespace}] {self.name}: subscribing to {self.receive_destination}"
        )
        self._subscriber_stream = self.kube_client.start_exec_in_pod(
            self.namespace, self.pod_name, self.receiver_command(), self.container
        )
        thread_sleep(SUBSCRIBER_SETTLE_TIME)

    def compare_messages(self) -> bool:
        """True when the same messages were sent and received, in any order."""
        if len(self.sent_messages) != len(self.received_messages):
            logger.warning(
                f"[{self.namespace}] {self.name}: sent {len(self.sent_messages)} "
                f"but received {len(self.received_messages)} messages"
            )
            return False
        sent = Counter(self.message_key(message) for message in self.sent_messages)
        received = Counter(self.message_key(message) for message in self.received_messages)
        if sent != received:
            missing = sent - received
            logger.warning(
                f"[{self.namespace}] {self.name}: {sum(missing.values())} sent messages "
                "were not received"
            )
            return False
        return True
