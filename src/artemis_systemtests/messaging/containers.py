"""
Clients running in the systemtests-clients container.

The container image ships the cli-java clients: ``cli-qpid-*`` speak AMQP
and ``cli-activemq-*`` speak OpenWire. With ``--log-msgs json`` each message
is printed as one JSON object per line.
"""

import json
import logging
from collections.abc import Hashable
from typing import Any

from artemis_systemtests.constants import (
    ACTIVEMQ_RECEIVER,
    ACTIVEMQ_SENDER,
    QPID_RECEIVER,
    QPID_SENDER,
)
from artemis_systemtests.messaging.base import MessagingClient

logger = logging.getLogger(__name__)


def parse_json_messages(output: str) -> list[dict[str, Any]]:
    """Messages logged as JSON lines; other output lines are ignored."""
    messages = []
    for line in output.splitlines():
        line = line.strip()
        if not line.startswith("{"):
            continue
        try:
            messages.append(json.loads(line))
        except json.JSONDecodeError:
            logger.debug(f"Skipping non JSON client output line: {line[:200]}")
    return messages


class ContainerClient(MessagingClient):
    """cli-java sender/receiver pair."""

    name = "ContainerClient"
    sender = QPID_SENDER
    receiver = QPID_RECEIVER

    def __init__(self, *args, username: str | None = None, password: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.username = username
        self.password = password

    @property
    def broker(self) -> str:
        return f"{self.destination_address}:{self.destination_port}"

    def _command(self, executable: str, address: str) -> list[str]:
        command = [
            executable,
            "--broker",
            self.broker,
            "--address",
            address,
            "--count",
            str(self.message_count),
            "--log-msgs",
            "json",
        ]
        if self.username:
            command += ["--conn-username", self.username]
        if self.password:
            command += ["--conn-password", self.password]
        return command

    def sender_command(self) -> list[str]:
        return self._command(self.sender, self.send_destination)

    def receiver_command(self) -> list[str]:
        return self._command(self.receiver, self.receive_destination)

    def parse_sent(self, output: str) -> list[dict[str, Any]]:
        return parse_json_messages(output)

    def parse_received(self, output: str) -> list[dict[str, Any]]:
        return parse_json_messages(output)

    def message_key(self, message: dict[str, Any]) -> Hashable:
        """
        Message id together with the serialized content.

        A message logged without an id gets a key equal to no other key, so
        it can never count as received.
        """
        message_id = message.get("id")
        if message_id is None:
            return object()
        return message_id, json.dumps(message.get("content"), sort_keys=True, default=str)


class AmqpQpidClient(ContainerClient):
    name = "AmqpQpidClient"
    sender = QPID_SENDER
    receiver = QPID_RECEIVER


class OpenwireActivemqClient(ContainerClient):
    name = "OpenwireActivemqClient"
    sender = ACTIVEMQ_SENDER
    receiver = ACTIVEMQ_RECEIVER
