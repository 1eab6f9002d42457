"""
Clients bundled with the broker image.

These run the broker's own ``artemis producer`` and ``artemis consumer``
commands inside a broker pod, authenticating with the credentials the
operator injects into the pod as AMQ_USER and AMQ_PASSWORD.
"""

import re
import shlex

from artemis_systemtests.constants import (
    BROKER_CLI_PATH,
    PROTOCOL_AMQP,
    PROTOCOL_CORE,
    PROTOCOL_OPENWIRE,
    SHELL,
)
from artemis_systemtests.messaging.base import MessagingClient

SENT_PATTERN = re.compile(r"\bSent:?\s+(?P<payload>.*?)\s*$")
RECEIVED_PATTERN = re.compile(r"\bReceived:?\s+(?P<payload>.*?)\s*$")

URL_SCHEMES = {
    PROTOCOL_CORE: "tcp",
    PROTOCOL_AMQP: "amqp",
    PROTOCOL_OPENWIRE: "tcp",
}


def parse_payloads(output: str, pattern: re.Pattern) -> list[str]:
    """Payloads of the verbose ``Sent:``/``Received:`` lines of a CLI run."""
    payloads = []
    for line in output.splitlines():
        match = pattern.search(line)
        if match:
            payloads.append(match.group("payload"))
    return payloads


class BundledClient(MessagingClient):
    """artemis producer/consumer for one wire protocol."""

    protocol = PROTOCOL_CORE

    @property
    def name(self) -> str:
        return f"Bundled{self.protocol.capitalize()}"

    @property
    def url(self) -> str:
        scheme = URL_SCHEMES[self.protocol]
        return f"{scheme}://{self.destination_address}:{self.destination_port}"

    def _cli_command(self, action: str, destination: str) -> list[str]:
        arguments = [
            BROKER_CLI_PATH,
            action,
            "--url",
            self.url,
            "--destination",
            destination,
            "--message-count",
            str(self.message_count),
            "--protocol",
            self.protocol,
        ]
        command = " ".join(shlex.quote(argument) for argument in arguments)
        # Credentials are expanded by the shell inside the broker pod
        return [
            SHELL,
            "-c",
            f'{command} --user "$AMQ_USER" --password "$AMQ_PASSWORD" --verbose',
        ]

    def sender_command(self) -> list[str]:
        return self._cli_command("producer", self.send_destination)

    def receiver_command(self) -> list[str]:
        return self._cli_command("consumer", self.receive_destination)

    def parse_sent(self, output: str) -> list[str]:
        return parse_payloads(output, SENT_PATTERN)

    def parse_received(self, output: str) -> list[str]:
        return parse_payloads(output, RECEIVED_PATTERN)


class BundledCoreMessagingClient(BundledClient):
    protocol = PROTOCOL_CORE


class BundledAmqpMessagingClient(BundledClient):
    protocol = PROTOCOL_AMQP


class BundledOpenwireMessagingClient(BundledClient):
    protocol = PROTOCOL_OPENWIRE
