"""Tests for the messaging clients."""

import json
from unittest.mock import MagicMock

import pytest
from kubernetes import client

from artemis_systemtests.errors import MessagingClientError, WaitTimeoutError
from artemis_systemtests.messaging import (
    AmqpQpidClient,
    BundledAmqpMessagingClient,
    BundledCoreMessagingClient,
    BundledOpenwireMessagingClient,
    OpenwireActivemqClient,
    build_clients_deployment,
    deploy_clients_container,
)
from artemis_systemtests.messaging.bundled import RECEIVED_PATTERN, SENT_PATTERN, parse_payloads
from artemis_systemtests.messaging.containers import parse_json_messages
from artemis_systemtests.services.kube_client import ExecResult

from .factories import make_pod

SENDER_OUTPUT = "\n".join(
    ["Connection established", "Sent: message 0", "Sent: message 1", "Producer finished"]
)
RECEIVER_OUTPUT = "\n".join(
    ["Connection established", "Received: message 1", "Received: message 0"]
)


def _json_lines(ids):
    return "\n".join(json.dumps({"id": i, "content": "payload"}) for i in ids)


@pytest.fixture
def broker_pod():
    return make_pod("artemis-broker-ss-0")


@pytest.fixture
def exec_kube(mock_kube_client):
    mock_kube_client.exec_in_pod = MagicMock()
    mock_kube_client.start_exec_in_pod = MagicMock()
    mock_kube_client.collect_exec = MagicMock()
    return mock_kube_client


def _core_client(kube, pod, **kwargs):
    return BundledCoreMessagingClient(
        kube, pod, "artemis-broker-hdls-svc", 61616, "myAddress", message_count=2, **kwargs
    )


class TestParsing:
    def test_parse_payloads(self):
        assert parse_payloads(SENDER_OUTPUT, SENT_PATTERN) == ["message 0", "message 1"]
        assert parse_payloads(RECEIVER_OUTPUT, RECEIVED_PATTERN) == ["message 1", "message 0"]

    def test_parse_json_messages_skips_noise(self):
        output = 'starting\n{"id": "a"}\n{broken\n  {"id": "b"}  \n'

        assert parse_json_messages(output) == [{"id": "a"}, {"id": "b"}]


class TestBundledClients:
    def test_core_sender_command(self, exec_kube, broker_pod):
        command = _core_client(exec_kube, broker_pod).sender_command()

        assert command[:2] == ["/bin/bash", "-c"]
        script = command[2]
        assert script.startswith("/home/jboss/amq-broker/bin/artemis producer")
        assert "--url tcp://artemis-broker-hdls-svc:61616" in script
        assert "--destination queue://myAddress" in script
        assert "--message-count 2" in script
        assert "--protocol core" in script
        assert '--user "$AMQ_USER" --password "$AMQ_PASSWORD"' in script

    def test_amqp_url_scheme(self, exec_kube, broker_pod):
        amqp = BundledAmqpMessagingClient(exec_kube, broker_pod, "svc", 5672, "myAddress")

        assert amqp.url == "amqp://svc:5672"
        assert amqp.name == "BundledAmqp"
        assert "consumer" in amqp.receiver_command()[2]

    def test_openwire_uses_tcp(self, exec_kube, broker_pod):
        openwire = BundledOpenwireMessagingClient(exec_kube, broker_pod, "svc", 61616, "a")

        assert openwire.url == "tcp://svc:61616"
        assert "--protocol openwire" in openwire.sender_command()[2]

    def test_queue_name_defaults_to_address(self, exec_kube, broker_pod):
        core = _core_client(exec_kube, broker_pod)

        assert core.receive_destination == "queue://myAddress"

    def test_send_and_receive_compare(self, exec_kube, broker_pod):
        exec_kube.exec_in_pod.side_effect = [
            ExecResult(0, SENDER_OUTPUT, ""),
            ExecResult(0, RECEIVER_OUTPUT, ""),
        ]
        core = _core_client(exec_kube, broker_pod)

        assert core.send_messages() == 2
        assert core.receive_messages() == 2
        assert core.compare_messages() is True
        first_call = exec_kube.exec_in_pod.call_args_list[0]
        assert first_call[0][:2] == ("test-ns", "artemis-broker-ss-0")

    def test_compare_detects_missing_message(self, exec_kube, broker_pod):
        exec_kube.exec_in_pod.side_effect = [
            ExecResult(0, SENDER_OUTPUT, ""),
            ExecResult(0, "Received: message 0\nReceived: message 0", ""),
        ]
        core = _core_client(exec_kube, broker_pod)
        core.send_messages()
        core.receive_messages()

        assert core.compare_messages() is False

    def test_compare_detects_count_mismatch(self, exec_kube, broker_pod):
        exec_kube.exec_in_pod.side_effect = [
            ExecResult(0, SENDER_OUTPUT, ""),
            ExecResult(0, "Received: message 0", ""),
        ]
        core = _core_client(exec_kube, broker_pod)
        core.send_messages()
        core.receive_messages()

        assert core.compare_messages() is False

    def test_failed_command_raises(self, exec_kube, broker_pod):
        exec_kube.exec_in_pod.return_value = ExecResult(1, "", "AMQ219010: Connection refused")

        with pytest.raises(MessagingClientError, match="exit code 1") as exc_info:
            _core_client(exec_kube, broker_pod).send_messages()
        assert "Connection refused" in str(exc_info.value)

    def test_timeout_raises_client_error(self, exec_kube, broker_pod):
        exec_kube.exec_in_pod.side_effect = WaitTimeoutError("exec", 120)

        with pytest.raises(MessagingClientError, match="did not finish"):
            _core_client(exec_kube, broker_pod).receive_messages()


class TestSubscribe:
    def test_subscribe_switches_to_topic(self, exec_kube, broker_pod):
        stream = object()
        exec_kube.start_exec_in_pod.return_value = stream
        exec_kube.exec_in_pod.return_value = ExecResult(0, SENDER_OUTPUT, "")
        exec_kube.collect_exec.return_value = ExecResult(0, RECEIVER_OUTPUT, "")
        core = _core_client(exec_kube, broker_pod)

        core.subscribe()
        core.send_messages()
        received = core.receive_messages()

        subscriber_command = exec_kube.start_exec_in_pod.call_args[0][2]
        assert "--destination topic://myAddress" in subscriber_command[2]
        sender_command = exec_kube.exec_in_pod.call_args[0][2]
        assert "--destination topic://myAddress" in sender_command[2]
        assert exec_kube.collect_exec.call_args[0][0] is stream
        assert received == 2
        assert core.compare_messages() is True

    def test_receive_after_subscription_is_drained_once(self, exec_kube, broker_pod):
        exec_kube.collect_exec.return_value = ExecResult(0, RECEIVER_OUTPUT, "")
        exec_kube.exec_in_pod.return_value = ExecResult(0, "", "")
        core = _core_client(exec_kube, broker_pod)

        core.subscribe()
        core.receive_messages()
        core.receive_messages()

        assert exec_kube.collect_exec.call_count == 1
        assert exec_kube.exec_in_pod.call_count == 1


class TestContainerClients:
    def test_qpid_commands(self, exec_kube, broker_pod):
        qpid = AmqpQpidClient(
            exec_kube,
            broker_pod,
            "artemis-broker-amqp-0-svc",
            5672,
            "myAddress",
            message_count=3,
            username="alice",
            password="secret",
        )

        assert qpid.sender_command() == [
            "cli-qpid-sender",
            "--broker",
            "artemis-broker-amqp-0-svc:5672",
            "--address",
            "queue://myAddress",
            "--count",
            "3",
            "--log-msgs",
            "json",
            "--conn-username",
            "alice",
            "--conn-password",
            "secret",
        ]
        assert qpid.receiver_command()[0] == "cli-qpid-receiver"

    def test_openwire_executables(self, exec_kube, broker_pod):
        activemq = OpenwireActivemqClient(exec_kube, broker_pod, "svc", 61616, "a")

        assert activemq.sender_command()[0] == "cli-activemq-sender"
        assert activemq.receiver_command()[0] == "cli-activemq-receiver"
        assert "--conn-username" not in activemq.sender_command()

    def test_messages_compared_by_id(self, exec_kube, broker_pod):
        exec_kube.exec_in_pod.side_effect = [
            ExecResult(0, _json_lines(["m1", "m2", "m3"]), ""),
            ExecResult(0, _json_lines(["m3", "m1", "m2"]), ""),
        ]
        qpid = AmqpQpidClient(exec_kube, broker_pod, "svc", 5672, "q", message_count=3)

        assert qpid.send_messages() == 3
        assert qpid.receive_messages() == 3
        assert qpid.compare_messages() is True

    def test_same_ids_with_different_content_do_not_match(self, exec_kube, broker_pod):
        exec_kube.exec_in_pod.side_effect = [
            ExecResult(0, _json_lines(["m1", "m2"]), ""),
            ExecResult(
                0,
                "\n".join(
                    [
                        json.dumps({"id": "m1", "content": "payload"}),
                        json.dumps({"id": "m2", "content": "corrupted"}),
                    ]
                ),
                "",
            ),
        ]
        qpid = AmqpQpidClient(exec_kube, broker_pod, "svc", 5672, "q", message_count=2)

        qpid.send_messages()
        qpid.receive_messages()

        assert qpid.compare_messages() is False

    def test_messages_without_id_never_match(self, exec_kube, broker_pod):
        exec_kube.exec_in_pod.side_effect = [
            ExecResult(0, '{"content": "a"}\n{"content": "b"}', ""),
            ExecResult(0, '{"content": "x"}\n{"content": "y"}', ""),
        ]
        qpid = AmqpQpidClient(exec_kube, broker_pod, "svc", 5672, "q", message_count=2)

        assert qpid.send_messages() == 2
        assert qpid.receive_messages() == 2
        assert qpid.compare_messages() is False

    def test_structured_content_compared_by_value(self, exec_kube, broker_pod):
        exec_kube.exec_in_pod.side_effect = [
            ExecResult(0, json.dumps({"id": "m1", "content": {"a": 1, "b": 2}}), ""),
            ExecResult(0, json.dumps({"id": "m1", "content": {"b": 2, "a": 1}}), ""),
        ]
        qpid = AmqpQpidClient(exec_kube, broker_pod, "svc", 5672, "q", message_count=1)

        qpid.send_messages()
        qpid.receive_messages()

        assert qpid.compare_messages() is True


class TestClientsDeployment:
    def test_secrets_mounted_under_etc(self):
        deployment = build_clients_deployment("test-ns", "cli-java:latest", ["tls-secret"])

        pod_spec = deployment.spec.template.spec
        container = pod_spec.containers[0]
        assert deployment.metadata.name == "systemtests-clients"
        assert container.command == ["sleep", "infinity"]
        assert container.volume_mounts[0].mount_path == "/etc/tls-secret"
        assert pod_spec.volumes[0].secret.secret_name == "tls-secret"

    def test_deploy_waits_for_ready(self, mock_kube_client):
        ready = client.V1Deployment(
            metadata=client.V1ObjectMeta(name="systemtests-clients"),
            spec=client.V1DeploymentSpec(
                replicas=1,
                selector=client.V1LabelSelector(),
                template=client.V1PodTemplateSpec(),
            ),
            status=client.V1DeploymentStatus(ready_replicas=1),
        )
        mock_kube_client.apps_v1.read_namespaced_deployment.return_value = ready

        result = deploy_clients_container(mock_kube_client, "test-ns", "cli-java:latest")

        assert result is ready
        mock_kube_client.apps_v1.create_namespaced_deployment.assert_called_once()
