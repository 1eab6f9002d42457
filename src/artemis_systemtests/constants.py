"""
Constants used throughout the Artemis Cloud system tests.

This module defines all constant values used by the suite including:
- Custom resource API coordinates
- Resource naming patterns and labels
- Polling intervals and timeouts
- Messaging client defaults
"""

# Custom resource API coordinates for the operator under test
ARTEMIS_GROUP = "broker.amq.io"
ARTEMIS_VERSION = "v1beta1"
ARTEMIS_API_VERSION = f"{ARTEMIS_GROUP}/{ARTEMIS_VERSION}"

KIND_ARTEMIS = "ActiveMQArtemis"
KIND_ARTEMIS_ADDRESS = "ActiveMQArtemisAddress"
KIND_ARTEMIS_SECURITY = "ActiveMQArtemisSecurity"

PLURAL_ARTEMIS = "activemqartemises"
PLURAL_ARTEMIS_ADDRESS = "activemqartemisaddresses"
PLURAL_ARTEMIS_SECURITY = "activemqartemissecurities"

# OLM API coordinates
OLM_GROUP = "operators.coreos.com"
OLM_VERSION_ALPHA = "v1alpha1"
OLM_VERSION = "v1"
PLURAL_CATALOG_SOURCE = "catalogsources"
PLURAL_OPERATOR_GROUP = "operatorgroups"
PLURAL_SUBSCRIPTION = "subscriptions"
PLURAL_CSV = "clusterserviceversions"
CSV_PHASE_SUCCEEDED = "Succeeded"

# Resource naming patterns
STATEFUL_SET_SUFFIX = "-ss"
HEADLESS_SERVICE_SUFFIX = "-hdls-svc"
PREFIX_SYSTEMTESTS_CLIENTS = "systemtests-clients"

# Labels
SYSTEMTESTS_LABEL_KEY = "brokerqe.io/systemtests"
SYSTEMTESTS_LABEL_VALUE = "true"
CLIENTS_APP_LABEL = "systemtests-clients"

# OpenShift namespace annotation with the allowed uid range ("1001040000/10000")
OPENSHIFT_UID_RANGE_ANNOTATION = "openshift.io/sa.scc.uid-range"

# Node role labels
NODE_ROLE_WORKER_LABEL = "node-role.kubernetes.io/worker"
NODE_ROLE_MASTER_LABEL = "node-role.kubernetes.io/master"

# Durations (in seconds)
DURATION_2_SECONDS = 2
DURATION_5_SECONDS = 5
DURATION_10_SECONDS = 10
DURATION_30_SECONDS = 30
DURATION_1_MINUTE = 60
DURATION_2_MINUTES = 120
DURATION_3_MINUTES = 180
DURATION_5_MINUTES = 300

# Broker readiness timeouts
BROKER_BASE_TIMEOUT = DURATION_1_MINUTE + DURATION_30_SECONDS
BROKER_PER_REPLICA_TIMEOUT = DURATION_1_MINUTE

# Address routing type used when none is given
ROUTING_TYPE_ANYCAST = "anycast"

# Acceptors and ports
DEFAULT_ACCEPTOR_PORT = 5672
AMQP_PORT = 5672
ALL_PORT_NAME = "all"

# Messaging client defaults
BROKER_CLI_PATH = "/home/jboss/amq-broker/bin/artemis"
PROTOCOL_CORE = "core"
PROTOCOL_AMQP = "amqp"
PROTOCOL_OPENWIRE = "openwire"
DEFAULT_MESSAGE_COUNT = 100
CLIENT_TIMEOUT = DURATION_2_MINUTES
SUBSCRIBER_SETTLE_TIME = DURATION_5_SECONDS

# Operator install files, applied in this order from <repo>/deploy
OPERATOR_DEPLOY_DIR = "deploy"
OPERATOR_CRDS_DIR = "crds"
OPERATOR_NAMESPACED_FILES = [
    "service_account.yaml",
    "role.yaml",
    "role_binding.yaml",
    "election_role.yaml",
    "election_role_binding.yaml",
    "operator_config.yaml",
    "operator.yaml",
]
OPERATOR_CLUSTERED_FILES = [
    "service_account.yaml",
    "cluster_role.yaml",
    "cluster_role_binding.yaml",
    "election_role.yaml",
    "election_role_binding.yaml",
    "operator_config.yaml",
    "operator.yaml",
]
OPERATOR_OPTIONAL_FILES = {"operator_config.yaml"}
WATCH_ALL_NAMESPACES = "*"

# Error message templates
ERROR_MISSING_OPERATOR_FILE = "Operator install file '{}' not found"
ERROR_OPERATOR_REPO_UNSET = (
    "OPERATOR_REPO is not set; it must point at a checkout of the operator repository"
)

# Operator deployment
OPERATOR_DEPLOYMENT_NAME = "activemq-artemis-controller-manager"
WATCH_NAMESPACE_ENV = "WATCH_NAMESPACE"
CLUSTER_SCOPED_KINDS = {
    "ClusterRole",
    "ClusterRoleBinding",
    "CustomResourceDefinition",
    "Namespace",
}
OLM_CATALOG_SOURCE_NAME = "artemis-systemtests-catalog"
OLM_OPERATOR_GROUP_NAME = "artemis-systemtests-operator-group"

# Messaging client commands
SHELL = "/bin/bash"
QUEUE_PREFIX = "queue://"
TOPIC_PREFIX = "topic://"
QPID_SENDER = "cli-qpid-sender"
QPID_RECEIVER = "cli-qpid-receiver"
ACTIVEMQ_SENDER = "cli-activemq-sender"
ACTIVEMQ_RECEIVER = "cli-activemq-receiver"
CLIENTS_CONTAINER_NAME = "systemtests-clients"
SECRETS_MOUNT_ROOT = "/etc"
