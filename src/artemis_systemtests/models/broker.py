"""
ActiveMQArtemis broker custom resource model.

Only the broker settings the system tests set or read are typed; all other
fields are preserved as extra data.
"""

from typing import Any, ClassVar

from pydantic import BaseModel, Field, field_validator

from artemis_systemtests.constants import (
    DEFAULT_ACCEPTOR_PORT,
    KIND_ARTEMIS,
    PLURAL_ARTEMIS,
    STATEFUL_SET_SUFFIX,
)
from artemis_systemtests.models.common import CustomResource


class Acceptor(BaseModel):
    """Broker acceptor exposing one port for a set of protocols."""

    model_config = {"populate_by_name": True, "extra": "allow"}

    name: str = Field(..., description="Acceptor name")
    protocols: str = Field(
        ..., description="Comma separated protocols, e.g. 'amqp,openwire'"
    )
    port: int = Field(DEFAULT_ACCEPTOR_PORT, description="Acceptor port")
    expose: bool = Field(False, description="Expose the acceptor outside the cluster")
    ssl_enabled: bool | None = Field(None, alias="sslEnabled")
    ssl_secret: str | None = Field(None, alias="sslSecret")
    anycast_prefix: str | None = Field(None, alias="anycastPrefix")
    multicast_prefix: str | None = Field(None, alias="multicastPrefix")
    connections_allowed: int | None = Field(None, alias="connectionsAllowed")

    @field_validator("port")
    @classmethod
    def validate_port(cls, v):
        if not 1 <= v <= 65535:
            raise ValueError(f"Acceptor port must be between 1 and 65535, got {v}")
        return v


class DeploymentPlan(BaseModel):
    """How the operator deploys the broker pods."""

    model_config = {"populate_by_name": True, "extra": "allow"}

    size: int | None = Field(None, description="Number of broker replicas")
    image: str | None = Field(None, description="Broker image override")
    init_image: str | None = Field(None, alias="initImage")
    persistence_enabled: bool | None = Field(None, alias="persistenceEnabled")
    message_migration: bool | None = Field(None, alias="messageMigration")
    require_login: bool | None = Field(None, alias="requireLogin")
    journal_type: str | None = Field(None, alias="journalType")
    clustered: bool | None = Field(None)
    jolokia_agent_enabled: bool | None = Field(None, alias="jolokiaAgentEnabled")
    management_rbac_enabled: bool | None = Field(None, alias="managementRBACEnabled")
    resources: dict[str, Any] | None = Field(None)
    storage: dict[str, Any] | None = Field(None)

    @field_validator("size")
    @classmethod
    def validate_size(cls, v):
        if v is not None and v < 0:
            raise ValueError("Broker size must not be negative")
        return v


class Upgrades(BaseModel):
    """Automatic broker image upgrade policy."""

    enabled: bool = Field(False)
    minor: bool = Field(False)


class Console(BaseModel):
    """Web console settings."""

    model_config = {"populate_by_name": True, "extra": "allow"}

    expose: bool | None = Field(None)
    ssl_enabled: bool | None = Field(None, alias="sslEnabled")
    ssl_secret: str | None = Field(None, alias="sslSecret")
    use_client_auth: bool | None = Field(None, alias="useClientAuth")


class ActiveMQArtemisSpec(BaseModel):
    """Desired state of a broker deployment."""

    model_config = {"populate_by_name": True, "extra": "allow"}

    deployment_plan: DeploymentPlan | None = Field(None, alias="deploymentPlan")
    acceptors: list[Acceptor] | None = Field(None)
    connectors: list[dict[str, Any]] | None = Field(None)
    console: Console | None = Field(None)
    upgrades: Upgrades | None = Field(None)
    broker_properties: list[str] | None = Field(None, alias="brokerProperties")
    admin_user: str | None = Field(None, alias="adminUser")
    admin_password: str | None = Field(None, alias="adminPassword")
    env: list[dict[str, Any]] | None = Field(None)


class PodStatus(BaseModel):
    """Names of broker pods grouped by state, as reported by the operator."""

    model_config = {"extra": "allow"}

    ready: list[str] = Field(default_factory=list)
    starting: list[str] = Field(default_factory=list)
    stopped: list[str] = Field(default_factory=list)


class ActiveMQArtemisStatus(BaseModel):
    """Observed state of a broker deployment."""

    model_config = {"populate_by_name": True, "extra": "allow"}

    pod_status: PodStatus | None = Field(None, alias="podStatus")
    conditions: list[dict[str, Any]] = Field(default_factory=list)


class ActiveMQArtemis(CustomResource):
    """Complete ActiveMQArtemis custom resource model."""

    PLURAL: ClassVar[str] = PLURAL_ARTEMIS
    KIND: ClassVar[str] = KIND_ARTEMIS

    kind: str = Field(KIND_ARTEMIS)
    spec: ActiveMQArtemisSpec = Field(default_factory=ActiveMQArtemisSpec)
    status: ActiveMQArtemisStatus | None = Field(None)

    @property
    def stateful_set_name(self) -> str:
        return f"{self.name}{STATEFUL_SET_SUFFIX}"

    @property
    def size(self) -> int:
        """Requested replicas; the operator deploys one broker when unset."""
        plan = self.spec.deployment_plan
        if plan is None or plan.size is None:
            return 1
        return plan.size

    def add_acceptors(self, acceptors: list[Acceptor]) -> None:
        """Append acceptors, replacing existing ones with the same name."""
        names = {acceptor.name for acceptor in acceptors}
        current = [a for a in (self.spec.acceptors or []) if a.name not in names]
        self.spec.acceptors = current + list(acceptors)
