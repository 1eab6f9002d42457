"""ActiveMQArtemisAddress custom resource model."""

from typing import Any, ClassVar, Literal

from pydantic import BaseModel, Field

from artemis_systemtests.constants import (
    KIND_ARTEMIS_ADDRESS,
    PLURAL_ARTEMIS_ADDRESS,
    ROUTING_TYPE_ANYCAST,
)
from artemis_systemtests.models.common import CustomResource


class ActiveMQArtemisAddressSpec(BaseModel):
    """Address and queue the operator creates on the brokers."""

    model_config = {"populate_by_name": True, "extra": "allow"}

    address_name: str = Field(..., alias="addressName")
    queue_name: str | None = Field(None, alias="queueName")
    routing_type: Literal["anycast", "multicast"] = Field(
        ROUTING_TYPE_ANYCAST, alias="routingType"
    )
    remove_from_broker_on_delete: bool | None = Field(
        None, alias="removeFromBrokerOnDelete"
    )
    apply_to_cr_names: list[str] | None = Field(None, alias="applyToCrNames")
    queue_configuration: dict[str, Any] | None = Field(
        None, alias="queueConfiguration"
    )


class ActiveMQArtemisAddress(CustomResource):
    """Complete ActiveMQArtemisAddress custom resource model."""

    PLURAL: ClassVar[str] = PLURAL_ARTEMIS_ADDRESS
    KIND: ClassVar[str] = KIND_ARTEMIS_ADDRESS

    kind: str = Field(KIND_ARTEMIS_ADDRESS)
    spec: ActiveMQArtemisAddressSpec
    status: dict[str, Any] | None = Field(None)

    @property
    def address_name(self) -> str:
        return self.spec.address_name

    @property
    def queue_name(self) -> str:
        """Queue name, defaulting to the address name like the broker does."""
        return self.spec.queue_name or self.spec.address_name
