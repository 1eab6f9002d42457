"""
ActiveMQArtemisSecurity custom resource model.

Login modules, domains and settings are kept as plain mappings: the suite
loads them from files and passes them to the operator unchanged.
"""

from typing import Any, ClassVar

from pydantic import BaseModel, Field

from artemis_systemtests.constants import KIND_ARTEMIS_SECURITY, PLURAL_ARTEMIS_SECURITY
from artemis_systemtests.models.common import CustomResource


class ActiveMQArtemisSecuritySpec(BaseModel):
    model_config = {"populate_by_name": True, "extra": "allow"}

    login_modules: dict[str, Any] | None = Field(None, alias="loginModules")
    security_domains: dict[str, Any] | None = Field(None, alias="securityDomains")
    security_settings: dict[str, Any] | None = Field(None, alias="securitySettings")
    apply_to_cr_names: list[str] | None = Field(None, alias="applyToCrNames")


class ActiveMQArtemisSecurity(CustomResource):
    """Complete ActiveMQArtemisSecurity custom resource model."""

    PLURAL: ClassVar[str] = PLURAL_ARTEMIS_SECURITY
    KIND: ClassVar[str] = KIND_ARTEMIS_SECURITY

    kind: str = Field(KIND_ARTEMIS_SECURITY)
    spec: ActiveMQArtemisSecuritySpec = Field(
        default_factory=ActiveMQArtemisSecuritySpec
    )
    status: dict[str, Any] | None = Field(None)
