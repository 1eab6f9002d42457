"""
Models package - Pydantic models for the Artemis custom resources.

Defines data models for:
- ActiveMQArtemis broker deployments and their acceptors
- ActiveMQArtemisAddress addresses and queues
- ActiveMQArtemisSecurity security configuration
"""

from .address import ActiveMQArtemisAddress, ActiveMQArtemisAddressSpec
from .broker import (
    Acceptor,
    ActiveMQArtemis,
    ActiveMQArtemisSpec,
    ActiveMQArtemisStatus,
    Console,
    DeploymentPlan,
    PodStatus,
    Upgrades,
)
from .common import CustomResource, object_meta
from .security import ActiveMQArtemisSecurity, ActiveMQArtemisSecuritySpec

__all__ = [
    "Acceptor",
    "ActiveMQArtemis",
    "ActiveMQArtemisAddress",
    "ActiveMQArtemisAddressSpec",
    "ActiveMQArtemisSecurity",
    "ActiveMQArtemisSecuritySpec",
    "ActiveMQArtemisSpec",
    "ActiveMQArtemisStatus",
    "Console",
    "CustomResource",
    "DeploymentPlan",
    "PodStatus",
    "Upgrades",
    "object_meta",
]
