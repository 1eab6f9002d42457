"""
Common models shared across the Artemis custom resources.

This module defines the base class every broker.amq.io resource model
derives from, including conversion from and to plain manifests.
"""

from pathlib import Path
from typing import IO, Any, ClassVar, Self

from pydantic import BaseModel, Field

from artemis_systemtests.constants import (
    ARTEMIS_API_VERSION,
    ARTEMIS_GROUP,
    ARTEMIS_VERSION,
)
from artemis_systemtests.utils.manifests import load_single_manifest

# Metadata a client may set when creating an object
CLIENT_METADATA_FIELDS = ("name", "namespace", "labels", "annotations")


class CustomResource(BaseModel):
    """
    Base model of a namespaced custom resource.

    Subclasses set the API coordinates used by the Kubernetes client as
    class variables, and declare typed ``spec`` and ``status`` fields.
    Unknown fields are kept so that manifests loaded from files round trip.
    """

    model_config = {"populate_by_name": True, "extra": "allow"}

    GROUP: ClassVar[str] = ARTEMIS_GROUP
    VERSION: ClassVar[str] = ARTEMIS_VERSION
    PLURAL: ClassVar[str] = ""
    KIND: ClassVar[str] = ""

    api_version: str = Field(ARTEMIS_API_VERSION, alias="apiVersion")
    kind: str = Field("", description="Resource kind")
    metadata: dict[str, Any] = Field(
        default_factory=dict, description="Kubernetes metadata"
    )

    @property
    def name(self) -> str:
        return self.metadata.get("name", "")

    @property
    def namespace(self) -> str | None:
        return self.metadata.get("namespace")

    @property
    def uid(self) -> str | None:
        return self.metadata.get("uid")

    def to_manifest(
        self, include_status: bool = False, server_fields: bool = True
    ) -> dict[str, Any]:
        """
        Plain camelCase manifest suitable for the Kubernetes API.

        Args:
            include_status: Keep the status section
            server_fields: Keep metadata set by the API server (uid,
                resourceVersion, managedFields...); creating an object
                requires them to be absent
        """
        manifest = self.model_dump(by_alias=True, exclude_none=True, mode="json")
        if not include_status:
            manifest.pop("status", None)
        if not server_fields:
            manifest["metadata"] = {
                key: value
                for key, value in manifest.get("metadata", {}).items()
                if key in CLIENT_METADATA_FIELDS
            }
        return manifest

    @classmethod
    def from_manifest(cls, manifest: dict[str, Any]) -> Self:
        """
        Build a model from a manifest returned by the API or read from YAML.

        Raises:
            ValueError: If the manifest is of a different kind
        """
        kind = manifest.get("kind")
        if cls.KIND and kind and kind != cls.KIND:
            raise ValueError(f"Expected kind {cls.KIND}, got {kind}")
        return cls.model_validate(manifest)

    @classmethod
    def from_yaml(cls, content: str | IO[str]) -> Self:
        return cls.from_manifest(load_single_manifest(content))

    @classmethod
    def from_file(cls, path: str | Path) -> Self:
        return cls.from_manifest(load_single_manifest(Path(path)))


def object_meta(
    name: str, namespace: str | None = None, labels: dict[str, str] | None = None
) -> dict[str, Any]:
    """Minimal metadata section for a new resource."""
    metadata: dict[str, Any] = {"name": name}
    if namespace:
        metadata["namespace"] = namespace
    if labels:
        metadata["labels"] = dict(labels)
    return metadata
