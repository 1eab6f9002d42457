"""Centralized test suite settings using pydantic-settings.

This module provides a single source of truth for all suite configuration
loaded from environment variables. Uses pydantic for automatic validation,
type coercion, and documentation.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from artemis_systemtests.constants import OPERATOR_DEPLOY_DIR


class Settings(BaseSettings):
    """System test configuration loaded from environment variables.

    Defaults target a local cluster where the suite manages the operator
    itself from a checkout of the operator repository.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Cluster access
    kube_context: str | None = Field(
        default=None,
        validation_alias="KUBE_CONTEXT",
        description="Kubeconfig context to use (current context when unset)",
    )

    # Operator deployment mode
    cluster_operator_managed: bool = Field(
        default=True,
        validation_alias="CLUSTER_OPERATOR_MANAGED",
        description="Deploy and undeploy the operator as part of the test run",
    )
    olm_installation: bool = Field(
        default=False,
        validation_alias="OLM",
        description="Install the operator through OLM instead of deploy files",
    )
    olm_channel: str = Field(
        default="upstream",
        validation_alias="OLM_CHANNEL",
        description="OLM subscription channel",
    )
    olm_index_image_bundle: str = Field(
        default="quay.io/artemiscloud/activemq-artemis-operator-index:latest",
        validation_alias="OLM_INDEX_IMAGE_BUNDLE",
        description="Index image used by the OLM catalog source",
    )
    olm_package_name: str = Field(
        default="activemq-artemis-operator",
        validation_alias="OLM_PACKAGE_NAME",
        description="OLM package name of the operator",
    )
    operator_repo_path: Path | None = Field(
        default=None,
        validation_alias="OPERATOR_REPO",
        description="Checkout of the operator repository holding deploy/ files",
    )
    operator_image: str | None = Field(
        default=None,
        validation_alias="OPERATOR_IMAGE",
        description="Override the operator image of file based installs",
    )

    # Images used by the tests
    broker_image: str | None = Field(
        default=None,
        validation_alias="BROKER_IMAGE",
        description="Override the broker image of broker CRs built by the suite",
    )
    clients_image: str = Field(
        default="quay.io/rhmessagingqe/cli-java:latest",
        validation_alias="CLIENTS_IMAGE",
        description="Image of the systemtests-clients container",
    )

    # Logging configuration
    test_log_level: str = Field(
        default="",
        validation_alias="TEST_LOG_LEVEL",
        description="Log level for all suite loggers (empty = leave untouched)",
    )
    json_logs: bool = Field(
        default=False,
        validation_alias="JSON_LOGS",
        description="Enable JSON formatted logging",
    )

    # Namespaces
    disable_random_namespaces: bool = Field(
        default=False,
        validation_alias="DISABLE_RANDOM_NAMESPACES",
        description="Use the bare namespace prefix instead of a random suffix",
    )

    # Test data collection
    collect_test_data: bool = Field(
        default=True,
        validation_alias="COLLECT_TEST_DATA",
        description="Dump cluster state of tracked namespaces when a test fails",
    )
    logs_location: Path = Field(
        default=Path("test-logs"),
        validation_alias="LOGS_LOCATION",
        description="Directory receiving collected test data",
    )

    @property
    def operator_deploy_dir(self) -> Path | None:
        """Directory with the operator install files, if a repository is set."""
        if self.operator_repo_path is None:
            return None
        return self.operator_repo_path / OPERATOR_DEPLOY_DIR


# Global settings instance - initialized once at module import
settings = Settings()
