"""
Tracking of resources created during a test session.

The tracker is an explicit context object owned by the session fixture and
handed to the resource manager, which records everything it creates so the
teardown sweep can remove what tests left behind.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class TrackedKind(Enum):
    """Kinds of tracked resources, in teardown order."""

    CLIENTS = "clients container"
    OPERATOR = "cluster operator"
    SECURITY = "ActiveMQArtemisSecurity"
    ADDRESS = "ActiveMQArtemisAddress"
    BROKER = "ActiveMQArtemis"
    NAMESPACE = "namespace"


@dataclass
class TrackedResource:
    """One resource created by the suite."""

    kind: TrackedKind
    name: str
    namespace: str | None = None
    resource: Any = None

    @property
    def key(self) -> tuple[str, str | None]:
        return self.name, self.namespace


class ResourceTracker:
    """Record of live suite resources plus the failures of their cleanup."""

    def __init__(self):
        self._resources: dict[TrackedKind, list[TrackedResource]] = {
            kind: [] for kind in TrackedKind
        }
        self.failed_cleanups: list[dict[str, str]] = []

    def track(
        self,
        kind: TrackedKind,
        name: str,
        namespace: str | None = None,
        resource: Any = None,
    ) -> TrackedResource:
        """
        Start tracking a resource.

        Tracking the same kind, name and namespace again refreshes the stored
        object instead of adding a duplicate entry.
        """
        entry = TrackedResource(kind, name, namespace, resource)
        entries = self._resources[kind]
        for index, existing in enumerate(entries):
            if existing.key == entry.key:
                entries[index] = entry
                return entry
        entries.append(entry)
        logger.debug(f"Tracking {kind.value} {name} (namespace: {namespace or '-'})")
        return entry

    def untrack(self, kind: TrackedKind, name: str, namespace: str | None = None) -> bool:
        """Stop tracking a resource; returns whether it was tracked."""
        entries = self._resources[kind]
        for index, existing in enumerate(entries):
            if existing.key == (name, namespace):
                del entries[index]
                return True
        return False

    def is_tracked(self, kind: TrackedKind, name: str, namespace: str | None = None) -> bool:
        return any(entry.key == (name, namespace) for entry in self._resources[kind])

    def get(self, kind: TrackedKind) -> list[TrackedResource]:
        """Snapshot of the tracked resources of one kind."""
        return list(self._resources[kind])

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._resources.values())

    def clear(self) -> None:
        for entries in self._resources.values():
            entries.clear()

    def record_failure(
        self, kind: TrackedKind, name: str, namespace: str | None, error: str
    ) -> None:
        """Record a cleanup failure."""
        self.failed_cleanups.append(
            {
                "resource_type": kind.value,
                "name": name,
                "namespace": namespace or "-",
                "error": error,
            }
        )

    def has_failures(self) -> bool:
        return len(self.failed_cleanups) > 0

    def get_report(self) -> str:
        """Generate a report of failed cleanups."""
        if not self.failed_cleanups:
            return "All resources cleaned up successfully"

        lines = ["Failed to clean up the following resources:"]
        for failure in self.failed_cleanups:
            lines.append(
                f"  - {failure['resource_type']} {failure['namespace']}/{failure['name']}: {failure['error']}"
            )
        return "\n".join(lines)
