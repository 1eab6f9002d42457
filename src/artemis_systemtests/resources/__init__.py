"""Example custom resources shipped with the suite."""

from pathlib import Path

RESOURCES_DIR = Path(__file__).parent


def resource_path(name: str) -> Path:
    """Path of a bundled resource file, e.g. ``artemis/artemis_single.yaml``."""
    path = RESOURCES_DIR / name
    if not path.is_file():
        raise FileNotFoundError(f"No bundled resource {name} in {RESOURCES_DIR}")
    return path
