"""
Loading of YAML manifests.

Manifest files may contain several documents separated by ``---``; empty
documents are skipped so that trailing separators do not produce ``None``.
"""

from pathlib import Path
from typing import IO, Any

import yaml


def load_yaml_documents(content: str | IO[str]) -> list[dict[str, Any]]:
    """Parse every non-empty YAML document of a string or text stream."""
    documents = []
    for document in yaml.safe_load_all(content):
        if document is None:
            continue
        if not isinstance(document, dict):
            raise ValueError(
                f"Expected a mapping manifest, got {type(document).__name__}"
            )
        documents.append(document)
    return documents


def load_yaml_file(path: str | Path) -> list[dict[str, Any]]:
    """Load all manifests from a YAML file."""
    with open(path, encoding="utf-8") as stream:
        return load_yaml_documents(stream)


def load_single_manifest(content: str | IO[str] | Path) -> dict[str, Any]:
    """
    Load exactly one manifest from a path, string or stream.

    Raises:
        ValueError: If the source does not hold exactly one document
    """
    if isinstance(content, Path):
        documents = load_yaml_file(content)
    else:
        documents = load_yaml_documents(content)
    if len(documents) != 1:
        raise ValueError(f"Expected exactly one manifest, found {len(documents)}")
    return documents[0]


def dump_yaml(data: Any) -> str:
    """Serialize data as block style YAML keeping key order."""
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)
