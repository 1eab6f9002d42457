"""Random names for namespaces and other per-test resources."""

import secrets
import string

RANDOM_ALPHABET = string.ascii_lowercase + string.digits


def get_random_string(length: int) -> str:
    """Return ``length`` random lowercase alphanumeric characters."""
    if length < 0:
        raise ValueError(f"length must not be negative, got {length}")
    return "".join(secrets.choice(RANDOM_ALPHABET) for _ in range(length))


def get_random_namespace_name(
    prefix: str, random_length: int = 6, disabled: bool = False
) -> str:
    """
    Build a namespace name from a prefix and a random suffix.

    Args:
        prefix: Namespace prefix, usually the name of the test class area
        random_length: Length of the random suffix
        disabled: Return the bare prefix (DISABLE_RANDOM_NAMESPACES)

    Returns:
        ``<prefix>-<suffix>`` or ``<prefix>`` when random names are disabled
    """
    if disabled:
        return prefix
    return f"{prefix}-{get_random_string(random_length)}"
