"""GUID normalisation for ids handed over by the host."""

import re

_GUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$")


def format_guid(value: str) -> str:
    """Strip braces and whitespace and lowercase a GUID.

    "{ABCDEF01-...}" → "abcdef01-..."
    """
    return value.strip().strip("{}").lower()


def is_guid(value: str) -> bool:
    """Check whether value is a normalised GUID."""
    return bool(_GUID_RE.match(value))
