"""
Common utilities shared across cloudmgr
"""

# Standard
from datetime import timedelta
from typing import Any, Optional, Tuple
import re

# Local
from .constants import NESTED_DICT_DELIM

## Dict helpers ################################################################


def nested_get(dct: dict, key: str, dflt=None) -> Any:
    """Helper to get values from a dict using 'foo.bar' key notation

    Args:
        dct:  dict
            The dict into which the key will be set
        key:  str
            Key that may contain '.' notation indicating dict nesting

    Returns:
        val:  Any
            Whatever is found at the given key or None if the key is not found.
            This includes missing intermediate dicts.
    """
    parts = key.split(NESTED_DICT_DELIM)
    for part in parts[:-1]:
        dct = dct.get(part)
        if not isinstance(dct, dict):
            return dflt
    return dct.get(parts[-1], dflt)


## Resource helpers ############################################################


def split_api_version(api_version: Optional[str]) -> Tuple[str, str]:
    """Split an apiVersion into its group and version. The core group is
    represented by an empty string.
    """
    api_version = api_version or ""
    if "/" in api_version:
        group, version = api_version.split("/", 1)
        return group, version
    return "", api_version


def get_resource_identity(resource: dict) -> Tuple[str, str, str, str]:
    """Get the (api_version, kind, namespace, name) tuple for a manifest"""
    metadata = resource.get("metadata") or {}
    return (
        resource.get("apiVersion"),
        resource.get("kind"),
        metadata.get("namespace"),
        metadata.get("name"),
    )


def format_resource(resource: dict) -> str:
    """Get a human readable identity for a resource for use in log and error
    messages
    """
    api_version, kind, namespace, name = get_resource_identity(resource)
    return f"{api_version}/{kind} {namespace}/{name}"


## Time helpers ################################################################

_TIME_DELTA_REGEX = re.compile(
    r"^((?P<hours>\d+?)hr)?((?P<minutes>\d+?)m)?((?P<seconds>\d*\.?\d+?)s)?$"
)


def parse_time_delta(time_str: str) -> Optional[timedelta]:
    """Parse a string into a timedelta. Accepts values such as 1hr, 5m, 10s or
    combinations like 1m30s.

    Args:
        time_str: str
            The string representation of a timedelta

    Returns:
        result: Optional[timedelta]
            The parsed timedelta if one could be found
    """
    parts = _TIME_DELTA_REGEX.match(time_str or "")
    if not parts or all(part is None for part in parts.groupdict().values()):
        return None
    return timedelta(
        **{name: float(val) for name, val in parts.groupdict().items() if val}
    )
