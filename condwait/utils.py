"""
Common utilities shared across the library
"""

# Standard
from typing import Any, Optional

# Local
from . import constants

# Sentinel for missing dict values
__MISSING__ = "__MISSING__"


def nested_get(dct: dict, key: str, dflt=None) -> Any:
    """Helper to get values from a dict using 'foo.bar' key notation

    Args:
        dct:  dict
            The dict to read from
        key:  str
            Key that may contain '.' notation indicating dict nesting

    Returns:
        val:  Any
            Whatever is found at the given key or dflt if the key is not found.
            This includes missing intermediate dicts.
    """
    parts = key.split(constants.NESTED_DICT_DELIM)
    for i, part in enumerate(parts[:-1]):
        dct = dct.get(part, __MISSING__)
        if dct is __MISSING__ or dct is None:
            return dflt
        if not isinstance(dct, dict):
            raise TypeError(
                "Intermediate key {} is not a dict".format(  # pylint: disable=consider-using-f-string
                    constants.NESTED_DICT_DELIM.join(parts[: i + 1])
                )
            )
    return dct.get(parts[-1], dflt)


def resource_name(resource: Optional[dict]) -> str:
    """Get the metadata.name of a resource dict, or an empty string"""
    if not isinstance(resource, dict):
        return ""
    metadata = resource.get("metadata")
    if not isinstance(metadata, dict):
        return ""
    name = metadata.get("name")
    return name if isinstance(name, str) else ""


def describe_resource(name: str, namespace: Optional[str] = None) -> str:
    """Human readable [namespace/]name used in log and error messages"""
    return f"{namespace}/{name}" if namespace else name
