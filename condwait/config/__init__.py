"""
Library config for condwait. The values here are the defaults used by every
wait when the caller does not pass an explicit interval or timeout.
"""

# Local
from .config import library_config


# Define __getattr__ on this module to delegate to the library config.
def __getattr__(name):
    if name in library_config or hasattr({}, name):
        return getattr(library_config, name)
    raise AttributeError(f"No such config attribute {name}")


# Only expose the library config keys
__all__ = list(library_config.keys())
