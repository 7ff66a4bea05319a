"""
This module implements custom exceptions
"""

# Standard
from typing import Any, Dict, Optional

## Base Error ##################################################################


class CondwaitError(Exception):
    """Base class for all condwait exceptions"""

    def __init__(self, message: str, is_fatal_error: bool):
        """Construct with a flag indicating whether this is a fatal error. This
        will be a static property of all children.
        """
        super().__init__(message)
        self._is_fatal_error = is_fatal_error

    @property
    def is_fatal_error(self):
        """Property indicating whether or not this error was raised because the
        watched resource reported an unrecoverable state
        """
        return self._is_fatal_error


## Fatal Errors ################################################################


class CondwaitFatalError(CondwaitError):
    """A CondwaitFatalError stops a wait before its deadline because polling
    any longer cannot change the outcome.
    """

    def __init__(self, message: str = ""):
        super().__init__(message=message, is_fatal_error=True)


class ResourceDegradedError(CondwaitFatalError):
    """The watched resource reported its degraded condition as True"""

    def __init__(self, message: str = "", condition: Any = None):
        self.condition = condition
        super().__init__(message)


class MalformedStatusError(CondwaitFatalError):
    """The status document of the watched resource has the wrong shape"""


class ConfigError(CondwaitFatalError):
    """Exception caused by invalid library configuration"""


## Expected Errors #############################################################


class CondwaitExpectedError(CondwaitError):
    """A CondwaitExpectedError ends a wait without any unambiguous negative
    signal from the resource. Retrying the wait later may succeed.
    """

    def __init__(self, message: str = ""):
        super().__init__(message=message, is_fatal_error=False)


class WaitTimeoutError(CondwaitExpectedError):
    """The deadline elapsed before the resource converged"""

    def __init__(
        self,
        message: str = "",
        timeout: Optional[float] = None,
        last_observed: Optional[Dict[str, Any]] = None,
    ):
        self.timeout = timeout
        self.last_observed = last_observed or {}
        super().__init__(message)


class WaitCancelledError(CondwaitExpectedError):
    """The caller cancelled the wait before it finished"""

    def __init__(
        self,
        message: str = "",
        cause: Optional[str] = None,
        last_observed: Optional[Dict[str, Any]] = None,
    ):
        self.cause = cause
        self.last_observed = last_observed or {}
        super().__init__(message)


## Assertions ##################################################################


def assert_config(condition: bool, message: str = ""):
    """Replacement for assert() which will throw a ConfigError. This is used
    when validating the library configuration.
    """
    if not condition:
        raise ConfigError(message)
