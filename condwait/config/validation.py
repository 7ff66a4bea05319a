"""
Module to validate values in a loaded config
"""

# Standard
from typing import Any, Dict, List, Optional, Union
import abc

# First Party
import aconfig
import alog

# Local
from .. import constants
from ..utils import nested_get

log = alog.use_channel("CONFG")


## Public ######################################################################


def get_invalid_params(
    config: aconfig.Config,
    validation_config: aconfig.Config,
) -> List[str]:
    """Get a list of any params that are invalid

    Args:
        config:  aconfig.Config
            The parsed config with any override values
        validation_config:  aconfig.Config
            The parallel config holding validation setup

    Returns:
        invalid_params:  List[str]
            A list of all string keys for parameters that fail validation
    """
    invalid_params = []
    for val_key, validator in _parse_validation_config(validation_config).items():
        if not validator.validate(nested_get(config, val_key)):
            log.warning("Found invalid config key [%s]", val_key)
            invalid_params.append(val_key)
    return invalid_params


## Parameters ##################################################################

# pylint: disable=too-few-public-methods


class _ValidatedParameter(abc.ABC):
    """A single config parameter with type and value validation"""

    TYPES: List[type] = []
    TYPE_KEY: Optional[str] = None

    def __init__(self, optional: bool = False):
        self.optional = optional

    def validate(self, value: Any) -> bool:
        """Validate a loaded value against the parameter's type and bounds"""
        if self.optional and value is None:
            return True

        # Env var overrides can turn a bool into a subclass of int, so bool
        # is checked before the general isinstance pass
        if isinstance(value, bool) and bool not in self.TYPES:
            log.warning("Invalid bool value [%s]", value)
            return False
        if not any(isinstance(value, valid_type) for valid_type in self.TYPES):
            log.warning("Invalid type <%s>", type(value))
            return False

        valid_value = self._validate_value(value)
        if not valid_value:
            log.warning("Invalid value [%s]", value)
        return valid_value

    @abc.abstractmethod
    def _validate_value(self, value: Any) -> bool:
        """Type-specific value validation"""


class _NumberParameter(_ValidatedParameter):
    """A numeric parameter with optional inclusive bounds"""

    TYPES = [int, float]
    TYPE_KEY = "number"

    def __init__(
        self,
        *,
        min: Optional[Union[int, float]] = None,  # pylint: disable=redefined-builtin
        max: Optional[Union[int, float]] = None,  # pylint: disable=redefined-builtin
        **kwargs,
    ):
        super().__init__(**kwargs)
        self._min = min
        self._max = max

    def _validate_value(self, value: Union[int, float]) -> bool:
        return (self._min is None or value >= self._min) and (
            self._max is None or value <= self._max
        )


class _IntParameter(_NumberParameter):
    """A number parameter that must be an int"""

    TYPES = [int]
    TYPE_KEY = "int"


class _StrParameter(_ValidatedParameter):
    """A str parameter with optional length bounds"""

    TYPES = [str]
    TYPE_KEY = "str"

    def __init__(
        self,
        *,
        min_len: Optional[int] = None,
        max_len: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self._min_len = min_len
        self._max_len = max_len

    def _validate_value(self, value: str) -> bool:
        return (self._min_len is None or len(value) >= self._min_len) and (
            self._max_len is None or len(value) <= self._max_len
        )


class _BoolParameter(_ValidatedParameter):
    TYPES = [bool]
    TYPE_KEY = "bool"

    def _validate_value(self, value: bool) -> bool:
        return True


class _EnumParameter(_ValidatedParameter):
    """A parameter with a fixed set of valid values"""

    TYPES = [str, int, type(None)]
    TYPE_KEY = "enum"

    def __init__(self, *, values: List[Union[str, int, None]], **kwargs):
        super().__init__(**kwargs)
        assert (
            isinstance(values, list) and values
        ), "Must specify at least one enum value!"
        self.values = values

    def _validate_value(self, value: Union[str, int, None]) -> bool:
        return value in self.values


# pylint: enable=too-few-public-methods

## Parsing #####################################################################


def _create_factory_map(param_class, factory_map=None):
    """Recursively map every concrete parameter class by its TYPE_KEY"""
    factory_map = factory_map or {}
    if not param_class.__abstractmethods__:
        factory_map[param_class.TYPE_KEY] = param_class
    for subclass in param_class.__subclasses__():
        factory_map = _create_factory_map(subclass, factory_map)
    return factory_map


_factory_map = _create_factory_map(_ValidatedParameter)


def _construct_parameter(param_args: Dict[str, Any]) -> Optional[_ValidatedParameter]:
    """Build a parameter from its validation entry, or None for unknown types"""
    param_args = dict(param_args)
    param_type = param_args.pop("type")
    if not (isinstance(param_type, str) and param_type in _factory_map):
        return None
    return _factory_map[param_type](**param_args)


def _parse_validation_config(
    validation_config: aconfig.Config,
    prefix_parts: Optional[List[str]] = None,
) -> Dict[str, _ValidatedParameter]:
    """Recursively parse the validation config into nested key -> parameter"""
    output_dict = {}
    prefix_parts = prefix_parts or []
    for key, val in validation_config.items():
        if not isinstance(val, dict):
            continue
        key_parts = prefix_parts + [key]
        nested_key = constants.NESTED_DICT_DELIM.join(key_parts)

        param = _construct_parameter(val) if "type" in val else None
        if param:
            log.debug3("Found parameter at %s", nested_key)
            output_dict[nested_key] = param
        else:
            log.debug3("Recursing into %s", nested_key)
            output_dict.update(_parse_validation_config(val, prefix_parts=key_parts))
    return output_dict
