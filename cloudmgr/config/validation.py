"""
Module to validate values in a loaded config against a parallel validation
config. Each leaf of the validation config names a `type` and optional bounds.
"""

# Standard
from typing import Any, Dict, List, Optional, Union
import abc

# First Party
import aconfig
import alog

# Local
from ..utils import nested_get, parse_time_delta

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
            A list of all nested keys for parameters that fail validation
    """
    invalid_params = []
    for key, validator in _parse_validation_config(validation_config).items():
        if not validator.validate(nested_get(config, key)):
            log.warning("Found invalid config key [%s]", key)
            invalid_params.append(key)
    return invalid_params


## Validators ##################################################################

# pylint: disable=too-few-public-methods


class _Validator(abc.ABC):
    """A single typed parameter"""

    TYPES = []
    TYPE_KEY = None

    def __init__(self, optional: bool = False):
        self.optional = optional

    def validate(self, value: Any) -> bool:
        if self.optional and value is None:
            return True
        if not isinstance(value, tuple(self.TYPES)) or (
            isinstance(value, bool) and bool not in self.TYPES
        ):
            log.warning("Invalid type <%s>", type(value))
            return False
        valid = self._validate_value(value)
        if not valid:
            log.warning("Invalid value [%s]", value)
        return valid

    @abc.abstractmethod
    def _validate_value(self, value: Any) -> bool:
        """Type-specific value check"""


class _NumberValidator(_Validator):
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


class _StrValidator(_Validator):
    TYPES = [str]
    TYPE_KEY = "str"

    def __init__(self, *, min_len: Optional[int] = None, **kwargs):
        super().__init__(**kwargs)
        self._min_len = min_len

    def _validate_value(self, value: str) -> bool:
        return self._min_len is None or len(value) >= self._min_len


class _BoolValidator(_Validator):
    TYPES = [bool]
    TYPE_KEY = "bool"

    def _validate_value(self, value: bool) -> bool:
        return True


class _EnumValidator(_Validator):
    TYPES = [str, int, type(None)]
    TYPE_KEY = "enum"

    def __init__(self, *, values: List[Union[str, int, None]], **kwargs):
        super().__init__(**kwargs)
        assert values, "Must specify at least one enum value!"
        self.values = values

    def _validate_value(self, value: Union[str, int, None]) -> bool:
        return value in self.values


class _TimeDeltaValidator(_Validator):
    TYPES = [str]
    TYPE_KEY = "time_delta"

    def _validate_value(self, value: str) -> bool:
        return parse_time_delta(value) is not None


# pylint: enable=too-few-public-methods

_VALIDATORS = {
    validator.TYPE_KEY: validator
    for validator in [
        _NumberValidator,
        _StrValidator,
        _BoolValidator,
        _EnumValidator,
        _TimeDeltaValidator,
    ]
}


## Parsing #####################################################################


def _parse_validation_config(
    validation_config: dict,
    prefix: str = "",
) -> Dict[str, _Validator]:
    """Recursively flatten the validation config into nested keys pointing at
    validator instances. Entries with an unknown type are skipped.
    """
    validators = {}
    for key, val in validation_config.items():
        full_key = f"{prefix}.{key}" if prefix else key
        if not isinstance(val, dict):
            continue
        if "type" not in val:
            validators.update(_parse_validation_config(val, full_key))
            continue
        args = dict(val)
        validator_class = _VALIDATORS.get(args.pop("type"))
        if validator_class is None:
            log.debug("Skipping unknown validation type for [%s]", full_key)
            continue
        validators[full_key] = validator_class(**args)
    return validators
