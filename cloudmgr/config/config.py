"""
This module loads config at import time and does the initial log config
"""

# Standard
import os

# First Party
import aconfig
import alog

# Local
from ..exceptions import assert_config
from ..log_format import CloudManagerJsonFormatter
from .validation import get_invalid_params

# Read the library config, allowing env overrides
library_config = aconfig.Config.from_yaml(
    os.path.join(os.path.dirname(__file__), "config.yaml"),
    override_env_vars=True,
)

# Parse the validation file, not allowing env overrides
validation_config = aconfig.Config.from_yaml(
    os.path.join(os.path.dirname(__file__), "config_validation.yaml"),
    override_env_vars=False,
)

invalid_params = get_invalid_params(library_config, validation_config)
assert_config(
    not invalid_params,
    f"Library configuration found invalid values: {invalid_params}",
)

alog.configure(
    default_level=library_config.log_level,
    filters=library_config.log_filters,
    formatter=CloudManagerJsonFormatter() if library_config.log_json else "pretty",
    thread_id=library_config.log_thread_id,
)
