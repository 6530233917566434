"""Config loading and validation helpers shared by the public API and CLI."""

from .config_loading import SUPPORTED_CONFIG_SUFFIXES, load_config_mapping
from .config_validation import validate_allowed_keys, validate_required_keys, validate_table_shape

__all__ = [
    "SUPPORTED_CONFIG_SUFFIXES",
    "load_config_mapping",
    "validate_allowed_keys",
    "validate_required_keys",
    "validate_table_shape",
]
