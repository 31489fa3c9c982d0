"""Configuration module exports."""

from .config import DatabaseProfile, load_profile, list_profiles, resolve_profile
from .paths import (
    resolve_config_path,
    get_config_dir,
    get_default_config_path,
    get_example_config_path,
)

__all__ = [
    "DatabaseProfile",
    "load_profile",
    "list_profiles", 
    "resolve_profile",
    "resolve_config_path",
    "get_config_dir",
    "get_default_config_path",
    "get_example_config_path",
]
