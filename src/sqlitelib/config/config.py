"""Configuration loading for SQLite database profiles."""

import sys
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# Use tomllib for Python 3.11+, fallback to tomli for older versions
if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        raise ImportError(
            "Python < 3.11 requires 'tomli' package. " +
            "Install it with: pip install tomli"
        )

from .paths import resolve_config_path


class DatabaseProfile(BaseModel):
    """Connection settings for one SQLite database"""
    
    model_config = ConfigDict(extra="forbid")
    
    filename: str
    readonly: bool = False
    uri: bool = False
    timeout: float = Field(default=5.0, ge=0)
    detect_types: int = 0
    cached_statements: int = Field(default=128, ge=0)
    pragmas: Dict[str, Union[str, int, float, bool]] = Field(default_factory=dict)


def _read_profiles(config_file: Path) -> Dict[str, Any]:
    with open(config_file, "rb") as f:
        return tomllib.load(f)


def load_profile(
    profile: str, 
    path: Optional[Union[str, Path]] = None
) -> Dict[str, Any]:
    """
    Load a database profile from databases.toml file.
    
    Args:
        profile: Name of the profile to load
        path: Optional explicit path to databases.toml file.
              If None, uses the configuration directory.
    
    Returns:
        Dictionary containing connection settings for the profile
    
    Raises:
        FileNotFoundError: If databases.toml file is not found
        KeyError: If the specified profile doesn't exist in the file
    
    Example:
        >>> load_profile("app")
        {'filename': '~/data/app.db', 'timeout': 10.0}
    """
    config_file = resolve_config_path(path)

    if not config_file.exists():
        raise FileNotFoundError(
            f"Database configuration file not found at {config_file}. " +
            "Create a databases.toml file or see databases.toml.example for template."
        )

    all_profiles = _read_profiles(config_file)

    if profile not in all_profiles:
        available = ", ".join(all_profiles.keys())
        raise KeyError(
            f"Profile '{profile}' not found in {config_file}. " +
            f"Available profiles: {available}"
        )

    return all_profiles[profile]


def list_profiles(path: Optional[Union[str, Path]] = None) -> list[str]:
    """List all available profile names in databases.toml file"""
    config_file = resolve_config_path(path)
    
    if not config_file.exists():
        return []
    
    return list(_read_profiles(config_file).keys())


def resolve_profile(
    profile: Optional[str] = None,
    path: Optional[Union[str, Path]] = None,
    **overrides: Any,
) -> DatabaseProfile:
    """Load and validate a profile, applying runtime overrides on top"""
    settings: Dict[str, Any] = {}
    if profile is not None:
        settings.update(load_profile(profile, path=path))
    settings.update(overrides)
    return DatabaseProfile(**settings)
