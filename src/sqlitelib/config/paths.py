"""Path resolution for sqlitelib configuration files."""

import os
from pathlib import Path
from typing import Optional, Union

from importlib.resources import files as importlib_files

CONFIG_FILENAME = "databases.toml"


def get_config_dir() -> Path:
    """
    Get the configuration directory for sqlitelib.
    
    Priority order:
    1. SQLITELIB_CONFIG_DIR environment variable (override)
    2. ~/.sqlitelib/ (dotfile directory in user home)
    
    Returns:
        Path: Configuration directory path
    """
    env_config_dir = os.getenv("SQLITELIB_CONFIG_DIR")
    if env_config_dir:
        return Path(env_config_dir)
    
    return Path.home() / ".sqlitelib"


def _get_example_files_dir() -> Path:
    """Get the directory containing example configuration files from the installed package"""
    package_data = importlib_files("sqlitelib") / "_data"
    return Path(str(package_data))


def get_default_config_path() -> Path:
    """
    Get the path to the databases.toml configuration file.
    
    Returns:
        Path: The path to databases.toml
    
    Raises:
        FileNotFoundError: If databases.toml doesn't exist in the config directory
    """
    config_dir = get_config_dir()
    config_path = config_dir / CONFIG_FILENAME
    
    if not config_path.exists():
        example_file = _get_example_files_dir() / f"{CONFIG_FILENAME}.example"
        
        error_msg = (
            f"Configuration file '{CONFIG_FILENAME}' not found at: {config_path}\n\n"
            f"To create it:\n"
            f"1. Copy example: {example_file}\n"
            f"2. To: {config_path}\n"
            f"3. Edit with your database files\n\n"
            f"Configuration directory priority:\n"
            f"  1. SQLITELIB_CONFIG_DIR environment variable (if set)\n"
            f"  2. ~/.sqlitelib/ (dotfile directory)\n"
        )
        
        raise FileNotFoundError(error_msg)
    
    return config_path


def resolve_config_path(path: Optional[Union[str, Path]] = None) -> Path:
    """Resolve the configuration file path from an explicit path or the default location"""
    if path:
        return Path(path)
    return get_default_config_path()


def get_example_config_path(filename: str = f"{CONFIG_FILENAME}.example") -> Path:
    """
    Get path to an example configuration file from the package.
    
    Raises:
        FileNotFoundError: If the example file doesn't exist
    """
    example_path = _get_example_files_dir() / filename
    if not example_path.exists():
        raise FileNotFoundError(f"Example file not found: {example_path}")
    return example_path
