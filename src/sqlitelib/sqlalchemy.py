"""Optional SQLAlchemy integration for sqlitelib profiles"""

from pathlib import Path
from typing import Any
from sqlalchemy import create_engine, Engine
from sqlalchemy.pool import StaticPool

from sqlitelib.config import resolve_profile
from sqlitelib.connection import MEMORY


def create_engine_from_profile(
    profile: str = "default",
    **engine_kwargs: Any
) -> Engine:
    """Create SQLAlchemy engine from sqlitelib profile"""
    cfg = resolve_profile(profile)

    connect_args: dict[str, Any] = {"timeout": cfg.timeout}
    if cfg.detect_types:
        connect_args["detect_types"] = cfg.detect_types

    if cfg.filename == MEMORY:
        # One shared connection, otherwise each checkout sees an empty database
        engine_kwargs.setdefault("poolclass", StaticPool)
        connect_args["check_same_thread"] = False
        url = "sqlite://"
    elif cfg.uri:
        separator = "&" if "?" in cfg.filename else "?"
        url = f"sqlite:///{cfg.filename}{separator}uri=true"
    elif cfg.readonly:
        url = f"sqlite:///file:{Path(cfg.filename).expanduser()}?mode=ro&uri=true"
    else:
        url = f"sqlite:///{Path(cfg.filename).expanduser()}"

    return create_engine(url, connect_args=connect_args, **engine_kwargs)
