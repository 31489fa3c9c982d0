"""Shared value types for the statement builder"""

from typing import Any, Sequence


class _Unset:
    """Marker for mapping entries that should be treated as absent"""
    
    _instance = None
    
    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance
    
    def __bool__(self) -> bool:
        return False
    
    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


def normalize_params(params: Sequence[Any]) -> list[Any]:
    """Flatten positional parameters the way append() receives them
    
    A single list or tuple argument supplies the parameters as a whole,
    anything else is taken positionally.
    """
    if len(params) == 1 and isinstance(params[0], (list, tuple)):
        return list(params[0])
    return list(params)


def is_skipped_value(value: Any) -> bool:
    """True for values that column enumeration leaves out"""
    return value is UNSET or callable(value)
