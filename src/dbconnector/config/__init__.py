"""
Settings records and helpers to build them from decoded documents.
"""

import typing as t

import msgspec

from dbconnector import errors

__all__ = (
    "load",
    "loads",
    "replace",
)

T = t.TypeVar("T", bound=msgspec.Struct)


def load(obj: t.Any, type: t.Type[T]) -> T:
    """
    Convert a decoded document (e.g. a dict from YAML or TOML) into settings.
    """
    try:
        return msgspec.convert(obj, type)
    except msgspec.ValidationError as err:
        raise errors.ConfigError(f"invalid {type.__name__}: {err}") from err


def loads(data: bytes | str, type: t.Type[T]) -> T:
    """
    Decode a JSON document into settings.
    """
    try:
        return msgspec.json.decode(data, type=type)
    except msgspec.DecodeError as err:
        raise errors.ConfigError(f"invalid {type.__name__}: {err}") from err


def replace(cfg: T, **changes: t.Any) -> T:
    """
    Return a copy of the settings with the given fields overridden.
    """
    return msgspec.structs.replace(cfg, **changes)
