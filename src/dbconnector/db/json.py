import typing as t

from msgspec import json

from dbconnector import null

__all__ = (
    "dumps",
    "loads",
)


def enc_hook(obj: t.Any) -> t.Any:
    if isinstance(obj, null.NullUInt64):
        return obj.value()

    if hasattr(obj, "to_json"):
        return obj.to_json()

    raise NotImplementedError(f"Cannot serialize {obj!r}")


def dumps(obj: t.Any) -> str:
    # the engine writes the result into a string parameter
    return json.encode(obj, enc_hook=enc_hook).decode("utf-8")


def loads(obj: str | bytes) -> t.Any:
    return json.decode(obj)
