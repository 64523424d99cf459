"""
Resolves configuration values that may point somewhere else.

A value is either a literal, `env://NAME` (the contents of an environment
variable) or `file:///path` (the trimmed contents of a file).
"""

import os
from urllib import parse

__all__ = ("resolve",)


def parse_url(value: str) -> parse.SplitResult | None:
    value = value.strip()

    if not value:
        return None

    try:
        return parse.urlsplit(value)
    except ValueError:
        return None


def read_file(path: str) -> str:
    try:
        with open(path, "rb") as fp:
            raw = fp.read()
    except OSError:
        return ""

    try:
        return raw.decode("utf-8").strip()
    except UnicodeDecodeError:
        return ""


def resolve(value: str) -> str:
    """
    Resolve the value. Read failures resolve to an empty string, it is up to
    the caller to decide whether that is fatal.
    """
    if not value:
        return ""

    parsed = parse_url(value)

    if parsed is None:
        return value

    match parsed.scheme:
        case "env":
            return os.environ.get(parsed.netloc, "")
        case "file":
            return read_file(parse.unquote(parsed.path))
        case _:
            return value
