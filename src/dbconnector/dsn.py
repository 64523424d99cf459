"""
Renders and parses MySQL data source descriptors:

    [user[:password]@]<network>(<address>)/<schema>?<key>=<value>&...

The format is the one understood by the Go MySQL driver, so descriptors can
be shared with services written in Go. Durations use Go's duration syntax.
"""

import re
import typing as t
from urllib import parse as urlparse

import msgspec

from dbconnector import errors, resolve
from dbconnector.config import mysql as config

__all__ = (
    "DataSource",
    "REDACTED",
    "render",
    "parse",
    "format_duration",
    "parse_duration",
)

REDACTED = "REDACTED"

NANOSECOND = 1
MICROSECOND = 1_000 * NANOSECOND
MILLISECOND = 1_000 * MICROSECOND
SECOND = 1_000 * MILLISECOND
MINUTE = 60 * SECOND
HOUR = 60 * MINUTE

UNITS: t.Dict[str, int] = {
    "ns": NANOSECOND,
    "us": MICROSECOND,
    "µs": MICROSECOND,  # U+00B5
    "μs": MICROSECOND,  # U+03BC
    "ms": MILLISECOND,
    "s": SECOND,
    "m": MINUTE,
    "h": HOUR,
}

DURATION_PART = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


class DataSource(msgspec.Struct, kw_only=True, frozen=True):
    """
    A parsed data source descriptor.
    """

    username: str = ""
    password: str = ""
    network: str = "tcp"
    address: str = ""
    schema: str = ""
    params: t.Dict[str, str] = {}

    def flag(self, key: str, default: bool) -> bool:
        value = self.params.get(key)

        match value:
            case None:
                return default
            case "true" | "1":
                return True
            case "false" | "0":
                return False
            case _:
                raise errors.DescriptorError(
                    f"invalid boolean for {key}: {value!r}"
                )

    def duration(self, key: str, default: float) -> float:
        value = self.params.get(key)

        if value is None:
            return default

        return parse_duration(value)


def format_bool(value: bool) -> str:
    return "true" if value else "false"


def format_fraction(value: int, size: int) -> str:
    whole, frac = divmod(value, size)

    if not frac:
        return str(whole)

    digits = len(str(size)) - 1

    return f"{whole}.{str(frac).rjust(digits, '0').rstrip('0')}"


def format_duration(seconds: float) -> str:
    """
    Format seconds the way Go's `time.Duration.String` does, e.g. `15s`,
    `1m30s`, `720h0m0s` or `250ms`.
    """
    ns = round(seconds * SECOND)

    if ns == 0:
        return "0s"

    sign = "-" if ns < 0 else ""
    ns = abs(ns)

    if ns < SECOND:
        for unit, size in (("ms", MILLISECOND), ("µs", MICROSECOND)):
            if ns >= size:
                return sign + format_fraction(ns, size) + unit

        return f"{sign}{ns}ns"

    hours, ns = divmod(ns, HOUR)
    minutes, ns = divmod(ns, MINUTE)
    secs = format_fraction(ns, SECOND) + "s"

    if hours:
        return f"{sign}{hours}h{minutes}m{secs}"

    if minutes:
        return f"{sign}{minutes}m{secs}"

    return sign + secs


def parse_duration(text: str) -> float:
    """
    Parse a Go duration string into seconds.
    """
    value = text
    sign = 1

    if value and value[0] in "+-":
        sign = -1 if value[0] == "-" else 1
        value = value[1:]

    if value == "0":
        return 0.0

    if not value:
        raise errors.DescriptorError(f"invalid duration: {text!r}")

    total = 0.0
    pos = 0

    while pos < len(value):
        match = DURATION_PART.match(value, pos)

        if match is None:
            raise errors.DescriptorError(f"invalid duration: {text!r}")

        total += float(match.group(1)) * UNITS[match.group(2)]
        pos = match.end()

    return sign * total / SECOND


def quote(value: str) -> str:
    return urlparse.quote(value, safe="'")


def render(
    cfg: config.Config,
    *,
    tls_name: str = "",
    network: str = "",
    redact: bool = False,
) -> str:
    """
    Render the descriptor for the configuration.

    :param tls_name: Name of a registered TLS context, empty for plaintext.
    :param network: Overrides the network kind, i.e. the name of a registered
        dialer.
    :param redact: Replace the password with `REDACTED`.
    """
    username = resolve.resolve(cfg.username)
    password = resolve.resolve(cfg.password)

    if redact and password:
        password = REDACTED

    parts: t.List[str] = []

    if password:
        parts.append(f"{username}:{password}@")
    elif username:
        parts.append(f"{username}@")

    parts.append(f"{network or cfg.network}({resolve.resolve(cfg.address)})")
    parts.append(f"/{cfg.schema}")

    params: t.List[t.Tuple[str, str]] = [
        ("collation", cfg.collation),
        ("parseTime", format_bool(cfg.parse_time)),
        ("interpolateParams", format_bool(cfg.interpolate_params)),
        ("multiStatements", format_bool(cfg.multi_statements)),
        ("rejectReadOnly", format_bool(not cfg.allow_read_only)),
        ("clientFoundRows", format_bool(cfg.client_found_rows)),
        ("timeout", format_duration(cfg.timeout.dial)),
        ("readTimeout", format_duration(cfg.timeout.read)),
        ("writeTimeout", format_duration(cfg.timeout.write)),
        (
            "transaction_isolation",
            f"'{config.ISOLATION_LEVELS[cfg.isolation_level]}'",
        ),
    ]

    if tls_name:
        params.append(("tls", tls_name))

    parts.append("?")
    parts.append("&".join(f"{key}={quote(value)}" for key, value in params))

    return "".join(parts)


def parse(text: str) -> DataSource:
    """
    Parse a descriptor produced by `render` (or by hand).
    """
    slash = text.rfind("/")

    if slash < 0:
        raise errors.DescriptorError("missing '/' before the schema")

    location, rest = text[:slash], text[slash + 1:]
    schema, _, query = rest.partition("?")

    username = password = ""
    at = location.rfind("@")

    if at >= 0:
        username, _, password = location[:at].partition(":")
        location = location[at + 1:]

    network, address = "tcp", ""

    if location:
        open_ = location.find("(")

        if open_ < 0:
            network = location
        elif not location.endswith(")"):
            raise errors.DescriptorError(
                f"unterminated address in {location!r}"
            )
        else:
            network = location[:open_]
            address = location[open_ + 1:-1]

    try:
        params = dict(
            urlparse.parse_qsl(
                query,
                keep_blank_values=True,
                strict_parsing=bool(query),
            )
        )
    except ValueError as err:
        raise errors.DescriptorError(f"invalid parameters: {err}") from err

    return DataSource(
        username=username,
        password=password,
        network=network,
        address=address,
        schema=schema,
        params=params,
    )
