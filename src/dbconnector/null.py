"""
Nullable column values that the driver does not provide out of the box.
"""

import math
import typing as t

from dbconnector import errors

__all__ = (
    "NullUInt64",
    "UINT64_MAX",
    "INT64_MAX",
)

UINT64_MAX = (1 << 64) - 1
# the driver binds parameters as signed 64 bit integers
INT64_MAX = (1 << 63) - 1


def parse_uint64(text: str) -> int | None:
    # only plain ASCII digits, `int()` would also accept signs, whitespace
    # and underscores
    if not text or not text.isascii() or not text.isdigit():
        return None

    value = int(text)

    if value > UINT64_MAX:
        return None

    return value


class NullUInt64:
    """
    An unsigned 64 bit integer that may be NULL.

    `valid` is False only when the database value was NULL. A value that
    could not be converted still leaves `valid` True (and `uint64` 0), the
    same as the nullable integers of other drivers do.
    """

    uint64: int
    valid: bool

    __slots__ = (
        "uint64",
        "valid",
    )

    def __init__(self, uint64: int = 0, valid: bool = False) -> None:
        self.uint64 = uint64
        self.valid = valid

    def __repr__(self) -> str:
        return f"NullUInt64(uint64={self.uint64!r}, valid={self.valid!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NullUInt64):
            return NotImplemented

        return (self.uint64, self.valid) == (other.uint64, other.valid)

    __hash__ = None  # type: ignore[assignment]

    @classmethod
    def from_value(cls, value: t.Any) -> "NullUInt64":
        """
        Build an instance by scanning a driver value.
        """
        ret = cls()
        ret.scan(value)

        return ret

    def scan(self, value: t.Any) -> None:
        """
        Set the value from what the driver returned for the column.

        Raises `ScanError` if the value cannot be represented.
        """
        if value is None:
            self.uint64 = 0
            self.valid = False

            return

        self.valid = True

        parsed: int | None = None

        match value:
            case bytes() | bytearray() | memoryview():
                try:
                    parsed = parse_uint64(bytes(value).decode("ascii"))
                except UnicodeDecodeError:
                    parsed = None
            case str():
                parsed = parse_uint64(value)
            case bool():
                parsed = None
            case int():
                if 0 <= value <= UINT64_MAX:
                    parsed = value
            case float():
                if (
                    math.isfinite(value)
                    and value.is_integer()
                    and 0 <= value <= UINT64_MAX
                ):
                    parsed = int(value)

        if parsed is None:
            self.uint64 = 0

            raise errors.ScanError(
                "converting driver value type "
                f"{type(value).__name__} ({value!r}) to a uint64"
            )

        self.uint64 = parsed

    def value(self) -> int | None:
        """
        Get the value to hand to the driver, None for NULL.

        Raises `OutOfBoundsError` if the value does not fit in a signed 64
        bit integer.
        """
        if not self.valid:
            return None

        if self.uint64 > INT64_MAX:
            raise errors.OutOfBoundsError(
                f"uint64 value {self.uint64} exceeds {INT64_MAX}"
            )

        return self.uint64
