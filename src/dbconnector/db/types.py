import typing as t

from sqlalchemy import types
from sqlalchemy.dialects import mysql

from dbconnector import null

__all__ = ("UInt64",)


class UInt64(types.TypeDecorator[null.NullUInt64]):
    """
    A nullable `BIGINT UNSIGNED` column mapped to `NullUInt64`.

    Plain ints and None are accepted as parameters too.
    """

    impl = mysql.BIGINT(unsigned=True)

    cache_ok = True

    @property
    def python_type(self) -> t.Type[null.NullUInt64]:
        return null.NullUInt64

    def process_bind_param(
        self,
        value: null.NullUInt64 | int | None,
        dialect: t.Any,
    ) -> int | None:
        match value:
            case None:
                return None
            case null.NullUInt64():
                return value.value()
            case _:
                return null.NullUInt64.from_value(value).value()

    def process_result_value(
        self,
        value: t.Any,
        dialect: t.Any,
    ) -> null.NullUInt64:
        return null.NullUInt64.from_value(value)
