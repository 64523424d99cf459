"""
Error types raised by dbconnector, and the translation of driver errors into
them.
"""

import contextlib
import typing as t

import pymysql
from sqlalchemy import exc

__all__ = (
    "Error",
    "ConfigError",
    "DescriptorError",
    "UnknownRegistrationError",
    "ReadPEMFileError",
    "MalformedPEMError",
    "ScanError",
    "OutOfBoundsError",
    "OptimisticConcurrencyError",
    "normalize_error",
    "normalized",
)

# ER_DUP_ENTRY
DUPLICATE_KEY = 1062

E = t.TypeVar("E", bound=BaseException)


class Error(Exception):
    """
    Base class for all errors raised by this package.
    """


class ConfigError(Error):
    """
    Raised when settings cannot be decoded or validated.
    """


class DescriptorError(Error, ValueError):
    """
    Raised when a data source descriptor cannot be parsed.
    """


class UnknownRegistrationError(Error, KeyError):
    """
    Raised when a registry has nothing under the requested name.
    """


class ReadPEMFileError(Error):
    """
    The trust anchor PEM file could not be read.
    """


class MalformedPEMError(Error):
    """
    The trust anchor PEM text could not be parsed.
    """


class ScanError(Error):
    """
    A driver value could not be converted into a column value.
    """


class OutOfBoundsError(Error):
    """
    A column value does not fit in what the driver can carry.
    """


class OptimisticConcurrencyError(Error):
    """
    Another writer has modified the underlying rows.
    """

    def __init__(
        self,
        msg: str = "another writer has modified the underlying rows",
    ) -> None:
        super().__init__(msg)


def unwrap_sqlalchemy_error(err: BaseException) -> BaseException:
    """
    Unwrap the error to the original driver exception, if there is one.
    """
    if isinstance(err, exc.DBAPIError) and err.orig is not None:
        return t.cast(BaseException, err.orig)

    return err


def server_error_code(err: BaseException) -> int | None:
    """
    Return the MySQL server error number carried by a driver error.
    """
    my_err = unwrap_sqlalchemy_error(err)

    if not isinstance(my_err, pymysql.err.MySQLError):
        return None

    match my_err.args:
        case (int() as code, *_):
            return code

    return None


@t.overload
def normalize_error(err: None) -> None: ...


@t.overload
def normalize_error(err: E) -> E | OptimisticConcurrencyError: ...


def normalize_error(err):
    """
    Map a duplicate key error onto `OptimisticConcurrencyError`.

    Every other error is returned as is (the same object).
    """
    if err is None:
        return None

    if server_error_code(err) != DUPLICATE_KEY:
        return err

    ret = OptimisticConcurrencyError()
    ret.__cause__ = err

    return ret


@contextlib.contextmanager
def normalized():
    """
    Context manager that re-raises errors through `normalize_error`.
    """
    try:
        yield
    except Exception as err:
        norm = normalize_error(err)

        if norm is err:
            raise

        raise norm from err
