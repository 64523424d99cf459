import contextlib

from sqlalchemy import orm

from dbconnector import errors

__all__ = ("transaction",)


@contextlib.contextmanager
def transaction(session: orm.Session):
    """
    Context manager that runs a transaction on the session, committing on
    success.

    A duplicate key error raised by the body or by the commit is re-raised as
    `OptimisticConcurrencyError`.
    """
    with errors.normalized():
        with session.begin() as trans:
            yield trans
