"""
Contains the configuration for MySQL connections.

All values default to what a local development server needs. Credentials and
the address may be given as `env://NAME` or `file:///path` indirections, see
`dbconnector.resolve`.
"""

import enum
import typing as t

import msgspec

from dbconnector.config import tls as tls_config

__all__ = (
    "Config",
    "IsolationLevel",
    "Pool",
    "Timeout",
    "ISOLATION_LEVELS",
)

HOUR = 60.0 * 60.0


class IsolationLevel(enum.Enum):
    DEFAULT = "default"
    READ_UNCOMMITTED = "read_uncommitted"
    READ_COMMITTED = "read_committed"
    WRITE_COMMITTED = "write_committed"
    REPEATABLE_READ = "repeatable_read"
    SNAPSHOT = "snapshot"
    SERIALIZABLE = "serializable"
    LINEARIZABLE = "linearizable"


# values for the `transaction_isolation` session variable
ISOLATION_LEVELS: t.Dict[IsolationLevel, str] = {
    IsolationLevel.DEFAULT: "READ-COMMITTED",
    IsolationLevel.READ_UNCOMMITTED: "READ-UNCOMMITTED",
    IsolationLevel.READ_COMMITTED: "READ-COMMITTED",
    IsolationLevel.WRITE_COMMITTED: "WRITE-COMMITTED",
    IsolationLevel.REPEATABLE_READ: "REPEATABLE-READ",
    IsolationLevel.SNAPSHOT: "SNAPSHOT",
    IsolationLevel.SERIALIZABLE: "SERIALIZABLE",
    IsolationLevel.LINEARIZABLE: "LINEARIZABLE",
}


class Pool(msgspec.Struct, kw_only=True, frozen=True):
    """
    Holds the configuration for the connection pool.
    """

    # upper bound of connections open at once, 0 means unbounded
    max_open: int = 1024
    # connections kept around while idle, 0 disables pooling
    max_idle: int = 1024
    # seconds a connection may sit idle in the pool before it is discarded
    max_idle_time: float = 720 * HOUR
    # seconds after which a connection is recycled regardless of use
    max_lifetime: float = 720 * HOUR


class Timeout(msgspec.Struct, kw_only=True, frozen=True):
    """
    Holds the connection timeouts, in seconds.
    """

    # time to wait for the initial connection to the server
    dial: float = 15.0
    read: float = 15.0
    write: float = 30.0


class Config(msgspec.Struct, kw_only=True, frozen=True):
    """
    Holds the configuration for a MySQL connection pool.
    """

    # logical name of the pool, used in log lines only
    name: str = "default-mysql-pool"

    username: str = "root"
    password: str = ""

    network: t.Literal["tcp", "unix"] = "tcp"
    # host:port for tcp, the socket path for unix
    address: str = "127.0.0.1:3306"
    # default schema, may be empty
    schema: str = ""

    collation: str = "utf8_unicode_520_ci"
    parse_time: bool = True
    interpolate_params: bool = True
    multi_statements: bool = False
    # when False, connections to a read-only server (e.g. a demoted primary)
    # are dropped from the pool
    allow_read_only: bool = False
    # report matched rather than changed rows for UPDATE
    client_found_rows: bool = True

    timeout: Timeout = msgspec.field(default_factory=Timeout)
    pool: Pool = msgspec.field(default_factory=Pool)

    isolation_level: IsolationLevel = IsolationLevel.DEFAULT

    tls: tls_config.Config | None = None

    # https://docs.sqlalchemy.org/en/20/core/engines.html#sqlalchemy.create_engine.params.echo
    echo: bool = False
