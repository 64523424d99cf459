"""
Builds a SQLAlchemy engine from a data source descriptor.

This is the driver side of the descriptor: TLS contexts and dialers named in
it are looked up in `dbconnector.registry`.
"""

import time
import typing as t

import pymysql
from pymysql import converters
from pymysql.constants import CLIENT, FIELD_TYPE
from sqlalchemy import create_engine, engine, event, exc, pool as sa_pool
from sqlalchemy.engine import url as engine_url

from dbconnector import dsn as dsn_, errors, logging, registry
from dbconnector.config import mysql as config
from dbconnector.db import json

__all__ = (
    "get_engine",
    "connect_arguments",
    "pool_arguments",
)

DRIVER_NAME = "mysql+pymysql"
DEFAULT_PORT = 3306

# PyMySQL refuses an unlimited connect timeout, this is the largest it takes
MAX_CONNECT_TIMEOUT = 31536000

# ER_OPTION_PREVENTS_STATEMENT, ER_CANT_EXECUTE_IN_READ_ONLY_TRANSACTION
READ_ONLY_ERRORS = frozenset((1290, 1792))

TEMPORAL_TYPES = (
    FIELD_TYPE.DATE,
    FIELD_TYPE.DATETIME,
    FIELD_TYPE.NEWDATE,
    FIELD_TYPE.TIME,
    FIELD_TYPE.TIMESTAMP,
)

# key in `ConnectionRecord.info` holding the time of the last checkin
CHECKIN_KEY = "dbconnector.checkin"

logger = logging.get_logger(__name__)


def split_address(address: str) -> t.Tuple[str, int]:
    """
    Split `host:port` (or `[v6]:port`) into its parts.
    """
    if not address:
        return "127.0.0.1", DEFAULT_PORT

    if address.startswith("["):
        host, sep, rest = address[1:].partition("]")

        if not sep:
            raise errors.DescriptorError(f"invalid address: {address!r}")

        port = rest.removeprefix(":")
    elif address.count(":") == 1:
        host, _, port = address.partition(":")
    else:
        host, port = address, ""

    if not port:
        return host, DEFAULT_PORT

    try:
        return host, int(port)
    except ValueError:
        raise errors.DescriptorError(f"invalid port in {address!r}") from None


def charset_for(collation: str) -> str:
    return collation.split("_", 1)[0]


def positive(seconds: float) -> float | None:
    """
    A zero or negative timeout means no timeout.
    """
    return seconds if seconds > 0 else None


def connect_arguments(source: dsn_.DataSource) -> t.Dict[str, t.Any]:
    """
    Map the descriptor parameters onto `pymysql.connect` arguments.
    """
    params = source.params

    client_flag = 0

    if source.flag("clientFoundRows", False):
        client_flag |= CLIENT.FOUND_ROWS

    if source.flag("multiStatements", False):
        client_flag |= CLIENT.MULTI_STATEMENTS

    args: t.Dict[str, t.Any] = dict(
        connect_timeout=positive(source.duration("timeout", 15.0))
        or MAX_CONNECT_TIMEOUT,
        read_timeout=positive(source.duration("readTimeout", 0.0)),
        write_timeout=positive(source.duration("writeTimeout", 0.0)),
        client_flag=client_flag,
    )

    collation = params.get("collation")

    if collation:
        args["charset"] = charset_for(collation)
        args["collation"] = collation

    isolation = params.get("transaction_isolation")

    if isolation:
        args["init_command"] = f"SET SESSION transaction_isolation={isolation}"

    tls_name = params.get("tls")

    if tls_name:
        args["ssl"] = registry.tls_contexts.lookup(tls_name)
    else:
        # newer PyMySQL releases try TLS opportunistically otherwise
        args["ssl_disabled"] = True

    if not source.flag("parseTime", True):
        conv = converters.conversions.copy()

        for field_type in TEMPORAL_TYPES:
            conv.pop(field_type, None)

        args["conv"] = conv

    return args


def pool_arguments(cfg: config.Pool) -> t.Dict[str, t.Any]:
    """
    Map the pool configuration onto `create_engine` arguments.
    """
    if cfg.max_idle <= 0:
        return dict(poolclass=sa_pool.NullPool)

    if cfg.max_open <= 0:
        size = cfg.max_idle
        overflow = -1
    else:
        size = min(cfg.max_idle, cfg.max_open)
        overflow = cfg.max_open - size

    return dict(
        pool_size=size,
        max_overflow=overflow,
        pool_recycle=int(cfg.max_lifetime) if cfg.max_lifetime > 0 else -1,
        pool_pre_ping=True,
    )


def make_creator(
    dial: registry.DialFunc,
    address: str,
    kwargs: t.Dict[str, t.Any],
) -> t.Callable[[], pymysql.Connection]:
    """
    Create connections over sockets from a registered dialer.
    """
    host, port = split_address(address)

    def creator() -> pymysql.Connection:
        conn = pymysql.Connection(
            host=host,
            port=port,
            defer_connect=True,
            **kwargs,
        )
        sock = dial(address, kwargs.get("connect_timeout"))

        try:
            conn.connect(sock=sock)
        except BaseException:
            sock.close()

            raise

        return conn

    return creator


def install_idle_timeout(
    eng: engine.Engine,
    max_idle_time: float,
    clock: t.Callable[[], float] = time.monotonic,
) -> None:
    """
    Discard pooled connections that have been idle for too long.
    """

    @event.listens_for(eng, "checkin")
    def checkin(dbapi_connection: t.Any, record: t.Any) -> None:
        record.info[CHECKIN_KEY] = clock()

    @event.listens_for(eng, "checkout")
    def checkout(dbapi_connection: t.Any, record: t.Any, proxy: t.Any) -> None:
        since = record.info.pop(CHECKIN_KEY, None)

        if since is None:
            return

        if clock() - since > max_idle_time:
            # the pool closes the connection and tries another one
            raise exc.DisconnectionError("connection idle for too long")


def reject_read_only(context: engine.ExceptionContext) -> None:
    """
    Treat "server is read only" errors as disconnects, so the pool drops the
    connection instead of handing it out again. This happens after a failover
    when the old primary is demoted.
    """
    code = errors.server_error_code(context.original_exception)

    if code in READ_ONLY_ERRORS:
        logger.warning("mysql.read-only", code=code)

        context.is_disconnect = True


def get_engine(
    dsn: str,
    pool: config.Pool,
    echo: bool = False,
) -> engine.Engine:
    """
    Create the engine for the descriptor. No connection is made.

    Raises `DescriptorError` for a malformed descriptor and
    `UnknownRegistrationError` when it names a TLS context or dialer that was
    never registered.
    """
    source = dsn_.parse(dsn)
    kwargs = connect_arguments(source)
    creator: t.Callable[[], pymysql.Connection] | None = None

    match source.network:
        case "unix":
            url = engine_url.URL.create(
                drivername=DRIVER_NAME,
                username=source.username or None,
                password=source.password or None,
                database=source.schema or None,
                query={"unix_socket": source.address},
            )
        case "tcp":
            host, port = split_address(source.address)
            url = engine_url.URL.create(
                drivername=DRIVER_NAME,
                username=source.username or None,
                password=source.password or None,
                host=host,
                port=port,
                database=source.schema or None,
            )
        case name:
            dial = registry.dialers.lookup(name)
            url = engine_url.URL.create(drivername=DRIVER_NAME)
            creator = make_creator(
                dial,
                source.address,
                dict(
                    kwargs,
                    user=source.username or None,
                    password=source.password,
                    database=source.schema or None,
                ),
            )

    options: t.Dict[str, t.Any] = dict(
        pool_arguments(pool),
        json_serializer=json.dumps,
        json_deserializer=json.loads,
        echo=echo,
    )

    if creator is not None:
        options["creator"] = creator
    else:
        options["connect_args"] = kwargs

    eng = create_engine(url, **options)

    if pool.max_idle_time > 0 and pool.max_idle > 0:
        install_idle_timeout(eng, pool.max_idle_time)

    if source.flag("rejectReadOnly", False):
        event.listen(eng, "handle_error", reject_read_only)

    return eng
