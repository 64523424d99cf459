"""
Assembles a configured SQLAlchemy engine for a MySQL database.
"""

import socket
import ssl
import typing as t

from sqlalchemy import engine

from dbconnector import dsn, logging, registry, tls as tls_
from dbconnector.config import mysql as config
from dbconnector.db import mysql as db_mysql

__all__ = (
    "Connector",
    "new",
)


logger = logging.get_logger(__name__)


def register_dialer(
    dialer: registry.Dialer,
    network: str,
    log: logging.Logger = logger,
) -> str:
    """
    Register the dialer, bound to the original network kind.
    """

    def dial(address: str, timeout: float | None) -> socket.socket:
        sock = dialer(network, address, timeout)

        log.debug("mysql.connection.established", network=network, address=address)

        return sock

    return registry.dialers.register(dial)


class Connector:
    """
    Holds the rendered data source descriptor for a configuration and opens
    engines for it.
    """

    cfg: config.Config
    # descriptor handed to the driver
    dsn: str
    # same as `dsn` with the password replaced, safe to log
    redacted: str
    tls_name: str
    network: str
    log: logging.Logger

    def __init__(
        self,
        cfg: config.Config | None = None,
        *,
        tls: ssl.SSLContext | None = None,
        dialer: registry.Dialer | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        """
        :param cfg: The connection settings, defaults apply when omitted.
        :param tls: A TLS context to use instead of assembling `cfg.tls`.
        :param dialer: Opens the sockets to the server instead of the driver.
        :param log: The logger to use.
        """
        if cfg is None:
            cfg = config.Config()

        if tls is None and cfg.tls is not None:
            tls = tls_.new(cfg.tls)

        self.cfg = cfg
        self.log = log or logger

        self.tls_name = ""
        self.network = cfg.network

        if tls is not None:
            self.tls_name = registry.tls_contexts.register(tls)

        if dialer is not None:
            self.network = register_dialer(dialer, cfg.network, self.log)

        self.dsn = dsn.render(
            cfg,
            tls_name=self.tls_name,
            network=self.network,
        )
        self.redacted = dsn.render(
            cfg,
            tls_name=self.tls_name,
            network=self.network,
            redact=True,
        )

    def __repr__(self) -> str:
        return f"<Connector {self.cfg.name} {self.redacted}>"

    def open(self) -> engine.Engine:
        """
        Create the engine. No connection is made until it is first used.
        """
        eng = db_mysql.get_engine(self.dsn, self.cfg.pool, echo=self.cfg.echo)

        self.log.info(
            "mysql.handle.established",
            name=self.cfg.name,
            encryption="tls" if self.tls_name else "plaintext",
            dsn=self.redacted,
        )

        return eng


def new(cfg: config.Config | None = None, **kwargs: t.Any) -> engine.Engine:
    """
    Shortcut for `Connector(cfg, **kwargs).open()`.
    """
    return Connector(cfg, **kwargs).open()
