import pytest

from dbconnector import config, errors
from dbconnector.config import mysql, tls


def test_defaults() -> None:
    cfg = mysql.Config()

    assert cfg.name == "default-mysql-pool"
    assert cfg.username == "root"
    assert cfg.password == ""
    assert cfg.network == "tcp"
    assert cfg.address == "127.0.0.1:3306"
    assert cfg.collation == "utf8_unicode_520_ci"
    assert cfg.parse_time is True
    assert cfg.interpolate_params is True
    assert cfg.multi_statements is False
    assert cfg.allow_read_only is False
    assert cfg.client_found_rows is True
    assert cfg.timeout == mysql.Timeout(dial=15, read=15, write=30)
    assert cfg.pool == mysql.Pool(
        max_open=1024,
        max_idle=1024,
        max_idle_time=720 * 3600,
        max_lifetime=720 * 3600,
    )
    assert cfg.isolation_level is mysql.IsolationLevel.DEFAULT
    assert cfg.tls is None


def test_tls_defaults() -> None:
    cfg = tls.Config()

    assert cfg.enabled is True
    assert cfg.trust_system_roots is True
    assert cfg.server_name == ""
    assert cfg.min_protocol_version == "TLSv1.2"
    assert cfg.trust_anchors_pem == ""
    assert cfg.trust_anchors_pem_file == ""


def test_load() -> None:
    cfg = config.load(
        {
            "name": "orders",
            "password": "env://DB_PASSWORD",
            "network": "unix",
            "address": "/run/mysqld/mysqld.sock",
            "isolation_level": "repeatable_read",
            "timeout": {"dial": 2.5},
            "pool": {"max_open": 10, "max_idle": 5},
            "tls": {"server_name": "db.internal"},
        },
        mysql.Config,
    )

    assert cfg.name == "orders"
    assert cfg.network == "unix"
    assert cfg.isolation_level is mysql.IsolationLevel.REPEATABLE_READ
    assert cfg.timeout == mysql.Timeout(dial=2.5)
    assert cfg.pool.max_open == 10
    assert cfg.pool.max_idle == 5
    assert cfg.pool.max_lifetime == 720 * 3600
    assert cfg.tls == tls.Config(server_name="db.internal")


@pytest.mark.parametrize(
    "doc",
    [
        {"network": "udp"},
        {"isolation_level": "chaos"},
        {"pool": {"max_open": "many"}},
        {"tls": {"min_protocol_version": "SSLv3"}},
    ],
)
def test_load_invalid(doc) -> None:
    with pytest.raises(errors.ConfigError):
        config.load(doc, mysql.Config)


def test_loads() -> None:
    cfg = config.loads(b'{"schema": "app", "multi_statements": true}', mysql.Config)

    assert cfg.schema == "app"
    assert cfg.multi_statements is True


def test_loads_invalid() -> None:
    with pytest.raises(errors.ConfigError):
        config.loads(b"{", mysql.Config)


def test_replace_later_wins() -> None:
    cfg = mysql.Config()

    cfg = config.replace(cfg, schema="one")
    cfg = config.replace(cfg, schema="two", password="hunter2")

    assert cfg.schema == "two"
    assert cfg.password == "hunter2"
    assert mysql.Config().schema == ""
