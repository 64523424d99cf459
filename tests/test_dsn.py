import pytest

from dbconnector import dsn, errors
from dbconnector.config import mysql

DEFAULT_PARAMS = (
    "collation=utf8_unicode_520_ci"
    "&parseTime=true"
    "&interpolateParams=true"
    "&multiStatements=false"
    "&rejectReadOnly=true"
    "&clientFoundRows=true"
    "&timeout=15s"
    "&readTimeout=15s"
    "&writeTimeout=30s"
    "&transaction_isolation='READ-COMMITTED'"
)


def test_render_defaults() -> None:
    assert dsn.render(mysql.Config()) == (
        f"root@tcp(127.0.0.1:3306)/?{DEFAULT_PARAMS}"
    )


def test_render_with_password() -> None:
    cfg = mysql.Config(
        username="root",
        password="hunter2",
        network="tcp",
        address="127.0.0.1:3306",
        schema="app",
    )

    assert dsn.render(cfg).startswith("root:hunter2@tcp(127.0.0.1:3306)/app?")
    assert dsn.render(cfg, redact=True).startswith(
        "root:REDACTED@tcp(127.0.0.1:3306)/app?"
    )


def test_render_without_password() -> None:
    cfg = mysql.Config(username="root", schema="app")

    assert dsn.render(cfg).startswith("root@tcp(127.0.0.1:3306)/app?")
    # nothing to redact
    assert dsn.render(cfg, redact=True) == dsn.render(cfg)


def test_render_without_credentials() -> None:
    cfg = mysql.Config(username="", password="", schema="app")

    assert dsn.render(cfg).startswith("tcp(127.0.0.1:3306)/app?")


def test_render_password_without_user() -> None:
    cfg = mysql.Config(username="", password="x", schema="app")

    assert dsn.render(cfg).startswith(":x@tcp(127.0.0.1:3306)/app?")
    assert dsn.render(cfg, redact=True).startswith(
        ":REDACTED@tcp(127.0.0.1:3306)/app?"
    )

    source = dsn.parse(dsn.render(cfg))

    assert source.username == ""
    assert source.password == "x"


@pytest.mark.parametrize(
    "password",
    ["hunter2", "p@ss/word", "with:colon", "REDACTED!"],
)
def test_redaction_only_touches_the_password(password: str) -> None:
    cfg = mysql.Config(username="app", password=password, schema="app")

    plain = dsn.render(cfg)
    redacted = dsn.render(cfg, redact=True)

    assert plain == redacted.replace(":REDACTED@", f":{password}@", 1)
    assert redacted.startswith("app:REDACTED@tcp(")


def test_render_resolves_credentials(monkeypatch, tmp_path) -> None:
    secret = tmp_path / "password"
    secret.write_text("s3cret\n")
    monkeypatch.setenv("DB_USER", "svc")
    monkeypatch.setenv("DB_ADDR", "db.internal:3307")

    cfg = mysql.Config(
        username="env://DB_USER",
        password=f"file://{secret}",
        address="env://DB_ADDR",
    )

    assert dsn.render(cfg).startswith("svc:s3cret@tcp(db.internal:3307)/?")
    assert dsn.render(cfg, redact=True).startswith(
        "svc:REDACTED@tcp(db.internal:3307)/?"
    )


def test_render_is_stable() -> None:
    cfg = mysql.Config(password="hunter2", schema="app")

    assert dsn.render(cfg) == dsn.render(cfg)


def test_render_flags() -> None:
    cfg = mysql.Config(
        parse_time=False,
        interpolate_params=False,
        multi_statements=True,
        allow_read_only=True,
        client_found_rows=False,
    )
    params = dsn.parse(dsn.render(cfg)).params

    assert params["parseTime"] == "false"
    assert params["interpolateParams"] == "false"
    assert params["multiStatements"] == "true"
    assert params["rejectReadOnly"] == "false"
    assert params["clientFoundRows"] == "false"


@pytest.mark.parametrize(
    "level, literal",
    [
        (mysql.IsolationLevel.DEFAULT, "'READ-COMMITTED'"),
        (mysql.IsolationLevel.READ_UNCOMMITTED, "'READ-UNCOMMITTED'"),
        (mysql.IsolationLevel.READ_COMMITTED, "'READ-COMMITTED'"),
        (mysql.IsolationLevel.WRITE_COMMITTED, "'WRITE-COMMITTED'"),
        (mysql.IsolationLevel.REPEATABLE_READ, "'REPEATABLE-READ'"),
        (mysql.IsolationLevel.SNAPSHOT, "'SNAPSHOT'"),
        (mysql.IsolationLevel.SERIALIZABLE, "'SERIALIZABLE'"),
        (mysql.IsolationLevel.LINEARIZABLE, "'LINEARIZABLE'"),
    ],
)
def test_render_isolation_level(level, literal) -> None:
    rendered = dsn.render(mysql.Config(isolation_level=level))

    assert rendered.endswith(f"&transaction_isolation={literal}")


def test_render_tls_and_network() -> None:
    rendered = dsn.render(
        mysql.Config(),
        tls_name="123-1",
        network="456-2",
    )

    assert rendered.startswith("root@456-2(127.0.0.1:3306)/?")
    assert rendered.endswith("&tls=123-1")


def test_render_quotes_values() -> None:
    rendered = dsn.render(mysql.Config(collation="a b&c"))

    assert "collation=a%20b%26c&" in rendered
    assert dsn.parse(rendered).params["collation"] == "a b&c"


def test_parse_round_trip() -> None:
    cfg = mysql.Config(
        username="app",
        password="p@ss:w/rd",
        network="unix",
        address="/var/run/mysqld/mysqld.sock",
        schema="orders",
        timeout=mysql.Timeout(dial=1.5, read=0.25, write=90),
    )

    source = dsn.parse(dsn.render(cfg, tls_name="1-1"))

    assert source.username == "app"
    assert source.password == "p@ss:w/rd"
    assert source.network == "unix"
    assert source.address == "/var/run/mysqld/mysqld.sock"
    assert source.schema == "orders"
    assert source.params["tls"] == "1-1"
    assert source.duration("timeout", 0) == 1.5
    assert source.duration("readTimeout", 0) == 0.25
    assert source.duration("writeTimeout", 0) == 90
    assert source.flag("parseTime", False) is True
    assert source.params["transaction_isolation"] == "'READ-COMMITTED'"


def test_parse_minimal() -> None:
    source = dsn.parse("/app")

    assert source == dsn.DataSource(schema="app")
    assert source.flag("parseTime", True) is True
    assert source.duration("timeout", 3.0) == 3.0


def test_parse_invalid() -> None:
    with pytest.raises(errors.DescriptorError):
        dsn.parse("root@tcp(127.0.0.1:3306)")

    with pytest.raises(errors.DescriptorError):
        dsn.parse("root@tcp(127.0.0.1:3306/app")


def test_invalid_flag() -> None:
    source = dsn.parse("tcp(localhost)/app?parseTime=maybe")

    with pytest.raises(errors.DescriptorError):
        source.flag("parseTime", True)


@pytest.mark.parametrize(
    "seconds, text",
    [
        (0, "0s"),
        (15, "15s"),
        (30, "30s"),
        (90, "1m30s"),
        (3600, "1h0m0s"),
        (720 * 3600, "720h0m0s"),
        (1.5, "1.5s"),
        (0.25, "250ms"),
        (0.0015, "1.5ms"),
        (0.000002, "2µs"),
        (0.000000005, "5ns"),
        (-15, "-15s"),
    ],
)
def test_format_duration(seconds: float, text: str) -> None:
    assert dsn.format_duration(seconds) == text


@pytest.mark.parametrize(
    "text, seconds",
    [
        ("0", 0.0),
        ("15s", 15.0),
        ("1m30s", 90.0),
        ("720h0m0s", 720 * 3600.0),
        ("1.5s", 1.5),
        ("250ms", 0.25),
        ("100us", 0.0001),
        ("2µs", 0.000002),
        ("-1h", -3600.0),
        ("+5m", 300.0),
    ],
)
def test_parse_duration(text: str, seconds: float) -> None:
    assert dsn.parse_duration(text) == pytest.approx(seconds)


@pytest.mark.parametrize("text", ["", "15", "s", "1x", "1s2", "-"])
def test_parse_duration_invalid(text: str) -> None:
    with pytest.raises(errors.DescriptorError):
        dsn.parse_duration(text)
