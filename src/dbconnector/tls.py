"""
Builds the client side TLS configuration for MySQL connections.
"""

import socket
import ssl
import typing as t
from urllib import parse

from dbconnector import errors, resolve
from dbconnector.config import tls as config

__all__ = (
    "ClientContext",
    "new",
)

VERSIONS: t.Dict[str, ssl.TLSVersion] = {
    "TLSv1": ssl.TLSVersion.TLSv1,
    "TLSv1.1": ssl.TLSVersion.TLSv1_1,
    "TLSv1.2": ssl.TLSVersion.TLSv1_2,
    "TLSv1.3": ssl.TLSVersion.TLSv1_3,
}

# values of `trust_anchors_pem_file` that mean "no file"
NO_FILE = ("public-ca", "true")


class ClientContext(ssl.SSLContext):
    """
    An `ssl.SSLContext` that remembers which server name to present and
    verify. The driver only knows the host it connects to, which is not the
    certificate's name when connecting through a proxy or by IP address.
    """

    server_name: str = ""

    def wrap_socket(  # type: ignore[override]
        self,
        sock: socket.socket,
        *args: t.Any,
        server_hostname: str | None = None,
        **kwargs: t.Any,
    ) -> ssl.SSLSocket:
        return super().wrap_socket(
            sock,
            *args,
            server_hostname=self.server_name or server_hostname,
            **kwargs,
        )


def sanitize(filename: str) -> str:
    if filename in NO_FILE:
        return ""

    return filename


def read_pem_file(filename: str) -> str:
    try:
        with open(filename, "rb") as fp:
            raw = fp.read()
    except OSError as err:
        raise errors.ReadPEMFileError(
            f"unable to read PEM file {filename!r}: {err}"
        ) from err

    return raw.decode("utf-8", errors="replace")


def pem_file_path(filename: str) -> str:
    """
    Get the path of the trust anchor file. A `file://` URL names the file
    itself, any other value goes through `resolve`.
    """
    parsed = resolve.parse_url(filename)

    if parsed is not None and parsed.scheme == "file":
        path = parse.unquote(parsed.path)
    else:
        path = resolve.resolve(filename)

    if not path:
        raise errors.ReadPEMFileError(
            f"PEM file {filename!r} does not resolve to a path"
        )

    return path


def resolve_pem(source: str, filename: str) -> str:
    """
    Get the PEM text of additional trust anchors. The file wins over the
    inline source.
    """
    filename = sanitize(filename)

    if filename:
        return read_pem_file(pem_file_path(filename))

    return resolve.resolve(source)


def new(cfg: config.Config) -> ClientContext | None:
    """
    Assemble a TLS context from the configuration.

    Returns None if TLS is disabled.
    """
    if not cfg.enabled:
        return None

    ctx = ClientContext(ssl.PROTOCOL_TLS_CLIENT)
    ctx.server_name = cfg.server_name
    ctx.minimum_version = VERSIONS[cfg.min_protocol_version]
    ctx.options |= ssl.OP_NO_TICKET

    if cfg.trust_system_roots:
        ctx.load_default_certs(ssl.Purpose.SERVER_AUTH)

    pem = resolve_pem(cfg.trust_anchors_pem, cfg.trust_anchors_pem_file)

    if pem:
        try:
            ctx.load_verify_locations(cadata=pem)
        except (ssl.SSLError, ValueError) as err:
            raise errors.MalformedPEMError(
                f"unable to parse trusted CA PEM: {err}"
            ) from err

    return ctx
