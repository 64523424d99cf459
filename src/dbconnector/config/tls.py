import typing as t

import msgspec

__all__ = (
    "Config",
    "ProtocolVersion",
)


ProtocolVersion: t.TypeAlias = t.Literal["TLSv1", "TLSv1.1", "TLSv1.2", "TLSv1.3"]


class Config(msgspec.Struct, kw_only=True, frozen=True):
    """
    Holds the configuration for the TLS client side of a MySQL connection.
    """

    # when disabled, no TLS configuration is produced at all
    enabled: bool = True
    # start from the host's trust store instead of an empty one
    trust_system_roots: bool = True
    # host name to send via SNI and to verify the server certificate against,
    # empty means the host being connected to
    server_name: str = ""
    min_protocol_version: ProtocolVersion = "TLSv1.2"

    # additional trust anchors as inline PEM text, may be env:// or file://
    trust_anchors_pem: str = ""
    # path to a PEM file with additional trust anchors, takes precedence over
    # `trust_anchors_pem`. "public-ca" and "true" mean no file.
    trust_anchors_pem_file: str = ""
