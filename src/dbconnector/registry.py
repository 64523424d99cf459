"""
Process wide registries of objects that a data source descriptor refers to by
name, i.e. TLS contexts and dialers.

Entries are never removed, the descriptor may be parsed again whenever the
pool opens a new connection.
"""

import itertools
import socket
import ssl
import threading
import time
import typing as t

from dbconnector import errors

__all__ = (
    "Registry",
    "Dialer",
    "DialFunc",
    "tls_contexts",
    "dialers",
)

T = t.TypeVar("T")

# (network, address, timeout) -> connected socket. The timeout is in seconds
# and must be honoured.
Dialer: t.TypeAlias = t.Callable[[str, str, float | None], socket.socket]
# (address, timeout) -> connected socket
DialFunc: t.TypeAlias = t.Callable[[str, float | None], socket.socket]


class Registry(t.Generic[T]):
    """
    Thread safe, append only mapping of generated names to values.
    """

    kind: str

    _lock: threading.Lock
    _entries: t.Dict[str, T]
    _counter: "itertools.count[int]"

    def __init__(self, kind: str) -> None:
        self.kind = kind

        self._lock = threading.Lock()
        self._entries = {}
        self._counter = itertools.count(1)

    def register(self, value: T) -> str:
        """
        Store the value under a fresh name and return the name.
        """
        with self._lock:
            # the counter keeps names unique when the clock does not move
            name = f"{time.time_ns()}-{next(self._counter)}"
            self._entries[name] = value

        return name

    def lookup(self, name: str) -> T:
        with self._lock:
            try:
                return self._entries[name]
            except KeyError:
                raise errors.UnknownRegistrationError(
                    f"no {self.kind} registered as {name!r}"
                ) from None

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


tls_contexts: Registry[ssl.SSLContext] = Registry("tls context")
dialers: Registry[DialFunc] = Registry("dialer")
