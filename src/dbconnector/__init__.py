from .connector import Connector, new
from .errors import (
    Error,
    OptimisticConcurrencyError,
    normalize_error,
    normalized,
)
from .null import NullUInt64
from .resolve import resolve

__all__ = (
    "Connector",
    "new",
    "Error",
    "OptimisticConcurrencyError",
    "normalize_error",
    "normalized",
    "NullUInt64",
    "resolve",
)
