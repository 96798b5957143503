"""Cross-process exchange of partial coverage results."""

from catalog_coverage.exchange.store import (
    FILTER_PREFIX,
    RESULT_PREFIX,
    ExchangeStore,
    working_dir_fingerprint,
)

__all__ = [
    "ExchangeStore",
    "FILTER_PREFIX",
    "RESULT_PREFIX",
    "working_dir_fingerprint",
]
