from __future__ import annotations

from typing import Any, Dict, Iterator, Mapping, Optional

from ..domain.errors import ContractError
from ..domain.interfaces import Plugin
from ..infrastructure.logging import get_logger

logger = get_logger("search_dispatch.plugins.prefetchiterator")


class PrefetchIterator(Plugin):
    """Iterates every document of a select query, fetching ``prefetch`` rows per request."""

    def __init__(self, options: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(options)
        self._query: Any = None
        self._num_found: Optional[int] = None

    def default_options(self) -> Mapping[str, Any]:
        return {"prefetch": 100}

    def set_prefetch(self, prefetch: int) -> "PrefetchIterator":
        self._num_found = None
        return self.set_option("prefetch", int(prefetch))

    def get_prefetch(self) -> int:
        return int(self.get_option("prefetch"))

    def set_query(self, query: Any) -> "PrefetchIterator":
        self._query = query
        self._num_found = None
        return self

    def get_query(self) -> Any:
        return self._query

    def _fetch(self, start: int) -> Any:
        if self._query is None:
            raise ContractError("PrefetchIterator needs a select query; call set_query() first")
        self._query.set_start(start).set_rows(self.get_prefetch())
        result = self.client.select(self._query)
        self._num_found = result.num_found
        logger.debug("Prefetched page | start=%d | docs=%d | num_found=%d", start, len(result), result.num_found)
        return result

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        start = 0
        while True:
            result = self._fetch(start)
            docs = result.documents
            yield from docs
            start += len(docs)
            if not docs or start >= result.num_found:
                return

    def count(self) -> int:
        """Total number of documents the query matches (one request if not yet known)."""
        if self._num_found is None:
            self._fetch(0)
        return int(self._num_found or 0)
