from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional

from ..domain.errors import ContractError, UnknownQueryTypeError
from ..domain.interfaces import Query
from ..infrastructure.loader import resolve_factory
from ..infrastructure.logging import get_logger
from .queries import DEFAULT_QUERY_TYPES

logger = get_logger("search_dispatch.query_types")


class QueryTypeRegistry:
    """Maps query-type identifiers to query factories. Last registration wins."""

    def __init__(self, defaults: Optional[Mapping[str, Any]] = None) -> None:
        self._types: Dict[str, Callable[..., Query]] = {}
        self.register_many(DEFAULT_QUERY_TYPES if defaults is None else defaults)

    def register(self, query_type: str, factory: Any) -> "QueryTypeRegistry":
        """Insert or overwrite ``query_type``. Dotted-path factories are imported here, not at create time."""
        key = str(query_type).lower()
        self._types[key] = resolve_factory(factory)
        logger.debug("Query type registered | type=%s", key)
        return self

    def register_many(self, query_types: Any) -> "QueryTypeRegistry":
        """Register a batch.

        Supported shapes:
            {"select": SelectQuery}
            {"anything": {"type": "select", "query": SelectQuery}}  (nested type wins)
            [{"type": "select", "query": SelectQuery}]
        """
        items = query_types.items() if isinstance(query_types, Mapping) else enumerate(query_types or [])
        for outer_key, value in items:
            query_type, factory = outer_key, value
            if isinstance(value, Mapping):
                query_type = value.get("type", outer_key)
                factory = value.get("query")
                if factory is None:
                    raise ContractError(f"Query type entry '{outer_key}' has no 'query' factory")
            if not isinstance(query_type, str):
                raise ContractError(f"Query type entry {value!r} has no 'type' identifier")
            self.register(query_type, factory)
        return self

    def get(self, query_type: str) -> Callable[..., Query]:
        key = str(query_type).lower()
        try:
            return self._types[key]
        except KeyError:
            raise UnknownQueryTypeError(f"Unknown querytype: {query_type}") from None

    def has(self, query_type: str) -> bool:
        return str(query_type).lower() in self._types

    def create(self, query_type: str, options: Optional[Mapping[str, Any]] = None) -> Query:
        return self.get(query_type)(options)

    def as_dict(self) -> Dict[str, Callable[..., Query]]:
        return dict(self._types)
