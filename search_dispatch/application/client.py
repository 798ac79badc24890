"""SearchClient: query creation, request building, transport execution and result building.

Every stage is wrapped by plugin hooks. A ``pre_*`` hook returning a value replaces
the stage's default work and suppresses the matching ``post_*`` hook; the composite
``execute`` always finishes with ``post_execute``.
"""
from __future__ import annotations

import dataclasses
from typing import Any, Dict, List, Mapping, Optional, Union

from ..domain.errors import NoRequestBuilderError
from ..domain.interfaces import Query, Transport
from ..domain.models import Request, Response
from ..infrastructure.config import ClientConfig
from ..infrastructure.loader import resolve_factory
from ..infrastructure.logging import get_logger
from . import events
from .plugins import PluginRegistry
from .queries import (
    QUERY_ANALYSIS_DOCUMENT,
    QUERY_ANALYSIS_FIELD,
    QUERY_MORELIKETHIS,
    QUERY_PING,
    QUERY_SELECT,
    QUERY_SUGGESTER,
    QUERY_TERMS,
    QUERY_UPDATE,
)
from .query_types import QueryTypeRegistry

logger = get_logger("search_dispatch.client")

TRANSPORT_TYPES: Dict[str, str] = {
    "http": "search_dispatch.infrastructure.http.transport.HttpTransport",
}


class SearchClient:
    """Facade between application code and the search service."""

    def __init__(self, options: Union[ClientConfig, Mapping[str, Any], None] = None) -> None:
        if isinstance(options, ClientConfig):
            # Own copy; set_adapter writes to it.
            self._config = dataclasses.replace(
                options,
                adapter_options=dict(options.adapter_options),
                extra=dict(options.extra),
            )
        else:
            self._config = ClientConfig.from_options(options)
        self._adapter: Optional[Transport] = None
        self._query_types = QueryTypeRegistry()
        self._plugins = PluginRegistry(self)
        if self._config.query_types:
            self.register_query_types(self._config.query_types)
        if self._config.plugins:
            self.register_plugins(self._config.plugins)

    # --- configuration / transport ---

    def get_options(self) -> ClientConfig:
        return self._config

    def set_adapter(self, adapter: Any) -> "SearchClient":
        """Set the transport.

        An identifier (table key or dotted path) or class is stored and the current
        instance dropped, so the next ``get_adapter`` builds a new one. An instance
        receives ``adapter_options`` and is used immediately.
        """
        if isinstance(adapter, (str, type)):
            self._adapter = None
            self._config.adapter = adapter
            logger.info("Adapter set | adapter=%s", adapter)
            return self
        adapter.set_options(dict(self._config.adapter_options))
        self._adapter = adapter
        logger.info("Adapter set | instance=%s", type(adapter).__name__)
        return self

    def create_adapter(self, overrides: Optional[Mapping[str, Any]] = None) -> Transport:
        """Build a new transport of the configured type from ``adapter_options`` plus ``overrides``.

        The result is not stored; ``get_adapter`` keeps the client's own instance.
        """
        factory = resolve_factory(self._config.adapter, TRANSPORT_TYPES)
        adapter = factory()
        adapter.set_options({**self._config.adapter_options, **dict(overrides or {})})
        logger.info("Adapter created | type=%s", type(adapter).__name__)
        return adapter

    def get_adapter(self, autoload: bool = True) -> Optional[Transport]:
        if self._adapter is None and autoload:
            self._adapter = self.create_adapter()
        return self._adapter

    # --- query types ---

    def register_query_type(self, query_type: str, factory: Any) -> "SearchClient":
        self._query_types.register(query_type, factory)
        return self

    def register_query_types(self, query_types: Any) -> "SearchClient":
        self._query_types.register_many(query_types)
        return self

    def get_query_types(self) -> Dict[str, Any]:
        return self._query_types.as_dict()

    # --- plugins ---

    def register_plugin(self, key: str, plugin: Any, options: Optional[Mapping[str, Any]] = None) -> "SearchClient":
        self._plugins.register(key, plugin, options)
        return self

    def register_plugins(self, plugins: Any) -> "SearchClient":
        self._plugins.register_many(plugins)
        return self

    def get_plugins(self) -> Dict[str, Any]:
        return self._plugins.as_dict()

    def get_plugin(self, key: str, autocreate: bool = True) -> Optional[Any]:
        return self._plugins.get(key, autocreate)

    def remove_plugin(self, plugin: Any) -> "SearchClient":
        self._plugins.remove(plugin)
        return self

    # --- events ---

    def _call_plugins(self, event: str, args: List[Any], allow_override: bool = False) -> Optional[Any]:
        return events.invoke(self._plugins.items(), event, args, allow_override)

    def trigger_event(self, event: str, params: Optional[List[Any]] = None, allow_override: bool = False) -> Optional[Any]:
        """Dispatch a public event; plugins receive it as ``event_<name>``."""
        return self._call_plugins(events.public_event_name(event), list(params or []), allow_override)

    # --- pipeline ---

    def create_request(self, query: Query) -> Request:
        override = self._call_plugins(events.PRE_CREATE_REQUEST, [query], True)
        if override is not None:
            return override

        builder = query.get_request_builder()
        if not builder:
            raise NoRequestBuilderError(f"No requestbuilder returned by querytype: {query.get_type()}")
        request = builder.build(query)
        self._call_plugins(events.POST_CREATE_REQUEST, [query, request])
        return request

    def create_result(self, query: Query, response: Response) -> Any:
        override = self._call_plugins(events.PRE_CREATE_RESULT, [query, response], True)
        if override is not None:
            return override

        result_class = query.get_result_class()
        result = result_class(self, query, response)
        self._call_plugins(events.POST_CREATE_RESULT, [query, response, result])
        return result

    def execute_request(self, request: Request) -> Response:
        override = self._call_plugins(events.PRE_EXECUTE_REQUEST, [request], True)
        if override is not None:
            return override

        response = self.get_adapter().execute(request)
        self._call_plugins(events.POST_EXECUTE_REQUEST, [request, response])
        return response

    def execute(self, query: Query) -> Any:
        override = self._call_plugins(events.PRE_EXECUTE, [query], True)
        if override is not None:
            logger.debug("Execute overridden | type=%s", query.get_type())
            self._call_plugins(events.POST_EXECUTE, [query, override])
            return override

        request = self.create_request(query)
        response = self.execute_request(request)
        result = self.create_result(query, response)
        logger.debug(
            "Execute | type=%s | status=%s", query.get_type(), getattr(response, "status", None)
        )
        self._call_plugins(events.POST_EXECUTE, [query, result])
        return result

    # Per-category entry points; each is exactly execute().

    def ping(self, query: Query) -> Any:
        return self.execute(query)

    def update(self, query: Query) -> Any:
        return self.execute(query)

    def select(self, query: Query) -> Any:
        return self.execute(query)

    def more_like_this(self, query: Query) -> Any:
        return self.execute(query)

    def analyze(self, query: Query) -> Any:
        return self.execute(query)

    def terms(self, query: Query) -> Any:
        return self.execute(query)

    def suggester(self, query: Query) -> Any:
        return self.execute(query)

    # --- query creation ---

    def create_query(self, query_type: str, options: Optional[Mapping[str, Any]] = None) -> Query:
        query_type = str(query_type).lower()
        override = self._call_plugins(events.PRE_CREATE_QUERY, [query_type, options], True)
        if override is not None:
            return override

        query = self._query_types.create(query_type, options)
        self._call_plugins(events.POST_CREATE_QUERY, [query_type, options, query])
        return query

    def create_select(self, options: Optional[Mapping[str, Any]] = None) -> Query:
        return self.create_query(QUERY_SELECT, options)

    def create_more_like_this(self, options: Optional[Mapping[str, Any]] = None) -> Query:
        return self.create_query(QUERY_MORELIKETHIS, options)

    def create_update(self, options: Optional[Mapping[str, Any]] = None) -> Query:
        return self.create_query(QUERY_UPDATE, options)

    def create_ping(self, options: Optional[Mapping[str, Any]] = None) -> Query:
        return self.create_query(QUERY_PING, options)

    def create_analysis_field(self, options: Optional[Mapping[str, Any]] = None) -> Query:
        return self.create_query(QUERY_ANALYSIS_FIELD, options)

    def create_analysis_document(self, options: Optional[Mapping[str, Any]] = None) -> Query:
        return self.create_query(QUERY_ANALYSIS_DOCUMENT, options)

    def create_terms(self, options: Optional[Mapping[str, Any]] = None) -> Query:
        return self.create_query(QUERY_TERMS, options)

    def create_suggester(self, options: Optional[Mapping[str, Any]] = None) -> Query:
        return self.create_query(QUERY_SUGGESTER, options)
