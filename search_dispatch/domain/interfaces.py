from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional, TYPE_CHECKING

from .models import Request, Response

if TYPE_CHECKING:
    from ..application.client import SearchClient


class Transport(ABC):
    """Port for the wire transport (e.g., HTTP via requests)."""

    @abstractmethod
    def execute(self, request: Request) -> Response:
        """Send a built request and return the raw response.

        Raises:
            TransportError: Network failures and non-2xx replies surface to the caller.
        """
        raise NotImplementedError

    @abstractmethod
    def set_options(self, options: Optional[Mapping[str, Any]]) -> None:
        """Apply transport-specific configuration (host, port, timeout...)."""
        raise NotImplementedError


class RequestBuilder(ABC):
    """Port turning a query into a wire request."""

    @abstractmethod
    def build(self, query: "Query") -> Request:
        raise NotImplementedError


class Query(ABC):
    """Port for a declarative description of one operation against the search service."""

    @abstractmethod
    def get_type(self) -> str:
        """Return the query-type identifier this query was registered under."""
        raise NotImplementedError

    @abstractmethod
    def get_request_builder(self) -> Optional[RequestBuilder]:
        """Return the request builder, or None when the query cannot be executed."""
        raise NotImplementedError

    @abstractmethod
    def get_result_class(self) -> Any:
        """Return the callable ``(client, query, response) -> Result``."""
        raise NotImplementedError


class Plugin:
    """Base for plugins.

    Only ``init_plugin`` is part of the contract. Lifecycle hooks (``pre_execute``,
    ``post_create_request``...) and public event handlers (``event_*``) are picked up
    by method presence; this base deliberately defines none of them.
    """

    def __init__(self, options: Optional[Mapping[str, Any]] = None) -> None:
        self._client: Optional["SearchClient"] = None
        self._options: Dict[str, Any] = dict(self.default_options())
        if options:
            self._options.update(options)

    def default_options(self) -> Mapping[str, Any]:
        return {}

    def init_plugin(self, client: "SearchClient", options: Optional[Mapping[str, Any]] = None) -> None:
        """Called once at registration with the owning client and plugin options."""
        self._client = client
        if options:
            self._options.update(options)
        self._init_plugin_type()

    def _init_plugin_type(self) -> None:
        """Plugin-specific setup hook, runs after client and options are set."""

    @property
    def client(self) -> Optional["SearchClient"]:
        return self._client

    def get_option(self, name: str, default: Any = None) -> Any:
        return self._options.get(name, default)

    def set_option(self, name: str, value: Any) -> "Plugin":
        self._options[name] = value
        return self

    def get_options(self) -> Dict[str, Any]:
        return dict(self._options)
