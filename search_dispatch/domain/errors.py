from __future__ import annotations


class UnknownQueryTypeError(ValueError):
    """Raised when a query is requested for a type identifier nobody registered."""


class UnknownPluginTypeError(ValueError):
    """Raised when autocreate is asked for a plugin key missing from the plugin-type table."""


class InvalidPluginError(TypeError):
    """Raised when a resolved plugin object has no callable ``init_plugin`` hook."""


class NoRequestBuilderError(RuntimeError):
    """Raised when a query cannot supply a request builder for execution."""


class ContractError(ValueError):
    """Raised when configuration or input violates documented contract (e.g., batch entry shape)."""


class TransportError(RuntimeError):
    """Raised when the transport fails to obtain a response."""


class HttpError(TransportError):
    """Raised when the search service answers with a non-2xx status.

    Fields:
        status: HTTP status code.
        status_message: Reason phrase returned by the server.
        body: Raw response body, kept for error details.
    """

    def __init__(self, status: int, status_message: str = "", body: str = "") -> None:
        super().__init__(f"Solr HTTP error: {status_message or 'unknown'} ({status})")
        self.status = status
        self.status_message = status_message
        self.body = body
