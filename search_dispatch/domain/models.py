from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union
from urllib.parse import urlencode

ParamValue = Union[str, int, float, bool, List[Union[str, int, float, bool]]]

METHOD_GET = "GET"
METHOD_POST = "POST"
METHOD_HEAD = "HEAD"


def _param_str(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass
class Request:
    """A built wire call, owned by the client for one execution.

    Fields:
        handler: Path relative to the endpoint/core (e.g. ``select``, ``admin/ping``).
        method: HTTP verb.
        params: Query-string parameters; list values become repeated params.
        body: Raw request body (None for GET).
        headers: Extra HTTP headers.
    """
    handler: str = ""
    method: str = METHOD_GET
    params: Dict[str, ParamValue] = field(default_factory=dict)
    body: Optional[Union[str, bytes]] = None
    headers: Dict[str, str] = field(default_factory=dict)

    def add_param(self, key: str, value: Optional[ParamValue], overwrite: bool = False) -> "Request":
        """Add a param; existing keys accumulate into a list unless ``overwrite`` is set.

        ``None`` and empty strings are ignored so builders can pass optional values blindly.
        """
        if value is None or value == "":
            return self
        if overwrite or key not in self.params:
            self.params[key] = value
            return self
        existing = self.params[key]
        merged = list(existing) if isinstance(existing, list) else [existing]
        merged.extend(value if isinstance(value, list) else [value])
        self.params[key] = merged
        return self

    def add_params(self, params: Dict[str, Optional[ParamValue]], overwrite: bool = False) -> "Request":
        for k, v in params.items():
            self.add_param(k, v, overwrite=overwrite)
        return self

    def remove_param(self, key: str) -> "Request":
        self.params.pop(key, None)
        return self

    def add_header(self, name: str, value: str) -> "Request":
        self.headers[name] = value
        return self

    def get_query_string(self) -> str:
        pairs = []
        for k, v in self.params.items():
            values = v if isinstance(v, list) else [v]
            pairs.extend((k, _param_str(x)) for x in values)
        return urlencode(pairs)

    def get_uri(self) -> str:
        qs = self.get_query_string()
        return f"{self.handler}?{qs}" if qs else self.handler


@dataclass(frozen=True)
class Response:
    """Raw reply returned by a transport.

    Fields:
        status: HTTP status code.
        status_message: Reason phrase.
        body: Decoded response body.
        headers: Response headers.
    """
    status: int
    body: str = ""
    status_message: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
