from __future__ import annotations

from typing import Any, Dict, Mapping, Optional
import requests

from ...domain.errors import HttpError, TransportError
from ...domain.interfaces import Transport
from ...domain.models import METHOD_GET, METHOD_HEAD, METHOD_POST, Request, Response
from ..config import endpoint_options
from ..logging import get_logger

logger = get_logger("search_dispatch.http")


class HttpTransport(Transport):
    """Transport adapter for the search service's HTTP API (requests).

    Options:
        scheme, host, port, path: Base URL parts; defaults come from SEARCH_URL.
        core: Core/collection segment appended to the base path (may be empty).
        timeout: Per-request timeout in seconds.
    """

    def __init__(self, options: Optional[Mapping[str, Any]] = None) -> None:
        self._options: Dict[str, Any] = endpoint_options()
        self._session: Optional[requests.Session] = None
        if options:
            self.set_options(options)

    def set_options(self, options: Optional[Mapping[str, Any]]) -> None:
        for k, v in (options or {}).items():
            self._options[k] = v

    def get_options(self) -> Dict[str, Any]:
        return dict(self._options)

    def base_uri(self) -> str:
        o = self._options
        path = str(o.get("path") or "").strip("/")
        core = str(o.get("core") or "").strip("/")
        segments = [s for s in (path, core) if s]
        base = f"{o.get('scheme', 'http')}://{o.get('host')}:{o.get('port')}"
        return "/".join([base, *segments]) + "/"

    def _get_session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def execute(self, request: Request) -> Response:
        url = self.base_uri() + request.handler.lstrip("/")
        timeout = float(self._options.get("timeout") or 15.0)
        method = (request.method or METHOD_GET).upper()
        headers = dict(request.headers)
        data = None
        if method == METHOD_POST and request.body is not None:
            data = request.body.encode("utf-8") if isinstance(request.body, str) else request.body
            headers.setdefault("Content-Type", "application/json; charset=utf-8")

        logger.debug("HTTP request | method=%s | url=%s | params=%s", method, url, request.params)
        try:
            r = self._get_session().request(
                method,
                url,
                params=request.get_query_string() or None,
                data=data,
                headers=headers,
                timeout=timeout,
            )
        except requests.RequestException as exc:
            logger.error("HTTP request failed | url=%s | error=%s", url, exc)
            raise TransportError(f"HTTP request to {url} failed: {exc}") from exc

        if r.status_code >= 400:
            raise HttpError(r.status_code, r.reason or "", r.text)

        return Response(
            status=r.status_code,
            status_message=r.reason or "",
            body="" if method == METHOD_HEAD else r.text,
            headers=dict(r.headers),
        )
