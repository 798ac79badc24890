"""Weighted load balancing over several search endpoints, with optional failover.

Takes over ``pre_execute_request``: the request is sent through a transport bound to
the chosen endpoint and the response is returned as an override, so the client's
own transport is not used for balanced queries. Query types listed in
``blockedquerytypes`` (updates by default) go through the normal path.
"""
from __future__ import annotations

import random
from typing import Any, Dict, List, Mapping, Optional

from ..domain.errors import ContractError, TransportError
from ..domain.interfaces import Plugin, Query, Transport
from ..domain.models import Request, Response
from ..infrastructure.logging import get_logger

logger = get_logger("search_dispatch.plugins.loadbalancer")


class LoadBalancer(Plugin):
    def __init__(self, options: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(options)
        self._endpoints: Dict[str, Dict[str, Any]] = {}
        self._transports: Dict[str, Transport] = {}
        self._blocked: set = set()
        self._bypass_next = False
        self._forced: Optional[str] = None
        self._last_endpoint: Optional[str] = None

    def default_options(self) -> Mapping[str, Any]:
        return {
            "failoverenabled": False,
            "failovermaxretries": 1,
            "blockedquerytypes": ["update"],
        }

    def _init_plugin_type(self) -> None:
        for name, spec in (self.get_option("endpoint") or {}).items():
            # init_plugin runs again when the instance is registered under another key.
            if name in self._endpoints:
                continue
            spec = dict(spec)
            self.add_endpoint(name, int(spec.pop("weight", 1)), spec.pop("options", spec))
        for query_type in self.get_option("blockedquerytypes") or []:
            self.add_blocked_query_type(query_type)

    # --- endpoints ---

    def add_endpoint(self, name: str, weight: int = 1, options: Optional[Mapping[str, Any]] = None) -> "LoadBalancer":
        """Add an endpoint; ``options`` are transport options (host, port, core...) for that endpoint."""
        if name in self._endpoints:
            raise ContractError(f"An endpoint named '{name}' is already registered")
        if weight <= 0:
            raise ContractError(f"Endpoint '{name}' needs a positive weight, got {weight}")
        self._endpoints[name] = {"weight": int(weight), "options": dict(options or {})}
        self._transports.pop(name, None)
        return self

    def remove_endpoint(self, name: str) -> "LoadBalancer":
        self._endpoints.pop(name, None)
        self._transports.pop(name, None)
        return self

    def get_endpoints(self) -> Dict[str, int]:
        return {name: e["weight"] for name, e in self._endpoints.items()}

    def set_forced_endpoint_for_next_query(self, name: Optional[str]) -> "LoadBalancer":
        if name is not None and name not in self._endpoints:
            raise ContractError(f"Unknown forced endpoint '{name}'")
        self._forced = name
        return self

    @property
    def last_endpoint(self) -> Optional[str]:
        return self._last_endpoint

    # --- blocked query types ---

    def add_blocked_query_type(self, query_type: str) -> "LoadBalancer":
        self._blocked.add(str(query_type).lower())
        return self

    def remove_blocked_query_type(self, query_type: str) -> "LoadBalancer":
        self._blocked.discard(str(query_type).lower())
        return self

    def get_blocked_query_types(self) -> List[str]:
        return sorted(self._blocked)

    # --- hooks ---

    def pre_create_request(self, query: Query) -> None:
        self._bypass_next = str(query.get_type()).lower() in self._blocked

    def pre_execute_request(self, request: Request) -> Optional[Response]:
        if self._bypass_next or not self._endpoints:
            self._bypass_next = False
            self._last_endpoint = None
            return None

        if self._forced is not None:
            name, self._forced = self._forced, None
            return self._send(name, request)

        if not self.get_option("failoverenabled"):
            return self._send(self._pick(list(self._endpoints)), request)

        candidates = list(self._endpoints)
        retries = int(self.get_option("failovermaxretries") or 0)
        last_error: Optional[TransportError] = None
        for attempt in range(retries + 1):
            name = self._pick(candidates)
            try:
                return self._send(name, request)
            except TransportError as exc:
                last_error = exc
                logger.warning("Endpoint failed | endpoint=%s | attempt=%d | error=%s", name, attempt + 1, exc)
                candidates.remove(name)
                if not candidates:
                    break
        raise TransportError("Maximum number of loadbalancer retries reached") from last_error

    def _pick(self, names: List[str]) -> str:
        weights = [self._endpoints[n]["weight"] for n in names]
        return random.choices(names, weights=weights, k=1)[0]

    def _transport(self, name: str) -> Transport:
        if name not in self._transports:
            self._transports[name] = self.client.create_adapter(self._endpoints[name]["options"])
        return self._transports[name]

    def _send(self, name: str, request: Request) -> Response:
        self._last_endpoint = name
        logger.debug("Balanced request | endpoint=%s | handler=%s", name, request.handler)
        return self._transport(name).execute(request)
