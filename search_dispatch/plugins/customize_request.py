from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Union

from ..domain.errors import ContractError
from ..domain.interfaces import Plugin, Query
from ..domain.models import Request
from ..infrastructure.logging import get_logger

logger = get_logger("search_dispatch.plugins.customizerequest")

TYPE_PARAM = "param"
TYPE_HEADER = "header"


@dataclass
class Customization:
    """One param or header injected into built requests.

    Fields:
        key: Unique name of the customization inside the plugin.
        type: ``param`` or ``header``.
        name: Param or header name.
        value: Param value (lists allowed for params) or header value.
        persistent: Keep applying on every request; otherwise applied once and dropped.
        overwrite: Replace an existing param instead of adding a repeated value.
    """
    key: str
    type: str
    name: str
    value: Any
    persistent: bool = False
    overwrite: bool = True

    def apply(self, request: Request) -> None:
        if self.type == TYPE_HEADER:
            request.add_header(self.name, str(self.value))
        else:
            request.add_param(self.name, self.value, overwrite=self.overwrite)


class CustomizeRequest(Plugin):
    """Adds custom params/headers to requests after they are built."""

    def __init__(self, options: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(options)
        self._customizations: Dict[str, Customization] = {}

    def _init_plugin_type(self) -> None:
        for key, spec in (self.get_option("customization") or {}).items():
            self.add_customization({"key": key, **dict(spec)})

    def create_customization(self, spec: Union[str, Mapping[str, Any]]) -> Customization:
        """Create and register a customization from a key or a mapping of its fields."""
        data = {"key": spec} if isinstance(spec, str) else dict(spec)
        data.setdefault("type", TYPE_PARAM)
        data.setdefault("name", "")
        data.setdefault("value", None)
        return self.add_customization(Customization(**data))

    def add_customization(self, customization: Union[Customization, Mapping[str, Any]]) -> Customization:
        if not isinstance(customization, Customization):
            return self.create_customization(customization)
        if not customization.key:
            raise ContractError("A customization needs a non-empty key")
        if customization.type not in (TYPE_PARAM, TYPE_HEADER):
            raise ContractError(f"Unsupported customization type '{customization.type}'")
        self._customizations[customization.key] = customization
        return customization

    def get_customization(self, key: str) -> Optional[Customization]:
        return self._customizations.get(key)

    def get_customizations(self) -> List[Customization]:
        return list(self._customizations.values())

    def remove_customization(self, customization: Union[str, Customization]) -> "CustomizeRequest":
        key = customization if isinstance(customization, str) else customization.key
        self._customizations.pop(key, None)
        return self

    def clear_customizations(self) -> "CustomizeRequest":
        self._customizations.clear()
        return self

    def post_create_request(self, query: Query, request: Request) -> None:
        for c in list(self._customizations.values()):
            if not c.name:
                continue
            c.apply(request)
            if not c.persistent:
                del self._customizations[c.key]
            logger.debug("Customization applied | key=%s | type=%s | name=%s", c.key, c.type, c.name)
