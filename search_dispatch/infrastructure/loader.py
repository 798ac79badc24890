from __future__ import annotations

import importlib
from typing import Any, Callable, Mapping, Optional

from ..domain.errors import ContractError


def import_string(path: str) -> Any:
    """Import ``package.module.Name`` (or ``package.module:Name``) and return the attribute."""
    if ":" in path:
        module_name, _, attr = path.partition(":")
    else:
        module_name, _, attr = path.rpartition(".")
    if not module_name or not attr:
        raise ContractError(f"'{path}' is not a dotted import path")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ContractError(f"Cannot import module '{module_name}' for '{path}': {exc}") from exc
    try:
        return getattr(module, attr)
    except AttributeError as exc:
        raise ContractError(f"Module '{module_name}' has no attribute '{attr}'") from exc


def resolve_factory(ref: Any, known: Optional[Mapping[str, Any]] = None) -> Callable[..., Any]:
    """Resolve a factory reference to a callable.

    Accepts a callable (class or function), a key of ``known``, or a dotted import path.
    String keys are matched case-insensitively against ``known``.
    """
    if isinstance(ref, str):
        table = {str(k).lower(): v for k, v in (known or {}).items()}
        hit = table.get(ref.lower())
        ref = resolve_factory(hit) if hit is not None else import_string(ref)
    if not callable(ref):
        raise ContractError(f"Factory reference {ref!r} is not callable")
    return ref
