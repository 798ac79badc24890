"""Lifecycle event names and hook dispatch over registered plugins.

Internal lifecycle hooks are named ``pre_*``/``post_*``. Events raised from outside
the client through ``SearchClient.trigger_event`` are always prefixed with
``PUBLIC_EVENT_PREFIX``, so a public event can never reach a lifecycle hook.
"""
from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence, Tuple

from ..infrastructure.logging import get_logger

logger = get_logger("search_dispatch.events")

PRE_CREATE_QUERY = "pre_create_query"
POST_CREATE_QUERY = "post_create_query"
PRE_CREATE_REQUEST = "pre_create_request"
POST_CREATE_REQUEST = "post_create_request"
PRE_CREATE_RESULT = "pre_create_result"
POST_CREATE_RESULT = "post_create_result"
PRE_EXECUTE_REQUEST = "pre_execute_request"
POST_EXECUTE_REQUEST = "post_execute_request"
PRE_EXECUTE = "pre_execute"
POST_EXECUTE = "post_execute"

LIFECYCLE_EVENTS = (
    PRE_CREATE_QUERY,
    POST_CREATE_QUERY,
    PRE_CREATE_REQUEST,
    POST_CREATE_REQUEST,
    PRE_CREATE_RESULT,
    POST_CREATE_RESULT,
    PRE_EXECUTE_REQUEST,
    POST_EXECUTE_REQUEST,
    PRE_EXECUTE,
    POST_EXECUTE,
)

PUBLIC_EVENT_PREFIX = "event_"


def public_event_name(name: str) -> str:
    return PUBLIC_EVENT_PREFIX + name


def invoke(
    plugins: Iterable[Tuple[str, Any]],
    event: str,
    args: Sequence[Any] = (),
    allow_override: bool = False,
) -> Optional[Any]:
    """Call ``event`` on every plugin implementing it, in registration order.

    Args:
        plugins: ``(key, instance)`` pairs in registration order.
        event: Hook method name.
        args: Positional arguments passed to each hook.
        allow_override: Override mode. The first hook returning something other than
            ``None`` wins and the remaining plugins are not called.

    Returns:
        The winning value in override mode, otherwise ``None``.

    Raises:
        Exception: Whatever a hook raises propagates unchanged.
    """
    # Snapshot: hooks may register or remove plugins while we iterate.
    for key, plugin in list(plugins):
        hook = getattr(plugin, event, None)
        if not callable(hook):
            continue
        logger.debug("Event | name=%s | plugin=%s", event, key)
        result = hook(*args)
        if allow_override and result is not None:
            logger.debug("Event override | name=%s | plugin=%s", event, key)
            return result
    return None
