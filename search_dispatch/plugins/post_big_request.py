from __future__ import annotations

from typing import Any, Mapping

from ..domain.interfaces import Plugin, Query
from ..domain.models import METHOD_GET, METHOD_POST, Request
from ..infrastructure.logging import get_logger

logger = get_logger("search_dispatch.plugins.postbigrequest")


class PostBigRequest(Plugin):
    """Moves oversized GET query strings into a form-encoded POST body."""

    def default_options(self) -> Mapping[str, Any]:
        return {"maxquerystringlength": 1024}

    def post_create_request(self, query: Query, request: Request) -> None:
        if request.method != METHOD_GET:
            return
        query_string = request.get_query_string()
        limit = int(self.get_option("maxquerystringlength"))
        if len(query_string) <= limit:
            return
        request.method = METHOD_POST
        request.body = query_string
        request.params = {}
        request.add_header("Content-Type", "application/x-www-form-urlencoded; charset=utf-8")
        logger.debug("Converted GET to POST | handler=%s | length=%d", request.handler, len(query_string))
