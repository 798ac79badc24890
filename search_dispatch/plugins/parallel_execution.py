"""Runs several queries at once, one transport per query, on a thread pool.

Requests and results are built on the calling thread, so ``pre_create_request``,
``post_create_request`` and the result hooks fire as usual. Only the transport
call runs in the workers; ``pre_execute_request``/``post_execute_request`` are
not involved.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Mapping, Optional

from ..domain.errors import ContractError
from ..domain.interfaces import Plugin, Query
from ..domain.models import Request, Response
from ..infrastructure.logging import get_logger

logger = get_logger("search_dispatch.plugins.parallelexecution")

EVENT_EXECUTE_START = "parallel_execution_execute_start"
EVENT_EXECUTE_END = "parallel_execution_execute_end"


class ParallelExecution(Plugin):
    """Collects keyed queries and executes them concurrently.

    Public events:
        parallel_execution_execute_start(requests)  keyed Request objects
        parallel_execution_execute_end(responses)   keyed Response objects
    """

    def __init__(self, options: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(options)
        self._queries: Dict[str, Query] = {}

    def default_options(self) -> Mapping[str, Any]:
        return {"maxworkers": 4}

    def add_query(self, key: str, query: Query) -> "ParallelExecution":
        """Add ``query`` under ``key``; an existing key is replaced."""
        if not key:
            raise ContractError("A parallel query needs a non-empty key")
        self._queries[key] = query
        return self

    def get_queries(self) -> Dict[str, Query]:
        return dict(self._queries)

    def clear_queries(self) -> "ParallelExecution":
        self._queries = {}
        return self

    def _send(self, request: Request) -> Response:
        return self.client.create_adapter().execute(request)

    def execute(self) -> Dict[str, Any]:
        """Execute every added query and return the results under the same keys.

        The first transport error is re-raised once all workers have finished.
        """
        if not self._queries:
            return {}
        queries = dict(self._queries)
        requests = {key: self.client.create_request(query) for key, query in queries.items()}
        self.client.trigger_event(EVENT_EXECUTE_START, [dict(requests)])

        workers = max(1, min(int(self.get_option("maxworkers")), len(requests)))
        logger.info("Parallel execute | queries=%d | workers=%d", len(requests), workers)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {key: pool.submit(self._send, request) for key, request in requests.items()}
        responses = {key: future.result() for key, future in futures.items()}

        self.client.trigger_event(EVENT_EXECUTE_END, [dict(responses)])
        return {key: self.client.create_result(queries[key], responses[key]) for key in queries}
