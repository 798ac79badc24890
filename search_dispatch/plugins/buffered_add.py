from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..domain.interfaces import Plugin
from ..infrastructure.logging import get_logger

logger = get_logger("search_dispatch.plugins.bufferedadd")

EVENT_ADD_DOCUMENT = "buffered_add_add_document"
EVENT_PRE_FLUSH = "buffered_add_flush_pre"
EVENT_POST_FLUSH = "buffered_add_flush_post"
EVENT_PRE_COMMIT = "buffered_add_commit_pre"
EVENT_POST_COMMIT = "buffered_add_commit_post"


class BufferedAdd(Plugin):
    """Collects documents and sends them in update batches of ``buffersize``.

    Public events (handlers are ``event_<name>`` methods on other plugins):
        buffered_add_add_document(document)
        buffered_add_flush_pre(buffer) / buffered_add_flush_post(result)
        buffered_add_commit_pre(buffer) / buffered_add_commit_post(result)
    The buffer passed to the ``*_pre`` events is the live list; handlers may edit it.
    """

    def __init__(self, options: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(options)
        self._buffer: List[Dict[str, Any]] = []

    def default_options(self) -> Mapping[str, Any]:
        return {"buffersize": 100}

    def set_buffer_size(self, size: int) -> "BufferedAdd":
        return self.set_option("buffersize", int(size))

    def get_buffer_size(self) -> int:
        return int(self.get_option("buffersize"))

    def add_document(self, document: Mapping[str, Any]) -> "BufferedAdd":
        doc = dict(document)
        self._buffer.append(doc)
        self.client.trigger_event(EVENT_ADD_DOCUMENT, [doc])
        if len(self._buffer) >= self.get_buffer_size():
            self.flush()
        return self

    def add_documents(self, documents: Iterable[Mapping[str, Any]]) -> "BufferedAdd":
        for doc in documents:
            self.add_document(doc)
        return self

    def get_documents(self) -> List[Dict[str, Any]]:
        return list(self._buffer)

    def clear(self) -> "BufferedAdd":
        self._buffer = []
        return self

    def flush(self, overwrite: Optional[bool] = None, commit_within: Optional[int] = None) -> Any:
        """Send buffered documents without committing. Returns the update result, or None if empty."""
        if not self._buffer:
            return None
        self.client.trigger_event(EVENT_PRE_FLUSH, [self._buffer])
        query = self.client.create_update()
        query.add_documents(self._buffer, overwrite=overwrite, commit_within=commit_within)
        count = len(self._buffer)
        result = self.client.update(query)
        self.clear()
        logger.info("Buffer flushed | documents=%d", count)
        self.client.trigger_event(EVENT_POST_FLUSH, [result])
        return result

    def commit(self, overwrite: Optional[bool] = None, soft_commit: Optional[bool] = None,
               wait_searcher: Optional[bool] = None) -> Any:
        """Send the remaining documents together with a commit command."""
        self.client.trigger_event(EVENT_PRE_COMMIT, [self._buffer])
        query = self.client.create_update()
        query.add_documents(self._buffer, overwrite=overwrite)
        query.add_commit(soft_commit=soft_commit, wait_searcher=wait_searcher)
        count = len(self._buffer)
        result = self.client.update(query)
        self.clear()
        logger.info("Buffer committed | documents=%d", count)
        self.client.trigger_event(EVENT_POST_COMMIT, [result])
        return result
