from __future__ import annotations

import json
from typing import Any, Dict, Iterator, List, Optional, Tuple, TYPE_CHECKING

from ..domain.errors import ContractError
from ..domain.models import Response

if TYPE_CHECKING:
    from ..domain.interfaces import Query
    from .client import SearchClient


class Result:
    """Typed wrapper around a Response.

    Keeps back references to the client and the originating query for context
    lookups only. The JSON body is decoded on first access.
    """

    def __init__(self, client: "SearchClient", query: "Query", response: Response) -> None:
        self._client = client
        self._query = query
        self._response = response
        self._data: Optional[Dict[str, Any]] = None

    def get_client(self) -> "SearchClient":
        return self._client

    def get_query(self) -> "Query":
        return self._query

    def get_response(self) -> Response:
        return self._response

    @property
    def status(self) -> int:
        return self._response.status

    @property
    def status_message(self) -> str:
        return self._response.status_message

    def get_data(self) -> Dict[str, Any]:
        if self._data is None:
            body = self._response.body or ""
            if not body.strip():
                self._data = {}
            else:
                try:
                    data = json.loads(body)
                except json.JSONDecodeError as exc:
                    raise ContractError(f"Response body is not valid JSON: {exc}") from exc
                if not isinstance(data, dict):
                    raise ContractError("Response JSON must be an object")
                self._data = data
        return self._data

    def _header(self) -> Dict[str, Any]:
        return self.get_data().get("responseHeader") or {}

    @property
    def query_time(self) -> Optional[int]:
        qtime = self._header().get("QTime")
        return int(qtime) if qtime is not None else None

    @property
    def server_status(self) -> Optional[int]:
        status = self._header().get("status")
        return int(status) if status is not None else None


class SelectResult(Result):
    """Documents matched by a select query."""

    def _block(self) -> Dict[str, Any]:
        return self.get_data().get("response") or {}

    @property
    def num_found(self) -> int:
        return int(self._block().get("numFound", 0))

    @property
    def start(self) -> int:
        return int(self._block().get("start", 0))

    @property
    def documents(self) -> List[Dict[str, Any]]:
        return list(self._block().get("docs") or [])

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        return iter(self.documents)

    def __len__(self) -> int:
        return len(self.documents)


class MoreLikeThisResult(SelectResult):
    @property
    def match(self) -> Optional[Dict[str, Any]]:
        """The matched source document, when the query asked for it."""
        docs = (self.get_data().get("match") or {}).get("docs") or []
        return docs[0] if docs else None


class UpdateResult(Result):
    pass


class PingResult(Result):
    @property
    def is_ok(self) -> bool:
        return str(self.get_data().get("status", "")).upper() == "OK"


class AnalysisResult(Result):
    def get_analysis(self) -> Dict[str, Any]:
        return self.get_data().get("analysis") or {}


class TermsResult(Result):
    def get_terms(self, field: str) -> List[Tuple[str, int]]:
        """Return ``(term, count)`` pairs for ``field`` in server order.

        Accepts the flat ``[term, count, term, count]`` layout as well as a mapping.
        """
        raw = (self.get_data().get("terms") or {}).get(field) or []
        if isinstance(raw, dict):
            return [(str(k), int(v)) for k, v in raw.items()]
        return [(str(raw[i]), int(raw[i + 1])) for i in range(0, len(raw) - 1, 2)]

    @property
    def fields(self) -> List[str]:
        return list((self.get_data().get("terms") or {}).keys())


class SuggesterResult(Result):
    def get_suggestions(self, dictionary: Optional[str] = None) -> List[Dict[str, Any]]:
        """Flatten suggestions of one dictionary (or all of them) into a list of term dicts."""
        suggest = self.get_data().get("suggest") or {}
        out: List[Dict[str, Any]] = []
        for name, per_query in suggest.items():
            if dictionary is not None and name != dictionary:
                continue
            for block in (per_query or {}).values():
                out.extend((block or {}).get("suggestions") or [])
        return out
