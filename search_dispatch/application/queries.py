"""Default query types registered by SearchClient.

These are thin: each one knows its handler, turns its options into request params
and names the result class that wraps the reply.
"""
from __future__ import annotations

import json
from typing import Any, ClassVar, Dict, List, Mapping, Optional
from xml.sax.saxutils import escape, quoteattr

from ..domain.interfaces import Query, RequestBuilder
from ..domain.models import METHOD_POST, Request
from ..infrastructure.loader import resolve_factory
from .results import (
    AnalysisResult,
    MoreLikeThisResult,
    PingResult,
    Result,
    SelectResult,
    SuggesterResult,
    TermsResult,
    UpdateResult,
)

QUERY_SELECT = "select"
QUERY_UPDATE = "update"
QUERY_PING = "ping"
QUERY_MORELIKETHIS = "mlt"
QUERY_ANALYSIS_FIELD = "analysis-field"
QUERY_ANALYSIS_DOCUMENT = "analysis-document"
QUERY_TERMS = "terms"
QUERY_SUGGESTER = "suggester"


def _csv(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (list, tuple, set)):
        return ",".join(str(v) for v in value) or None
    return str(value)


class QueryRequestBuilder(RequestBuilder):
    """Shared part of every request: handler, response format and custom params."""

    def build(self, query: "BaseQuery") -> Request:
        request = Request(handler=query.get_handler())
        request.add_param("omitHeader", "true" if query.get_option("omitheader") else "false")
        request.add_param("wt", "json")
        request.add_param("json.nl", "flat")
        request.add_params(query.get_params(), overwrite=True)
        return request


class BaseQuery(Query):
    """Options-backed query. Subclasses set ``query_type`` and their defaults."""

    query_type: ClassVar[str] = ""
    base_options: ClassVar[Dict[str, Any]] = {"handler": "", "resultclass": Result, "omitheader": True}
    defaults: ClassVar[Dict[str, Any]] = {}
    builder_class: ClassVar[type] = QueryRequestBuilder

    def __init__(self, options: Optional[Mapping[str, Any]] = None) -> None:
        self._options: Dict[str, Any] = {**self.base_options, **self.defaults}
        self._params: Dict[str, Any] = {}
        if options:
            self._options.update(options)

    def get_type(self) -> str:
        return self.query_type

    def get_request_builder(self) -> Optional[RequestBuilder]:
        return self.builder_class()

    def get_result_class(self) -> Any:
        return resolve_factory(self._options.get("resultclass") or Result)

    def get_option(self, name: str, default: Any = None) -> Any:
        return self._options.get(name, default)

    def set_option(self, name: str, value: Any) -> "BaseQuery":
        self._options[name] = value
        return self

    def get_options(self) -> Dict[str, Any]:
        return dict(self._options)

    def get_handler(self) -> str:
        return str(self._options.get("handler") or "")

    def set_handler(self, handler: str) -> "BaseQuery":
        return self.set_option("handler", handler)

    def add_param(self, name: str, value: Any) -> "BaseQuery":
        """Add a raw request param, sent as-is alongside the generated ones."""
        self._params[name] = value
        return self

    def get_params(self) -> Dict[str, Any]:
        return dict(self._params)


# --- select ---

class SelectRequestBuilder(QueryRequestBuilder):
    def build(self, query: "SelectQuery") -> Request:
        request = super().build(query)
        request.add_params({
            "q": query.get_option("query"),
            "start": query.get_option("start"),
            "rows": query.get_option("rows"),
            "fl": _csv(query.get_option("fields")),
        })
        sorts = query.get_option("sorts") or {}
        if sorts:
            request.add_param("sort", ",".join(f"{f} {d}" for f, d in sorts.items()))
        for fq in (query.get_option("filterqueries") or {}).values():
            request.add_param("fq", fq)
        return request


class SelectQuery(BaseQuery):
    query_type = QUERY_SELECT
    builder_class = SelectRequestBuilder
    defaults = {
        "handler": "select",
        "resultclass": SelectResult,
        "query": "*:*",
        "start": 0,
        "rows": 10,
        "fields": "*,score",
    }

    def set_query(self, query: str) -> "SelectQuery":
        return self.set_option("query", query)

    def set_start(self, start: int) -> "SelectQuery":
        return self.set_option("start", int(start))

    def set_rows(self, rows: int) -> "SelectQuery":
        return self.set_option("rows", int(rows))

    def set_fields(self, fields: Any) -> "SelectQuery":
        return self.set_option("fields", fields)

    def add_sort(self, field: str, order: str = "asc") -> "SelectQuery":
        sorts = dict(self._options.get("sorts") or {})
        sorts[field] = order
        return self.set_option("sorts", sorts)

    def add_filter_query(self, key: str, query: str) -> "SelectQuery":
        fqs = dict(self._options.get("filterqueries") or {})
        fqs[key] = query
        return self.set_option("filterqueries", fqs)

    def remove_filter_query(self, key: str) -> "SelectQuery":
        fqs = dict(self._options.get("filterqueries") or {})
        fqs.pop(key, None)
        return self.set_option("filterqueries", fqs)


# --- update ---

class UpdateRequestBuilder(QueryRequestBuilder):
    """Serializes commands into one JSON object; repeated keys are valid for the update handler."""

    def build(self, query: "UpdateQuery") -> Request:
        request = super().build(query)
        request.method = METHOD_POST
        parts = [f"{json.dumps(name)}: {json.dumps(body)}" for name, body in query.get_commands()]
        request.body = "{" + ", ".join(parts) + "}"
        request.add_header("Content-Type", "application/json; charset=utf-8")
        return request


class UpdateQuery(BaseQuery):
    query_type = QUERY_UPDATE
    builder_class = UpdateRequestBuilder
    defaults = {"handler": "update", "resultclass": UpdateResult}

    def __init__(self, options: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(options)
        self._commands: List[tuple] = []

    def get_commands(self) -> List[tuple]:
        return list(self._commands)

    def add_document(self, document: Mapping[str, Any], overwrite: Optional[bool] = None,
                     commit_within: Optional[int] = None) -> "UpdateQuery":
        body: Dict[str, Any] = {"doc": dict(document)}
        if overwrite is not None:
            body["overwrite"] = bool(overwrite)
        if commit_within is not None:
            body["commitWithin"] = int(commit_within)
        self._commands.append(("add", body))
        return self

    def add_documents(self, documents, overwrite: Optional[bool] = None,
                      commit_within: Optional[int] = None) -> "UpdateQuery":
        for doc in documents:
            self.add_document(doc, overwrite=overwrite, commit_within=commit_within)
        return self

    def add_delete_by_id(self, doc_id: Any) -> "UpdateQuery":
        self._commands.append(("delete", {"id": doc_id}))
        return self

    def add_delete_by_query(self, query: str) -> "UpdateQuery":
        self._commands.append(("delete", {"query": query}))
        return self

    def add_commit(self, soft_commit: Optional[bool] = None, wait_searcher: Optional[bool] = None) -> "UpdateQuery":
        body: Dict[str, Any] = {}
        if soft_commit is not None:
            body["softCommit"] = bool(soft_commit)
        if wait_searcher is not None:
            body["waitSearcher"] = bool(wait_searcher)
        self._commands.append(("commit", body))
        return self

    def add_optimize(self, max_segments: Optional[int] = None) -> "UpdateQuery":
        body: Dict[str, Any] = {}
        if max_segments is not None:
            body["maxSegments"] = int(max_segments)
        self._commands.append(("optimize", body))
        return self

    def add_rollback(self) -> "UpdateQuery":
        self._commands.append(("rollback", {}))
        return self


# --- ping ---

class PingQuery(BaseQuery):
    query_type = QUERY_PING
    defaults = {"handler": "admin/ping", "resultclass": PingResult}


# --- more like this ---

class MoreLikeThisRequestBuilder(SelectRequestBuilder):
    def build(self, query: "MoreLikeThisQuery") -> Request:
        request = super().build(query)
        request.add_params({
            "mlt.fl": _csv(query.get_option("mltfields")),
            "mlt.mintf": query.get_option("mintermfrequency"),
            "mlt.mindf": query.get_option("mindocumentfrequency"),
            "mlt.match.include": query.get_option("matchinclude"),
        })
        return request


class MoreLikeThisQuery(SelectQuery):
    query_type = QUERY_MORELIKETHIS
    builder_class = MoreLikeThisRequestBuilder
    defaults = {**SelectQuery.defaults, "handler": "mlt", "resultclass": MoreLikeThisResult}

    def set_mlt_fields(self, fields: Any) -> "MoreLikeThisQuery":
        return self.set_option("mltfields", fields)

    def set_min_term_frequency(self, value: int) -> "MoreLikeThisQuery":
        return self.set_option("mintermfrequency", int(value))

    def set_min_document_frequency(self, value: int) -> "MoreLikeThisQuery":
        return self.set_option("mindocumentfrequency", int(value))

    def set_match_include(self, include: bool) -> "MoreLikeThisQuery":
        return self.set_option("matchinclude", bool(include))


# --- analysis ---

class AnalysisFieldRequestBuilder(QueryRequestBuilder):
    def build(self, query: "AnalysisFieldQuery") -> Request:
        request = super().build(query)
        request.add_params({
            "analysis.fieldvalue": query.get_option("fieldvalue"),
            "analysis.query": query.get_option("query"),
            "analysis.fieldname": _csv(query.get_option("fieldname")),
            "analysis.fieldtype": _csv(query.get_option("fieldtype")),
            "analysis.showmatch": query.get_option("showmatch"),
        })
        return request


class AnalysisFieldQuery(BaseQuery):
    query_type = QUERY_ANALYSIS_FIELD
    builder_class = AnalysisFieldRequestBuilder
    defaults = {"handler": "analysis/field", "resultclass": AnalysisResult}

    def set_field_value(self, value: str) -> "AnalysisFieldQuery":
        return self.set_option("fieldvalue", value)

    def set_query(self, query: str) -> "AnalysisFieldQuery":
        return self.set_option("query", query)

    def set_field_name(self, names: Any) -> "AnalysisFieldQuery":
        return self.set_option("fieldname", names)

    def set_field_type(self, types: Any) -> "AnalysisFieldQuery":
        return self.set_option("fieldtype", types)

    def set_show_match(self, show: bool) -> "AnalysisFieldQuery":
        return self.set_option("showmatch", bool(show))


class AnalysisDocumentRequestBuilder(QueryRequestBuilder):
    """Document analysis takes the documents as an XML content stream."""

    def build(self, query: "AnalysisDocumentQuery") -> Request:
        request = super().build(query)
        request.method = METHOD_POST
        request.add_params({
            "analysis.query": query.get_option("query"),
            "analysis.showmatch": query.get_option("showmatch"),
        })
        docs = []
        for doc in query.get_documents():
            fields = []
            for name, value in doc.items():
                for v in value if isinstance(value, (list, tuple)) else [value]:
                    fields.append(f"<field name={quoteattr(str(name))}>{escape(str(v))}</field>")
            docs.append("<doc>" + "".join(fields) + "</doc>")
        request.body = "<docs>" + "".join(docs) + "</docs>"
        request.add_header("Content-Type", "text/xml; charset=utf-8")
        return request


class AnalysisDocumentQuery(BaseQuery):
    query_type = QUERY_ANALYSIS_DOCUMENT
    builder_class = AnalysisDocumentRequestBuilder
    defaults = {"handler": "analysis/document", "resultclass": AnalysisResult}

    def __init__(self, options: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(options)
        self._documents: List[Dict[str, Any]] = []

    def add_document(self, document: Mapping[str, Any]) -> "AnalysisDocumentQuery":
        self._documents.append(dict(document))
        return self

    def get_documents(self) -> List[Dict[str, Any]]:
        return list(self._documents)

    def set_query(self, query: str) -> "AnalysisDocumentQuery":
        return self.set_option("query", query)

    def set_show_match(self, show: bool) -> "AnalysisDocumentQuery":
        return self.set_option("showmatch", bool(show))


# --- terms ---

class TermsRequestBuilder(QueryRequestBuilder):
    def build(self, query: "TermsQuery") -> Request:
        request = super().build(query)
        request.add_param("terms", "true")
        fields = query.get_option("fields") or []
        if isinstance(fields, str):
            fields = [f.strip() for f in fields.split(",") if f.strip()]
        for f in fields:
            request.add_param("terms.fl", f)
        request.add_params({
            "terms.prefix": query.get_option("prefix"),
            "terms.limit": query.get_option("limit"),
            "terms.mincount": query.get_option("mincount"),
            "terms.sort": query.get_option("sort"),
        })
        return request


class TermsQuery(BaseQuery):
    query_type = QUERY_TERMS
    builder_class = TermsRequestBuilder
    defaults = {"handler": "terms", "resultclass": TermsResult}

    def set_fields(self, fields: Any) -> "TermsQuery":
        return self.set_option("fields", fields)

    def set_prefix(self, prefix: str) -> "TermsQuery":
        return self.set_option("prefix", prefix)

    def set_limit(self, limit: int) -> "TermsQuery":
        return self.set_option("limit", int(limit))

    def set_min_count(self, mincount: int) -> "TermsQuery":
        return self.set_option("mincount", int(mincount))

    def set_sort(self, sort: str) -> "TermsQuery":
        return self.set_option("sort", sort)


# --- suggester ---

class SuggesterRequestBuilder(QueryRequestBuilder):
    def build(self, query: "SuggesterQuery") -> Request:
        request = super().build(query)
        request.add_params({
            "suggest": "true",
            "suggest.q": query.get_option("query"),
            "suggest.dictionary": query.get_option("dictionary"),
            "suggest.count": query.get_option("count"),
            "suggest.build": query.get_option("build"),
        })
        return request


class SuggesterQuery(BaseQuery):
    query_type = QUERY_SUGGESTER
    builder_class = SuggesterRequestBuilder
    defaults = {"handler": "suggest", "resultclass": SuggesterResult}

    def set_query(self, query: str) -> "SuggesterQuery":
        return self.set_option("query", query)

    def set_dictionary(self, dictionary: str) -> "SuggesterQuery":
        return self.set_option("dictionary", dictionary)

    def set_count(self, count: int) -> "SuggesterQuery":
        return self.set_option("count", int(count))

    def set_build(self, build: bool) -> "SuggesterQuery":
        return self.set_option("build", bool(build))


DEFAULT_QUERY_TYPES: Dict[str, type] = {
    QUERY_SELECT: SelectQuery,
    QUERY_UPDATE: UpdateQuery,
    QUERY_PING: PingQuery,
    QUERY_MORELIKETHIS: MoreLikeThisQuery,
    QUERY_ANALYSIS_FIELD: AnalysisFieldQuery,
    QUERY_ANALYSIS_DOCUMENT: AnalysisDocumentQuery,
    QUERY_TERMS: TermsQuery,
    QUERY_SUGGESTER: SuggesterQuery,
}
