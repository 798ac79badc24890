from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import urlparse

from ..application.client import SearchClient
from ..infrastructure.config import ClientConfig
from ..infrastructure.logging import get_logger
from .parsers import build_parser

logger = get_logger("search_dispatch.cli")


def _build_client(ns) -> SearchClient:
    """Client from env/.env settings, with --url/--core overriding them."""
    config = ClientConfig.from_env()
    if getattr(ns, "url", None):
        parsed = urlparse(ns.url.rstrip("/"))
        config.adapter_options.update({
            "scheme": parsed.scheme or "http",
            "host": parsed.hostname or "localhost",
            "port": parsed.port or (443 if parsed.scheme == "https" else 8983),
            "path": parsed.path,
        })
    if getattr(ns, "core", None):
        config.adapter_options["core"] = ns.core
    return SearchClient(config)


def _parse_docs(raw_docs: Sequence[str]) -> List[Dict[str, Any]]:
    docs: List[Dict[str, Any]] = []
    for idx, raw in enumerate(raw_docs):
        try:
            doc = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON for --doc #{idx + 1}: {exc}") from exc
        if not isinstance(doc, dict):
            raise ValueError(f"--doc #{idx + 1} must be a JSON object")
        docs.append(doc)
    return docs


def _emit(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2))


def run(argv: Optional[Sequence[str]] = None) -> int:
    ap = build_parser()
    ns = ap.parse_args(list(argv or []))

    client = _build_client(ns)

    try:
        return dispatch_commands(ns, client)
    except Exception as ex:  # keep CLI concise and user-friendly
        print(json.dumps({"status": "error", "error": f"{type(ex).__name__}: {ex}"}))
        return 3


def dispatch_commands(ns, client: SearchClient) -> int:
    """
    Dispatches CLI commands to the client.

    Commands:
    - ping: server health check
    - select: search with q/rows/start/fields/fq/sort
    - add, delete, commit: update handler commands
    - terms, suggest: term listing and suggestions
    """
    handlers = {
        "ping": ping_command,
        "select": select_command,
        "add": add_command,
        "delete": delete_command,
        "commit": commit_command,
        "terms": terms_command,
        "suggest": suggest_command,
    }
    handler = handlers.get(ns.cmd)
    if handler is None:
        print(json.dumps({"status": "error", "error": f"Unknown cmd: {ns.cmd}"}))
        return 2
    return handler(ns, client)


def ping_command(ns, client: SearchClient) -> int:
    result = client.ping(client.create_ping())
    _emit({"status": "ok" if result.is_ok else "error", "server_status": result.get_data().get("status")})
    return 0 if result.is_ok else 3


def select_command(ns, client: SearchClient) -> int:
    query = client.create_select({"query": ns.q, "rows": ns.rows, "start": ns.start})
    if ns.fields:
        query.set_fields(ns.fields)
    for i, fq in enumerate(ns.fq or []):
        query.add_filter_query(f"fq{i}", fq)
    for spec in ns.sort or []:
        field, _, order = spec.partition(" ")
        query.add_sort(field, order.strip() or "asc")
    result = client.select(query)
    logger.info("Select | q=%s | num_found=%d", ns.q, result.num_found)
    _emit({"status": "ok", "num_found": result.num_found, "documents": result.documents})
    return 0


def add_command(ns, client: SearchClient) -> int:
    docs = _parse_docs(ns.doc)
    query = client.create_update()
    query.add_documents(docs)
    if ns.commit:
        query.add_commit()
    result = client.update(query)
    logger.info("Add | documents=%d | commit=%s", len(docs), ns.commit)
    _emit({"status": "ok", "indexed": len(docs), "http_status": result.status})
    return 0


def delete_command(ns, client: SearchClient) -> int:
    if not ns.id and not ns.query:
        print(json.dumps({"status": "error", "error": "delete needs --id or --query"}))
        return 2
    query = client.create_update()
    for doc_id in ns.id:
        query.add_delete_by_id(doc_id)
    for q in ns.query:
        query.add_delete_by_query(q)
    if ns.commit:
        query.add_commit()
    result = client.update(query)
    _emit({"status": "ok", "deleted_ids": list(ns.id), "deleted_queries": list(ns.query), "http_status": result.status})
    return 0


def commit_command(ns, client: SearchClient) -> int:
    query = client.create_update()
    query.add_commit(soft_commit=True if ns.soft else None)
    result = client.update(query)
    _emit({"status": "ok", "http_status": result.status})
    return 0


def terms_command(ns, client: SearchClient) -> int:
    query = client.create_terms({"fields": list(ns.field), "limit": ns.limit, "prefix": ns.prefix})
    result = client.terms(query)
    _emit({
        "status": "ok",
        "terms": {f: [{"term": t, "count": c} for t, c in result.get_terms(f)] for f in ns.field},
    })
    return 0


def suggest_command(ns, client: SearchClient) -> int:
    query = client.create_suggester({
        "query": ns.q,
        "dictionary": ns.dictionary,
        "count": ns.count,
        "build": True if ns.build else None,
    })
    result = client.suggester(query)
    _emit({"status": "ok", "suggestions": result.get_suggestions(ns.dictionary)})
    return 0


def main() -> int:
    import sys

    return run(sys.argv[1:])


if __name__ == "__main__":
    raise SystemExit(main())
