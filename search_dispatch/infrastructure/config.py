from __future__ import annotations

import contextlib
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlparse

DEFAULT_ADAPTER = "http"


def parse_dotenv(dotenv_path: Path) -> Dict[str, str]:
    """Parse a simple .env file (KEY=VALUE per line, '#' comments, quotes stripped)."""
    env: Dict[str, str] = {}
    if dotenv_path.exists():
        with contextlib.suppress(OSError):
            for raw in dotenv_path.read_text(encoding="utf-8", errors="ignore").splitlines():
                s = raw.strip()
                if not s or s.startswith("#") or "=" not in s:
                    continue
                k, v = s.split("=", 1)
                k = k.strip()
                v = v.strip().strip('"').strip("'")
                if k:
                    env[k] = v
    return env


def env_get(key: str) -> Optional[str]:
    """Get environment value from process env, falling back to .env in CWD."""
    v = os.getenv(key)
    if v is not None and v.strip():
        return v.strip()
    local = parse_dotenv(Path(".env"))
    v2 = local.get(key)
    return v2.strip() if v2 is not None and v2.strip() else None


def env_str(name: str, default: str) -> str:
    return env_get(name) or default


def search_url() -> str:
    return env_str("SEARCH_URL", "http://localhost:8983/solr").rstrip("/")


def default_core() -> str:
    return env_str("SEARCH_CORE", "collection1")


def adapter_name() -> str:
    return env_str("SEARCH_ADAPTER", DEFAULT_ADAPTER)


def http_timeout_seconds() -> float:
    try:
        return float(env_str("SEARCH_TIMEOUT", "15"))
    except ValueError:
        return 15.0


def endpoint_options() -> Dict[str, Any]:
    """Split SEARCH_URL into the option set understood by the HTTP transport."""
    parsed = urlparse(search_url())
    scheme = parsed.scheme or "http"
    return {
        "scheme": scheme,
        "host": parsed.hostname or "localhost",
        "port": parsed.port or (443 if scheme == "https" else 8983),
        "path": parsed.path.rstrip("/"),
        "core": default_core(),
        "timeout": http_timeout_seconds(),
    }


@dataclass
class ClientConfig:
    """Configuration consumed once by SearchClient and forwarded to the transport it creates.

    Fields:
        adapter: Transport identifier (table key, dotted path, or class).
        adapter_options: Passed verbatim to the transport's ``set_options``.
        query_types: Batch query-type registrations applied at construction.
        plugins: Batch plugin registrations applied at construction.
        extra: Any other option keys, kept for plugins and callers.
    """
    adapter: Any = DEFAULT_ADAPTER
    adapter_options: Dict[str, Any] = field(default_factory=dict)
    query_types: Any = field(default_factory=dict)
    plugins: Any = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_options(cls, options: Optional[Mapping[str, Any]] = None) -> "ClientConfig":
        """Build from the option-bag shape: adapter, adapteroptions, querytype, plugin."""
        opts = dict(options or {})
        return cls(
            adapter=opts.pop("adapter", None) or DEFAULT_ADAPTER,
            adapter_options=dict(opts.pop("adapteroptions", None) or {}),
            query_types=opts.pop("querytype", None) or {},
            plugins=opts.pop("plugin", None) or {},
            extra=opts,
        )

    @classmethod
    def from_env(cls) -> "ClientConfig":
        return cls(adapter=adapter_name(), adapter_options=endpoint_options())

    def get(self, name: str, default: Any = None) -> Any:
        return self.extra.get(name, default)
