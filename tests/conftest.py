"""
Pytest configuration and fixtures for search dispatch tests.

Provides fake transports, queries and plugins so the dispatch pipeline can be
exercised without a running search server.
"""

import json
import os
from typing import Any, Dict, List, Optional

import pytest

from search_dispatch.application.client import SearchClient
from search_dispatch.application.results import Result
from search_dispatch.domain.interfaces import Plugin, Query, RequestBuilder, Transport
from search_dispatch.domain.models import Request, Response


class FakeTransport(Transport):
    """Transport that records requests and replays queued responses."""

    def __init__(self, options: Optional[Dict[str, Any]] = None) -> None:
        self.options: Dict[str, Any] = dict(options or {})
        self.requests: List[Request] = []
        self.responses: List[Response] = []
        self.set_options_calls: List[Dict[str, Any]] = []

    def set_options(self, options):
        self.set_options_calls.append(dict(options or {}))
        self.options.update(options or {})

    def queue(self, body: Any, status: int = 200) -> "FakeTransport":
        text = body if isinstance(body, str) else json.dumps(body)
        self.responses.append(Response(status=status, body=text, status_message="OK"))
        return self

    def execute(self, request: Request) -> Response:
        self.requests.append(request)
        if self.responses:
            return self.responses.pop(0)
        return Response(status=200, body="{}", status_message="OK")


class OtherFakeTransport(FakeTransport):
    """Second transport type, to tell lazily built instances apart."""


class FakeRequestBuilder(RequestBuilder):
    def build(self, query):
        return Request(handler=f"fake/{query.get_type()}", params={"wt": "json"})


class FakeQuery(Query):
    """Minimal query; the type is taken from options so one class serves many identifiers."""

    query_type = "fake"

    def __init__(self, options=None):
        self.options = dict(options or {})

    def get_type(self):
        return self.options.get("type", self.query_type)

    def get_request_builder(self):
        return FakeRequestBuilder()

    def get_result_class(self):
        return Result


class BuilderlessQuery(FakeQuery):
    query_type = "builderless"

    def get_request_builder(self):
        return None


class RecordingPlugin(Plugin):
    """Plugin implementing every lifecycle hook and recording the calls it gets."""

    HOOKS = (
        "pre_create_query", "post_create_query",
        "pre_create_request", "post_create_request",
        "pre_create_result", "post_create_result",
        "pre_execute_request", "post_execute_request",
        "pre_execute", "post_execute",
    )

    def __init__(self, name: str = "recorder", log: Optional[List] = None, overrides: Optional[Dict[str, Any]] = None):
        super().__init__()
        self.name = name
        self.log = log if log is not None else []
        self.overrides = dict(overrides or {})
        self.init_calls = []

    def init_plugin(self, client, options=None):
        self.init_calls.append((client, dict(options or {})))
        super().init_plugin(client, options)

    def _record(self, hook, args):
        self.log.append((self.name, hook, args))
        return self.overrides.get(hook)

    def pre_create_query(self, *args):
        return self._record("pre_create_query", args)

    def post_create_query(self, *args):
        return self._record("post_create_query", args)

    def pre_create_request(self, *args):
        return self._record("pre_create_request", args)

    def post_create_request(self, *args):
        return self._record("post_create_request", args)

    def pre_create_result(self, *args):
        return self._record("pre_create_result", args)

    def post_create_result(self, *args):
        return self._record("post_create_result", args)

    def pre_execute_request(self, *args):
        return self._record("pre_execute_request", args)

    def post_execute_request(self, *args):
        return self._record("post_execute_request", args)

    def pre_execute(self, *args):
        return self._record("pre_execute", args)

    def post_execute(self, *args):
        return self._record("post_execute", args)


def hooks_called(log, name=None):
    """Hook names from a RecordingPlugin log, optionally for one plugin."""
    return [hook for plugin, hook, _ in log if name is None or plugin == name]


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def client(fake_transport):
    """Client wired to a FakeTransport and a 'fake' query type."""
    c = SearchClient({"adapteroptions": {"host": "solr.test", "port": 8983}})
    c.set_adapter(fake_transport)
    c.register_query_type("fake", FakeQuery)
    return c


@pytest.fixture
def select_body():
    """Typical JSON reply of a select handler."""
    return {
        "responseHeader": {"status": 0, "QTime": 3},
        "response": {
            "numFound": 2,
            "start": 0,
            "docs": [{"id": "1", "name": "first"}, {"id": "2", "name": "second"}],
        },
    }


@pytest.fixture
def clean_environment():
    """Clean environment variables for testing."""
    env_vars_to_clean = ["SEARCH_URL", "SEARCH_CORE", "SEARCH_TIMEOUT", "SEARCH_ADAPTER"]

    original_env = {}
    for var in env_vars_to_clean:
        if var in os.environ:
            original_env[var] = os.environ[var]
            del os.environ[var]

    yield

    for var in env_vars_to_clean:
        os.environ.pop(var, None)
    for var, value in original_env.items():
        os.environ[var] = value


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "plugins: mark test as built-in plugin test")
    config.addinivalue_line("markers", "cli: mark test as CLI command test")
