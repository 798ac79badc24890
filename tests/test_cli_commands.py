"""
Unit tests for search dispatch CLI command parsing and execution.

Commands run against a client wired to a FakeTransport, so the emitted JSON and
the requests that would be sent can both be checked.
"""

import json
from argparse import Namespace
from unittest.mock import patch

import pytest

from search_dispatch.cli.main import _build_client, _parse_docs, dispatch_commands, run
from search_dispatch.cli.parsers import build_parser

pytestmark = pytest.mark.cli


def _printed(mock_print):
    return json.loads(mock_print.call_args[0][0])


class TestCommandParsing:
    """Test CLI argument parsing functionality."""

    def test_build_parser_structure(self):
        parser = build_parser()

        assert "Search dispatch" in parser.description
        with pytest.raises(SystemExit):
            parser.parse_args(["--help"])

    def test_select_args(self):
        args = build_parser().parse_args([
            "--core", "books",
            "select",
            "--q", "title:python",
            "--rows", "5",
            "--fq", "inStock:true",
            "--fq", "cat:book",
            "--sort", "price desc",
        ])

        assert args.core == "books"
        assert args.cmd == "select"
        assert args.q == "title:python"
        assert args.rows == 5
        assert args.start == 0
        assert args.fq == ["inStock:true", "cat:book"]
        assert args.sort == ["price desc"]

    def test_add_requires_doc(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["add"])

    def test_suggest_args(self):
        args = build_parser().parse_args(["suggest", "--q", "ap", "--dictionary", "main", "--build"])

        assert args.q == "ap"
        assert args.dictionary == "main"
        assert args.count == 5
        assert args.build is True


class TestCommandExecution:
    """Test each command against a fake transport."""

    def test_ping_ok(self, client, fake_transport):
        fake_transport.queue({"status": "OK"})

        with patch('builtins.print') as mock_print:
            code = dispatch_commands(Namespace(cmd="ping"), client)

        assert code == 0
        assert _printed(mock_print) == {"status": "ok", "server_status": "OK"}
        assert fake_transport.requests[0].handler == "admin/ping"

    def test_ping_not_ok(self, client, fake_transport):
        fake_transport.queue({"status": "DOWN"})

        with patch('builtins.print'):
            assert dispatch_commands(Namespace(cmd="ping"), client) == 3

    def test_select(self, client, fake_transport, select_body):
        fake_transport.queue(select_body)
        ns = build_parser().parse_args(["select", "--q", "name:first", "--fields", "id,name", "--sort", "id"])

        with patch('builtins.print') as mock_print:
            code = dispatch_commands(ns, client)

        out = _printed(mock_print)
        assert code == 0
        assert out["num_found"] == 2
        assert [d["id"] for d in out["documents"]] == ["1", "2"]
        params = fake_transport.requests[0].params
        assert params["q"] == "name:first"
        assert params["fl"] == "id,name"
        assert params["sort"] == "id asc"

    def test_add_with_commit(self, client, fake_transport):
        ns = build_parser().parse_args(["add", "--doc", '{"id": "1"}', "--doc", '{"id": "2"}', "--commit"])

        with patch('builtins.print') as mock_print:
            code = dispatch_commands(ns, client)

        assert code == 0
        assert _printed(mock_print)["indexed"] == 2
        body = fake_transport.requests[0].body
        assert body.count('"add"') == 2
        assert '"commit"' in body

    def test_delete_requires_target(self, client, fake_transport):
        with patch('builtins.print') as mock_print:
            code = dispatch_commands(Namespace(cmd="delete", id=[], query=[], commit=False), client)

        assert code == 2
        assert _printed(mock_print)["status"] == "error"
        assert fake_transport.requests == []

    def test_delete(self, client, fake_transport):
        ns = build_parser().parse_args(["delete", "--id", "7", "--query", "cat:old"])

        with patch('builtins.print'):
            assert dispatch_commands(ns, client) == 0

        assert fake_transport.requests[0].body == '{"delete": {"id": "7"}, "delete": {"query": "cat:old"}}'

    def test_soft_commit(self, client, fake_transport):
        with patch('builtins.print'):
            dispatch_commands(Namespace(cmd="commit", soft=True), client)

        assert fake_transport.requests[0].body == '{"commit": {"softCommit": true}}'

    def test_terms(self, client, fake_transport):
        fake_transport.queue({"terms": {"name": ["ab", 3, "ac", 1]}})
        ns = build_parser().parse_args(["terms", "--field", "name", "--prefix", "a"])

        with patch('builtins.print') as mock_print:
            dispatch_commands(ns, client)

        assert _printed(mock_print)["terms"] == {"name": [{"term": "ab", "count": 3}, {"term": "ac", "count": 1}]}
        assert fake_transport.requests[0].params["terms.prefix"] == "a"

    def test_suggest(self, client, fake_transport):
        fake_transport.queue({"suggest": {"main": {"ap": {"numFound": 1, "suggestions": [{"term": "apple"}]}}}})
        ns = build_parser().parse_args(["suggest", "--q", "ap"])

        with patch('builtins.print') as mock_print:
            dispatch_commands(ns, client)

        assert _printed(mock_print)["suggestions"] == [{"term": "apple"}]
        assert "suggest.build" not in fake_transport.requests[0].params

    def test_unknown_command(self, client):
        with patch('builtins.print') as mock_print:
            assert dispatch_commands(Namespace(cmd="reindex"), client) == 2
        assert "Unknown cmd" in _printed(mock_print)["error"]


class TestRun:
    """Test the top-level entry point."""

    def test_errors_become_exit_code_3(self, client, fake_transport):
        fake_transport.queue("<html>", status=200)

        with patch('search_dispatch.cli.main._build_client', return_value=client):
            with patch('builtins.print') as mock_print:
                code = run(["ping"])

        assert code == 3
        assert _printed(mock_print)["error"].startswith("ContractError")

    def test_invalid_doc_json(self):
        with pytest.raises(ValueError, match="--doc #2"):
            _parse_docs(['{"id": 1}', "{oops"])
        with pytest.raises(ValueError, match="JSON object"):
            _parse_docs(["[1]"])

    def test_build_client_overrides(self, clean_environment, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        ns = Namespace(url="https://idx.example/api/", core="docs")

        options = _build_client(ns).get_adapter().get_options()

        assert options["scheme"] == "https"
        assert options["host"] == "idx.example"
        assert options["port"] == 443
        assert options["path"] == "/api"
        assert options["core"] == "docs"
