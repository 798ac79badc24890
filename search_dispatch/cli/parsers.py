from __future__ import annotations

import argparse


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Search dispatch client (Solr-style HTTP API)")
    ap.add_argument("--core", default=None, help="Core/collection; defaults to $SEARCH_CORE")
    ap.add_argument("--url", default=None, help="Base URL; defaults to $SEARCH_URL")
    sub = ap.add_subparsers(dest="cmd", required=True)

    sub.add_parser("ping")

    sel = sub.add_parser("select")
    sel.add_argument("--q", default="*:*")
    sel.add_argument("--rows", type=int, default=10)
    sel.add_argument("--start", type=int, default=0)
    sel.add_argument("--fields", default=None, help="Comma-separated field list")
    sel.add_argument("--fq", action="append", default=[], help="Filter query; can repeat")
    sel.add_argument("--sort", action="append", default=[], help="'field asc|desc'; can repeat")

    add = sub.add_parser("add")
    add.add_argument("--doc", action="append", default=[], required=True, help="JSON document; can repeat")
    add.add_argument("--commit", action="store_true")

    dl = sub.add_parser("delete")
    dl.add_argument("--id", action="append", default=[], help="Document id; can repeat")
    dl.add_argument("--query", action="append", default=[], help="Delete-by-query; can repeat")
    dl.add_argument("--commit", action="store_true")

    cm = sub.add_parser("commit")
    cm.add_argument("--soft", action="store_true")

    tm = sub.add_parser("terms")
    tm.add_argument("--field", action="append", required=True, help="Field; can repeat")
    tm.add_argument("--prefix", default=None)
    tm.add_argument("--limit", type=int, default=10)

    sg = add_suggest_subparser(sub, "suggest")
    sg.add_argument("--build", action="store_true")

    return ap


def add_suggest_subparser(sub, name):
    """
    Adds the suggester subcommand with query, dictionary and count arguments.

    Args:
        sub: The subparsers object from argparse.
        name: The subcommand name.

    Returns:
        argparse.ArgumentParser: The configured subparser.
    """
    result = sub.add_parser(name)
    result.add_argument("--q", required=True)
    result.add_argument("--dictionary", default=None)
    result.add_argument("--count", type=int, default=5)
    return result
