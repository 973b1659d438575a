"""`discovery-query` CLI entrypoint."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Callable, Sequence

from discovery_query import query
from discovery_query.cli import _common

PROG_NAME = "discovery-query"
DESCRIPTION = "Build search-query fragments for the e-discovery query language."

logger = logging.getLogger(__name__)

_JOINERS: dict[str, tuple[Callable[[Sequence[str]], str], str]] = {
    "and": (query.join_by_and, "Join expressions with AND."),
    "or": (query.join_by_or, "Join expressions with OR."),
    "paren-and": (query.paren_then_join_by_and, "Parenthesize expressions, then join with AND."),
    "paren-or": (query.paren_then_join_by_or, "Parenthesize expressions, then join with OR."),
    "not-or": (query.not_join_by_or, "Negate the OR of the expressions."),
}


def build_parser() -> argparse.ArgumentParser:
    parser = _common.build_parser(prog=PROG_NAME, description=DESCRIPTION)
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    year = subparsers.add_parser("year", help="Range query covering a whole year.")
    year.add_argument("year", type=int)
    year.add_argument("--field", help="Date field to query. Defaults to the configured date field.")

    year_month = subparsers.add_parser("year-month", help="Range query covering one month.")
    year_month.add_argument("year", type=int)
    year_month.add_argument("month", type=int)
    year_month.add_argument("--field", help="Date field to query. Defaults to the configured date field.")

    for name, (_, help_text) in _JOINERS.items():
        joiner = subparsers.add_parser(name, help=help_text)
        joiner.add_argument("expressions", nargs="*", metavar="EXPR")

    entities = subparsers.add_parser("named-entities", help="Match any of the named entities.")
    entities.add_argument("names", nargs="+", metavar="NAME")

    markup = subparsers.add_parser("markup-set", help="Match items in a markup set.")
    markup.add_argument("name")

    escape = subparsers.add_parser("escape", help="Escape special characters in a value.")
    escape.add_argument("value")

    tags = subparsers.add_parser("tags", help="Match items carrying any of the tags.")
    tags.add_argument("tags", nargs="+", metavar="TAG")
    return parser


def run(args: argparse.Namespace) -> int:
    """Build the requested query fragment and print it to stdout."""

    command = args.command
    if command is None:
        build_parser().print_help()
        return 1

    if command in ("year", "year-month"):
        field = args.field or args.app_config.query.date_field
        if command == "year":
            result = query.year_range_query(args.year, field=field)
        else:
            result = query.year_month_range_query(args.year, args.month, field=field)
    elif command in _JOINERS:
        result = _JOINERS[command][0](args.expressions)
    elif command == "named-entities":
        result = query.named_entity_query(args.names)
    elif command == "markup-set":
        result = query.markup_set_query(query.MarkupSet(name=args.name))
    elif command == "escape":
        result = query.escape_for_search(args.value)
    else:
        result = query.or_tag_query(args.tags)

    logger.debug("Built query", extra={"command": command, "query": result})
    print(result)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    return _common.run_cli(parser, argv, cli_name="build", runner=run)


if __name__ == "__main__":  # pragma: no cover - manual execution guard
    raise SystemExit(main())


__all__ = ["build_parser", "main", "run"]
