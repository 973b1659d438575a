"""Utilities shared by CLI entrypoints."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, cast

from discovery_query.config import (
    LOG_DESTINATIONS,
    LOG_FORMATS,
    LOG_LEVELS,
    ConfigError,
    load_config,
)
from discovery_query.logging import configure_logging
from discovery_query.query import QueryArgumentError

if TYPE_CHECKING:
    from discovery_query.config import AppConfig


CliRunner = Callable[[argparse.Namespace], int]


class CLIArgs(argparse.Namespace):
    log_level: str | None
    log_format: str | None
    log_destination: str | None
    config: Path | None
    env_file: Path | None
    app_config: AppConfig


def build_parser(*, prog: str, description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=prog,
        description=description,
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to a TOML configuration file overriding defaults.",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        help="Optional .env file with DISCOVERY_QUERY_* settings.",
    )
    parser.add_argument(
        "--log-level",
        type=_choice_type("log level", LOG_LEVELS, upper=True),
        choices=LOG_LEVELS,
        help="Logging verbosity (case-insensitive). Defaults to the configured level.",
    )
    parser.add_argument(
        "--log-format",
        type=_choice_type("log format", LOG_FORMATS),
        choices=LOG_FORMATS,
        help="Structured JSON or human-readable text logs.",
    )
    parser.add_argument(
        "--log-destination",
        type=_choice_type("log destination", LOG_DESTINATIONS),
        choices=LOG_DESTINATIONS,
        help="Write logs to stdout, stderr, or split automatically by level.",
    )
    return parser


def run_cli(
    parser: argparse.ArgumentParser,
    argv: Sequence[str] | None,
    *,
    cli_name: str,
    runner: CliRunner,
) -> int:
    args = cast(CLIArgs, parser.parse_args(argv))
    logger = logging.getLogger(f"discovery_query.cli.{cli_name}")
    try:
        config = load_config(env_file=args.env_file, config_file=args.config)
    except ConfigError as exc:
        configure_logging(
            level=args.log_level or "INFO",
            fmt=args.log_format or "text",
            destination=args.log_destination or "auto",
        )
        logger.error("Configuration invalid", extra={"cli": cli_name, "error": str(exc)})
        return 2

    configure_logging(
        level=args.log_level or config.logging.level,
        fmt=args.log_format or config.logging.format,
        destination=args.log_destination or config.logging.destination,
    )
    args.app_config = config
    logger.debug("Configuration loaded", extra={"cli": cli_name})
    try:
        return runner(args)
    except QueryArgumentError as exc:
        logger.error("Invalid query arguments", extra={"cli": cli_name, "error": str(exc)})
        return 2


def _choice_type(label: str, allowed: Sequence[str], *, upper: bool = False) -> Callable[[str], str]:
    def convert(value: str) -> str:
        normalized = value.upper() if upper else value.lower()
        if normalized not in allowed:
            raise argparse.ArgumentTypeError(
                f"Invalid {label} '{value}'. Expected one of: {', '.join(allowed)}"
            )
        return normalized

    return convert


__all__ = [
    "CliRunner",
    "build_parser",
    "run_cli",
]
