from __future__ import annotations

import argparse
import sys
from pathlib import Path

from . import doctor


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Configuration utilities for discovery-query.")
    subparsers = parser.add_subparsers(dest="command")

    doctor_parser = subparsers.add_parser("doctor", help="Check configuration sources and print the result.")
    doctor_parser.add_argument("--env-file", type=Path, help="Path to the .env file to read.")
    doctor_parser.add_argument("--config-file", type=Path, help="Path to the user config.toml.")

    args = parser.parse_args(argv)
    if args.command != "doctor":
        parser.print_help()
        return 1
    return 0 if doctor(env_file=args.env_file, config_file=args.config_file) else 1


if __name__ == "__main__":
    sys.exit(main())
