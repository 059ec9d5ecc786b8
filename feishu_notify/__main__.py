"""Command-line entry point: ``python -m feishu_notify``."""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from dataclasses import replace

from feishu_notify.config import Settings
from feishu_notify.reporter import Reporter, configure_logging
from feishu_notify.services.notifier import run_from_env


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="feishu-notify",
        description="Send a GitHub workflow notification card to a Feishu bot webhook",
    )
    parser.add_argument(
        "--dry",
        action="store_true",
        help="Print the final payload instead of sending it (same as DRY_RUN=true)",
    )
    parser.add_argument(
        "--event-path",
        default=None,
        help="GitHub event payload JSON (defaults to $GITHUB_EVENT_PATH)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging(args.verbose)

    settings = Settings.from_env()
    if args.dry:
        settings = replace(settings, dry_run=True)

    reporter = Reporter()
    asyncio.run(run_from_env(settings, os.environ, reporter, event_path=args.event_path))
    return reporter.exit_code


if __name__ == "__main__":
    sys.exit(main())
