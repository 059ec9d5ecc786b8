"""Info/warning/error/fail sink for one notifier invocation."""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

logger = logging.getLogger("feishu_notify")


class WorkflowCommandFormatter(logging.Formatter):
    """Render warnings and errors as GitHub Actions workflow commands."""

    PREFIXES = {
        logging.DEBUG: "::debug::",
        logging.WARNING: "::warning::",
        logging.ERROR: "::error::",
        logging.CRITICAL: "::error::",
    }

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        prefix = self.PREFIXES.get(record.levelno, "")
        if prefix:
            # workflow commands are single-line; escape per the runner's rules
            message = message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
        return prefix + message


def configure_logging(verbose: bool = False, *, in_actions: Optional[bool] = None) -> None:
    if in_actions is None:
        in_actions = os.getenv("GITHUB_ACTIONS") == "true"
    handler = logging.StreamHandler(sys.stdout)
    if in_actions:
        handler.setFormatter(WorkflowCommandFormatter("%(message)s"))
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        handlers=[handler],
        force=True,
    )


class Reporter:
    """
    Collects the outcome of an invocation.

    Messages are forwarded to ``logger``; :meth:`fail` marks the invocation
    failed instead of raising, and only the first failure message is kept.
    """

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger
        self.failed = False
        self.failure_message: Optional[str] = None
        self.warnings: list[str] = []
        self.errors: list[str] = []

    def debug(self, message: str) -> None:
        self.log.debug(message)

    def info(self, message: str) -> None:
        self.log.info(message)

    def warning(self, message: str) -> None:
        self.warnings.append(message)
        self.log.warning(message)

    def error(self, message: str) -> None:
        self.errors.append(message)
        self.log.error(message)

    def fail(self, message: str) -> None:
        if not self.failed:
            self.failure_message = message
        self.failed = True
        self.log.error(message)

    @property
    def exit_code(self) -> int:
        return 1 if self.failed else 0
