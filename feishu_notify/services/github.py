"""Run context from GitHub event payloads and the Actions environment."""

from __future__ import annotations

import json
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence

import httpx
from pydantic import ValidationError

from feishu_notify.config import GITHUB_API_BASE
from feishu_notify.schemas import GitHubEvent

logger = logging.getLogger(__name__)

HTTP_TIMEOUT_SECONDS = 15
DEFAULT_SERVER_URL = "https://github.com"
SHORT_SHA_LENGTH = 16
HEADS_PREFIX = "refs/heads/"
UNKNOWN = "unknown"
NO_COMMIT_MESSAGE = "No commit message"

CommitMessageFetcher = Callable[[str, str, str], Awaitable[str]]
GitRunner = Callable[[Sequence[str]], str]


@dataclass(frozen=True)
class RunContext:
    """Everything the default card needs to know about one workflow run."""

    actor: str = UNKNOWN
    repo_full: str = ""
    repo_name: str = ""
    branch: str = "main"
    sha: str = ""
    commit_short: str = ""
    commit_message: str = ""
    commit_url: str = ""
    user_url: str = ""
    status: str = "ok"
    workflow: str = "workflow"
    run_id: str = ""
    title: str = ""
    detail_url: str = ""

    def template_values(self) -> dict[str, str]:
        """Flat placeholder → value map for :data:`DEFAULT_TEMPLATE`."""
        values = {
            "actor": self.actor,
            "repo_full": self.repo_full,
            "repo_name": self.repo_name,
            "branch_raw": self.branch,
            "commit_short": self.commit_short,
            "commit_raw": self.commit_short,
            "commit_url_value": self.commit_url,
            "user_raw": self.actor,
            "user_url_value": self.user_url,
            "status_raw": self.status,
            "msg_raw": self.commit_message or NO_COMMIT_MESSAGE,
            "title_raw": self.title,
            "detail_url_value": self.detail_url,
            "workflow": self.workflow,
            "run_id": self.run_id,
        }
        return {key: "" if value is None else str(value) for key, value in values.items()}


def exec_trim(args: Sequence[str]) -> str:
    """Run a git command, returning stripped stdout or ``""`` on any failure."""
    try:
        proc = subprocess.run(
            list(args),
            capture_output=True,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return ""
    return proc.stdout.strip()


def load_event_payload(path: Optional[str]) -> dict[str, Any]:
    """Read ``GITHUB_EVENT_PATH``; a missing or broken file reads as ``{}``."""
    if not path:
        return {}
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("Could not read event payload %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def parse_event(payload: Mapping[str, Any] | None) -> GitHubEvent:
    try:
        return GitHubEvent.model_validate(dict(payload or {}))
    except ValidationError as exc:
        logger.warning("Ignoring malformed event payload: %s", exc.errors()[:3])
        return GitHubEvent()


async def fetch_commit_message(
    owner: str,
    repo: str,
    sha: str,
    token: str,
    *,
    api_base: str = GITHUB_API_BASE,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """Fetch a commit message from the GitHub REST API; ``""`` when unavailable."""
    if not (token and owner and repo and sha):
        return ""
    url = f"{api_base.rstrip('/')}/repos/{owner}/{repo}/commits/{sha}"
    headers = {
        "User-Agent": "gh-feishu-notify",
        "Accept": "application/vnd.github.v3+json",
        "Authorization": f"token {token}",
    }
    try:
        async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS, transport=transport) as client:
            r = await client.get(url, headers=headers)
        data = r.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.debug("Commit message lookup failed: %r", exc)
        return ""
    if not isinstance(data, dict):
        return ""
    commit = data.get("commit")
    if not isinstance(commit, dict):
        return ""
    return commit.get("message") or ""


def pretty_label(event: str) -> str:
    words = (event or "").replace("_", " ").strip()
    return words.title() if words else "Event"


def branch_from_ref(ref: str, ref_name: str = "") -> str:
    if isinstance(ref, str) and HEADS_PREFIX in ref:
        return ref.replace(HEADS_PREFIX, "")
    return ref_name or "main"


async def build_run_context(
    payload: Mapping[str, Any] | None,
    env: Mapping[str, str],
    *,
    github_token: str = "",
    api_base: str = GITHUB_API_BASE,
    fetch_message: Optional[CommitMessageFetcher] = None,
    git: GitRunner = exec_trim,
) -> RunContext:
    """
    Resolve the run context from the event payload, falling back to the
    ``GITHUB_*`` environment and finally to the local git checkout.

    The commit message comes from ``head_commit``; failing that from the
    GitHub API (when a token is available); failing that, outside Actions,
    from ``git show``.
    """
    event = parse_event(payload)
    repo = event.repository
    sender = event.sender
    owner = repo.owner if repo else None
    server = (env.get("GITHUB_SERVER_URL") or DEFAULT_SERVER_URL).rstrip("/")

    commit_msg = (event.head_commit.message if event.head_commit else None) or ""
    sha = (event.head_commit.id if event.head_commit else None) or env.get("GITHUB_SHA", "")
    repo_full = (repo.full_name if repo else None) or env.get("GITHUB_REPOSITORY", "")

    if not commit_msg and github_token and sha and repo and repo.full_name:
        owner_name, _, repo_part = repo.full_name.partition("/")
        fetcher = fetch_message or (
            lambda o, r, s: fetch_commit_message(o, r, s, github_token, api_base=api_base)
        )
        commit_msg = await fetcher(owner_name, repo_part, sha)
    if not commit_msg and not env.get("GITHUB_SHA"):
        commit_msg = git(["git", "show", "-s", "--format=%s", sha or "HEAD"])

    actor = (
        (sender.login if sender else None)
        or (owner.login if owner else None)
        or env.get("GITHUB_ACTOR")
        or git(["git", "config", "user.name"])
        or UNKNOWN
    )
    repo_name = (repo.name if repo else None) or (repo_full.split("/")[1] if "/" in repo_full else "")
    ref = event.ref or env.get("GITHUB_REF", "")
    branch = branch_from_ref(ref, env.get("GITHUB_REF_NAME", ""))
    commit_url = event.compare or (f"{server}/{repo_full}/commit/{sha}" if sha and repo_full else "")
    user_url = (
        (sender.html_url if sender else None)
        or (owner.html_url if owner else None)
        or (f"{server}/{actor}" if actor else "")
    )
    workflow = env.get("GITHUB_WORKFLOW") or "workflow"
    run_id = env.get("GITHUB_RUN_ID", "")
    detail_url = (
        f"{server}/{repo_full}/actions/runs/{run_id}" if repo_full and run_id else commit_url
    )

    return RunContext(
        actor=actor,
        repo_full=repo_full,
        repo_name=repo_name,
        branch=branch,
        sha=sha,
        commit_short=sha[:SHORT_SHA_LENGTH],
        commit_message=commit_msg,
        commit_url=commit_url,
        user_url=user_url,
        status=event.action or "ok",
        workflow=workflow,
        run_id=run_id,
        title=f"Action {repo_name or workflow} OK",
        detail_url=detail_url,
    )
