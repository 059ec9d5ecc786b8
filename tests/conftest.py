"""Shared pytest fixtures for notifier tests."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx
import pytest

from feishu_notify.reporter import Reporter

_ISOLATED_PREFIXES = ("FEISHU_", "INPUT_", "GITHUB_", "MSG_", "DRY_RUN", "RELAY_SECRET")


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith(_ISOLATED_PREFIXES):
            monkeypatch.delenv(key, raising=False)


@dataclass
class FakeFeishu:
    """Stands in for the Feishu webhook endpoint via ``httpx.MockTransport``."""

    status_code: int = 200
    body: str = '{"StatusCode":0,"StatusMessage":"success","code":0,"msg":"success"}'
    error: Optional[Exception] = None
    requests: list[httpx.Request] = field(default_factory=list)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, text=self.body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> Any:
        return json.loads(self.last_request.content)


@pytest.fixture()
def feishu() -> FakeFeishu:
    return FakeFeishu()


@pytest.fixture()
def reporter() -> Reporter:
    return Reporter()


@pytest.fixture()
def push_payload() -> dict[str, Any]:
    return {
        "ref": "refs/heads/feature/cards",
        "compare": "https://github.com/octo/repo/compare/1111111...0123456",
        "head_commit": {
            "id": "0123456789abcdef0123456789abcdef01234567",
            "message": "Add card builder",
        },
        "repository": {
            "name": "repo",
            "full_name": "octo/repo",
            "owner": {"login": "octo", "html_url": "https://github.com/octo"},
        },
        "sender": {"login": "alice", "html_url": "https://github.com/alice"},
    }
