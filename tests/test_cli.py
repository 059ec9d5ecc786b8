"""Tests for the command-line entry point."""

from __future__ import annotations

import json
import logging

import pytest

from feishu_notify import __main__ as cli


@pytest.fixture(autouse=True)
def _keep_caplog_handlers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "configure_logging", lambda verbose=False: None)


def test_dry_flag_succeeds_without_webhook(tmp_path, push_payload, caplog) -> None:
    path = tmp_path / "event.json"
    path.write_text(json.dumps(push_payload), encoding="utf-8")

    with caplog.at_level(logging.INFO, logger="feishu_notify"):
        code = cli.main(["--dry", "--event-path", str(path)])

    assert code == 0
    assert "DRY RUN: final card JSON:" in caplog.text
    assert "Add card builder" in caplog.text


def test_dry_run_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path, push_payload) -> None:
    path = tmp_path / "event.json"
    path.write_text(json.dumps(push_payload), encoding="utf-8")
    monkeypatch.setenv("INPUT_DRY_RUN", "true")
    monkeypatch.setenv("GITHUB_EVENT_PATH", str(path))
    assert cli.main([]) == 0


def test_missing_webhook_exits_nonzero(caplog) -> None:
    with caplog.at_level(logging.ERROR, logger="feishu_notify"):
        assert cli.main([]) == 1
    assert "FEISHU_BOT_WEBHOOK is required" in caplog.text
