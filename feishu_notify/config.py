"""Settings, straight from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

load_dotenv()

FEISHU_API_BASE = "https://open.feishu.cn"
GITHUB_API_BASE = "https://api.github.com"


def _input(env: Mapping[str, str], name: str, default: str = "") -> str:
    """Action input first (``INPUT_<NAME>``), plain env var second."""
    key = "INPUT_" + name.replace(" ", "_").upper()
    return (env.get(key) or "").strip() or env.get(name, default) or default


def env_flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Notifier settings, resolved once per invocation."""

    webhook: str = ""
    sign_key: str = ""
    msg_text: str = ""
    msg_type: str = "interactive"
    dry_run: bool = False
    github_token: str = ""
    github_api_base: str = GITHUB_API_BASE
    feishu_api_base: str = FEISHU_API_BASE
    relay_secret: str = ""

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        return cls(
            webhook=_input(env, "FEISHU_BOT_WEBHOOK"),
            sign_key=_input(env, "FEISHU_BOT_SIGNKEY"),
            msg_text=_input(env, "MSG_TEXT"),
            msg_type=(_input(env, "MSG_TYPE", "interactive") or "interactive").lower(),
            dry_run=env_flag(_input(env, "DRY_RUN")),
            github_token=env.get("GITHUB_TOKEN", ""),
            github_api_base=env.get("GITHUB_API_URL", GITHUB_API_BASE),
            feishu_api_base=env.get("FEISHU_API_BASE", FEISHU_API_BASE),
            relay_secret=env.get("RELAY_SECRET", ""),
        )

    @property
    def signing_enabled(self) -> bool:
        return bool(self.sign_key)
