"""Event schemas"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class Account(BaseModel):
    model_config = ConfigDict(extra="allow")

    login: Optional[str] = None
    name: Optional[str] = None
    html_url: Optional[str] = None


class Repository(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    full_name: Optional[str] = None
    html_url: Optional[str] = None
    owner: Optional[Account] = None


class HeadCommit(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    message: Optional[str] = None
    url: Optional[str] = None


class GitHubEvent(BaseModel):
    """
    Minimal model for a GitHub webhook / workflow event payload.
    Only fields used by the notifier are declared.
    """

    model_config = ConfigDict(extra="allow")

    action: Optional[str] = None
    ref: Optional[str] = None
    compare: Optional[str] = None
    head_commit: Optional[HeadCommit] = None
    repository: Optional[Repository] = None
    sender: Optional[Account] = None
