"""Notifier exceptions."""

from __future__ import annotations


class FeishuNotifyError(Exception):
    """Base class for notifier failures."""


class ConfigurationError(FeishuNotifyError, ValueError):
    """Raised when required settings are missing or inconsistent."""
