"""GitHub token loading with safe handling."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping


@dataclass(frozen=True)
class GitHubAuth:
    token: str | None

    def redacted(self) -> dict[str, str]:
        return {"github_token": _redact_token(self.token)}


def load_github_auth_from_env(env: Mapping[str, str] | None = None) -> GitHubAuth:
    env_map = os.environ if env is None else env
    token = _clean(env_map.get("INPUT_GITHUB-TOKEN")) or _clean(env_map.get("GITHUB_TOKEN"))
    return GitHubAuth(token=token)


def _clean(token: str | None) -> str | None:
    if token is None:
        return None
    value = token.strip()
    return value or None


def _redact_token(token: str | None) -> str:
    if token is None:
        return "unset"
    if len(token) <= 8:
        return "***"
    return f"{token[:4]}...{token[-4:]}"
