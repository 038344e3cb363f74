"""Run configuration loaded once from action inputs."""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping

from tf_bot.github.github_auth import GitHubAuth, load_github_auth_from_env
from tf_bot.shared.actions import get_bool_input, get_input

DEFAULT_PLAN_ARTIFACT = "tfplan"


class TerraformNotFoundError(FileNotFoundError):
    pass


@dataclass(frozen=True)
class RunConfiguration:
    """Immutable view of the action inputs, coerced from their string form."""

    working_directory: str
    run_validate: bool
    run_upgrade_on_init: bool
    detect_drift: bool
    apply_on_default_branch_only: bool
    apply_on_pull_request: bool
    post_comments: bool
    comment_prefix: str = ""
    auth: GitHubAuth = GitHubAuth(token=None)
    plan_artifact: str = DEFAULT_PLAN_ARTIFACT

    @property
    def auth_token(self) -> str | None:
        return self.auth.token

    @property
    def cwd(self) -> Path | None:
        if not self.working_directory:
            return None
        return Path(self.working_directory)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "RunConfiguration":
        source = os.environ if env is None else env
        return cls(
            working_directory=get_input("working-directory", source),
            run_validate=get_bool_input("validate", source),
            run_upgrade_on_init=get_bool_input("upgrade-on-init", source),
            detect_drift=get_bool_input("detect-drift", source),
            apply_on_default_branch_only=get_bool_input(
                "apply-on-default-branch-only", source, default=True
            ),
            apply_on_pull_request=get_bool_input("apply-on-pull-request", source),
            post_comments=get_bool_input("terraform-output-as-comment", source, default=True),
            comment_prefix=get_input("comment-prefix", source),
            auth=load_github_auth_from_env(source),
        )

    def with_correlation(self, issue_number: int | None) -> "RunConfiguration":
        """Disable commenting when there is no token or nothing to comment on."""

        if self.post_comments and (issue_number is None or not self.auth_token):
            return replace(self, post_comments=False)
        return self

    def redacted(self) -> dict[str, object]:
        return {
            "working_directory": self.working_directory,
            "run_validate": self.run_validate,
            "run_upgrade_on_init": self.run_upgrade_on_init,
            "detect_drift": self.detect_drift,
            "apply_on_default_branch_only": self.apply_on_default_branch_only,
            "apply_on_pull_request": self.apply_on_pull_request,
            "post_comments": self.post_comments,
            "comment_prefix": self.comment_prefix,
            **self.auth.redacted(),
        }


def locate_terraform(env: Mapping[str, str] | None = None) -> str:
    """Resolve the terraform binary, honouring an explicit path override."""

    source = os.environ if env is None else env
    override = (source.get("TF_BOT_TERRAFORM_PATH") or "").strip()
    if override:
        if not Path(override).is_file():
            raise TerraformNotFoundError(f"terraform binary not found at {override}")
        return override
    found = shutil.which("terraform")
    if found is None:
        raise TerraformNotFoundError("Unable to locate executable file: terraform")
    return found
