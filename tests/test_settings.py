from __future__ import annotations

from pathlib import Path

import pytest

from tf_bot.shared.actions import error_annotation, get_bool_input, get_input, is_debug, set_output
from tf_bot.shared.settings import (
    RunConfiguration,
    TerraformNotFoundError,
    locate_terraform,
)


def test_run_configuration_defaults() -> None:
    config = RunConfiguration.from_env({})
    assert config.working_directory == ""
    assert config.cwd is None
    assert config.run_validate is False
    assert config.run_upgrade_on_init is False
    assert config.detect_drift is False
    assert config.apply_on_default_branch_only is True
    assert config.apply_on_pull_request is False
    assert config.post_comments is True
    assert config.comment_prefix == ""
    assert config.auth_token is None


def test_run_configuration_coerces_string_inputs() -> None:
    config = RunConfiguration.from_env(
        {
            "INPUT_WORKING-DIRECTORY": "stacks/prod",
            "INPUT_VALIDATE": "TRUE",
            "INPUT_UPGRADE-ON-INIT": "true",
            "INPUT_DETECT-DRIFT": "yes",
            "INPUT_APPLY-ON-DEFAULT-BRANCH-ONLY": "false",
            "INPUT_APPLY-ON-PULL-REQUEST": "1",
            "INPUT_TERRAFORM-OUTPUT-AS-COMMENT": "nope",
            "INPUT_COMMENT-PREFIX": " [prod] ",
            "INPUT_GITHUB-TOKEN": "ghs_abcdefghijkl",
        }
    )
    assert config.cwd == Path("stacks/prod")
    assert config.run_validate is True
    assert config.run_upgrade_on_init is True
    assert config.detect_drift is True
    assert config.apply_on_default_branch_only is False
    assert config.apply_on_pull_request is True
    assert config.post_comments is False
    assert config.comment_prefix == "[prod]"
    assert config.auth_token == "ghs_abcdefghijkl"
    assert config.redacted()["github_token"] == "ghs_...ijkl"


def test_token_falls_back_to_github_token_and_ignores_blank_input() -> None:
    config = RunConfiguration.from_env({"INPUT_GITHUB-TOKEN": "  ", "GITHUB_TOKEN": "fallback"})
    assert config.auth_token == "fallback"


@pytest.mark.parametrize(
    ("token", "issue_number", "expected"),
    [
        ("token", 5, True),
        (None, 5, False),
        ("token", None, False),
        (None, None, False),
    ],
)
def test_with_correlation_forces_comments_off(
    token: str | None, issue_number: int | None, expected: bool
) -> None:
    env = {"GITHUB_TOKEN": token} if token else {}
    config = RunConfiguration.from_env(env).with_correlation(issue_number)
    assert config.post_comments is expected


def test_with_correlation_never_enables_comments() -> None:
    config = RunConfiguration.from_env(
        {"GITHUB_TOKEN": "token", "INPUT_TERRAFORM-OUTPUT-AS-COMMENT": "false"}
    )
    assert config.with_correlation(5).post_comments is False


def test_input_helpers() -> None:
    env = {"INPUT_COMMENT_PREFIX": "spaces", "INPUT_FLAG": "On"}
    assert get_input("comment prefix", env) == "spaces"
    assert get_input("missing", env, default="x") == "x"
    assert get_bool_input("flag", env) is True
    assert get_bool_input("missing", env, default=True) is True
    assert is_debug({"RUNNER_DEBUG": "1"}) is True
    assert is_debug({}) is False


def test_set_output_appends_to_output_file(tmp_path: Path) -> None:
    output_file = tmp_path / "output"
    output_file.write_text("existing=1\n", encoding="utf-8")
    assert set_output("exitcode", 2, {"GITHUB_OUTPUT": str(output_file)}) == output_file
    assert output_file.read_text(encoding="utf-8") == "existing=1\nexitcode=2\n"
    assert set_output("exitcode", 2, {}) is None


def test_error_annotation_escapes_newlines(capsys: pytest.CaptureFixture[str]) -> None:
    error_annotation("first\nsecond 100%")
    assert capsys.readouterr().out == "::error::first%0Asecond 100%25\n"


def test_locate_terraform_override(tmp_path: Path) -> None:
    binary = tmp_path / "terraform"
    binary.write_text("#!/bin/sh\n", encoding="utf-8")
    assert locate_terraform({"TF_BOT_TERRAFORM_PATH": str(binary)}) == str(binary)
    with pytest.raises(TerraformNotFoundError):
        locate_terraform({"TF_BOT_TERRAFORM_PATH": str(tmp_path / "missing")})


def test_locate_terraform_missing_from_path(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("tf_bot.shared.settings.shutil.which", lambda name: None)
    with pytest.raises(TerraformNotFoundError, match="terraform"):
        locate_terraform({})
