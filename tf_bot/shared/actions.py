"""Thin shim over the GitHub Actions runner environment (inputs, outputs, annotations)."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Mapping

TRUTHY_VALUES = {"1", "true", "yes", "on"}


def _input_key(name: str) -> str:
    return f"INPUT_{name.replace(' ', '_').upper()}"


def get_input(name: str, env: Mapping[str, str] | None = None, default: str = "") -> str:
    env_map = os.environ if env is None else env
    value = env_map.get(_input_key(name))
    if value is None:
        return default
    return value.strip()


def get_bool_input(name: str, env: Mapping[str, str] | None = None, default: bool = False) -> bool:
    raw = get_input(name, env)
    if not raw:
        return default
    return raw.lower() in TRUTHY_VALUES


def is_debug(env: Mapping[str, str] | None = None) -> bool:
    env_map = os.environ if env is None else env
    return str(env_map.get("RUNNER_DEBUG", "")).strip() == "1"


def set_output(name: str, value: object, env: Mapping[str, str] | None = None) -> Path | None:
    """Append ``name=value`` to the step output file, if the runner provides one."""

    env_map = os.environ if env is None else env
    output_path = (env_map.get("GITHUB_OUTPUT") or "").strip()
    if not output_path:
        return None
    path = Path(output_path)
    with path.open("a", encoding="utf-8") as handle:
        handle.write(f"{name}={value}\n")
    return path


def _escape_command_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def error_annotation(message: str) -> None:
    sys.stdout.write(f"::error::{_escape_command_data(message)}\n")
    sys.stdout.flush()
