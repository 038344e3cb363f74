from __future__ import annotations

import ast
from pathlib import Path

import pytest

PURE_MODULES = [
    "tf_bot/github/event_context.py",
    "tf_bot/orchestration/issue_resolver.py",
    "tf_bot/orchestration/apply_policy.py",
    "tf_bot/orchestration/reporting.py",
]
PACKAGE_ROOT = Path(__file__).resolve().parent.parent


@pytest.mark.parametrize("module_path", PURE_MODULES)
def test_decision_modules_do_not_import_process_or_network_libraries(module_path: str) -> None:
    forbidden = ("subprocess", "requests", "urllib", "http")
    path = PACKAGE_ROOT / module_path
    tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            names = [alias.name for alias in node.names]
        elif isinstance(node, ast.ImportFrom):
            names = [node.module or ""]
        else:
            continue
        for name in names:
            root = name.split(".")[0].lower()
            assert root not in forbidden, f"{path} imports forbidden dependency: {name}"
