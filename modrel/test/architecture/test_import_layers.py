from __future__ import annotations

import ast

import pytest

from ._gate import require_arch_checks_enabled
from ._utils import iter_python_files, matches_prefix, package_root, parse_imports, read_tree

# Lower layers never reach up: core < platform < git < release/output < cli.
FORBIDDEN: dict[str, tuple[str, ...]] = {
    "core": ("modrel.platform", "modrel.git", "modrel.release", "modrel.output", "modrel.cli"),
    "platform": ("modrel.git", "modrel.release", "modrel.output", "modrel.cli"),
    "git": ("modrel.release", "modrel.output", "modrel.cli"),
    "release": ("modrel.cli",),
    "output": ("modrel.cli",),
}


@pytest.mark.parametrize("layer", sorted(FORBIDDEN))
def test_layer_does_not_import_upwards(layer: str) -> None:
    require_arch_checks_enabled()

    root = package_root()
    offenders: list[str] = []

    for file_path in iter_python_files(root / layer):
        rel = file_path.relative_to(root).as_posix()
        for item in parse_imports(file_path):
            if any(matches_prefix(item.module, p) for p in FORBIDDEN[layer]):
                offenders.append(f"{rel}:{item.line}: forbidden import '{item.module}'")

    assert not offenders, f"{layer} layering violations:\n" + "\n".join(offenders)


def test_release_steps_use_the_version_control_contract() -> None:
    require_arch_checks_enabled()

    root = package_root()
    allowlist = {"release/service.py"}
    offenders: list[str] = []

    for file_path in iter_python_files(root / "release"):
        rel = file_path.relative_to(root).as_posix()
        if rel in allowlist:
            continue
        for node in ast.walk(read_tree(file_path)):
            if not isinstance(node, ast.ImportFrom) or node.module is None:
                continue
            if not matches_prefix(node.module, "modrel.git"):
                continue
            # GitError is a plain payload; the concrete repository is off limits.
            names = [alias.name for alias in node.names if alias.name != "GitError"]
            if names:
                offenders.append(f"{rel}:{node.lineno}: imports {', '.join(names)}")

    assert not offenders, "release -> git violations:\n" + "\n".join(offenders)
