from __future__ import annotations

import pytest

from modrel.core.errors import ErrorCode
from modrel.output.console import MockConsole, Style
from modrel.output.errors import print_release_error, release_error_exit_code
from modrel.release.errors import ReleaseError, ReleaseErrorKind


@pytest.mark.parametrize(
    ("kind", "code"),
    [
        ("invalid_input", ErrorCode.USER_ERROR),
        ("invalid_version_format", ErrorCode.USER_ERROR),
        ("precondition_failed", ErrorCode.PRECONDITION_ERROR),
        ("duplicate_version", ErrorCode.PRECONDITION_ERROR),
        ("vcs_failed", ErrorCode.VCS_ERROR),
        ("io_failure", ErrorCode.IO_ERROR),
        ("editor_aborted", ErrorCode.ABORTED),
    ],
)
def test_exit_code_mapping(kind: ReleaseErrorKind, code: ErrorCode) -> None:
    assert release_error_exit_code(ReleaseError(kind=kind, message="x")) == int(code)


def test_print_release_error_with_hint() -> None:
    console = MockConsole()
    print_release_error(
        ReleaseError(kind="precondition_failed", message="tree is dirty", hint="commit first"),
        console,
    )
    assert console.messages == ["error: tree is dirty", "hint: commit first"]
    assert console.outputs[1].style == Style.DIM


def test_print_release_error_without_hint() -> None:
    console = MockConsole()
    print_release_error(ReleaseError(kind="io_failure", message="copy failed"), console)
    assert console.messages == ["error: copy failed"]


def test_pretty() -> None:
    assert ReleaseError(kind="io_failure", message="m", hint="h").pretty() == "m (hint: h)"
    assert ReleaseError(kind="io_failure", message="m").pretty() == "m"
