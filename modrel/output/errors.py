"""Error presentation utilities.

Centralized release error formatting and exit code mapping.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from modrel.core.errors import ErrorCode
from modrel.output.console import Style
from modrel.release.errors import ReleaseError

if TYPE_CHECKING:
    from modrel.output.console import ConsoleProtocol

__all__ = ["print_release_error", "release_error_exit_code"]


def print_release_error(error: ReleaseError, console: ConsoleProtocol) -> None:
    console.error(error.message)
    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)


def release_error_exit_code(error: ReleaseError) -> int:
    match error.kind:
        case "invalid_input" | "invalid_version_format":
            return int(ErrorCode.USER_ERROR)
        case "precondition_failed" | "duplicate_version":
            return int(ErrorCode.PRECONDITION_ERROR)
        case "vcs_failed":
            return int(ErrorCode.VCS_ERROR)
        case "io_failure":
            return int(ErrorCode.IO_ERROR)
        case "editor_aborted":
            return int(ErrorCode.ABORTED)
