"""Process exit codes for modrel commands.

Every release failure maps onto one of these codes so scripts driving the
tool can tell a bad argument from a refused precondition or a failed push.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    These values are used as process exit codes and should remain stable:
    - 0: Success
    - 1: User error (bad module name, bad release kind, bad version text)
    - 2: Precondition refused (dirty tree, behind remote, tag already exists)
    - 3: VCS error (commit, tag or push failed)
    - 4: I/O error (copy, write or archive failed)
    - 5: Aborted (changelog editor exited non-zero)
    """

    OK = 0
    USER_ERROR = 1
    PRECONDITION_ERROR = 2
    VCS_ERROR = 3
    IO_ERROR = 4
    ABORTED = 5

    def __str__(self) -> str:
        """Return human-readable name."""
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @property
    def is_error(self) -> bool:
        return self != ErrorCode.OK
