"""Result type used by every fallible release operation.

A step either succeeds with a value (`Ok`) or fails with a typed error
(`Err`). Callers branch on the variant instead of catching exceptions, so a
failed git command and a missing asset travel through the same path:

    def read_version(path: Path) -> Result[SemanticVersion, ReleaseError]:
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            return Err(ReleaseError(kind="io_failure", message=str(e)))
        return parse(text.strip())

    match read_version(root / "VERSION"):
        case Ok(version):
            console.info(f"current version: {version}")
        case Err(error):
            console.error(error.message)
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeVar

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")
F = TypeVar("F")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful outcome.

    Attributes:
        value: The produced value.
    """

    value: T

    def unwrap(self) -> T:
        """Return the value."""
        return self.value

    def unwrap_err(self) -> None:
        """Raise, since there is no error to return.

        Raises:
            ValueError: Always.
        """
        raise ValueError(f"called unwrap_err on Ok: {self.value}")

    def map(self, f: Callable[[T], U]) -> Ok[U]:
        """Transform the value, keeping the Ok wrapper."""
        return Ok(f(self.value))

    def map_err(self, f: Callable[[E], F]) -> Ok[T]:
        return self

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failed outcome.

    Attributes:
        error: The error payload.
    """

    error: E

    def unwrap(self) -> None:
        """Raise with the error payload.

        Raises:
            ValueError: Always.
        """
        raise ValueError(f"called unwrap on Err: {self.error}")

    def unwrap_err(self) -> E:
        """Return the error payload."""
        return self.error

    def map(self, f: Callable[[T], U]) -> Err[E]:
        return self

    def map_err(self, f: Callable[[E], F]) -> Err[F]:
        """Transform the error payload, e.g. a GitError into a ReleaseError."""
        return Err(f(self.error))

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result: TypeAlias = Ok[T] | Err[E]

