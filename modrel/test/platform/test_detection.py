from __future__ import annotations

from collections.abc import Iterator

import pytest

import modrel.platform.detection as detection
from modrel.platform.detection import Platform


@pytest.fixture(autouse=True)
def _fresh_cache() -> Iterator[None]:
    detection.detect_platform.cache_clear()
    yield
    detection.detect_platform.cache_clear()


@pytest.mark.parametrize(
    ("sys_platform", "expected"),
    [
        ("linux", Platform.LINUX),
        ("darwin", Platform.MACOS),
        ("win32", Platform.WINDOWS),
        ("cygwin", Platform.WINDOWS),
        ("sunos5", Platform.UNKNOWN),
    ],
)
def test_detect_platform(
    monkeypatch: pytest.MonkeyPatch, sys_platform: str, expected: Platform
) -> None:
    monkeypatch.setattr(detection._sys, "platform", sys_platform)
    assert detection.detect_platform() == expected


def test_str() -> None:
    assert str(Platform.MACOS) == "macos"
