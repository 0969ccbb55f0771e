"""Shared fixtures for the sealkit test suite."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import pytest


class CountingRandom:
    """Deterministic entropy source: successive calls return successive byte runs."""

    def __init__(self, start: int = 0):
        self.position = start
        self.calls = 0

    def __call__(self, n: int) -> bytes:
        self.calls += 1
        out = bytes((self.position + i) % 256 for i in range(n))
        self.position += n
        return out


@pytest.fixture
def counting_random() -> CountingRandom:
    return CountingRandom()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Any:
    """Remove SEALKIT_ variables and point key files and the audit log into tmp_path."""
    for key in list(os.environ.keys()):
        if key.startswith("SEALKIT_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("USER", "tester")
    monkeypatch.setenv("SEALKIT_KEY_FILE", str(tmp_path / "secret.key"))
    monkeypatch.setenv("SEALKIT_KEY_PAIR_FILE", str(tmp_path / "signing.pem"))
    monkeypatch.setenv("SEALKIT_AUDIT_LOG", str(tmp_path / "logs" / "audit.log"))
    yield


@pytest.fixture
def random_factory() -> type[CountingRandom]:
    return CountingRandom
