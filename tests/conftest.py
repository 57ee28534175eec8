"""
Pytest Configuration and Fixtures

This module provides shared fixtures and configuration for all tests.
"""

import asyncio
import json
from typing import Dict, List, Optional

import pytest

from kvmirror.backend.file import FileBackend
from kvmirror.backend.memory import MemoryBackend
from kvmirror.cache.entry import Snapshot


# ============================================================================
# Test Backends
# ============================================================================

class ScriptedBackend(MemoryBackend):
    """
    MemoryBackend whose calls can be delayed or made to fail per key.

    Attributes:
        delays: Seconds to wait before completing a call, by key
        fail_reads: Keys whose get() raises
        fail_writes: Keys whose set() raises
        calls: Log of ("get" | "set", key) in completion order
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        super().__init__(initial)
        self.delays: Dict[str, float] = {}
        self.fail_reads: set = set()
        self.fail_writes: set = set()
        self.calls: List[tuple] = []

    async def get(self, key: str) -> Optional[str]:
        await asyncio.sleep(self.delays.get(key, 0))
        if key in self.fail_reads:
            raise IOError(f"read of {key} refused")
        value = await super().get(key)
        self.calls.append(("get", key))
        return value

    async def set(self, key: str, value: str) -> None:
        await asyncio.sleep(self.delays.get(key, 0))
        if key in self.fail_writes:
            raise IOError(f"write of {key} refused")
        await super().set(key, value)
        self.calls.append(("set", key))


class Recorder:
    """Observer that keeps every snapshot it is given."""

    def __init__(self):
        self.snapshots: List[Snapshot] = []

    def __call__(self, snapshot: Snapshot) -> None:
        self.snapshots.append(snapshot)

    @property
    def count(self) -> int:
        return len(self.snapshots)

    @property
    def last(self) -> Snapshot:
        return self.snapshots[-1]


def stored(backend: MemoryBackend, key: str):
    """Decode what ``backend`` holds for ``key`` (None if nothing)."""
    raw = backend.peek(key)
    return None if raw is None else json.loads(raw)


# ============================================================================
# Backend Fixtures
# ============================================================================

@pytest.fixture
def backend() -> ScriptedBackend:
    """Create an empty scripted backend."""
    return ScriptedBackend()


@pytest.fixture
def memory_backend() -> MemoryBackend:
    """Create an empty MemoryBackend."""
    return MemoryBackend()


@pytest.fixture
def file_backend(tmp_path) -> FileBackend:
    """Create a FileBackend in a temporary directory."""
    return FileBackend(tmp_path / "data")


@pytest.fixture
def recorder() -> Recorder:
    """Create a snapshot recorder to use as the notify callback."""
    return Recorder()


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
