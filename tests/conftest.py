"""
Pytest configuration and shared fixtures for Rice Blast Detector tests.

This module contains:
- MockFileSystem: In-memory filesystem for testing without actual I/O
- SleepRecorder: Stand-in for asyncio.sleep that records requested delays
- Shared fixtures available to all test modules
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterator

import pytest

from rice_blast_detector.config import Config


class MockFileSystem:
    """
    In-memory file system for testing.

    Simulates a file system using dictionaries:
    - _files: dict mapping path -> content (str)
    - _dirs: set of directory paths
    - _read_only: set of paths (files or directories) that reject writes

    FEATURES:
    - No actual I/O operations
    - Fast test execution
    - Easy to inspect state
    - Supports permission simulation
    """

    def __init__(self) -> None:
        """
        Initialize empty mock file system.

        Example:
            >>> fs = MockFileSystem()
            >>> fs.list_files()
            []
        """
        self._files: dict[str, str] = {}
        self._dirs: set[str] = set()
        self._read_only: set[str] = set()

    def exists(self, path: str) -> bool:
        """
        Check if path exists in mock filesystem.

        Args:
            path: Absolute path to check.

        Returns:
            True if path is a known file or directory.
        """
        return path in self._files or path in self._dirs

    def makedirs(self, path: str, exist_ok: bool = False) -> None:
        """
        Create mock directory and parent directories.

        Args:
            path: Absolute path of directory to create.
            exist_ok: If True, don't raise if directory exists.

        Raises:
            OSError: If directory exists and exist_ok is False,
                or if path is an existing file.
        """
        if path in self._dirs:
            if not exist_ok:
                raise OSError(f"Directory exists: {path}")
            return

        if path in self._files:
            raise OSError(f"Path is a file, not directory: {path}")

        # Create all parent directories
        parts = path.rstrip("/").split("/")
        for i in range(1, len(parts) + 1):
            parent = "/".join(parts[:i])
            if parent:
                self._dirs.add(parent)

    def read_text(self, path: str, _encoding: str = "utf-8") -> str:
        """
        Read mock file contents.

        Args:
            path: Absolute path to file to read.
            _encoding: Ignored (mock stores strings directly).

        Returns:
            File contents as stored in _files dict.

        Raises:
            FileNotFoundError: If path not in _files.
        """
        if path not in self._files:
            raise FileNotFoundError(f"No such file: {path}")
        return self._files[path]

    def write_text(self, path: str, content: str, _encoding: str = "utf-8") -> None:
        """
        Write text to mock file.

        Automatically creates parent directories.

        Args:
            path: Absolute path to file to write.
            content: String content to store.
            _encoding: Ignored (mock stores strings directly).

        Raises:
            PermissionError: If path or its directory is read-only.
        """
        self._check_writable(path)

        # Auto-create parent directories
        parent = self._parent(path)
        if parent and parent not in self._dirs:
            self.makedirs(parent, exist_ok=True)

        self._files[path] = content

    def replace(self, src: str, dst: str) -> None:
        """
        Move src over dst, overwriting dst if present.

        Args:
            src: Absolute path to source file.
            dst: Absolute path to destination.

        Raises:
            FileNotFoundError: If source doesn't exist.
            PermissionError: If destination is read-only.

        Example:
            >>> fs = MockFileSystem()
            >>> fs.set_file('/data/stats.json.tmp', '{}')
            >>> fs.replace('/data/stats.json.tmp', '/data/stats.json')
            >>> fs.list_files()
            ['/data/stats.json']
        """
        if src not in self._files:
            raise FileNotFoundError(f"No such file: {src}")
        self._check_writable(dst)
        self._files[dst] = self._files.pop(src)

    @staticmethod
    def _parent(path: str) -> str:
        return "/".join(path.rstrip("/").split("/")[:-1])

    def _check_writable(self, path: str) -> None:
        if path in self._read_only or self._parent(path) in self._read_only:
            raise PermissionError(f"Permission denied: {path}")

    # =========================================================================
    # TEST HELPERS
    # =========================================================================

    def get_file(self, path: str) -> str | None:
        """
        Get file content or None if not exists.

        Unlike read_text(), returns None for missing files instead of raising.
        """
        return self._files.get(path)

    def set_file(self, path: str, content: str) -> None:
        """Set file content directly (auto-creates parent directories)."""
        self.write_text(path, content)

    def mark_read_only(self, path: str) -> None:
        """
        Make a file or directory reject writes.

        Example:
            >>> fs = MockFileSystem()
            >>> fs.mark_read_only('/data')
            >>> fs.write_text('/data/stats.json', '{}')  # raises
            PermissionError: Permission denied: /data/stats.json
        """
        self._read_only.add(path)

    def list_files(self) -> list[str]:
        """Sorted list of all file paths."""
        return sorted(self._files.keys())

    def clear(self) -> None:
        """Clear all files, directories and read-only marks."""
        self._files.clear()
        self._dirs.clear()
        self._read_only.clear()


class SleepRecorder:
    """
    Replacement for asyncio.sleep that records delays.

    Each call still yields to the event loop once (asyncio.sleep(0)) so
    concurrent tasks interleave the same way they would in real time,
    without any actual waiting.
    """

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        await asyncio.sleep(0)

    @property
    def total_seconds(self) -> float:
        """Sum of all requested delays."""
        return sum(self.calls)


@pytest.fixture
def mock_fs() -> MockFileSystem:
    """
    Create a MockFileSystem for testing.

    Provides a fresh in-memory filesystem instance for each test,
    ensuring test isolation without actual disk I/O.

    Returns:
        MockFileSystem: A fresh mock filesystem instance.
    """
    return MockFileSystem()


@pytest.fixture
def fast_sleep() -> SleepRecorder:
    """Create a SleepRecorder to inject into ProgressSimulator."""
    return SleepRecorder()


@pytest.fixture(autouse=True)
def _reset_config_overrides() -> Iterator[None]:
    """Ensure Config test overrides never leak between tests."""
    yield
    Config.reset_test_overrides()
