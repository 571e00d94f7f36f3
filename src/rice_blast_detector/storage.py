"""
Storage management for Rice Blast Detector.

PURPOSE: JSON file I/O for the statistics aggregate with error handling.
AI CONTEXT: All persistence operations go through this module.

STORAGE STRUCTURE:
    .rice_blast/
    └── statistics.json    # {healthy, infected, totalConfidence,
                           #  totalDetections, distribution}

ERROR HANDLING STRATEGY:
- File not found: Return None (caller starts from an empty aggregate)
- JSON corruption: Log error, return None
- Write failure: Log error, return False, don't crash
- Statistics continue in memory if storage fails

USAGE:
    # Production
    storage = StorageManager()

    # Testing with MockFileSystem
    storage = StorageManager(storage_dir="/test", filesystem=mock_fs)
"""

from __future__ import annotations

import json
import logging
import os
from typing import TYPE_CHECKING, Any

from .config import Config
from .filesystem import RealFileSystem

if TYPE_CHECKING:
    from .filesystem import FileSystem

logger = logging.getLogger(__name__)


class StorageManager:
    """
    JSON file I/O manager for the persisted statistics record.

    DESIGN PRINCIPLES:
    1. Fail-safe: Never raise on I/O errors
    2. Atomic: Writes go to a temp file which then replaces the record
    3. Logged: All errors recorded for debugging
    4. Testable: FileSystem can be injected for mocking

    THREAD SAFETY:
    Not thread-safe. Single writer assumed (one analysis at a time).
    """

    def __init__(
        self,
        storage_dir: str | None = None,
        filesystem: FileSystem | None = None,
    ) -> None:
        """
        Initialize storage paths and ensure the directory exists.

        Args:
            storage_dir: Custom storage path. Default: Config.STORAGE_DIR
            filesystem: FileSystem implementation. Default: RealFileSystem
        """
        self.storage_dir = storage_dir or Config.STORAGE_DIR
        self._fs: FileSystem = filesystem or RealFileSystem()
        self.statistics_file = os.path.join(self.storage_dir, Config.STATISTICS_FILE)

        self._initialize_storage()

    def _initialize_storage(self) -> None:
        """
        Create the storage directory.

        ERROR HANDLING:
        Logs errors but doesn't raise - allows degraded operation.
        """
        try:
            self._fs.makedirs(self.storage_dir, exist_ok=True)
            logger.debug(f"Storage initialized: {self.storage_dir}")
        except OSError as e:
            logger.error(f"Failed to initialize storage: {e}")

    def _read_json(self, file_path: str) -> Any | None:
        """
        Read JSON file with error handling.

        Args:
            file_path: Path to JSON file

        Returns:
            Parsed JSON data, or None if absent or unreadable.
        """
        try:
            content = self._fs.read_text(file_path)
            return json.loads(content)
        except FileNotFoundError:
            return None
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in {file_path}: {e}")
            return None
        except UnicodeDecodeError as e:
            logger.error(f"Undecodable content in {file_path}: {e}")
            return None
        except OSError as e:
            logger.error(f"Error reading {file_path}: {e}")
            return None

    def _write_json(self, file_path: str, data: Any) -> bool:
        """
        Write JSON via temp file + replace.

        Args:
            file_path: Path to JSON file
            data: Data to serialize

        Returns:
            True on success, False on failure.
        """
        tmp_path = f"{file_path}.tmp"
        try:
            content = json.dumps(data, indent=2)
            self._fs.write_text(tmp_path, content)
            self._fs.replace(tmp_path, file_path)
            return True
        except (TypeError, ValueError) as e:
            logger.error(f"Error serializing {file_path}: {e}")
            return False
        except OSError as e:
            logger.error(f"Error writing {file_path}: {e}")
            return False

    # =========================================================================
    # STATISTICS OPERATIONS
    # =========================================================================

    def load_statistics(self) -> dict[str, Any] | None:
        """
        Load the raw persisted statistics record.

        Returns:
            Dict as written by save_statistics(), or None if the record
            is absent, unreadable, or not a JSON object.
        """
        data = self._read_json(self.statistics_file)
        if data is None:
            return None
        if not isinstance(data, dict):
            logger.error(f"Unexpected statistics record in {self.statistics_file}")
            return None
        return data

    def save_statistics(self, data: dict[str, Any]) -> bool:
        """
        Persist the statistics record.

        Args:
            data: Serialized aggregate (StatisticsAggregate.to_dict()).

        Returns:
            True on success.
        """
        return self._write_json(self.statistics_file, data)
