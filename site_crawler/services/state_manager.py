"""
Crawl state persistence and recovery.

A snapshot holds the claimed pages and the pending frontier. It is written at
the end of a crawl and read at the start of the next one.
"""

import json
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set

from jsonschema import validate, ValidationError as SchemaValidationError

from site_crawler.utils.logging import get_logger
from site_crawler.utils.errors import CorruptStateError, PersistError
from site_crawler.utils.urls import STATE_FILE_SUFFIX


SNAPSHOT_SCHEMA = {
    "type": "object",
    "properties": {
        "scrapedPages": {
            "type": "array",
            "items": {"type": "string"}
        },
        "queue": {
            "type": "array",
            "items": {"type": "string"}
        }
    }
}


@dataclass
class CrawlSnapshot:
    """Persisted crawl progress."""
    visited_pages: Set[str] = field(default_factory=set)
    pending_queue: List[str] = field(default_factory=list)

    def resume_queue(self) -> List[str]:
        """
        Pending URLs to re-enqueue on resume.

        Anything already visited is dropped and duplicates collapse to their
        first occurrence.
        """
        seen: Set[str] = set()
        queue: List[str] = []
        for url in self.pending_queue:
            if url in self.visited_pages or url in seen:
                continue
            seen.add(url)
            queue.append(url)
        return queue

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the on-disk layout."""
        return {
            "scrapedPages": sorted(self.visited_pages),
            "queue": list(self.pending_queue)
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CrawlSnapshot":
        """Build from the on-disk layout; unknown keys are ignored."""
        return cls(
            visited_pages=set(data.get("scrapedPages", [])),
            pending_queue=list(data.get("queue", []))
        )

    @classmethod
    def capture(cls, visited: Iterable[str], pending: Iterable[str]) -> "CrawlSnapshot":
        return cls(visited_pages=set(visited), pending_queue=list(pending))


class StateStore:
    """Loads and saves crawl snapshots under a state directory."""

    def __init__(self, state_dir: str = "."):
        """
        Initialize state store.

        Args:
            state_dir: Directory holding ``<key>_crawler_state.json`` files
        """
        self.state_dir = Path(state_dir)
        self.logger = get_logger(__name__)

    def path_for(self, key: str) -> Path:
        """Path of the snapshot file for a state key."""
        return self.state_dir / f"{key}{STATE_FILE_SUFFIX}"

    def load(self, key: str) -> Optional[CrawlSnapshot]:
        """
        Read the snapshot for ``key``.

        Returns:
            Snapshot, or None if no file exists

        Raises:
            CorruptStateError: If the file exists but cannot be parsed
        """
        path = self.path_for(key)
        if not path.exists():
            self.logger.info(f"No state file found at {path}, starting from seed")
            return None

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            validate(instance=data, schema=SNAPSHOT_SCHEMA)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CorruptStateError(
                f"Failed to load state from {path}: {e}",
                {"path": str(path)}
            ) from e
        except SchemaValidationError as e:
            raise CorruptStateError(
                f"State file {path} has an invalid layout: {e.message}",
                {"path": str(path)}
            ) from e

        snapshot = CrawlSnapshot.from_dict(data)
        self.logger.info(
            f"Loaded state from {path}: {len(snapshot.visited_pages)} visited, "
            f"{len(snapshot.pending_queue)} queued"
        )
        return snapshot

    def save(self, key: str, snapshot: CrawlSnapshot) -> Path:
        """
        Write the snapshot for ``key``.

        The data goes to a temporary file in the same directory which then
        replaces the previous snapshot, so a crash mid-write leaves the old
        file intact.

        Raises:
            PersistError: If the snapshot could not be written
        """
        path = self.path_for(key)
        temp_path = None
        try:
            self.state_dir.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(
                prefix=f".{key}.", suffix=".tmp", dir=str(self.state_dir)
            )
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(snapshot.to_dict(), f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())

            os.replace(temp_path, path)
            temp_path = None

        except (OSError, TypeError, ValueError) as e:
            raise PersistError(
                f"Failed to save state to {path}: {e}",
                {"path": str(path)}
            ) from e
        finally:
            if temp_path is not None and os.path.exists(temp_path):
                os.unlink(temp_path)

        self.logger.debug(f"State saved to {path}")
        return path

    def clear(self, key: str) -> bool:
        """
        Delete the snapshot for ``key``.

        Returns:
            True if a file was removed
        """
        path = self.path_for(key)
        if not path.exists():
            return False
        path.unlink()
        self.logger.info(f"Found state file {path}, deleting it")
        return True
