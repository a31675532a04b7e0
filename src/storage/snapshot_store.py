"""
Snapshot Storage Module.

Persists run snapshots as pretty-printed JSON files named after their
generation time, and loads them back for downstream consumers. A snapshot
file is written to a temporary name first and renamed into place, so a
failed write never leaves a partial snapshot behind.
"""

import json
import os
from datetime import timezone
from pathlib import Path
from typing import Optional

from config import logger
from analyzers.models import Snapshot

SNAPSHOT_PREFIX = "github-data-"


def snapshot_filename(snapshot: Snapshot) -> str:
    """Build the file name of a snapshot from its generation time.

    Args:
        snapshot (Snapshot): Snapshot to name.

    Returns:
        str: e.g. ``github-data-2024-05-01T12-00-00-000Z.json``
    """
    generated_at = snapshot.generated_at.astimezone(timezone.utc)
    stamp = generated_at.strftime("%Y-%m-%dT%H:%M:%S.") + (
        f"{generated_at.microsecond // 1000:03d}Z"
    )
    return f"{SNAPSHOT_PREFIX}{stamp.replace(':', '-').replace('.', '-')}.json"


class SnapshotStore:
    """
    Manages persistent storage of run snapshots.
    """

    def __init__(self, data_dir: str):
        """Initialize the snapshot storage.

        Args:
            data_dir (str): Directory where snapshot files are written.
        """
        self.storage_dir = Path(data_dir)
        self.storage_dir.mkdir(parents=True, exist_ok=True)

    def save_snapshot(self, snapshot: Snapshot) -> Path:
        """Write a snapshot file.

        Args:
            snapshot (Snapshot): Complete snapshot of a run.

        Returns:
            Path: Location of the written file.

        Raises:
            OSError: If the file cannot be written.
        """
        path = self.storage_dir / snapshot_filename(snapshot)
        tmp_path = path.with_name(f"{path.name}.tmp")
        data = snapshot.model_dump(mode="json")

        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
        except OSError as e:
            logger.error(
                {
                    "message": "Failed to save snapshot",
                    "organization": snapshot.organization,
                    "file": str(path),
                    "error": str(e),
                }
            )
            if tmp_path.exists():
                tmp_path.unlink()
            raise

        logger.info(
            {
                "message": "Snapshot saved successfully",
                "organization": snapshot.organization,
                "file": str(path),
                "repositories": len(snapshot.repositories),
            }
        )
        return path

    def latest_snapshot_path(self) -> Optional[Path]:
        """Locate the newest snapshot file.

        Returns:
            Optional[Path]: Newest snapshot, None when no snapshot exists.
        """
        # Timestamped names sort chronologically
        candidates = sorted(self.storage_dir.glob(f"{SNAPSHOT_PREFIX}*.json"))
        return candidates[-1] if candidates else None

    def load_snapshot(self, path: Path) -> Snapshot:
        """Load a snapshot file.

        Args:
            path (Path): Snapshot file to read.

        Returns:
            Snapshot: Parsed snapshot.

        Raises:
            Exception: If the file cannot be read or parsed.
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                return Snapshot.model_validate(json.load(f))
        except Exception as e:
            logger.error(
                {
                    "message": "Failed to load snapshot",
                    "file": str(path),
                    "error": str(e),
                }
            )
            raise
