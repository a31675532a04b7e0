"""
Snapshot Assembly Module.

Coordinates one ingestion run for an organization:

- Repository discovery
- Pull request mining per repository
- Summary folding
- Snapshot persistence

Repositories are processed one after another; PR aggregation inside a
repository is bounded by the miner's scheduler.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict

from config import logger
from analyzers.models import Snapshot
from analyzers.summary import summarize, summarize_repository
from miners.base import RepositoryMiner
from miners.models import RepositoryData
from storage.snapshot_store import SnapshotStore


class SnapshotAssembler:
    """
    Builds and stores the snapshot of an organization.

    Attributes:
        store (SnapshotStore): Destination of the finished snapshot.
        miner (RepositoryMiner): Source of repositories and pull requests.
        organization (str): Organization login.
    """

    def __init__(
        self,
        store: SnapshotStore,
        miner: RepositoryMiner,
        organization: str,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        """Initialize the snapshot assembler.

        Args:
            store (SnapshotStore): Destination of the finished snapshot.
            miner (RepositoryMiner): Source of repositories and pull requests.
            organization (str): Organization login.
            clock (Callable[[], datetime]): Returns the current UTC time.
        """
        self.store = store
        self.miner = miner
        self.organization = organization
        self.clock = clock

    async def assemble(self) -> Snapshot:
        """
        Mine every repository of the organization into a snapshot.

        Returns:
            Snapshot: Complete snapshot with its summary.

        Raises:
            Exception: If mining a repository fails; nothing is stored then.
        """
        generated_at = self.clock()
        repositories = await self.miner.list_repositories(self.organization)

        mined: Dict[str, RepositoryData] = {}
        for repository in repositories:
            data = await self.miner.mine_repository(self.organization, repository)
            mined[repository.name] = data

            counts = summarize_repository(data)
            logger.info(
                {
                    "message": "Repository processed",
                    "repository": repository.name,
                    "pull_requests": counts.total_pull_requests,
                    "commits": counts.total_commits,
                    "comments": counts.total_comments,
                }
            )

        return Snapshot(
            organization=self.organization,
            generated_at=generated_at,
            repositories=mined,
            summary=summarize(mined.values()),
        )

    async def run(self) -> Path:
        """
        Assemble and persist the snapshot.

        Returns:
            Path: Location of the written snapshot file.
        """
        logger.info({"message": "Starting snapshot assembly", "organization": self.organization})
        snapshot = await self.assemble()
        path = self.store.save_snapshot(snapshot)
        logger.info(
            {
                "message": "Snapshot assembly finished",
                "organization": self.organization,
                "file": str(path),
                **snapshot.summary.model_dump(),
            }
        )
        return path
