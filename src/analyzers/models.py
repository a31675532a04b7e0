"""
Snapshot Data Models.

Defines the root artifact of a run and its aggregate counters.
Uses Pydantic for validation and serialization.
"""

from datetime import datetime, timezone
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field

from miners.models import RepositoryData


class SnapshotSummary(BaseModel):
    """
    Aggregate counters of a snapshot.

    Summaries are immutable and combine with ``+``, so per-PR and
    per-repository contributions can be folded without shared state.
    """

    model_config = ConfigDict(frozen=True)

    total_repositories: int = 0
    total_pull_requests: int = 0
    open_pull_requests: int = 0
    closed_pull_requests: int = 0
    merged_pull_requests: int = 0
    total_commits: int = 0
    total_comments: int = 0
    total_reviews: int = 0
    total_review_requests: int = 0
    total_additions: int = 0
    total_deletions: int = 0
    total_changed_files: int = 0

    def __add__(self, other: "SnapshotSummary") -> "SnapshotSummary":
        if not isinstance(other, SnapshotSummary):
            return NotImplemented
        return SnapshotSummary(
            **{
                name: getattr(self, name) + getattr(other, name)
                for name in SnapshotSummary.model_fields
            }
        )


class Snapshot(BaseModel):
    """
    Root artifact written once per run.

    Attributes:
        organization (str): Organization login
        generated_at (datetime): Generation time (UTC)
        repositories (Dict[str, RepositoryData]): Repository name -> repository and PRs
        summary (SnapshotSummary): Aggregate counters
    """

    organization: str
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    repositories: Dict[str, RepositoryData] = Field(default_factory=dict)
    summary: SnapshotSummary = Field(default_factory=SnapshotSummary)
