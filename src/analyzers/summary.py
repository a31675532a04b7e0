"""
Summary counters of a snapshot.

Each PR contributes one immutable partial summary; repository and snapshot
summaries are sums of those partials.
"""

from functools import reduce
from typing import Iterable

from analyzers.models import SnapshotSummary
from miners.models import PullRequest, RepositoryData


def summarize_pull_request(pr: PullRequest) -> SnapshotSummary:
    """
    Count the contribution of one pull request.

    A PR is merged only when ``merged_at`` is set; closed counts only
    PRs closed without a merge.

    Args:
        pr (PullRequest): Aggregated pull request

    Returns:
        SnapshotSummary: Partial summary for this PR
    """
    merged = pr.is_merged
    return SnapshotSummary(
        total_pull_requests=1,
        open_pull_requests=int(pr.state == "open"),
        closed_pull_requests=int(pr.state == "closed" and not merged),
        merged_pull_requests=int(merged),
        total_commits=len(pr.commits),
        total_comments=len(pr.comments),
        total_reviews=len(pr.reviews),
        total_review_requests=len(pr.review_requests),
        total_additions=pr.additions,
        total_deletions=pr.deletions,
        total_changed_files=pr.changed_files,
    )


def summarize_repository(data: RepositoryData) -> SnapshotSummary:
    """Count one repository and every PR it holds."""
    return reduce(
        lambda total, pr: total + summarize_pull_request(pr),
        data.pull_requests,
        SnapshotSummary(total_repositories=1),
    )


def summarize(repositories: Iterable[RepositoryData]) -> SnapshotSummary:
    return sum((summarize_repository(data) for data in repositories), SnapshotSummary())
