"""
Pull Request Detail Aggregation.

Builds one fully-populated PullRequest: the details call comes first and is
mandatory; commits, reviews, comments and review requests are then fetched
concurrently and attached to the detail record.
"""

import asyncio
from typing import Any, Awaitable, List, Optional, Tuple

from config import logger
from exceptions import RequestError
from miners.formatters import (
    format_commit,
    format_pull_request,
    format_review_requests,
    format_reviews,
    reconcile_comments,
)
from miners.github_api import GitHubApi
from miners.models import Commit, PullRequest, Review, ReviewRequest
from miners.paginator import paginate
from miners.scheduler import BatchScheduler
from miners.wire import WireCommit, WireCommitStats, WireIssueComment, WireReviewComment


async def gather_or_cancel(*aws: Awaitable[Any]) -> List[Any]:
    """
    Await all awaitables concurrently.

    When one of them fails, the others are cancelled and awaited before the
    error is raised, so no sibling keeps running unobserved.

    Args:
        *aws (Awaitable[Any]): Coroutines or futures to run

    Returns:
        List[Any]: Results in argument order
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class PullRequestAggregator:
    """
    Fetches and merges everything the snapshot records about one PR.

    Attributes:
        api (GitHubApi): Typed API operations.
        stats_scheduler (BatchScheduler): Bounds concurrent per-commit stats calls.
    """

    def __init__(self, api: GitHubApi, stats_concurrency: int = 5):
        self.api = api
        self.stats_scheduler = BatchScheduler(stats_concurrency)

    async def aggregate(self, owner: str, repo: str, number: int) -> PullRequest:
        """
        Produce the complete record of a pull request.

        Args:
            owner (str): Repository owner.
            repo (str): Repository name.
            number (int): Repository-scoped PR number.

        Returns:
            PullRequest: Details with commits, reviews, comments and review requests.

        Raises:
            RequestError: If the PR details cannot be fetched.
        """
        details = await self.api.get_pull_request(owner, repo, number)
        pull_request = format_pull_request(details)

        commits, reviews, (line_comments, issue_comments), review_requests = (
            await gather_or_cancel(
                self.fetch_commits(owner, repo, number),
                self.fetch_reviews(owner, repo, number),
                self.fetch_thread_comments(owner, repo, number),
                self.fetch_review_requests(owner, repo, number),
            )
        )

        return pull_request.model_copy(
            update={
                "commits": commits,
                "reviews": reviews,
                "comments": reconcile_comments(line_comments, issue_comments, reviews),
                "review_requests": review_requests,
            }
        )

    async def fetch_commits(self, owner: str, repo: str, number: int) -> List[Commit]:
        commits: List[WireCommit] = await paginate(
            lambda page: self.api.list_pull_commits(owner, repo, number, page),
            f"{owner}/{repo}#{number} commits",
        )

        async def with_stats(commit: WireCommit) -> Commit:
            return format_commit(commit, await self.fetch_commit_stats(owner, repo, commit.sha))

        formatted: List[Commit] = []
        for outcome in await self.stats_scheduler.run(commits, with_stats):
            if outcome.ok:
                formatted.append(outcome.result)
                continue
            logger.warning(
                {
                    "message": "Commit stats failed, keeping commit without stats",
                    "repository": f"{owner}/{repo}",
                    "sha": outcome.item.sha,
                    "error": repr(outcome.error),
                }
            )
            formatted.append(format_commit(outcome.item))
        return formatted

    async def fetch_commit_stats(
        self, owner: str, repo: str, sha: str
    ) -> Optional[WireCommitStats]:
        """Fetch line statistics of a commit, None when they are unavailable."""
        try:
            detailed = await self.api.get_commit(owner, repo, sha)
        except RequestError as e:
            logger.warning(
                {
                    "message": "Commit stats unavailable",
                    "repository": f"{owner}/{repo}",
                    "sha": sha,
                    "error": str(e),
                }
            )
            return None
        return detailed.stats

    async def fetch_reviews(self, owner: str, repo: str, number: int) -> List[Review]:
        reviews = await paginate(
            lambda page: self.api.list_reviews(owner, repo, number, page),
            f"{owner}/{repo}#{number} reviews",
        )
        return format_reviews(reviews)

    async def fetch_thread_comments(
        self, owner: str, repo: str, number: int
    ) -> Tuple[List[WireReviewComment], List[WireIssueComment]]:
        """Fetch the line comments and the general thread comments of a PR."""
        line_comments, issue_comments = await gather_or_cancel(
            paginate(
                lambda page: self.api.list_review_comments(owner, repo, number, page),
                f"{owner}/{repo}#{number} review comments",
            ),
            paginate(
                lambda page: self.api.list_issue_comments(owner, repo, number, page),
                f"{owner}/{repo}#{number} issue comments",
            ),
        )
        return line_comments, issue_comments

    async def fetch_review_requests(
        self, owner: str, repo: str, number: int
    ) -> List[ReviewRequest]:
        try:
            requested = await self.api.list_requested_reviewers(owner, repo, number)
        except RequestError as e:
            logger.warning(
                {
                    "message": "Review requests unavailable",
                    "repository": f"{owner}/{repo}",
                    "pr_number": number,
                    "error": str(e),
                }
            )
            return []
        return format_review_requests(requested)
