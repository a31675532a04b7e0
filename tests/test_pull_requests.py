import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from exceptions import RequestError
from miners.github_api import GitHubApi
from miners.models import CommentType
from miners.pull_requests import PullRequestAggregator, gather_or_cancel
from miners.wire import (
    WireCommit,
    WireIssueComment,
    WirePullRequest,
    WireRequestedReviewers,
    WireReview,
    WireReviewComment,
)

ALICE = {"login": "alice", "id": 1}
BOB = {"login": "bob", "id": 2}


def first_page(items):
    """Page fetcher mock returning ``items`` for page 1 and nothing after."""

    async def fetch(owner, repo, number, page):
        return items if page == 1 else []

    return AsyncMock(side_effect=fetch)


@pytest.fixture
def api():
    """GitHub API double for a PR with two commits, one review and comments."""
    api = Mock(spec=GitHubApi)
    api.get_pull_request = AsyncMock(
        return_value=WirePullRequest.model_validate(
            {"id": 500, "number": 7, "state": "open", "user": ALICE, "additions": 12}
        )
    )
    api.list_pull_commits = first_page(
        [WireCommit(sha="c1"), WireCommit(sha="c2")]
    )

    async def get_commit(owner, repo, ref):
        if ref == "c2":
            raise RequestError("Server Error", 502)
        return WireCommit.model_validate(
            {"sha": ref, "stats": {"additions": 5, "deletions": 1, "total": 6}}
        )

    api.get_commit = AsyncMock(side_effect=get_commit)
    api.list_reviews = first_page(
        [
            WireReview.model_validate(
                {"id": 30, "user": BOB, "body": "Ship it", "state": "APPROVED"}
            ),
            WireReview.model_validate({"id": 31, "body": "orphan", "state": "APPROVED"}),
        ]
    )
    api.list_review_comments = first_page(
        [WireReviewComment.model_validate({"id": 10, "user": BOB, "path": "x.py"})]
    )
    api.list_issue_comments = first_page(
        [WireIssueComment.model_validate({"id": 20, "user": ALICE, "body": "thanks"})]
    )
    api.list_requested_reviewers = AsyncMock(
        return_value=WireRequestedReviewers.model_validate({"users": [BOB]})
    )
    return api


@pytest.mark.asyncio
async def test_aggregate_attaches_every_collection(api):
    pr = await PullRequestAggregator(api).aggregate("acme", "widgets", 7)

    assert pr.number == 7
    assert pr.additions == 12
    assert [c.sha for c in pr.commits] == ["c1", "c2"]
    assert [r.id for r in pr.reviews] == [30]
    assert [(c.id, c.comment_type) for c in pr.comments] == [
        (10, CommentType.PR_LINE),
        (20, CommentType.ISSUE),
        (30, CommentType.PR_REVIEW),
    ]
    assert [r.user.login for r in pr.review_requests] == ["bob"]


@pytest.mark.asyncio
async def test_commit_stats_failure_degrades(api):
    """A failed stats call keeps the commit and leaves ``stats`` absent."""
    pr = await PullRequestAggregator(api).aggregate("acme", "widgets", 7)

    assert pr.commits[0].stats.total == 6
    assert pr.commits[1].stats is None
    assert "stats" not in pr.commits[1].model_dump()


@pytest.mark.asyncio
async def test_review_requests_failure_degrades(api):
    api.list_requested_reviewers.side_effect = RequestError("Not Found", 404)

    pr = await PullRequestAggregator(api).aggregate("acme", "widgets", 7)

    assert pr.review_requests == []


@pytest.mark.asyncio
async def test_reviews_fetched_once(api):
    """Reviews feed both the review list and the comments from one fetch."""
    await PullRequestAggregator(api).aggregate("acme", "widgets", 7)

    pages = [c.args[3] for c in api.list_reviews.await_args_list]
    assert pages == [1, 2]


@pytest.mark.asyncio
async def test_details_failure_fails_pull_request(api):
    api.get_pull_request.side_effect = RequestError("Not Found", 404)

    with pytest.raises(RequestError):
        await PullRequestAggregator(api).aggregate("acme", "widgets", 7)

    api.list_pull_commits.assert_not_awaited()


@pytest.mark.asyncio
async def test_unexpected_stats_failure_keeps_commits(api):
    """Any stats failure keeps the commit without stats and the PR stays serializable."""
    api.get_commit.side_effect = OSError("No space left on device")

    pr = await PullRequestAggregator(api).aggregate("acme", "widgets", 7)

    assert [c.sha for c in pr.commits] == ["c1", "c2"]
    assert all(c.stats is None for c in pr.commits)
    dumped = pr.model_dump(mode="json")
    assert [c["sha"] for c in dumped["commits"]] == ["c1", "c2"]
    assert all("stats" not in c for c in dumped["commits"])


@pytest.mark.asyncio
async def test_failed_sub_fetch_cancels_siblings(api):
    """An unexpected sub-fetch error cancels the other in-flight fetches."""
    started = asyncio.Event()
    cancelled = asyncio.Event()

    async def slow_requested_reviewers(owner, repo, number):
        started.set()
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.set()
            raise

    async def failing_reviews(owner, repo, number, page):
        await started.wait()
        raise RuntimeError("unexpected payload handling bug")

    api.list_requested_reviewers = AsyncMock(side_effect=slow_requested_reviewers)
    api.list_reviews = AsyncMock(side_effect=failing_reviews)

    with pytest.raises(RuntimeError):
        await PullRequestAggregator(api).aggregate("acme", "widgets", 7)

    assert cancelled.is_set()


@pytest.mark.asyncio
async def test_gather_or_cancel_returns_results_in_order():
    async def value(v, delay):
        await asyncio.sleep(delay)
        return v

    assert await gather_or_cancel(value("a", 0.01), value("b", 0)) == ["a", "b"]
