"""
Typed GitHub REST operations.

Each coroutine issues one cached request through :class:`GitHubClient` and
decodes the body into wire models. Cache lifetimes are set per call site:
the PR listing changes fastest and uses a shorter TTL.
"""

from typing import Any, List, Type, TypeVar

from pydantic import TypeAdapter, ValidationError

from exceptions import MalformedPayloadError
from miners.client import GitHubClient
from miners.paginator import PER_PAGE
from miners.wire import (
    WireCommit,
    WireIssueComment,
    WirePullRequest,
    WireRepository,
    WireRequestedReviewers,
    WireReview,
    WireReviewComment,
)

REPOSITORIES_TTL_DAYS = 7
PULL_LIST_TTL_DAYS = 3
DETAILS_TTL_DAYS = 7

T = TypeVar("T")


def decode(shape: Type[T], body: Any, endpoint: str) -> T:
    """Validate a response body against a wire shape."""
    try:
        return TypeAdapter(shape).validate_python(body)
    except ValidationError as e:
        raise MalformedPayloadError(
            f"Unexpected payload from {endpoint}",
            details={"errors": e.errors(include_url=False)},
        ) from e


class GitHubApi:
    """The remote operations consumed by the miner."""

    def __init__(self, client: GitHubClient):
        self.client = client

    async def _get(self, shape: Type[T], endpoint: str, ttl_days: float, **params: Any) -> T:
        body = await self.client.request("GET", endpoint, params, ttl_days)
        return decode(shape, body, endpoint)

    async def list_org_repositories(self, org: str, page: int) -> List[WireRepository]:
        return await self._get(
            List[WireRepository],
            "/orgs/{org}/repos",
            REPOSITORIES_TTL_DAYS,
            org=org,
            type="all",
            per_page=PER_PAGE,
            page=page,
        )

    async def list_pull_requests(
        self, owner: str, repo: str, page: int, sort: str = "created"
    ) -> List[WirePullRequest]:
        """List PRs of every state, newest first by ``sort``."""
        return await self._get(
            List[WirePullRequest],
            "/repos/{owner}/{repo}/pulls",
            PULL_LIST_TTL_DAYS,
            owner=owner,
            repo=repo,
            state="all",
            sort=sort,
            direction="desc",
            per_page=PER_PAGE,
            page=page,
        )

    async def get_pull_request(self, owner: str, repo: str, number: int) -> WirePullRequest:
        return await self._get(
            WirePullRequest,
            "/repos/{owner}/{repo}/pulls/{pull_number}",
            DETAILS_TTL_DAYS,
            owner=owner,
            repo=repo,
            pull_number=number,
        )

    async def list_pull_commits(
        self, owner: str, repo: str, number: int, page: int
    ) -> List[WireCommit]:
        return await self._get(
            List[WireCommit],
            "/repos/{owner}/{repo}/pulls/{pull_number}/commits",
            DETAILS_TTL_DAYS,
            owner=owner,
            repo=repo,
            pull_number=number,
            per_page=PER_PAGE,
            page=page,
        )

    async def get_commit(self, owner: str, repo: str, ref: str) -> WireCommit:
        return await self._get(
            WireCommit,
            "/repos/{owner}/{repo}/commits/{ref}",
            DETAILS_TTL_DAYS,
            owner=owner,
            repo=repo,
            ref=ref,
        )

    async def list_reviews(
        self, owner: str, repo: str, number: int, page: int
    ) -> List[WireReview]:
        return await self._get(
            List[WireReview],
            "/repos/{owner}/{repo}/pulls/{pull_number}/reviews",
            DETAILS_TTL_DAYS,
            owner=owner,
            repo=repo,
            pull_number=number,
            per_page=PER_PAGE,
            page=page,
        )

    async def list_review_comments(
        self, owner: str, repo: str, number: int, page: int
    ) -> List[WireReviewComment]:
        return await self._get(
            List[WireReviewComment],
            "/repos/{owner}/{repo}/pulls/{pull_number}/comments",
            DETAILS_TTL_DAYS,
            owner=owner,
            repo=repo,
            pull_number=number,
            per_page=PER_PAGE,
            page=page,
        )

    async def list_issue_comments(
        self, owner: str, repo: str, number: int, page: int
    ) -> List[WireIssueComment]:
        return await self._get(
            List[WireIssueComment],
            "/repos/{owner}/{repo}/issues/{issue_number}/comments",
            DETAILS_TTL_DAYS,
            owner=owner,
            repo=repo,
            issue_number=number,
            per_page=PER_PAGE,
            page=page,
        )

    async def list_requested_reviewers(
        self, owner: str, repo: str, number: int
    ) -> WireRequestedReviewers:
        return await self._get(
            WireRequestedReviewers,
            "/repos/{owner}/{repo}/pulls/{pull_number}/requested_reviewers",
            DETAILS_TTL_DAYS,
            owner=owner,
            repo=repo,
            pull_number=number,
        )
