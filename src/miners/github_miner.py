"""
GitHub Repository Data Mining Module.

Discovers the repositories of an organization and collects the pull requests
of each repository that fall inside a trailing time window. PR listings are
requested newest first so pagination can stop at the first page that reaches
past the cutoff.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from config import logger
from miners.base import RepositoryMiner
from miners.formatters import format_repository
from miners.github_api import GitHubApi
from miners.models import PullRequest, Repository, RepositoryData
from miners.paginator import paginate, since_cutoff
from miners.pull_requests import PullRequestAggregator
from miners.scheduler import BatchScheduler
from miners.wire import WirePullRequest


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class GitHubMiner(RepositoryMiner):
    """
    GitHubMiner mines pull request activity from GitHub organizations.

    Attributes:
        api (GitHubApi): Typed API operations.
        aggregator (PullRequestAggregator): Builds complete PR records.
        scheduler (BatchScheduler): Bounds concurrent PR aggregations.
        cutoff_date (datetime): Inclusive lower bound of the time window.
        visibility (str): "all" or "private".
        private_fallback (bool): Fall back to all repositories when none is private.
        window_field (str): "created" or "updated".
    """

    def __init__(
        self,
        api: GitHubApi,
        aggregator: PullRequestAggregator,
        scheduler: BatchScheduler,
        cutoff_days: int = 30,
        visibility: str = "all",
        private_fallback: bool = True,
        window_field: str = "created",
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize GitHub miner.

        Args:
            api (GitHubApi): Typed API operations.
            aggregator (PullRequestAggregator): Builds complete PR records.
            scheduler (BatchScheduler): Bounds concurrent PR aggregations.
            cutoff_days (int): Size of the time window in days.
            visibility (str): "all" or "private" repositories.
            private_fallback (bool): Use every repository when "private" matches none.
            window_field (str): PR timestamp the window applies to.
            clock (Callable[[], datetime]): Returns the current UTC time.
        """
        if cutoff_days < 1:
            raise ValueError("cutoff_days must be a positive integer")
        self.api = api
        self.aggregator = aggregator
        self.scheduler = scheduler
        self.cutoff_date = clock() - timedelta(days=cutoff_days)
        self.visibility = visibility
        self.private_fallback = private_fallback
        self.window_field = window_field

    async def list_repositories(self, organization: str) -> List[Repository]:
        logger.info({"message": "Listing repositories", "organization": organization})
        wire_repos = await paginate(
            lambda page: self.api.list_org_repositories(organization, page),
            f"{organization} repositories",
        )
        repositories = [format_repository(repo) for repo in wire_repos]
        if self.visibility == "private":
            private = [r for r in repositories if r.visibility == "private"]
            if private or not self.private_fallback:
                repositories = private
            else:
                logger.warning(
                    {
                        "message": "No private repositories found, using all repositories",
                        "organization": organization,
                        "count": len(repositories),
                    }
                )

        logger.info(
            {
                "message": "Repositories discovered",
                "organization": organization,
                "count": len(repositories),
                "visibility": self.visibility,
            }
        )
        return repositories

    def _window_timestamp(self, pr: WirePullRequest) -> Optional[datetime]:
        if self.window_field == "updated":
            return pr.updated_at
        return pr.created_at

    async def fetch_pull_requests(self, owner: str, repo: str) -> List[WirePullRequest]:
        """
        List the PRs of a repository inside the time window.

        Args:
            owner (str): Repository owner.
            repo (str): Repository name.

        Returns:
            List[WirePullRequest]: PRs newest first.
        """
        return await paginate(
            lambda page: self.api.list_pull_requests(
                owner, repo, page, sort=self.window_field
            ),
            f"{owner}/{repo} pull requests",
            trim=since_cutoff(self.cutoff_date, self._window_timestamp),
        )

    async def mine_repository(
        self, organization: str, repository: Repository
    ) -> RepositoryData:
        """
        Extract the PR activity of one repository.

        PRs whose aggregation fails are logged and left out, unless the
        scheduler is fail-fast, in which case the error propagates.

        Args:
            organization (str): Organization login owning the repository.
            repository (Repository): Repository metadata.

        Returns:
            RepositoryData: Repository with its PRs in listing order.
        """
        repo_name = repository.name
        logger.info(
            {
                "message": "Starting repository mining",
                "repository": f"{organization}/{repo_name}",
                "cutoff_date": self.cutoff_date.isoformat(),
            }
        )

        listed = await self.fetch_pull_requests(organization, repo_name)
        outcomes = await self.scheduler.run(
            [pr.number for pr in listed],
            lambda number: self.aggregator.aggregate(organization, repo_name, number),
        )

        pull_requests: List[PullRequest] = []
        for outcome in outcomes:
            if outcome.ok:
                pull_requests.append(outcome.result)
                continue
            logger.error(
                {
                    "message": "Pull request aggregation failed",
                    "repository": f"{organization}/{repo_name}",
                    "pr_number": outcome.item,
                    "error": str(outcome.error),
                }
            )

        logger.info(
            {
                "message": "Repository mined",
                "repository": f"{organization}/{repo_name}",
                "pull_requests": len(pull_requests),
                "failed": len(outcomes) - len(pull_requests),
            }
        )
        return RepositoryData(repository=repository, pull_requests=pull_requests)
