"""
Abstract Base Class for Repository Miners.

Defines the interface the snapshot assembler drives: list the repositories of
an organization, then mine the pull request activity of each one.
"""

from abc import ABC, abstractmethod
from typing import List

from miners.models import Repository, RepositoryData


class RepositoryMiner(ABC):
    """
    Abstract base class for repository miners.

    Implementations should handle:
    - Repository discovery for an organization
    - Pull request listing within a time window
    - Transformation to the canonical snapshot models
    """

    @abstractmethod
    async def list_repositories(self, organization: str) -> List[Repository]:
        """
        List the repositories of an organization.

        Args:
            organization (str): Organization login

        Returns:
            List[Repository]: Repositories in API order
        """
        pass

    @abstractmethod
    async def mine_repository(
        self, organization: str, repository: Repository
    ) -> RepositoryData:
        """
        Collect the pull requests of a repository inside the time window.

        Args:
            organization (str): Organization login owning the repository
            repository (Repository): Repository metadata

        Returns:
            RepositoryData: Repository with its aggregated pull requests

        Raises:
            Exception: If mining fails
        """
        pass
