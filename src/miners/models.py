"""
Pull Request Activity Data Models.

Defines the canonical entity shapes written to the snapshot.
Uses Pydantic for validation and serialization.
"""

from datetime import datetime
from enum import Enum
from typing import ClassVar, List, Optional, Tuple

from pydantic import BaseModel, Field, model_serializer


class ReviewState(str, Enum):
    """Review outcome as reported by the API."""

    APPROVED = "APPROVED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"
    COMMENTED = "COMMENTED"
    DISMISSED = "DISMISSED"
    PENDING = "PENDING"


class CommentType(str, Enum):
    """
    Source of a comment.

    Attributes:
        PR_REVIEW: Body of a submitted review
        PR_LINE: Diff-anchored review comment
        ISSUE: General comment on the PR thread
    """

    PR_REVIEW = "pr_review"
    PR_LINE = "pr_line"
    ISSUE = "issue"


class SnapshotModel(BaseModel):
    """Base model whose listed optional fields are omitted when unset."""

    omit_when_none: ClassVar[Tuple[str, ...]] = ()

    @model_serializer(mode="wrap")
    def _omit_absent(self, handler):
        data = handler(self)
        for name in self.omit_when_none:
            if data.get(name) is None:
                data.pop(name, None)
        return data


class User(SnapshotModel):
    """Account embedded by value wherever it is referenced."""

    login: str = "unknown"
    id: int = 0
    avatar_url: str = ""
    html_url: str = ""


class Label(SnapshotModel):
    id: int = 0
    name: str = ""
    color: str = ""
    description: str = ""


class License(SnapshotModel):
    key: str = ""
    name: str = ""
    spdx_id: str = ""
    url: str = ""


class Repository(SnapshotModel):
    """Repository metadata."""

    id: int
    name: str
    full_name: str = ""
    html_url: str = ""
    description: Optional[str] = None
    fork: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    pushed_at: Optional[datetime] = None
    homepage: Optional[str] = None
    size: int = 0
    stargazers_count: int = 0
    watchers_count: int = 0
    language: Optional[str] = None
    forks_count: int = 0
    archived: bool = False
    disabled: bool = False
    open_issues_count: int = 0
    license: Optional[License] = None
    topics: List[str] = Field(default_factory=list)
    visibility: str = "public"
    default_branch: str = "main"


class RepoRef(SnapshotModel):
    id: int = 0
    name: str = ""
    full_name: str = ""
    html_url: str = ""


class BranchRef(SnapshotModel):
    ref: str = ""
    sha: str = ""
    repo: RepoRef = Field(default_factory=RepoRef)


class GitActor(SnapshotModel):
    """Free-text commit authorship, distinct from the User account."""

    name: str = ""
    email: str = ""
    date: Optional[datetime] = None


class CommitDetails(SnapshotModel):
    author: GitActor = Field(default_factory=GitActor)
    committer: GitActor = Field(default_factory=GitActor)
    message: str = ""


class CommitStats(SnapshotModel):
    additions: int = 0
    deletions: int = 0
    total: int = 0


class Commit(SnapshotModel):
    """Commit of a PR; ``stats`` is absent when the stats call failed."""

    omit_when_none: ClassVar[Tuple[str, ...]] = ("stats",)

    sha: str
    author: Optional[User] = None
    committer: Optional[User] = None
    commit: CommitDetails = Field(default_factory=CommitDetails)
    html_url: str = ""
    stats: Optional[CommitStats] = None


class Review(SnapshotModel):
    id: int
    user: User
    body: Optional[str] = None
    state: ReviewState
    submitted_at: Optional[datetime] = None
    html_url: str = ""


class Comment(SnapshotModel):
    """Comment from any of the three comment sources, see ``comment_type``."""

    omit_when_none: ClassVar[Tuple[str, ...]] = (
        "path",
        "position",
        "original_position",
        "commit_id",
        "diff_hunk",
        "in_reply_to_id",
    )

    id: int
    user: User
    body: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    html_url: str = ""
    comment_type: CommentType
    path: Optional[str] = None
    position: Optional[int] = None
    original_position: Optional[int] = None
    commit_id: Optional[str] = None
    diff_hunk: Optional[str] = None
    in_reply_to_id: Optional[int] = None


class ReviewRequest(SnapshotModel):
    """Pending review request. The API exposes no request timestamp."""

    omit_when_none: ClassVar[Tuple[str, ...]] = ("requested_at",)

    user: User
    requested_at: Optional[datetime] = None


class PullRequest(SnapshotModel):
    """
    Pull request with its commits, reviews, comments and review requests.

    A PR is merged only when ``merged_at`` is set; ``state == "closed"``
    alone does not imply a merge.
    """

    id: int = 0
    number: int
    title: str = ""
    user: User = Field(default_factory=User)
    state: str = "open"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    merged_at: Optional[datetime] = None
    merge_commit_sha: Optional[str] = None
    assignees: List[User] = Field(default_factory=list)
    requested_reviewers: List[User] = Field(default_factory=list)
    labels: List[Label] = Field(default_factory=list)
    draft: bool = False
    head: BranchRef = Field(default_factory=BranchRef)
    base: BranchRef = Field(default_factory=BranchRef)
    html_url: str = ""
    commits: List[Commit] = Field(default_factory=list)
    reviews: List[Review] = Field(default_factory=list)
    review_requests: List[ReviewRequest] = Field(default_factory=list)
    comments: List[Comment] = Field(default_factory=list)
    additions: int = 0
    deletions: int = 0
    changed_files: int = 0

    @property
    def is_merged(self) -> bool:
        return self.merged_at is not None


class RepositoryData(SnapshotModel):
    """Container for a repository and its PRs in the time window."""

    repository: Repository
    pull_requests: List[PullRequest] = Field(default_factory=list)
