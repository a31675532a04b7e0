"""
GitHub Wire Format Models.

Loosely-typed shapes of the REST payloads the miner consumes. Every field is
optional and unknown fields are ignored, so a payload is decoded once at the
API boundary and the formatters work on a verified structure.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict


class WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class WireUser(WireModel):
    login: Optional[str] = None
    id: Optional[int] = None
    avatar_url: Optional[str] = None
    html_url: Optional[str] = None


class WireLabel(WireModel):
    id: Any = None
    name: Optional[str] = None
    color: Optional[str] = None
    description: Optional[str] = None


class WireLicense(WireModel):
    key: Optional[str] = None
    name: Optional[str] = None
    spdx_id: Optional[str] = None
    url: Optional[str] = None


class WireRepository(WireModel):
    id: Optional[int] = None
    name: Optional[str] = None
    full_name: Optional[str] = None
    html_url: Optional[str] = None
    description: Optional[str] = None
    fork: Optional[bool] = None
    private: Optional[bool] = None
    visibility: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    pushed_at: Optional[datetime] = None
    homepage: Optional[str] = None
    size: Optional[int] = None
    stargazers_count: Optional[int] = None
    watchers_count: Optional[int] = None
    language: Optional[str] = None
    forks_count: Optional[int] = None
    archived: Optional[bool] = None
    disabled: Optional[bool] = None
    open_issues_count: Optional[int] = None
    license: Optional[WireLicense] = None
    topics: Optional[List[str]] = None
    default_branch: Optional[str] = None


class WireRepoRef(WireModel):
    id: Optional[int] = None
    name: Optional[str] = None
    full_name: Optional[str] = None
    html_url: Optional[str] = None


class WireBranch(WireModel):
    ref: Optional[str] = None
    sha: Optional[str] = None
    repo: Optional[WireRepoRef] = None


class WirePullRequest(WireModel):
    id: Optional[int] = None
    number: int
    title: Optional[str] = None
    user: Optional[WireUser] = None
    state: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    merged_at: Optional[datetime] = None
    merge_commit_sha: Optional[str] = None
    assignees: Optional[List[WireUser]] = None
    requested_reviewers: Optional[List[WireUser]] = None
    labels: Optional[List[WireLabel]] = None
    draft: Optional[bool] = None
    head: Optional[WireBranch] = None
    base: Optional[WireBranch] = None
    html_url: Optional[str] = None
    additions: Optional[int] = None
    deletions: Optional[int] = None
    changed_files: Optional[int] = None


class WireGitActor(WireModel):
    name: Optional[str] = None
    email: Optional[str] = None
    date: Optional[datetime] = None


class WireGitCommit(WireModel):
    author: Optional[WireGitActor] = None
    committer: Optional[WireGitActor] = None
    message: Optional[str] = None


class WireCommitStats(WireModel):
    additions: Optional[int] = None
    deletions: Optional[int] = None
    total: Optional[int] = None


class WireCommit(WireModel):
    sha: str
    author: Optional[WireUser] = None
    committer: Optional[WireUser] = None
    commit: Optional[WireGitCommit] = None
    html_url: Optional[str] = None
    stats: Optional[WireCommitStats] = None


class WireReview(WireModel):
    id: Optional[int] = None
    user: Optional[WireUser] = None
    body: Optional[str] = None
    state: Optional[str] = None
    submitted_at: Optional[datetime] = None
    html_url: Optional[str] = None


class WireIssueComment(WireModel):
    id: Optional[int] = None
    user: Optional[WireUser] = None
    body: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    html_url: Optional[str] = None


class WireReviewComment(WireIssueComment):
    path: Optional[str] = None
    position: Optional[int] = None
    original_position: Optional[int] = None
    commit_id: Optional[str] = None
    diff_hunk: Optional[str] = None
    in_reply_to_id: Optional[int] = None


class WireRequestedReviewers(WireModel):
    users: List[WireUser] = []
