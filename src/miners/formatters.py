"""
Entity Formatters.

Pure mappings from wire payloads to the canonical snapshot entities. They
rename fields, fill defaults for absent values (``login`` -> ``"unknown"``,
counts -> ``0``, lists -> ``[]``) and drop nested entries that cannot be
attributed to an author.
"""

from typing import Iterable, List, Optional

from miners.models import (
    BranchRef,
    Comment,
    CommentType,
    Commit,
    CommitDetails,
    CommitStats,
    GitActor,
    Label,
    License,
    PullRequest,
    RepoRef,
    Repository,
    Review,
    ReviewRequest,
    ReviewState,
    User,
)
from miners.wire import (
    WireBranch,
    WireCommit,
    WireCommitStats,
    WireGitActor,
    WireIssueComment,
    WireLabel,
    WireLicense,
    WirePullRequest,
    WireRepository,
    WireRequestedReviewers,
    WireReview,
    WireReviewComment,
    WireUser,
)


def format_user(user: Optional[WireUser]) -> User:
    """Format a user, substituting placeholder values when it is missing."""
    if user is None:
        return User()
    return User(
        login=user.login or "unknown",
        id=user.id or 0,
        avatar_url=user.avatar_url or "",
        html_url=user.html_url or "",
    )


def format_optional_user(user: Optional[WireUser]) -> Optional[User]:
    """Format a user that may legitimately be absent (bots, deleted accounts)."""
    return format_user(user) if user is not None else None


def format_label(label: WireLabel) -> Label:
    label_id = label.id
    if isinstance(label_id, bool) or not isinstance(label_id, int):
        label_id = 0
    return Label(
        id=label_id,
        name=label.name or "",
        color=label.color or "",
        description=label.description or "",
    )


def format_license(license: Optional[WireLicense]) -> Optional[License]:
    if license is None:
        return None
    return License(
        key=license.key or "",
        name=license.name or "",
        spdx_id=license.spdx_id or "",
        url=license.url or "",
    )


def format_repository(repo: WireRepository) -> Repository:
    """
    Format repository metadata.

    Args:
        repo (WireRepository): Repository payload from the organization listing

    Returns:
        Repository: Canonical repository record
    """
    if repo.private:
        visibility = "private"
    elif repo.visibility in ("public", "private"):
        visibility = repo.visibility
    else:
        visibility = "public"

    return Repository(
        id=repo.id or 0,
        name=repo.name or "",
        full_name=repo.full_name or "",
        html_url=repo.html_url or "",
        description=repo.description,
        fork=bool(repo.fork),
        created_at=repo.created_at,
        updated_at=repo.updated_at,
        pushed_at=repo.pushed_at,
        homepage=repo.homepage,
        size=repo.size or 0,
        stargazers_count=repo.stargazers_count or 0,
        watchers_count=repo.watchers_count or 0,
        language=repo.language,
        forks_count=repo.forks_count or 0,
        archived=bool(repo.archived),
        disabled=bool(repo.disabled),
        open_issues_count=repo.open_issues_count or 0,
        license=format_license(repo.license),
        topics=list(repo.topics or []),
        visibility=visibility,
        default_branch=repo.default_branch or "main",
    )


def format_branch(branch: Optional[WireBranch]) -> BranchRef:
    if branch is None:
        return BranchRef()
    repo = branch.repo
    return BranchRef(
        ref=branch.ref or "",
        sha=branch.sha or "",
        repo=RepoRef(
            id=(repo.id if repo else None) or 0,
            name=(repo.name if repo else None) or "",
            full_name=(repo.full_name if repo else None) or "",
            html_url=(repo.html_url if repo else None) or "",
        ),
    )


def format_pull_request(pr: WirePullRequest) -> PullRequest:
    """
    Format a pull request without its nested collections.

    Commits, reviews, comments and review requests start empty and are
    attached by the aggregator.

    Args:
        pr (WirePullRequest): Pull request payload

    Returns:
        PullRequest: Canonical pull request record
    """
    return PullRequest(
        id=pr.id or 0,
        number=pr.number,
        title=pr.title or "",
        user=format_user(pr.user),
        state=pr.state or "open",
        created_at=pr.created_at,
        updated_at=pr.updated_at,
        closed_at=pr.closed_at,
        merged_at=pr.merged_at,
        merge_commit_sha=pr.merge_commit_sha,
        assignees=[format_user(user) for user in pr.assignees or []],
        requested_reviewers=[format_user(user) for user in pr.requested_reviewers or []],
        labels=[format_label(label) for label in pr.labels or []],
        draft=bool(pr.draft),
        head=format_branch(pr.head),
        base=format_branch(pr.base),
        html_url=pr.html_url or "",
        additions=pr.additions or 0,
        deletions=pr.deletions or 0,
        changed_files=pr.changed_files or 0,
    )


def format_git_actor(actor: Optional[WireGitActor]) -> GitActor:
    if actor is None:
        return GitActor()
    return GitActor(name=actor.name or "", email=actor.email or "", date=actor.date)


def format_commit_stats(stats: Optional[WireCommitStats]) -> Optional[CommitStats]:
    if stats is None:
        return None
    return CommitStats(
        additions=stats.additions or 0,
        deletions=stats.deletions or 0,
        total=stats.total or 0,
    )


def format_commit(commit: WireCommit, stats: Optional[WireCommitStats] = None) -> Commit:
    """
    Format a commit of a pull request.

    Args:
        commit (WireCommit): Commit payload from the PR commit listing
        stats (Optional[WireCommitStats]): Line statistics from the single-commit
            endpoint, None when they could not be fetched

    Returns:
        Commit: Canonical commit record
    """
    details = commit.commit
    return Commit(
        sha=commit.sha,
        author=format_optional_user(commit.author),
        committer=format_optional_user(commit.committer),
        commit=CommitDetails(
            author=format_git_actor(details.author if details else None),
            committer=format_git_actor(details.committer if details else None),
            message=(details.message if details else None) or "",
        ),
        html_url=commit.html_url or "",
        stats=format_commit_stats(stats),
    )


def format_review(review: WireReview) -> Optional[Review]:
    """Format a review; reviews without an author are dropped (None)."""
    if review.user is None:
        return None
    try:
        state = ReviewState(review.state)
    except ValueError:
        state = ReviewState.COMMENTED
    return Review(
        id=review.id or 0,
        user=format_user(review.user),
        body=review.body,
        state=state,
        submitted_at=review.submitted_at,
        html_url=review.html_url or "",
    )


def format_reviews(reviews: Iterable[WireReview]) -> List[Review]:
    return [r for r in (format_review(review) for review in reviews) if r is not None]


def format_line_comment(comment: WireReviewComment) -> Optional[Comment]:
    """Format a diff-anchored review comment; dropped without an author."""
    if comment.user is None:
        return None
    return Comment(
        id=comment.id or 0,
        user=format_user(comment.user),
        body=comment.body,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        html_url=comment.html_url or "",
        comment_type=CommentType.PR_LINE,
        path=comment.path,
        position=comment.position,
        original_position=comment.original_position,
        commit_id=comment.commit_id,
        diff_hunk=comment.diff_hunk,
        in_reply_to_id=comment.in_reply_to_id,
    )


def format_issue_comment(comment: WireIssueComment) -> Optional[Comment]:
    """Format a general PR thread comment; dropped without an author."""
    if comment.user is None:
        return None
    return Comment(
        id=comment.id or 0,
        user=format_user(comment.user),
        body=comment.body,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        html_url=comment.html_url or "",
        comment_type=CommentType.ISSUE,
    )


def review_to_comment(review: Review) -> Optional[Comment]:
    """Synthesize a comment from a review body; None for empty bodies."""
    if not review.body or not review.body.strip():
        return None
    return Comment(
        id=review.id,
        user=review.user,
        body=review.body,
        created_at=review.submitted_at,
        updated_at=review.submitted_at,
        html_url=review.html_url,
        comment_type=CommentType.PR_REVIEW,
    )


def reconcile_comments(
    line_comments: Iterable[WireReviewComment],
    issue_comments: Iterable[WireIssueComment],
    reviews: Iterable[Review],
) -> List[Comment]:
    """
    Merge the three comment sources into one list.

    Sources are disjoint (reviews and comments use different id spaces), so
    no de-duplication happens. Order is source order: line comments, issue
    comments, then review-derived comments.

    Args:
        line_comments (Iterable[WireReviewComment]): Diff-anchored comments
        issue_comments (Iterable[WireIssueComment]): PR thread comments
        reviews (Iterable[Review]): Formatted reviews of the PR

    Returns:
        List[Comment]: Merged comment list
    """
    merged = [format_line_comment(c) for c in line_comments]
    merged += [format_issue_comment(c) for c in issue_comments]
    merged += [review_to_comment(r) for r in reviews]
    return [comment for comment in merged if comment is not None]


def format_review_requests(requested: WireRequestedReviewers) -> List[ReviewRequest]:
    return [ReviewRequest(user=format_user(user)) for user in requested.users]
