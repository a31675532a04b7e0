import json
from datetime import datetime, timezone

import httpx
import pytest

from analyzers.snapshot import SnapshotAssembler
from exceptions import RequestError
from miners.client import GitHubClient
from miners.github_api import GitHubApi
from miners.github_miner import GitHubMiner
from miners.pull_requests import PullRequestAggregator
from miners.scheduler import BatchScheduler
from storage.response_cache import ResponseCache
from storage.snapshot_store import SnapshotStore

NOW = datetime(2024, 5, 20, 12, 0, 0, tzinfo=timezone.utc)
ALICE = {"login": "alice", "id": 1}
BOB = {"login": "bob", "id": 2}


def github_routes():
    """Responses of a small organization: one active and one idle repository."""
    return {
        "/orgs/acme/repos": [
            {"id": 1, "name": "widgets", "full_name": "acme/widgets", "visibility": "public"},
            {"id": 2, "name": "empty", "full_name": "acme/empty", "private": True},
        ],
        "/repos/acme/widgets/pulls": [
            {"number": 2, "created_at": "2024-05-10T00:00:00Z"},
            {"number": 1, "created_at": "2024-05-05T00:00:00Z"},
            {"number": 0, "created_at": "2024-04-01T00:00:00Z"},
        ],
        "/repos/acme/empty/pulls": [],
        "/repos/acme/widgets/pulls/2": {
            "id": 202,
            "number": 2,
            "state": "open",
            "user": ALICE,
            "created_at": "2024-05-10T00:00:00Z",
            "additions": 30,
            "deletions": 5,
            "changed_files": 4,
        },
        "/repos/acme/widgets/pulls/1": {
            "id": 201,
            "number": 1,
            "state": "closed",
            "user": BOB,
            "created_at": "2024-05-05T00:00:00Z",
            "merged_at": "2024-05-06T00:00:00Z",
            "additions": 10,
            "deletions": 1,
            "changed_files": 1,
        },
        "/repos/acme/widgets/pulls/2/commits": [{"sha": "s2", "commit": {"message": "feat"}}],
        "/repos/acme/widgets/pulls/1/commits": [{"sha": "s1", "commit": {"message": "fix"}}],
        "/repos/acme/widgets/commits/s2": {"sha": "s2", "stats": {"additions": 30, "deletions": 5, "total": 35}},
        "/repos/acme/widgets/commits/s1": {"sha": "s1", "stats": {"additions": 10, "deletions": 1, "total": 11}},
        "/repos/acme/widgets/pulls/2/reviews": [],
        "/repos/acme/widgets/pulls/1/reviews": [
            {"id": 900, "user": ALICE, "body": "Nice", "state": "APPROVED", "submitted_at": "2024-05-05T08:00:00Z"}
        ],
        "/repos/acme/widgets/pulls/2/comments": [],
        "/repos/acme/widgets/pulls/1/comments": [],
        "/repos/acme/widgets/issues/2/comments": [{"id": 700, "user": BOB, "body": "When?"}],
        "/repos/acme/widgets/issues/1/comments": [],
        "/repos/acme/widgets/pulls/2/requested_reviewers": {"users": [BOB], "teams": []},
        "/repos/acme/widgets/pulls/1/requested_reviewers": {"users": [], "teams": []},
    }


class FakeGitHub:
    """Mock transport handler serving :func:`github_routes`."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path not in self.routes:
            return httpx.Response(404, json={"message": "Not Found"})
        body = self.routes[path]
        if isinstance(body, tuple):
            return httpx.Response(body[0], json=body[1])
        if int(request.url.params.get("page", "1")) > 1:
            return httpx.Response(200, json=[])
        return httpx.Response(200, json=body)


@pytest.fixture
def routes():
    return github_routes()


@pytest.fixture
def build(tmp_path):
    """Factory wiring the full pipeline over a fake GitHub."""

    def factory(handler, fail_fast=False, force_cache=False, days=30):
        client = GitHubClient(
            "token",
            ResponseCache(str(tmp_path / "cache")),
            force_cache=force_cache,
            transport=httpx.MockTransport(handler),
        )
        api = GitHubApi(client)
        miner = GitHubMiner(
            api,
            PullRequestAggregator(api),
            BatchScheduler(5, fail_fast=fail_fast),
            cutoff_days=days,
            clock=lambda: NOW,
        )
        store = SnapshotStore(str(tmp_path / "data"))
        return client, SnapshotAssembler(store, miner, "acme", clock=lambda: NOW)

    return factory


@pytest.mark.asyncio
async def test_end_to_end_snapshot(build, routes, tmp_path):
    client, assembler = build(FakeGitHub(routes))
    async with client:
        path = await assembler.run()

    assert path.name == "github-data-2024-05-20T12-00-00-000Z.json"
    data = json.loads(path.read_text(encoding="utf-8"))

    assert data["organization"] == "acme"
    assert list(data["repositories"]) == ["widgets", "empty"]
    assert data["repositories"]["empty"]["pull_requests"] == []
    assert data["repositories"]["empty"]["repository"]["visibility"] == "private"

    pulls = data["repositories"]["widgets"]["pull_requests"]
    assert [pr["number"] for pr in pulls] == [2, 1]
    assert pulls[0]["commits"][0]["stats"] == {"additions": 30, "deletions": 5, "total": 35}
    assert pulls[1]["comments"][0]["comment_type"] == "pr_review"
    assert "requested_at" not in pulls[0]["review_requests"][0]

    assert data["summary"] == {
        "total_repositories": 2,
        "total_pull_requests": 2,
        "open_pull_requests": 1,
        "closed_pull_requests": 0,
        "merged_pull_requests": 1,
        "total_commits": 2,
        "total_comments": 2,
        "total_reviews": 1,
        "total_review_requests": 1,
        "total_additions": 40,
        "total_deletions": 6,
        "total_changed_files": 5,
    }


@pytest.mark.asyncio
async def test_pull_request_listing_stops_at_cutoff(build, routes):
    """Only the first PR page is requested once it reaches past the cutoff."""
    fake = FakeGitHub(routes)
    client, assembler = build(fake)
    async with client:
        await assembler.assemble()

    listing = [r for r in fake.requests if r.url.path == "/repos/acme/widgets/pulls"]
    assert [r.url.params["page"] for r in listing] == ["1"]
    assert listing[0].url.params["sort"] == "created"
    assert not any(r.url.path.endswith("/pulls/0") for r in fake.requests)


@pytest.mark.asyncio
async def test_failed_pull_request_is_left_out(build, routes):
    routes["/repos/acme/widgets/pulls/1"] = (500, {"message": "Server Error"})
    client, assembler = build(FakeGitHub(routes))
    async with client:
        snapshot = await assembler.assemble()

    assert [pr.number for pr in snapshot.repositories["widgets"].pull_requests] == [2]
    assert snapshot.summary.total_pull_requests == 1


@pytest.mark.asyncio
async def test_fail_fast_writes_no_snapshot(build, routes, tmp_path):
    routes["/repos/acme/widgets/pulls/1"] = (500, {"message": "Server Error"})
    client, assembler = build(FakeGitHub(routes), fail_fast=True)
    async with client:
        with pytest.raises(RequestError):
            await assembler.run()

    assert list((tmp_path / "data").glob("*.json")) == []


@pytest.mark.asyncio
async def test_forced_cache_rerun_is_offline(build, routes):
    """A forced-cache rerun reproduces the snapshot without network access."""
    client, assembler = build(FakeGitHub(routes))
    async with client:
        first = await assembler.assemble()

    def offline(request):
        raise AssertionError(f"unexpected request to {request.url}")

    client, assembler = build(offline, force_cache=True)
    async with client:
        second = await assembler.assemble()

    assert second.summary == first.summary
    assert second.repositories == first.repositories


def two_pull_request_routes():
    """One repository with a merged and an open PR, each with one commit and one approval."""
    routes = {
        "/orgs/acme/repos": [{"id": 1, "name": "widgets", "full_name": "acme/widgets"}],
        "/repos/acme/widgets/pulls": [
            {"number": 2, "created_at": "2024-05-18T00:00:00Z"},
            {"number": 1, "created_at": "2024-05-15T00:00:00Z"},
        ],
    }
    for number, state, merged_at in ((2, "open", None), (1, "closed", "2024-05-16T00:00:00Z")):
        prefix = f"/repos/acme/widgets/pulls/{number}"
        routes[prefix] = {"number": number, "state": state, "user": ALICE, "merged_at": merged_at}
        routes[f"{prefix}/commits"] = [{"sha": f"s{number}"}]
        routes[f"/repos/acme/widgets/commits/s{number}"] = {"sha": f"s{number}"}
        routes[f"{prefix}/reviews"] = [{"id": 900 + number, "user": BOB, "body": "", "state": "APPROVED"}]
        routes[f"{prefix}/comments"] = []
        routes[f"/repos/acme/widgets/issues/{number}/comments"] = []
        routes[f"{prefix}/requested_reviewers"] = {"users": []}
    return routes


@pytest.mark.asyncio
async def test_two_pull_request_scenario_summary(build):
    """Approvals without a body count as reviews but not as comments."""
    client, assembler = build(FakeGitHub(two_pull_request_routes()), days=7)
    async with client:
        snapshot = await assembler.assemble()

    summary = snapshot.summary
    assert summary.total_repositories == 1
    assert summary.total_pull_requests == 2
    assert summary.merged_pull_requests == 1
    assert summary.open_pull_requests == 1
    assert summary.total_commits == 2
    assert summary.total_reviews == 2
    assert summary.total_comments == 0
