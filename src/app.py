"""
Main Application Entry Point.

Runs one ingestion of pull request activity for the configured organization:

    python -m app <days> [--force-cache]

The run validates its inputs before any network activity, builds the
pipeline from settings, writes a single snapshot file and exits 0. Any
validation failure or unhandled error is reported on standard error and
exits 1 without writing a snapshot.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from config import Settings, settings, logger
from analyzers.snapshot import SnapshotAssembler
from exceptions import ConfigurationError
from miners.client import GitHubClient
from miners.github_api import GitHubApi
from miners.github_miner import GitHubMiner
from miners.pull_requests import PullRequestAggregator
from miners.scheduler import BatchScheduler
from storage.response_cache import ResponseCache
from storage.snapshot_store import SnapshotStore


def positive_days(value: str) -> int:
    """Parse the ``days`` argument."""
    try:
        days = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"days must be a positive integer, got {value!r}")
    if days <= 0:
        raise argparse.ArgumentTypeError(f"days must be a positive integer, got {value!r}")
    return days


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pullscope",
        description="Snapshot the pull request activity of a GitHub organization.",
    )
    parser.add_argument("days", type=positive_days, help="size of the time window in days")
    parser.add_argument(
        "--force-cache",
        action="store_true",
        help="serve every request from the response cache, never from the network",
    )
    return parser


def validate_settings(config: Settings) -> None:
    """
    Check the credentials needed before any network activity.

    Args:
        config (Settings): Application settings

    Raises:
        ConfigurationError: If the token or the organization is missing
    """
    missing = []
    if not config.gh_token.get_secret_value():
        missing.append("GH_TOKEN")
    if not config.gh_org:
        missing.append("GH_ORG")
    if missing:
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing)}",
            details={"missing": missing},
        )


async def run(days: int, config: Settings, force_cache: bool = False) -> Path:
    """
    Build the pipeline from settings and produce one snapshot.

    Args:
        days (int): Size of the time window in days
        config (Settings): Application settings
        force_cache (bool): Serve every request from the cache

    Returns:
        Path: Location of the written snapshot
    """
    cache = ResponseCache(config.cache_dir)
    async with GitHubClient(
        config.gh_token.get_secret_value(),
        cache,
        base_url=config.github_api_url,
        force_cache=force_cache or config.force_cache,
        timeout=config.request_timeout,
        max_retries=config.max_retries,
        rate_limit_backoff=config.rate_limit_backoff_seconds,
        quota_backoff=config.quota_backoff_seconds,
    ) as client:
        api = GitHubApi(client)
        miner = GitHubMiner(
            api,
            PullRequestAggregator(api, stats_concurrency=config.concurrency_limit),
            BatchScheduler(config.batch_size, fail_fast=config.fail_fast),
            cutoff_days=days,
            visibility=config.visibility,
            private_fallback=config.private_fallback,
            window_field=config.window_field,
        )
        assembler = SnapshotAssembler(SnapshotStore(config.data_dir), miner, config.gh_org)
        return await assembler.run()


def main(argv: Optional[List[str]] = None) -> int:
    """
    Execute the command line workflow.

    Args:
        argv (Optional[List[str]]): Arguments, defaults to ``sys.argv[1:]``

    Returns:
        int: Process exit code
    """
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # argparse already printed the usage error
        return 0 if e.code == 0 else 1

    try:
        validate_settings(settings)
    except ConfigurationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    logger.info(
        {
            "message": "Starting ingestion",
            "organization": settings.gh_org,
            "days": args.days,
            "force_cache": args.force_cache or settings.force_cache,
        }
    )
    try:
        path = asyncio.run(run(args.days, settings, force_cache=args.force_cache))
    except Exception as e:
        logger.error({"message": "Ingestion failed", "error": str(e)}, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Snapshot written to {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
