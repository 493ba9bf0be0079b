#!/usr/bin/env python3
"""
Populate feed_entries for accounts that existed before fan-out on write.

Every account gets the latest posts from each account it follows (bounded by
BACKFILL_POST_LIMIT). Safe to run repeatedly: inserts skip existing entries.

Usage:
    python scripts/backfill_existing_feeds.py [--account-id ID] [--batch-size N] [--dry-run] [--inline] [--verbose]

Options:
    --account-id  Rebuild a single account only
    --batch-size  Accounts read per batch (default: COUNTER_BACKFILL_BATCH_SIZE)
    --dry-run     Report what would be rebuilt without writing or enqueueing
    --inline      Rebuild in this process instead of enqueueing rebuild_owner_feed_task
    --verbose     Print one line per account
"""

import argparse
import asyncio
import os
import sys

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from feed_engine.config import settings
from feed_engine.container import get_container
from feed_engine.schemas.jobs import RebuildOwnerFeedJob

# Color codes
GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
BLUE = "\033[94m"
RESET = "\033[0m"


def print_success(text):
    print(f"{GREEN}✅ {text}{RESET}")


def print_error(text):
    print(f"{RED}❌ {text}{RESET}")


def print_info(text):
    print(f"{YELLOW}ℹ️  {text}{RESET}")


def print_header(text):
    print(f"\n{BLUE}{'=' * 80}{RESET}")
    print(f"{BLUE}{text.center(80)}{RESET}")
    print(f"{BLUE}{'=' * 80}{RESET}\n")


async def collect_account_batches(session_factory, account_id, batch_size):
    """Account id batches to rebuild; a single batch when one account is requested"""
    container = get_container()
    async with session_factory() as session:
        account_repo = container.account_repository_factory(session=session)
        if account_id is not None:
            if not await account_repo.exists(account_id):
                return []
            return [[account_id]]
        return [ids async for ids in account_repo.iter_id_batches(batch_size)]


async def rebuild_inline(session_factory, owner_id):
    container = get_container()
    async with session_factory() as session:
        use_case = container.rebuild_owner_feed_use_case(session=session)
        return await use_case.execute(owner_id)


async def main():
    parser = argparse.ArgumentParser(description="Backfill materialized feeds for existing accounts")
    parser.add_argument("--account-id", type=int, help="Rebuild a single account")
    parser.add_argument("--batch-size", type=int, default=settings.counters.backfill_batch_size, help="Accounts per batch")
    parser.add_argument("--dry-run", action="store_true", help="Report without writing or enqueueing")
    parser.add_argument("--inline", action="store_true", help="Rebuild in-process instead of via Celery")
    parser.add_argument("--verbose", action="store_true", help="Print one line per account")
    args = parser.parse_args()

    if args.batch_size <= 0:
        parser.error("--batch-size must be greater than zero")

    print_header("Feed Backfill")

    container = get_container()
    session_factory = container.db_session_factory()
    task_queue = container.task_queue()

    try:
        batches = await collect_account_batches(session_factory, args.account_id, args.batch_size)
        if not batches:
            print_error(f"Account {args.account_id} not found" if args.account_id else "No accounts found")
            return

        total_accounts = sum(len(batch) for batch in batches)
        print_info(f"Accounts to rebuild: {total_accounts} in {len(batches)} batch(es)")

        if args.dry_run:
            print_success("Dry run: nothing written")
            return

        rebuilt = 0
        inserted = 0
        failed = 0
        for batch in batches:
            for owner_id in batch:
                if args.inline:
                    result = await rebuild_inline(session_factory, owner_id)
                    if result["status"] == "success":
                        rebuilt += 1
                        inserted += result["inserted"]
                    else:
                        failed += 1
                    if args.verbose:
                        print(f"  account={owner_id} status={result['status']} inserted={result.get('inserted', 0)}")
                else:
                    task_id = task_queue.enqueue_job(RebuildOwnerFeedJob(owner_id=owner_id))
                    rebuilt += 1
                    if args.verbose:
                        print(f"  account={owner_id} task_id={task_id}")

        print_header("Summary")
        if args.inline:
            print_success(f"Rebuilt {rebuilt} account(s), inserted {inserted} feed entries")
            if failed:
                print_error(f"{failed} account(s) failed; re-run to retry")
        else:
            print_success(f"Enqueued {rebuilt} rebuild job(s)")

    except Exception as e:
        print_error(f"Error: {e}")
        import traceback

        traceback.print_exc()
        sys.exit(1)
    finally:
        await container.database_helper().dispose()


if __name__ == "__main__":
    asyncio.run(main())
