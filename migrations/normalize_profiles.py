"""Migration script to bring every stored profile to the current schema.

Profiles are normally migrated lazily the first time their owner signs in.
This script does the same for all profiles at once:
- legacy single-list documents (top-level `tasks`) → empty `gardens`
- tasks with a boolean `completed` → `status` (whacked / unwhacked)
- tasks without `status` → unwhacked
- tasks without `dueDate` → dueDate null

Only the `gardens` field of each document is rewritten.
"""

import asyncio
import os
import sys
from collections import Counter

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from whackatask.database.database import SessionLocal, init_db
from whackatask.database.document_store import DocumentStore
from whackatask.database.profile_repository import ProfileRepository
from whackatask.engine.normalizer import normalize_document


async def normalize_profiles(repository: ProfileRepository, dry_run: bool = False) -> Counter:
    """Normalize all profile documents.

    Args:
        repository: Profile repository to scan
        dry_run: Report what would change without writing

    Returns:
        Counter of documents per decoded shape, plus "rewritten"
    """
    counts: Counter = Counter()
    for username in await repository.usernames():
        raw = await repository.get_document(username)
        if raw is None:
            continue
        result = normalize_document(raw)
        counts[result.shape.value] += 1
        if result.must_persist:
            print(f"  {username}: {result.shape.value}")
            if not dry_run:
                await repository.write_gardens(username, result.profile.gardens)
                counts["rewritten"] += 1
    return counts


def migrate_profiles(dry_run: bool = False):
    """Run the migration against the configured database."""
    init_db()
    repository = ProfileRepository(DocumentStore(SessionLocal))

    print("Starting profile migration...")
    try:
        counts = asyncio.run(normalize_profiles(repository, dry_run=dry_run))
    except Exception as e:
        print(f"Error during migration: {e}")
        raise

    if not counts:
        print("No profiles found.")
        return
    for shape, count in sorted(counts.items()):
        print(f"{shape}: {count}")


if __name__ == "__main__":
    print("=" * 60)
    print("Profile Schema Migration Script")
    print("=" * 60)
    print()
    print("This script will rewrite the gardens of legacy profiles.")
    print("Legacy top-level task lists are NOT carried over.")
    print()

    response = input("Do you want to proceed? (yes/no/dry-run): ")
    if response.lower() in ['yes', 'y']:
        migrate_profiles()
        print()
        print("Migration complete!")
    elif response.lower() == 'dry-run':
        migrate_profiles(dry_run=True)
    else:
        print("Migration cancelled.")
