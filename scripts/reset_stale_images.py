#!/usr/bin/env python3
"""Reset flashcard entries whose image generation was lost.

The image queue is in memory, so entries left with image_status
'queued' or 'processing' by a stopped process will never finish.
This tool lists them and resets them to 'none' so they can be queued again.

Usage:
    # Show stale entries without changing anything
    python scripts/reset_stale_images.py --dry-run

    # Reset with confirmation
    python scripts/reset_stale_images.py

    # Reset without confirmation
    python scripts/reset_stale_images.py -y
"""

import argparse
import asyncio

from flashmoji.database import WordEntryService


async def run(dry_run: bool, yes: bool) -> None:
    service = WordEntryService()

    stale = await service.get_stale_image_entries()
    print(f"Stale entries: {len(stale)}")
    for entry in stale:
        print(f"  - {entry['id']}: {entry.get('original_text', '')} ({entry['image_status']})")

    if not stale:
        print("\nNothing to reset.")
        return

    if dry_run:
        print(f"\n[DRY RUN] Would reset {len(stale)} entries to 'none'")
        return

    if not yes:
        response = input(f"\nReset {len(stale)} entries? [y/N]: ")
        if response.lower() != "y":
            print("Aborted.")
            return

    count = await service.reset_stale_image_statuses()
    print(f"\nReset complete: {count} entries reset")


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Reset entries stuck in queued/processing image status",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be reset without making changes",
    )
    parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Skip confirmation prompt",
    )

    args = parser.parse_args()
    asyncio.run(run(dry_run=args.dry_run, yes=args.yes))


if __name__ == "__main__":
    main()
