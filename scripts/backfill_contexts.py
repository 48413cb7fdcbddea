#!/usr/bin/env python3
"""backfill_contexts.py

Give every flashcard a `contexts` list, and fill in a context for cards that
have none but belong to a lesson: the sentence of the lesson text where the
term first appears.

Safe to re-run: cards that already have a context are left alone, and the same
sentence is never stored twice on a card.

Usage:
  python scripts/backfill_contexts.py --data-dir ./data
  python scripts/backfill_contexts.py --dry-run
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from vocab_api import store
from vocab_api.context import append_context, extract_context


def backfill(dry_run: bool = False) -> tuple[int, int]:
    """Return (processed, updated) card counts."""
    lessons = {lesson.id: lesson for lesson in store.load_lessons()}
    cards = store.load_flashcards()

    processed = 0
    updated = 0
    for card in cards:
        processed += 1
        if card.contexts:
            continue
        lesson = lessons.get(card.lesson_id or "")
        if lesson is None or not lesson.content:
            continue

        ctx = extract_context(lesson.content, card.term)
        if not append_context(card.contexts, ctx):
            continue

        updated += 1
        if updated % 50 == 0:
            print(f"Updated {updated} cards...", file=sys.stderr)

    # Rewriting also materializes "contexts": [] on cards stored without the field.
    if not dry_run:
        store.save_flashcards(cards)
    return processed, updated


def main() -> None:
    ap = argparse.ArgumentParser(description="Backfill flashcard contexts from their lessons")
    ap.add_argument(
        "--data-dir",
        default=os.getenv("DATA_DIR", "data"),
        help="Directory holding lessons.json and flashcards.json (default: $DATA_DIR or ./data)",
    )
    ap.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would change without writing flashcards.json",
    )
    args = ap.parse_args()

    store.DATA_DIR = Path(args.data_dir).resolve()
    print(f"Data dir: {store.DATA_DIR}")

    processed, updated = backfill(dry_run=args.dry_run)

    suffix = " (dry run, nothing written)" if args.dry_run else ""
    print(f"Done. Processed: {processed}, Updated with context: {updated}{suffix}")


if __name__ == "__main__":
    main()
