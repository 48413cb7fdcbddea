"""JSON-file document store for lessons and flashcards.

lessons.json and flashcards.json under DATA_DIR each hold a JSON array of
documents, in creation order.
"""

from __future__ import annotations

import json
import logging
import os
import re
import threading
import time
from pathlib import Path
from typing import Any, List, Optional, Tuple

from vocab_api.context import append_context, extract_context
from vocab_api.models import Context, Flashcard, Lesson
from vocab_api.terms import TermDict, term_key

logger = logging.getLogger(__name__)

DATA_DIR = Path(os.getenv("DATA_DIR", "data")).resolve()

LESSONS_FILE = "lessons.json"
FLASHCARDS_FILE = "flashcards.json"

# Handlers run in a threadpool; every read-modify-write holds this.
_LOCK = threading.RLock()


class StoreError(RuntimeError):
    """A data file exists but can't be read as a list of documents."""


def _now() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime())


def _path(name: str) -> Path:
    return DATA_DIR / name


def _load_raw(name: str) -> List[dict]:
    path = _path(name)
    if not path.exists():
        return []
    try:
        raw = json.loads(path.read_text(encoding="utf-8") or "[]")
    except json.JSONDecodeError as e:
        raise StoreError(f"{path} is not valid JSON: {e}") from e
    if not isinstance(raw, list):
        raise StoreError(f"{path} must be a JSON array")
    return [d for d in raw if isinstance(d, dict)]


def _save_raw(name: str, docs: List[Any]) -> None:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    _path(name).write_text(
        json.dumps([d.model_dump(by_alias=True) for d in docs], ensure_ascii=False, indent=2),
        encoding="utf-8",
    )


def next_id(prefix: str, ids: List[str]) -> str:
    """Return the next id like card1, card2, ... based on existing ids."""
    max_n = 0
    for existing in ids:
        m = re.fullmatch(rf"{re.escape(prefix)}(\d+)", existing or "")
        if m:
            max_n = max(max_n, int(m.group(1)))
    return f"{prefix}{max_n + 1}"


# -----------------------------
# Lessons
# -----------------------------

def load_lessons() -> List[Lesson]:
    return [Lesson(**d) for d in _load_raw(LESSONS_FILE)]


def save_lessons(lessons: List[Lesson]) -> None:
    _save_raw(LESSONS_FILE, lessons)


def get_lesson(lesson_id: Optional[str]) -> Optional[Lesson]:
    if not lesson_id:
        return None
    for lesson in load_lessons():
        if lesson.id == lesson_id:
            return lesson
    return None


def upsert_lesson(lesson_id: Optional[str], title: str, content: str, terms: Any = None) -> Lesson:
    """Update the lesson named by `lesson_id`, or create a new one.

    An id that doesn't name an existing lesson gets a fresh lesson with a new id.
    """
    with _LOCK:
        lessons = load_lessons()
        now = _now()
        term_dict = TermDict.from_raw(terms)

        for i, lesson in enumerate(lessons):
            if lesson_id and lesson.id == lesson_id:
                updated = lesson.model_copy(
                    update={"title": title, "content": content, "terms": dict(term_dict), "updated_at": now}
                )
                lessons[i] = updated
                save_lessons(lessons)
                return updated

        lesson = Lesson(
            id=next_id("lesson", [x.id for x in lessons]),
            title=title,
            content=content,
            terms=term_dict,
            created_at=now,
            updated_at=now,
        )
        lessons.append(lesson)
        save_lessons(lessons)
        logger.info("created lesson %s (%d terms)", lesson.id, len(lesson.terms))
        return lesson


def delete_lesson(lesson_id: str) -> bool:
    """Delete a lesson and every flashcard that belongs to it."""
    with _LOCK:
        lessons = load_lessons()
        kept = [x for x in lessons if x.id != lesson_id]
        found = len(kept) != len(lessons)
        if found:
            save_lessons(kept)

        cards = load_flashcards()
        kept_cards = [c for c in cards if c.lesson_id != lesson_id]
        if len(kept_cards) != len(cards):
            save_flashcards(kept_cards)
            logger.info("deleted %d flashcard(s) of lesson %s", len(cards) - len(kept_cards), lesson_id)
        return found


def _sync_lesson_term(lesson_id: Optional[str], term: str, meaning: Optional[str]) -> None:
    """Set (or, with meaning=None, remove) a term in a lesson's dictionary."""
    if not lesson_id:
        return
    lessons = load_lessons()
    for i, lesson in enumerate(lessons):
        if lesson.id != lesson_id:
            continue
        terms = TermDict.from_raw(lesson.terms)
        if meaning is None:
            if not terms.remove(term):
                return
        else:
            terms.set(term, meaning)
        lessons[i] = lesson.model_copy(update={"terms": dict(terms), "updated_at": _now()})
        save_lessons(lessons)
        return


# -----------------------------
# Flashcards
# -----------------------------

def load_flashcards() -> List[Flashcard]:
    return [Flashcard(**d) for d in _load_raw(FLASHCARDS_FILE)]


def save_flashcards(cards: List[Flashcard]) -> None:
    _save_raw(FLASHCARDS_FILE, cards)


def get_flashcard(card_id: str) -> Optional[Flashcard]:
    for card in load_flashcards():
        if card.id == card_id:
            return card
    return None


def upsert_flashcard(
    term: str,
    meaning: str,
    lesson_id: Optional[str] = None,
    context: Optional[Context] = None,
) -> Tuple[Flashcard, bool]:
    """Create or update the card for `term` within `lesson_id`. Returns (card, created).

    Terms are compared ignoring case. A new context is appended unless the card
    already has the same sentence; with no context given, one is extracted from
    the lesson's text.
    """
    term = term.strip()
    meaning = meaning.strip()
    lesson_id = lesson_id or None

    with _LOCK:
        lesson = get_lesson(lesson_id)
        if context is None and lesson is not None:
            context = extract_context(lesson.content, term)

        cards = load_flashcards()
        now = _now()
        key = term_key(term)
        card: Optional[Flashcard] = None
        for c in cards:
            if term_key(c.term) == key and c.lesson_id == lesson_id:
                card = c
                break

        created = card is None
        if card is None:
            card = Flashcard(
                id=next_id("card", [c.id for c in cards]),
                term=term,
                meaning=meaning,
                lesson_id=lesson_id,
                created_at=now,
            )
            cards.append(card)
        else:
            card.meaning = meaning

        append_context(card.contexts, context)
        card.updated_at = now
        save_flashcards(cards)

        if lesson is not None:
            _sync_lesson_term(lesson_id, term, meaning)
        return card, created


def delete_flashcards(
    card_id: Optional[str] = None,
    term: Optional[str] = None,
    lesson_id: Optional[str] = None,
    scoped: bool = False,
) -> int:
    """Delete by id, or by term (ignoring case). Returns the number of cards removed.

    Deleting by term removes it from every lesson unless `scoped` is set, in
    which case only cards with exactly `lesson_id` go. The term is also removed
    from each owning lesson's dictionary.
    """
    with _LOCK:
        cards = load_flashcards()
        if card_id:
            doomed = [c for c in cards if c.id == card_id]
        elif term:
            key = term_key(term)
            doomed = [
                c for c in cards
                if term_key(c.term) == key and (not scoped or c.lesson_id == (lesson_id or None))
            ]
        else:
            return 0

        if not doomed:
            return 0
        doomed_ids = {c.id for c in doomed}
        save_flashcards([c for c in cards if c.id not in doomed_ids])

        for owner in dict.fromkeys(c.lesson_id for c in doomed):
            _sync_lesson_term(owner, term or doomed[0].term, None)
        return len(doomed)
