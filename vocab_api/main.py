from __future__ import annotations

import logging
import os
from dataclasses import asdict
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from vocab_api import store
from vocab_api.annotator import annotate
from vocab_api.context import extract_context, locate_term
from vocab_api.models import (
    AnnotateRequest,
    Context,
    ContextRequest,
    Flashcard,
    FlashcardDelete,
    FlashcardIn,
    Lesson,
    LessonDelete,
    LessonIn,
    ParagraphOut,
)
from vocab_api.store import StoreError
from vocab_api.terms import TermDict

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)


def _parse_csv_env(name: str) -> list[str]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return []
    return [x.strip() for x in raw.split(",") if x.strip()]


# CORS:
# - Default to a small allowlist (local dev). For production, set CORS_ORIGINS to your site origins.
#   Example:
#     CORS_ORIGINS=https://vocab.example.com,https://www.vocab.example.com
DEFAULT_CORS_ORIGINS = [
    "http://localhost",
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]
CORS_ORIGINS = _parse_csv_env("CORS_ORIGINS") or DEFAULT_CORS_ORIGINS

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(StoreError)
def store_error_handler(request: Request, exc: StoreError):
    logger.error("store error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": str(exc)})


def _blank(v: Optional[str]) -> bool:
    return not v or not v.strip()


@app.get("/health")
def health():
    return {
        "ok": True,
        "data_dir": str(store.DATA_DIR),
        "lessons_exists": (store.DATA_DIR / store.LESSONS_FILE).exists(),
        "flashcards_exists": (store.DATA_DIR / store.FLASHCARDS_FILE).exists(),
        "lessons": len(store.load_lessons()),
        "flashcards": len(store.load_flashcards()),
    }


# -----------------------------
# Lessons
# -----------------------------

def find_lesson(lesson_id: str) -> Lesson:
    lesson = store.get_lesson(lesson_id)
    if lesson is None:
        raise HTTPException(404, detail=f"lesson_id not found: {lesson_id}")
    return lesson


@app.get("/lessons", response_model=List[Lesson])
def list_lessons():
    return list(reversed(store.load_lessons()))


@app.get("/lessons/{lesson_id}", response_model=Lesson)
def get_lesson(lesson_id: str):
    return find_lesson(lesson_id)


@app.post("/lessons", response_model=Lesson, status_code=201)
def save_lesson(body: LessonIn):
    if _blank(body.title) or _blank(body.content):
        raise HTTPException(400, detail="title/content required")
    try:
        terms = TermDict.from_raw(body.terms)
    except TypeError as e:
        raise HTTPException(400, detail=str(e))
    return store.upsert_lesson(body.id, body.title, body.content, terms)


@app.delete("/lessons", status_code=204)
def delete_lesson(body: LessonDelete):
    if _blank(body.id):
        raise HTTPException(400, detail="id required")
    store.delete_lesson(body.id)
    return Response(status_code=204)


@app.get("/lessons/{lesson_id}/annotated", response_model=List[ParagraphOut])
def get_annotated_lesson(lesson_id: str):
    lesson = find_lesson(lesson_id)
    return [asdict(p) for p in annotate(lesson.content, lesson.terms)]


@app.post("/annotate", response_model=List[ParagraphOut])
def annotate_text(body: AnnotateRequest):
    """Annotate text that hasn't been saved yet (lesson preview)."""
    try:
        terms = TermDict.from_raw(body.terms)
    except TypeError as e:
        raise HTTPException(400, detail=str(e))
    return [asdict(p) for p in annotate(body.content, terms)]


@app.post("/context", response_model=Optional[Context])
def context_for_term(body: ContextRequest):
    return extract_context(body.text, body.term.strip())


# -----------------------------
# Flashcards
# -----------------------------

@app.get("/flashcards", response_model=List[Flashcard])
def list_flashcards(lesson_id: Optional[str] = Query(None)):
    cards = store.load_flashcards()
    if lesson_id is not None:
        cards = [c for c in cards if c.lesson_id == lesson_id]
    return list(reversed(cards))


@app.post("/flashcards", response_model=Flashcard)
def add_flashcard(body: FlashcardIn, response: Response):
    if _blank(body.term) or _blank(body.meaning):
        raise HTTPException(400, detail="term/meaning required")
    card, created = store.upsert_flashcard(body.term, body.meaning, body.lesson_id, body.context)
    response.status_code = 201 if created else 200
    return card


@app.delete("/flashcards", status_code=204)
def delete_flashcard(body: FlashcardDelete):
    if _blank(body.id) and _blank(body.term):
        raise HTTPException(400, detail="id or term required")
    store.delete_flashcards(
        card_id=body.id,
        term=body.term,
        lesson_id=body.lesson_id,
        scoped="lesson_id" in body.model_fields_set,
    )
    return Response(status_code=204)


@app.get("/flashcards/{card_id}/context", response_model=Context)
def get_flashcard_context(card_id: str):
    """First context of a card, with offsets re-located if the stored ones are unusable."""
    card = store.get_flashcard(card_id)
    if card is None:
        raise HTTPException(404, detail=f"card_id not found: {card_id}")
    if not card.contexts:
        raise HTTPException(404, detail=f"no context for card: {card_id}")

    ctx = card.contexts[0]
    span = locate_term(ctx.sentence, card.term, ctx.start, ctx.end)
    if span is None:
        return Context(sentence=ctx.sentence)
    return Context(sentence=ctx.sentence, start=span[0], end=span[1])
