"""Sentence context extraction for flashcards.

A context is the sentence a term was picked from, with the term's offsets inside it.
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from vocab_api.models import Context
from vocab_api.text import split_sentences

# Characters kept on each side of the match when a window is cut instead of a sentence.
WINDOW_CHARS = 60

# Longer "sentences" (unpunctuated text) are cut down to a window.
MAX_SENTENCE_CHARS = 200


def _search(text: str, term: str) -> Optional[re.Match[str]]:
    return re.search(re.escape(term), text, re.IGNORECASE)


def _window(text: str, m: re.Match[str]) -> Context:
    lo = max(0, m.start() - WINDOW_CHARS)
    hi = min(len(text), m.end() + WINDOW_CHARS)
    window = text[lo:hi]
    lead = len(window) - len(window.lstrip())
    start = m.start() - lo - lead
    return Context(sentence=window.strip(), start=start, end=start + (m.end() - m.start()))


def extract_context(full_text: str, term: str) -> Optional[Context]:
    """Return the first sentence of `full_text` containing `term`, or None.

    Offsets are relative to the returned (stripped) sentence. A term that spans a
    sentence break falls back to a window of up to WINDOW_CHARS characters on
    each side of its first occurrence; so does a sentence longer than
    MAX_SENTENCE_CHARS.
    """
    if not full_text or not term:
        return None

    for raw in split_sentences(full_text):
        sentence = raw.strip()
        m = _search(sentence, term)
        if m is None:
            continue
        if len(sentence) > MAX_SENTENCE_CHARS:
            return _window(sentence, m)
        return Context(sentence=sentence, start=m.start(), end=m.end())

    m = _search(full_text, term)
    if m is None:
        return None
    return _window(full_text, m)


def context_key(sentence: str) -> str:
    return (sentence or "").strip().casefold()


def append_context(contexts: List[Context], ctx: Optional[Context]) -> bool:
    """Append `ctx` unless an equal sentence (trimmed, case-folded) is already there."""
    if ctx is None or not ctx.sentence.strip():
        return False
    key = context_key(ctx.sentence)
    if any(context_key(c.sentence) == key for c in contexts):
        return False
    contexts.append(ctx)
    return True


def locate_term(sentence: str, term: str, start: int = -1, end: int = -1) -> Optional[Tuple[int, int]]:
    """Offsets to highlight `term` in `sentence`.

    Stored offsets are trusted when they describe a non-empty span inside the
    sentence. Otherwise (-1 defaults, stale offsets) the term is searched for
    again, ignoring case. None if it isn't there at all.
    """
    if 0 <= start < end <= len(sentence or ""):
        return start, end
    if not sentence or not term:
        return None
    m = _search(sentence, term)
    if m is None:
        return None
    return m.start(), m.end()
