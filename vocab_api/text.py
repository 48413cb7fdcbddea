"""Paragraph and sentence segmentation shared by the annotator and the context extractor."""

from __future__ import annotations

import re
from typing import List

# One or more blank lines separate paragraphs.
_PARAGRAPH_SEP_RE = re.compile(r"\n\s*\n+")

# Sentence ends: punctuation followed by whitespace, or any run of newlines.
# No abbreviation handling ("Dr.", "z.B." split too).
_SENTENCE_SEP_RE = re.compile(r"(?<=[.?!:;])\s+|\n+")


def split_paragraphs(text: str) -> List[str]:
    """Split text into paragraphs on blank lines. Outer whitespace is stripped first."""
    text = (text or "").strip()
    if not text:
        return []
    return _PARAGRAPH_SEP_RE.split(text)


def split_sentences(text: str) -> List[str]:
    """Split text into raw sentence candidates, in document order.

    Segments are returned untrimmed and may be empty; callers strip them.
    """
    if not text:
        return []
    out: List[str] = []
    for paragraph in _PARAGRAPH_SEP_RE.split(text):
        out.extend(_SENTENCE_SEP_RE.split(paragraph))
    return out


def soft_breaks_to_spaces(paragraph: str) -> str:
    return paragraph.replace("\n", " ")
