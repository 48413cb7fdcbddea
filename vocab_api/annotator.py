"""Annotate lesson text with the meanings of known terms.

The output is structured (paragraphs of runs) rather than markup; rendering
highlighted runs with hover meanings is up to the client.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Tuple

from vocab_api.text import soft_breaks_to_spaces, split_paragraphs

logger = logging.getLogger(__name__)

_WORD_ONLY_RE = re.compile(r"\w+")


@dataclass
class Run:
    text: str
    term: Optional[str] = None      # dictionary key that matched, None for plain text
    meaning: Optional[str] = None

    @property
    def is_term(self) -> bool:
        return self.meaning is not None


@dataclass
class Paragraph:
    runs: List[Run] = field(default_factory=list)


def try_build_matcher(term: str) -> Optional[re.Pattern[str]]:
    """Compile a case-insensitive matcher for `term`, or None if it can't be matched.

    Terms made only of word characters are anchored at word boundaries, so "Art"
    does not match inside "Partei". Anything else (spaces, punctuation) is a
    plain substring search, because boundaries never line up around non-word
    characters.
    """
    label = (term or "").strip()
    if not label:
        return None
    escaped = re.escape(label)
    pattern = rf"\b{escaped}\b" if _WORD_ONLY_RE.fullmatch(label) else escaped
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        logger.debug("skipping term %r: %s", term, e)
        return None


def _ordered_matchers(terms: Mapping[str, str]) -> List[Tuple[str, str, re.Pattern[str]]]:
    """Matchers for every usable term, longest label first."""
    out: List[Tuple[str, str, re.Pattern[str]]] = []
    for term, meaning in terms.items():
        label = (term or "").strip() if isinstance(term, str) else ""
        if not label or not meaning:
            continue
        matcher = try_build_matcher(label)
        if matcher is None:
            continue
        out.append((label, str(meaning), matcher))
    # Ties broken by label so the order never depends on dict insertion.
    out.sort(key=lambda t: (-len(t[0]), t[0]))
    return out


def _split_run(run: Run, label: str, meaning: str, matcher: re.Pattern[str]) -> List[Run]:
    out: List[Run] = []
    pos = 0
    for m in matcher.finditer(run.text):
        if m.start() > pos:
            out.append(Run(text=run.text[pos:m.start()]))
        out.append(Run(text=m.group(0), term=label, meaning=meaning))
        pos = m.end()
    if pos == 0:
        return [run]
    if pos < len(run.text):
        out.append(Run(text=run.text[pos:]))
    return out


def annotate_paragraph(paragraph: str, matchers: List[Tuple[str, str, re.Pattern[str]]]) -> Paragraph:
    runs = [Run(text=soft_breaks_to_spaces(paragraph))]
    for label, meaning, matcher in matchers:
        next_runs: List[Run] = []
        for run in runs:
            # Highlighted text is never rescanned, so a shorter term can't split a longer one.
            if run.is_term:
                next_runs.append(run)
            else:
                next_runs.extend(_split_run(run, label, meaning, matcher))
        runs = next_runs
    return Paragraph(runs=runs)


def annotate(raw_text: str, terms: Optional[Mapping[str, str]]) -> List[Paragraph]:
    """Split `raw_text` into paragraphs and mark every occurrence of every term.

    Single newlines inside a paragraph become spaces. Matching ignores case;
    runs keep the text's original casing. Unusable terms are skipped, so this
    never raises for bad dictionary content.
    """
    matchers = _ordered_matchers(terms or {})
    return [annotate_paragraph(p, matchers) for p in split_paragraphs(raw_text)]


def plain_text(paragraphs: List[Paragraph], sep: str = "\n\n") -> str:
    """Join annotated paragraphs back into plain text."""
    return sep.join("".join(run.text for run in p.runs) for p in paragraphs)
