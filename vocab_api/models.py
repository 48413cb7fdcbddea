from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vocab_api.terms import TermDict


class Context(BaseModel):
    sentence: str
    start: int = Field(-1, ge=-1)  # offset of the term in sentence, -1 if unknown
    end: int = Field(-1, ge=-1)    # exclusive


class _Document(BaseModel):
    # Stored/wire names are camelCase ("lessonId", "createdAt"); attributes are snake_case.
    model_config = ConfigDict(populate_by_name=True)


class Lesson(_Document):
    id: str
    title: str
    content: str
    terms: Dict[str, str] = Field(default_factory=dict, alias="dict")
    created_at: Optional[str] = Field(None, alias="createdAt")
    updated_at: Optional[str] = Field(None, alias="updatedAt")

    @field_validator("terms", mode="before")
    @classmethod
    def _normalize_terms(cls, v: Any) -> TermDict:
        return TermDict.from_raw(v)


class Flashcard(_Document):
    id: str
    term: str
    meaning: str
    lesson_id: Optional[str] = Field(None, alias="lessonId")
    contexts: List[Context] = Field(default_factory=list)
    created_at: Optional[str] = Field(None, alias="createdAt")
    updated_at: Optional[str] = Field(None, alias="updatedAt")


# Request bodies. Required fields are checked in the handlers so blank strings
# get the same 400 as missing ones.

class LessonIn(_Document):
    id: Optional[str] = None
    title: Optional[str] = None
    content: Optional[str] = None
    terms: Optional[Any] = Field(None, alias="dict")


class LessonDelete(BaseModel):
    id: Optional[str] = None


class FlashcardIn(BaseModel):
    term: Optional[str] = None
    meaning: Optional[str] = None
    lesson_id: Optional[str] = None
    context: Optional[Context] = None


class FlashcardDelete(BaseModel):
    id: Optional[str] = None
    term: Optional[str] = None
    lesson_id: Optional[str] = None


class AnnotateRequest(_Document):
    content: str
    terms: Optional[Any] = Field(None, alias="dict")


class ContextRequest(BaseModel):
    text: str
    term: str


class RunOut(BaseModel):
    text: str
    term: Optional[str] = None
    meaning: Optional[str] = None


class ParagraphOut(BaseModel):
    runs: List[RunOut]
