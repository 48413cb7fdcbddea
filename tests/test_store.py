import json

import pytest

from vocab_api import store
from vocab_api.models import Context, Flashcard
from vocab_api.store import StoreError, next_id

TEXT = "Ich gehe. Das Haus ist groß.\n\nDie Tür ist rot."


def test_next_id():
    assert next_id("card", []) == "card1"
    assert next_id("card", ["card1", "card7", "lesson9", "cardX"]) == "card8"


def test_missing_files_are_empty(data_dir):
    assert store.load_lessons() == []
    assert store.load_flashcards() == []


def test_corrupt_file_raises(data_dir):
    (data_dir / store.LESSONS_FILE).write_text('{"not": "a list"}', encoding="utf-8")
    with pytest.raises(StoreError):
        store.load_lessons()

    (data_dir / store.FLASHCARDS_FILE).write_text("[{", encoding="utf-8")
    with pytest.raises(StoreError):
        store.load_flashcards()


class TestLessons:
    def test_create_assigns_ids(self, data_dir):
        first = store.upsert_lesson(None, "Eins", TEXT, {"Haus": "house"})
        second = store.upsert_lesson(None, "Zwei", "Hallo.")

        assert first.id == "lesson1"
        assert second.id == "lesson2"
        assert first.terms == {"Haus": "house"}
        assert first.created_at is not None

    def test_stored_with_camel_case_keys(self, data_dir):
        store.upsert_lesson(None, "Eins", TEXT, {"Haus": "house"})
        raw = json.loads((data_dir / store.LESSONS_FILE).read_text(encoding="utf-8"))
        assert raw[0]["dict"] == {"Haus": "house"}
        assert "createdAt" in raw[0]

    def test_update_keeps_id_and_created_at(self, data_dir):
        lesson = store.upsert_lesson(None, "Eins", TEXT)
        updated = store.upsert_lesson(lesson.id, "Neu", "Anderer Text.", {"Text": "text"})

        assert updated.id == lesson.id
        assert updated.created_at == lesson.created_at
        assert [l.title for l in store.load_lessons()] == ["Neu"]
        assert store.get_lesson(lesson.id).terms == {"Text": "text"}

    def test_unknown_id_creates(self, data_dir):
        store.upsert_lesson(None, "Eins", TEXT)
        lesson = store.upsert_lesson("not-an-id", "Zwei", TEXT)
        assert lesson.id == "lesson2"
        assert len(store.load_lessons()) == 2

    def test_terms_normalized_case_insensitively(self, data_dir):
        lesson = store.upsert_lesson(None, "Eins", TEXT, {"Haus": "house", "haus": "home"})
        assert lesson.terms == {"haus": "home"}

    def test_delete_cascades_to_flashcards(self, data_dir):
        keep = store.upsert_lesson(None, "Eins", TEXT)
        doomed = store.upsert_lesson(None, "Zwei", TEXT)
        store.upsert_flashcard("Haus", "house", keep.id)
        store.upsert_flashcard("Haus", "house", doomed.id)
        store.upsert_flashcard("Tür", "door", doomed.id)
        store.upsert_flashcard("Hallo", "hello")

        assert store.delete_lesson(doomed.id)

        assert [l.id for l in store.load_lessons()] == [keep.id]
        assert sorted((c.term, c.lesson_id) for c in store.load_flashcards()) == [
            ("Hallo", None),
            ("Haus", keep.id),
        ]

    def test_delete_missing_lesson(self, data_dir):
        assert not store.delete_lesson("lesson42")


class TestFlashcards:
    def test_create_extracts_context_and_syncs_lesson(self, data_dir):
        lesson = store.upsert_lesson(None, "Eins", TEXT)

        card, created = store.upsert_flashcard("Haus", "house", lesson.id)

        assert created
        assert card.id == "card1"
        assert card.lesson_id == lesson.id
        assert card.contexts == [Context(sentence="Das Haus ist groß.", start=4, end=8)]
        assert store.get_lesson(lesson.id).terms == {"Haus": "house"}

    def test_upsert_same_term_other_case_updates(self, data_dir):
        lesson = store.upsert_lesson(None, "Eins", TEXT)
        first, _ = store.upsert_flashcard("Haus", "house", lesson.id)

        card, created = store.upsert_flashcard("HAUS", "building", lesson.id)

        assert not created
        assert card.id == first.id
        assert card.meaning == "building"
        assert len(card.contexts) == 1
        assert len(store.load_flashcards()) == 1
        assert store.get_lesson(lesson.id).terms == {"HAUS": "building"}

    def test_same_term_in_other_lesson_is_separate(self, data_dir):
        one = store.upsert_lesson(None, "Eins", TEXT)
        two = store.upsert_lesson(None, "Zwei", TEXT)
        store.upsert_flashcard("Haus", "house", one.id)
        _, created = store.upsert_flashcard("Haus", "house", two.id)
        assert created
        assert len(store.load_flashcards()) == 2

    def test_explicit_context_appended_once(self, data_dir):
        ctx = Context(sentence="Ein Haus am See.", start=4, end=8)
        store.upsert_flashcard("Haus", "house", context=ctx)
        card, _ = store.upsert_flashcard("Haus", "house", context=Context(sentence=" ein haus am see. "))
        assert card.contexts == [ctx]

        card, _ = store.upsert_flashcard("Haus", "house", context=Context(sentence="Das Haus brennt."))
        assert [c.sentence for c in card.contexts] == ["Ein Haus am See.", "Das Haus brennt."]

    def test_no_lesson_no_context(self, data_dir):
        card, created = store.upsert_flashcard("Haus", "house")
        assert created
        assert card.lesson_id is None
        assert card.contexts == []

    def test_term_missing_from_lesson_text(self, data_dir):
        lesson = store.upsert_lesson(None, "Eins", TEXT)
        card, _ = store.upsert_flashcard("Katze", "cat", lesson.id)
        assert card.contexts == []
        assert store.get_lesson(lesson.id).terms == {"Katze": "cat"}

    def test_delete_by_id(self, data_dir):
        lesson = store.upsert_lesson(None, "Eins", TEXT)
        card, _ = store.upsert_flashcard("Haus", "house", lesson.id)
        store.upsert_flashcard("Tür", "door", lesson.id)

        assert store.delete_flashcards(card_id=card.id) == 1

        assert [c.term for c in store.load_flashcards()] == ["Tür"]
        assert store.get_lesson(lesson.id).terms == {"Tür": "door"}

    def test_delete_by_term_everywhere(self, data_dir):
        one = store.upsert_lesson(None, "Eins", TEXT)
        two = store.upsert_lesson(None, "Zwei", TEXT)
        store.upsert_flashcard("Haus", "house", one.id)
        store.upsert_flashcard("Haus", "house", two.id)

        assert store.delete_flashcards(term="haus") == 2

        assert store.load_flashcards() == []
        assert store.get_lesson(one.id).terms == {}
        assert store.get_lesson(two.id).terms == {}

    def test_delete_by_term_scoped_to_lesson(self, data_dir):
        one = store.upsert_lesson(None, "Eins", TEXT)
        store.upsert_flashcard("Haus", "house", one.id)
        store.upsert_flashcard("Haus", "house")

        assert store.delete_flashcards(term="Haus", lesson_id=None, scoped=True) == 1

        remaining = store.load_flashcards()
        assert [(c.term, c.lesson_id) for c in remaining] == [("Haus", one.id)]

    def test_delete_nothing(self, data_dir):
        assert store.delete_flashcards() == 0
        assert store.delete_flashcards(card_id="card9") == 0

    def test_load_card_without_contexts_field(self, data_dir):
        (data_dir / store.FLASHCARDS_FILE).write_text(
            json.dumps([{"id": "card1", "term": "Haus", "meaning": "house", "lessonId": None}]),
            encoding="utf-8",
        )
        assert store.load_flashcards() == [Flashcard(id="card1", term="Haus", meaning="house")]
