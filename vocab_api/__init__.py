"""Language-learning lessons and flashcards API."""
