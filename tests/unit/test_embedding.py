"""Unit tests for embedders."""

import sys

import pytest

from mbox_search.embedding import DeterministicEmbedder, build_embedder_factory
from mbox_search.embedding.base import check_vectors
from mbox_search.embedding.deterministic import (
    WORD_CACHE_SIZE,
    _word_vector,
    vectorize_text_deterministic,
)
from mbox_search.exceptions import EncodeError
from mbox_search.search import cosine_similarity


class TestDeterministicEmbedder:
    """Test suite for DeterministicEmbedder."""

    @pytest.mark.parametrize("size", [0, 1, 4, 5])
    def test_embed_preserves_length_and_order(self, size) -> None:
        embedder = DeterministicEmbedder()
        texts = [f"text number {i}" for i in range(size)]

        vectors = embedder.embed(texts)

        assert len(vectors) == size
        assert vectors == [embedder.embed_line(text) for text in texts]
        assert all(len(v) == 384 for v in vectors)

    def test_same_text_same_vector(self) -> None:
        assert vectorize_text_deterministic("hello world") == vectorize_text_deterministic(
            "Hello, World!"
        )

    def test_shared_words_are_closer(self) -> None:
        query = vectorize_text_deterministic("budget review")
        related = vectorize_text_deterministic("please review the budget")
        unrelated = vectorize_text_deterministic("guitar concert tonight")

        assert cosine_similarity(query, related) > cosine_similarity(query, unrelated)

    def test_embed_line_goes_through_embed(self) -> None:
        class Recording(DeterministicEmbedder):
            def __init__(self) -> None:
                super().__init__()
                self.calls: list[list[str]] = []

            def embed(self, texts):
                self.calls.append(list(texts))
                return super().embed(texts)

        embedder = Recording()
        embedder.embed_line("quarterly budget")

        assert embedder.calls == [["quarterly budget"]]

    def test_word_cache_is_bounded(self) -> None:
        for i in range(WORD_CACHE_SIZE + 10):
            vectorize_text_deterministic(f"word{i}", size=4)

        info = _word_vector.cache_info()
        assert info.maxsize == WORD_CACHE_SIZE
        assert info.currsize <= WORD_CACHE_SIZE

    def test_text_without_words_is_zero_vector(self) -> None:
        assert vectorize_text_deterministic("  ...  ", size=8) == [0.0] * 8


def test_check_vectors() -> None:
    check_vectors([[1.0, 2.0]], expected=1, dimension=2)
    with pytest.raises(EncodeError):
        check_vectors([[1.0, 2.0]], expected=2, dimension=2)
    with pytest.raises(EncodeError):
        check_vectors([[1.0]], expected=1, dimension=2)


def test_factory_selects_deterministic_backend(mock_settings) -> None:
    embedder = build_embedder_factory(mock_settings)()

    assert isinstance(embedder, DeterministicEmbedder)
    assert embedder.dimension == mock_settings.embedding_dimension


def test_sentence_transformer_missing_library(monkeypatch, mock_settings) -> None:
    from mbox_search.embedding.sentence_transformer import SentenceTransformerEmbedder
    from mbox_search.exceptions import ModelUnavailableError

    monkeypatch.setitem(sys.modules, "sentence_transformers", None)

    with pytest.raises(ModelUnavailableError):
        SentenceTransformerEmbedder(mock_settings)
