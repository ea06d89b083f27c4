"""Unit tests for the in-memory cosine index."""

import random

import pytest

from mbox_search.exceptions import SearchError
from mbox_search.search import MemoryCosine, cosine_similarity


def test_cosine_similarity_basic() -> None:
    assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
    assert cosine_similarity([1.0, 1.0], [1.0, 1.0]) == pytest.approx(1.0)
    assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)


@pytest.mark.parametrize("other", [[0.0, 0.0], [1.0, 2.0], [-3.0, 0.5]])
def test_cosine_similarity_zero_vector(other) -> None:
    assert cosine_similarity([0.0, 0.0], other) == 0.0
    assert cosine_similarity(other, [0.0, 0.0]) == 0.0


def test_index_and_search() -> None:
    repo = MemoryCosine()
    repo.index(1, [1.0, 0.0])
    repo.index(2, [0.0, 1.0])
    repo.index(3, [1.0, 1.0])

    results = repo.search([1.0, 0.0], 2)

    assert [r.id for r in results] == [1, 3]
    assert results[0].score == pytest.approx(1.0)


def test_search_with_zero_vector() -> None:
    repo = MemoryCosine()
    repo.index(1, [0.0, 0.0])

    results = repo.search([1.0, 0.0], 1)

    assert results[0].score == 0.0


def test_last_write_wins() -> None:
    repo = MemoryCosine()
    repo.index(1, [1.0, 0.0])
    repo.index(1, [0.0, 1.0])

    results = repo.search([0.0, 1.0], 5)

    assert len(repo) == 1
    assert results[0].score == pytest.approx(1.0)


def test_search_is_exact_top_k() -> None:
    rng = random.Random(7)
    vectors = {i: [rng.uniform(-1, 1) for _ in range(16)] for i in range(200)}
    query = [rng.uniform(-1, 1) for _ in range(16)]

    repo = MemoryCosine()
    for email_id, vector in vectors.items():
        repo.index(email_id, vector)

    expected = sorted(vectors, key=lambda i: cosine_similarity(query, vectors[i]), reverse=True)
    results = repo.search(query, 10)

    assert [r.id for r in results] == expected[:10]
    scores = [r.score for r in results]
    assert scores == sorted(scores, reverse=True)


def test_k_larger_than_index() -> None:
    repo = MemoryCosine()
    repo.index(1, [1.0])
    repo.index(2, [2.0])

    assert len(repo.search([1.0], 5)) == 2


def test_k_zero_and_empty_index() -> None:
    repo = MemoryCosine()
    assert repo.search([1.0], 3) == []
    repo.index(1, [1.0])
    assert repo.search([1.0], 0) == []


def test_dimension_mismatch() -> None:
    repo = MemoryCosine()
    repo.index(1, [1.0, 0.0])

    with pytest.raises(SearchError):
        repo.search([1.0, 0.0, 0.0], 1)
