import pytest

from memcore.vector_index import centroid, cosine_rank


def test_ranks_by_cosine():
    hits = cosine_rank([1.0, 0.0], [("a", [0.0, 1.0]), ("b", [1.0, 1.0]), ("c", [2.0, 0.0])])
    assert [cid for cid, _ in hits] == ["c", "b", "a"]
    assert hits[0][1] == pytest.approx(1.0)
    assert hits[1][1] == pytest.approx(0.7071, abs=1e-4)


def test_threshold_and_k():
    candidates = [("a", [1.0, 0.0]), ("b", [1.0, 1.0]), ("c", [0.0, 1.0])]
    assert [cid for cid, _ in cosine_rank([1.0, 0.0], candidates, threshold=0.5)] == ["a", "b"]
    assert [cid for cid, _ in cosine_rank([1.0, 0.0], candidates, k=1)] == ["a"]


def test_skips_unusable_vectors():
    candidates = [("zero", [0.0, 0.0]), ("short", [1.0]), ("none", None), ("ok", [3.0, 4.0])]
    assert [cid for cid, _ in cosine_rank([3.0, 4.0], candidates)] == ["ok"]


def test_degenerate_inputs():
    assert cosine_rank([1.0, 0.0], []) == []
    assert cosine_rank([0.0, 0.0], [("a", [1.0, 0.0])]) == []


def test_centroid():
    assert centroid([[1.0, 0.0], [0.0, 1.0]]) == pytest.approx([0.5, 0.5])
    assert centroid([None, [2.0, 4.0]]) == pytest.approx([2.0, 4.0])
    assert centroid([]) is None
