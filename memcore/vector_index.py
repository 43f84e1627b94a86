# memcore/vector_index.py
from typing import List, Optional, Sequence, Tuple
import numpy as np
import faiss


def _as_matrix(vectors: Sequence[Sequence[float]]) -> np.ndarray:
    return np.ascontiguousarray(np.asarray(vectors, dtype=np.float32))


def cosine_rank(query: Sequence[float], candidates: Sequence[Tuple[str, Sequence[float]]],
                threshold: float = 0.0, k: Optional[int] = None) -> List[Tuple[str, float]]:
    """
    Rank (id, vector) candidates against query by cosine similarity.

    Vectors are L2-normalized and searched with a flat inner-product index,
    so the inner product is the cosine. Zero vectors and vectors whose
    dimension differs from the query's never match. Returns (id, similarity)
    pairs with similarity >= threshold, best first, at most k of them.
    """
    if not candidates or query is None:
        return []
    qv = _as_matrix([query])
    dim = qv.shape[1]
    if dim == 0 or not np.any(qv):
        return []

    ids, rows = [], []
    for cid, vec in candidates:
        if vec is None or len(vec) != dim:
            continue
        ids.append(cid)
        rows.append(vec)
    if not rows:
        return []

    X = _as_matrix(rows)
    nonzero = np.linalg.norm(X, axis=1) > 0
    if not nonzero.all():
        X = np.ascontiguousarray(X[nonzero])
        ids = [cid for cid, keep in zip(ids, nonzero) if keep]
    if X.shape[0] == 0:
        return []

    faiss.normalize_L2(X)
    faiss.normalize_L2(qv)
    index = faiss.IndexFlatIP(dim)
    index.add(X)
    D, I = index.search(qv, index.ntotal)

    results = []
    for score, idx in zip(D[0], I[0]):
        if idx < 0:
            continue
        sim = min(1.0, float(score))
        if sim >= threshold:
            results.append((ids[idx], sim))
    if k is not None:
        results = results[:k]
    return results


def centroid(vectors: Sequence[Sequence[float]]) -> Optional[List[float]]:
    """Mean of same-dimension vectors, or None when there are none."""
    rows = [v for v in vectors if v is not None]
    if not rows:
        return None
    dim = len(rows[0])
    rows = [v for v in rows if len(v) == dim]
    return _as_matrix(rows).mean(axis=0).astype(float).tolist()
