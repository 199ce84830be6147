"""Nearest-neighbour ranking by Euclidean distance."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

import numpy as np

from codescout.core.errors import DimensionMismatchError
from codescout.retrieval.models import RankedResult


def euclidean_distance(a: Sequence[float], b: Sequence[float]) -> float:
    if len(a) != len(b):
        raise DimensionMismatchError.between(len(a), len(b))
    return float(np.linalg.norm(np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)))


def rank(
    query: Sequence[float],
    candidates: Mapping[str, Sequence[float]],
    k: int,
) -> list[RankedResult]:
    """Return the *k* candidates closest to *query*, nearest first.

    Ties keep the mapping's iteration order (stable sort).

    Raises:
        DimensionMismatchError: Any candidate's length differs from the query's.
    """
    if k <= 0 or not candidates:
        return []

    dim = len(query)
    identities = list(candidates)
    for identity in identities:
        size = len(candidates[identity])
        if size != dim:
            raise DimensionMismatchError.between(dim, size, identity)

    matrix = np.asarray([candidates[i] for i in identities], dtype=np.float64)
    q_vec = np.asarray(query, dtype=np.float64)
    distances = np.linalg.norm(matrix - q_vec, axis=1)

    order = np.argsort(distances, kind="stable")[:k]
    return [RankedResult(identity=identities[i], distance=float(distances[i])) for i in order]
