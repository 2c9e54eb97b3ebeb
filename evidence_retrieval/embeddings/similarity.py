"""Vector similarity helpers."""

import numpy as np


def cosine_similarity(a, b) -> float:
    """
    Cosine similarity of two vectors, in [-1, 1].

    Returns 0.0 when either vector is missing, their lengths differ, or one
    of them has zero magnitude.
    """
    if a is None or b is None:
        return 0.0

    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.shape != b.shape or a.size == 0:
        return 0.0

    denom = np.linalg.norm(a) * np.linalg.norm(b)
    if denom <= 0:
        return 0.0
    return float(np.dot(a, b) / denom)
