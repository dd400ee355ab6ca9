"""Embedding vector serialisation and similarity helpers."""

from __future__ import annotations

from typing import Sequence

import numpy as np
from numpy.typing import NDArray

_EPS = 1e-12
_VECTOR_DTYPE = np.dtype("<f4")


def encode_vector(values: Sequence[float]) -> bytes:
    """Pack *values* into little-endian float32 bytes for storage."""

    return np.asarray(values, dtype=_VECTOR_DTYPE).tobytes()


def decode_vector(blob: bytes) -> NDArray[np.float32]:
    return np.frombuffer(blob, dtype=_VECTOR_DTYPE)


def cosine_similarities(query: NDArray[np.floating], matrix: NDArray[np.floating]) -> NDArray[np.float64]:
    """Return the cosine similarity between *query* and every row of *matrix*.

    Rows (or a query) with zero norm score 0.0 rather than NaN.
    """

    if matrix.size == 0:
        return np.zeros(0, dtype=np.float64)
    q = np.asarray(query, dtype=np.float64)
    m = np.asarray(matrix, dtype=np.float64)
    q_norm = np.linalg.norm(q)
    row_norms = np.linalg.norm(m, axis=1)
    denom = row_norms * q_norm
    dots = m @ q
    return np.divide(dots, denom, out=np.zeros_like(dots), where=denom > _EPS)
