# src/vaultrag/stores/buckets.py
"""Supported index bucket dimensions and vector casting.

Similarity indexes exist only for a fixed set of vector widths. A vector is
cast to the smallest bucket at least as wide as its own dimension by
appending zeros, which leaves its cosine similarity to any other padded
vector unchanged. Vectors are never truncated: a dimension wider than every
bucket has no index and is searched by sequential scan.
"""

import numpy as np

# Full-precision buckets (float32)
SUPPORTED_VECTOR_DIMENSIONS = (128, 256, 384, 512, 768, 1024, 1280, 1536, 1792)

# Half-precision buckets (float16) for widths too large for the full-precision index
SUPPORTED_HALFVEC_DIMENSIONS = (3072,)

SUPPORTED_BUCKET_DIMENSIONS = SUPPORTED_VECTOR_DIMENSIONS + SUPPORTED_HALFVEC_DIMENSIONS


def bucket_for(dimension: int) -> int | None:
    """Return the bucket width used for vectors of this dimension, or None."""
    if dimension <= 0:
        return None
    for bucket in SUPPORTED_BUCKET_DIMENSIONS:
        if dimension <= bucket:
            return bucket
    return None


def bucket_dtype(bucket: int) -> type[np.floating]:
    return np.float16 if bucket in SUPPORTED_HALFVEC_DIMENSIONS else np.float32


def cast_to_bucket(vector: list[float] | np.ndarray, bucket: int) -> np.ndarray:
    """Zero-pad a vector to the bucket width in the bucket's precision.

    Raises:
        ValueError: If the vector is wider than the bucket
    """
    values = np.asarray(vector, dtype=np.float32).reshape(-1)
    if values.shape[0] > bucket:
        raise ValueError(f"Cannot cast vector of dimension {values.shape[0]} to bucket {bucket}")
    padded = np.zeros(bucket, dtype=np.float32)
    padded[: values.shape[0]] = values
    return padded.astype(bucket_dtype(bucket))


def normalize(matrix: np.ndarray) -> np.ndarray:
    """L2-normalize rows (or a single vector) in float32; zero rows stay zero."""
    values = np.asarray(matrix, dtype=np.float32)
    norms = np.linalg.norm(values, axis=-1, keepdims=True)
    norms[norms == 0] = 1.0
    return values / norms
