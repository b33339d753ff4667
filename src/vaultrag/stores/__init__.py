# src/vaultrag/stores/__init__.py
"""Storage abstractions for vaultrag."""

from vaultrag.stores.base import BucketIndex, IndexEntry, VectorStore
from vaultrag.stores.bucket_index import NumpyBucketIndex
from vaultrag.stores.buckets import (
    SUPPORTED_BUCKET_DIMENSIONS,
    SUPPORTED_HALFVEC_DIMENSIONS,
    SUPPORTED_VECTOR_DIMENSIONS,
    bucket_for,
    cast_to_bucket,
)
from vaultrag.stores.sqlite_vector import SQLiteVectorStore

try:
    from vaultrag.stores.chroma import ChromaBucketIndex
except ImportError:
    from vaultrag._optional import _create_missing_dependency_class

    ChromaBucketIndex = _create_missing_dependency_class(  # type: ignore[misc,assignment]
        "ChromaBucketIndex", "chroma"
    )

__all__ = [
    "VectorStore",
    "BucketIndex",
    "IndexEntry",
    "SQLiteVectorStore",
    "NumpyBucketIndex",
    "ChromaBucketIndex",
    "SUPPORTED_VECTOR_DIMENSIONS",
    "SUPPORTED_HALFVEC_DIMENSIONS",
    "SUPPORTED_BUCKET_DIMENSIONS",
    "bucket_for",
    "cast_to_bucket",
]
