from vidfed.backend.base import (
    DetailFetcher,
    EmbeddingBackend,
    PartitionClient,
    SimilarityBackend,
    VideoCatalog,
)
from vidfed.backend.http import HttpBackend, HttpPartitionClient

__all__ = [
    "DetailFetcher",
    "EmbeddingBackend",
    "HttpBackend",
    "HttpPartitionClient",
    "PartitionClient",
    "SimilarityBackend",
    "VideoCatalog",
]
