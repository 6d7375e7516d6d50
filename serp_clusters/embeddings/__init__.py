"""
Semantic similarity providers for keyword clustering.

Recommended usage:
    from serp_clusters.embeddings import get_semantic_provider
    provider = get_semantic_provider("openai")
"""

from .semantic import (
    DisabledProvider,
    EmbeddingProvider,
    SemanticProvider,
    get_semantic_provider,
)

__all__ = [
    "SemanticProvider",
    "DisabledProvider",
    "EmbeddingProvider",
    "get_semantic_provider",
]
