"""
SERP clusters - keyword clustering for SEO content planning.

This package groups keyword lists into topical clusters by fusing two
similarity signals:

- SERP overlap: number of shared top-10 ranking URLs between two keywords
- Semantic distance (optional): cosine distance between text embeddings

It provides:

- Clustering: the union-find cluster engine, representative selection and
  manual merge/split editing
- Embeddings: pluggable semantic similarity providers (disabled or
  OpenAI/LangChain embedding-backed)
- Utils: loaders for keyword CSVs, long-format SERP exports and params files
"""

__version__ = "1.0.0"

from serp_clusters.clustering import (  # noqa: E402
    KeywordClusterer,
    cluster_keywords,
    merge_clusters,
    split_cluster,
)
from serp_clusters.embeddings import (  # noqa: E402
    DisabledProvider,
    EmbeddingProvider,
    SemanticProvider,
    get_semantic_provider,
)
from serp_clusters.exceptions import (  # noqa: E402
    ClusteringError,
    ConfigurationError,
    EmbeddingAuthenticationError,
    EmbeddingRateLimitError,
    EmbeddingTimeoutError,
    UpstreamError,
    ValidationError,
)
from serp_clusters.types import (  # noqa: E402
    Cluster,
    ClusteringParams,
    ClusteringResult,
    ClusterMember,
    Keyword,
    SemanticProviderKind,
)

__all__ = [
    "Cluster",
    "ClusterMember",
    "ClusteringParams",
    "ClusteringResult",
    "Keyword",
    "SemanticProviderKind",
    "KeywordClusterer",
    "cluster_keywords",
    "merge_clusters",
    "split_cluster",
    "SemanticProvider",
    "DisabledProvider",
    "EmbeddingProvider",
    "get_semantic_provider",
    "ClusteringError",
    "ValidationError",
    "ConfigurationError",
    "UpstreamError",
    "EmbeddingAuthenticationError",
    "EmbeddingRateLimitError",
    "EmbeddingTimeoutError",
]
