"""Shared defaults for SERP keyword clustering.

This module is the single source of truth for the numeric conventions and
default configuration values used across sub-packages:

* :data:`TOP_N_RESULTS` and :data:`SELF_OVERLAP_SCORE`: SERP top-10
  convention used by the overlap scorer and the overlap matrix diagonal.
* :data:`DEFAULT_PARAMS`: default thresholds for
  :class:`~serp_clusters.types.ClusteringParams`.
* Embedding provider defaults (model, credential variable, timeout).

Overriding defaults
-------------------
:data:`DEFAULT_PARAMS` is a ``frozen=True`` dataclass. To use other values
for a single run, pass them to ``ClusteringParams``::

    from serp_clusters import ClusteringParams

    params = ClusteringParams(overlap_threshold=4)
"""

from dataclasses import dataclass

__all__ = [
    "ParamDefaults",
    "DEFAULT_PARAMS",
    "TOP_N_RESULTS",
    "SELF_OVERLAP_SCORE",
    "SELF_DISTANCE",
    "MAX_DISTANCE",
    "DEFAULT_EMBEDDING_MODEL",
    "API_KEY_ENV_VAR",
    "DEFAULT_EMBEDDING_TIMEOUT",
    "DEFAULT_EMBEDDING_CHUNK_SIZE",
    "DEFAULT_MAX_KEYWORDS",
    "CLUSTER_NAME_PREFIX",
]


# ---------------------------------------------------------------------------
# SERP conventions
# ---------------------------------------------------------------------------

TOP_N_RESULTS: int = 10
SELF_OVERLAP_SCORE: int = 10
SELF_DISTANCE: float = 0.0
MAX_DISTANCE: float = 1.0


# ---------------------------------------------------------------------------
# Clustering parameter defaults
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ParamDefaults:
    """Default clustering thresholds.

    Attributes
    ----------
    overlap_threshold : int
        Minimum number of shared top-10 URLs for two keywords to merge.
    distance_threshold : float
        Maximum cosine distance still considered similar.
    min_cluster_size : int
        Groups smaller than this are reported as unclustered.
    semantic_provider : str
        ``"none"`` disables the semantic signal.
    """

    overlap_threshold: int = 3
    distance_threshold: float = 0.35
    min_cluster_size: int = 2
    semantic_provider: str = "none"


DEFAULT_PARAMS = ParamDefaults()


# ---------------------------------------------------------------------------
# Embedding provider
# ---------------------------------------------------------------------------

DEFAULT_EMBEDDING_MODEL: str = "text-embedding-3-small"
API_KEY_ENV_VAR: str = "OPENAI_API_KEY"
DEFAULT_EMBEDDING_TIMEOUT: float = 30.0
# OpenAI accepts at most 2048 inputs per embeddings request
DEFAULT_EMBEDDING_CHUNK_SIZE: int = 2048


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

DEFAULT_MAX_KEYWORDS: int = 5000
CLUSTER_NAME_PREFIX: str = "Cluster: "
