"""
Keyword clustering by SERP overlap and optional semantic similarity.

Two keywords are merged when they share at least ``overlap_threshold`` of
their top-10 result URLs and, if the semantic provider is enabled, their
embedding cosine distance is at most ``distance_threshold``. Merges are
accumulated with a union-find structure, so clusters are the transitive
closure of the pairwise merge relation.

Main Components
---------------
KeywordClusterer : class
    Holds the run configuration (params, provider, input bound) and
    produces a fresh :class:`~serp_clusters.types.ClusteringResult` per call
cluster_keywords : function
    Convenience function for a single run

Algorithm
---------
1. Validate the input and size bound.
2. If semantic is enabled, embed every keyword text in one request and
   build the semantic distance matrix.
3. Build the overlap matrix.
4. ``union(i, j)`` for every pair meeting both conditions.
5. Group by root; groups below ``min_cluster_size`` go to ``unclustered``
   in full.
6. Pick each representative by search volume (ties: first in input).

Examples
--------
>>> from serp_clusters import Keyword, ClusteringParams, cluster_keywords
>>> keywords = [
...     Keyword("running shoes", serp_urls=[...], search_volume=5400),
...     Keyword("best running shoes", serp_urls=[...], search_volume=2900),
... ]
>>> result = cluster_keywords(keywords, ClusteringParams(overlap_threshold=3))
>>> result.clusters[0].representative
'running shoes'

Notes
-----
All state (matrices, union-find arrays) is local to a call, so one
``KeywordClusterer`` can serve concurrent runs. Cost is O(N^2) in time and
memory; inputs larger than ``max_keywords`` are rejected up front instead of
falling back to an approximate method.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np
from tqdm import tqdm

from serp_clusters.DEFAULT_CONSTS import CLUSTER_NAME_PREFIX, DEFAULT_MAX_KEYWORDS
from serp_clusters.clustering.matrix_builder import (
    build_overlap_matrix,
    build_semantic_matrix,
)
from serp_clusters.clustering.representatives import highest_volume_representative
from serp_clusters.clustering.union_find import DisjointSet
from serp_clusters.embeddings.semantic import SemanticProvider, get_semantic_provider
from serp_clusters.exceptions import ValidationError
from serp_clusters.types import (
    Cluster,
    ClusteringParams,
    ClusteringResult,
    Keyword,
    members_from_keywords,
)

LOGGER = logging.getLogger(__name__)


class KeywordClusterer:
    """
    Cluster keywords into disjoint topical groups.

    Parameters
    ----------
    params : Optional[ClusteringParams]
        Thresholds and provider selection; defaults are used if None
    semantic_provider : Optional[SemanticProvider]
        Provider used when ``params.semantic_enabled``. If None, one is built
        with :func:`get_semantic_provider` on first use (the OpenAI provider
        reads ``OPENAI_API_KEY``).
    max_keywords : int
        Largest accepted input size
    show_progress : bool
        Whether to show progress bars for the O(N^2) phases
    """

    def __init__(
        self,
        params: Optional[ClusteringParams] = None,
        semantic_provider: Optional[SemanticProvider] = None,
        max_keywords: int = DEFAULT_MAX_KEYWORDS,
        show_progress: bool = False,
    ):
        self.params = params if params is not None else ClusteringParams()
        if not isinstance(self.params, ClusteringParams):
            raise ValidationError(
                f"params must be ClusteringParams, got {type(self.params).__name__}"
            )
        if max_keywords < 1:
            raise ValidationError(f"max_keywords must be at least 1, got {max_keywords}")

        self.semantic_provider = semantic_provider
        self.max_keywords = max_keywords
        self.show_progress = show_progress

    def _get_provider(self) -> SemanticProvider:
        if self.semantic_provider is None:
            self.semantic_provider = get_semantic_provider(self.params.semantic_provider)
        return self.semantic_provider

    def _validate_keywords(self, keywords: Sequence[Keyword]) -> List[Keyword]:
        keywords = list(keywords)
        for i, keyword in enumerate(keywords):
            if not isinstance(keyword, Keyword):
                raise ValidationError(
                    f"Item {i} is not a Keyword: {type(keyword).__name__}"
                )
        if len(keywords) > self.max_keywords:
            raise ValidationError(
                f"Got {len(keywords)} keywords, more than the limit of "
                f"{self.max_keywords}"
            )
        if self.params.semantic_enabled:
            limit = self._get_provider().max_texts_per_request
            if limit is not None and len(keywords) > limit:
                raise ValidationError(
                    f"Got {len(keywords)} keywords, more than the {limit} texts the "
                    f"semantic provider embeds in one request"
                )
        return keywords

    def _should_merge(
        self,
        i: int,
        j: int,
        overlap_matrix: np.ndarray,
        semantic_matrix: Optional[np.ndarray],
    ) -> bool:
        if overlap_matrix[i, j] < self.params.overlap_threshold:
            return False
        # Semantic distance can veto an overlap match, never create one
        if semantic_matrix is not None and semantic_matrix[i, j] > self.params.distance_threshold:
            return False
        return True

    def cluster(self, keywords: Sequence[Keyword]) -> ClusteringResult:
        """
        Run clustering over a keyword list.

        Parameters
        ----------
        keywords : Sequence[Keyword]
            Keywords in a meaningful order; order breaks representative ties

        Returns
        -------
        ClusteringResult
            Clusters (in order of their first member), the params used and
            the unclustered keywords (in input order)

        Raises
        ------
        ValidationError
            If an item is not a Keyword, the input exceeds ``max_keywords``, or
            semantic similarity is enabled and the input exceeds what the
            provider embeds in one request
        ConfigurationError
            If the semantic provider has no credential
        UpstreamError
            If the embedding request fails; no partial result is produced
        """
        keywords = self._validate_keywords(keywords)
        params = self.params
        n = len(keywords)

        if n == 0:
            return ClusteringResult(clusters=[], params=params, unclustered=[])

        LOGGER.info(
            f"Clustering {n} keywords (overlap>={params.overlap_threshold}, "
            f"semantic={params.semantic_provider.value}, "
            f"min_cluster_size={params.min_cluster_size})"
        )

        semantic_matrix = None
        if params.semantic_enabled:
            provider = self._get_provider()
            embeddings = provider.embed([keyword.text for keyword in keywords])
            semantic_matrix = build_semantic_matrix(embeddings, provider)

        overlap_matrix = build_overlap_matrix(keywords, show_progress=self.show_progress)

        disjoint_set = DisjointSet(n)
        n_merges = 0
        rows = tqdm(range(n), desc="Merging pairs", disable=not self.show_progress)
        for i in rows:
            for j in range(i + 1, n):
                if self._should_merge(i, j, overlap_matrix, semantic_matrix):
                    n_merges += disjoint_set.union(i, j)
        LOGGER.debug(f"Performed {n_merges} merges")

        clusters: List[Cluster] = []
        unclustered_indices: List[int] = []
        for group in disjoint_set.groups():
            if len(group) < params.min_cluster_size:
                unclustered_indices.extend(group)
                continue

            rep_index = highest_volume_representative(keywords, group)
            representative = keywords[rep_index]
            clusters.append(
                Cluster(
                    name=f"{CLUSTER_NAME_PREFIX}{representative.text}",
                    members=members_from_keywords(
                        [keywords[i] for i in group],
                        representative_index=group.index(rep_index),
                    ),
                )
            )

        unclustered = [keywords[i] for i in sorted(unclustered_indices)]
        result = ClusteringResult(clusters=clusters, params=params, unclustered=unclustered)

        summary = result.summary()
        LOGGER.info(
            f"Clustering complete: {summary['n_clusters']} clusters with "
            f"{summary['n_clustered']} keywords, {summary['n_unclustered']} unclustered"
        )
        return result


def cluster_keywords(
    keywords: Sequence[Keyword],
    params: Optional[ClusteringParams] = None,
    semantic_provider: Optional[SemanticProvider] = None,
    max_keywords: int = DEFAULT_MAX_KEYWORDS,
    show_progress: bool = False,
) -> ClusteringResult:
    """
    Cluster keywords in one call.

    See :class:`KeywordClusterer` for parameters and
    :meth:`KeywordClusterer.cluster` for the result and errors.
    """
    clusterer = KeywordClusterer(
        params=params,
        semantic_provider=semantic_provider,
        max_keywords=max_keywords,
        show_progress=show_progress,
    )
    return clusterer.cluster(keywords)
