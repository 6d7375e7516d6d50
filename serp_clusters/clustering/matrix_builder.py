"""
Pairwise matrices over a keyword list.

overlap matrix
    ``int`` scores, diagonal 10, off-diagonal :func:`calculate_overlap_score`.
semantic matrix
    ``float`` cosine distances, diagonal 0, off-diagonal from the semantic
    provider.

Both are symmetric: only the upper triangle is computed and then mirrored.
Time and memory are O(N^2); callers bound N (see ``max_keywords`` on the
cluster engine).
"""

import logging
from typing import Sequence

import numpy as np
from tqdm import tqdm

from serp_clusters.DEFAULT_CONSTS import SELF_DISTANCE, SELF_OVERLAP_SCORE
from serp_clusters.clustering.overlap import calculate_overlap_score
from serp_clusters.embeddings.semantic import SemanticProvider
from serp_clusters.types import Keyword

LOGGER = logging.getLogger(__name__)


def build_overlap_matrix(
    keywords: Sequence[Keyword], show_progress: bool = False
) -> np.ndarray:
    """
    Build the N x N SERP overlap matrix.

    Parameters
    ----------
    keywords : Sequence[Keyword]
        Keywords with (possibly empty) SERP URLs
    show_progress : bool
        Whether to show a progress bar over rows

    Returns
    -------
    np.ndarray
        Symmetric ``int`` matrix; ``matrix[i, i] == 10``
    """
    n = len(keywords)
    matrix = np.zeros((n, n), dtype=int)

    rows = tqdm(range(n), desc="Overlap matrix", disable=not show_progress)
    for i in rows:
        matrix[i, i] = SELF_OVERLAP_SCORE
        for j in range(i + 1, n):
            score = calculate_overlap_score(keywords[i].serp_urls, keywords[j].serp_urls)
            matrix[i, j] = score
            matrix[j, i] = score

    LOGGER.debug(f"Built {n}x{n} overlap matrix")
    return matrix


def build_semantic_matrix(
    embeddings: Sequence[np.ndarray], provider: SemanticProvider
) -> np.ndarray:
    """
    Build the N x N semantic distance matrix.

    Distances come from ``provider.pairwise_distances``; the upper triangle
    is mirrored and the diagonal set to 0 so the result is exactly symmetric
    whatever the provider's numerics.

    Parameters
    ----------
    embeddings : Sequence[np.ndarray]
        One vector per keyword, in keyword order
    provider : SemanticProvider
        Provider that produced the vectors

    Returns
    -------
    np.ndarray
        Symmetric ``float`` matrix; ``matrix[i, i] == 0``
    """
    n = len(embeddings)
    distances = np.asarray(provider.pairwise_distances(embeddings), dtype=float)
    if distances.shape != (n, n):
        raise ValueError(
            f"Provider returned a {distances.shape} matrix for {n} embeddings"
        )

    upper = np.triu(distances, k=1)
    matrix = upper + upper.T
    np.fill_diagonal(matrix, SELF_DISTANCE)

    LOGGER.debug(f"Built {n}x{n} semantic distance matrix")
    return matrix
