"""
Keyword clustering by SERP overlap and optional semantic similarity.

This module provides:

- KeywordClusterer / cluster_keywords: union-find cluster engine producing a
  ClusteringResult
- Overlap scoring and pairwise matrix construction
- Representative selection strategies (search volume for the engine, first
  member for manual edits)
- merge_clusters / split_cluster: pure editing operations for human review
"""

from .clusterer import KeywordClusterer, cluster_keywords
from .editor import merge_clusters, split_cluster
from .matrix_builder import build_overlap_matrix, build_semantic_matrix
from .overlap import calculate_overlap_score, find_similar_keywords, normalize_url
from .representatives import first_member_representative, highest_volume_representative
from .union_find import DisjointSet

__all__ = [
    "KeywordClusterer",
    "cluster_keywords",
    "merge_clusters",
    "split_cluster",
    "build_overlap_matrix",
    "build_semantic_matrix",
    "calculate_overlap_score",
    "find_similar_keywords",
    "normalize_url",
    "first_member_representative",
    "highest_volume_representative",
    "DisjointSet",
]
