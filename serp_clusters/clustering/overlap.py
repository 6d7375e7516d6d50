"""
SERP overlap scoring.

Two keywords that share ranking URLs in their top-10 results usually answer
the same search intent and can be targeted by the same page. The overlap
score is the number of shared normalized URLs, 0 to 10.
"""

import logging
import re
from typing import Iterable, List, Optional, Set

import numpy as np

from serp_clusters.DEFAULT_CONSTS import TOP_N_RESULTS

LOGGER = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r"^https?://")
_WWW_RE = re.compile(r"^www\.")


def normalize_url(url: str) -> str:
    """
    Normalize a result URL for comparison.

    Lowercases, then strips a leading ``http://``/``https://``, a leading
    ``www.`` and one trailing slash.

    Examples
    --------
    >>> normalize_url("HTTPS://www.Example.com/Guide/")
    'example.com/guide'
    """
    url = url.lower()
    url = _SCHEME_RE.sub("", url)
    url = _WWW_RE.sub("", url)
    if url.endswith("/"):
        url = url[:-1]
    return url


def _top_url_set(urls: Iterable[str]) -> Set[str]:
    # Non-string entries are malformed SERP data and never match
    return {
        normalize_url(url)
        for url in list(urls)[:TOP_N_RESULTS]
        if isinstance(url, str)
    }


def calculate_overlap_score(
    urls_a: Optional[List[str]], urls_b: Optional[List[str]]
) -> int:
    """
    Count the normalized URLs two SERPs share in their top 10.

    Parameters
    ----------
    urls_a, urls_b : Optional[List[str]]
        Ordered SERP URLs of the two keywords

    Returns
    -------
    int
        Score from 0 (no overlap, or missing data) to 10 (identical SERPs)
    """
    if not urls_a or not urls_b:
        return 0
    if not isinstance(urls_a, (list, tuple)) or not isinstance(urls_b, (list, tuple)):
        return 0

    set_a = _top_url_set(urls_a)
    set_b = _top_url_set(urls_b)
    if len(set_b) < len(set_a):
        set_a, set_b = set_b, set_a

    return sum(1 for url in set_a if url in set_b)


def find_similar_keywords(
    keyword_index: int, overlap_matrix: np.ndarray, threshold: float
) -> List[int]:
    """
    Find the keywords meeting the overlap threshold with a given keyword.

    Parameters
    ----------
    keyword_index : int
        Row of the keyword in the overlap matrix
    overlap_matrix : np.ndarray
        Precomputed N x N overlap scores
    threshold : float
        Minimum overlap score

    Returns
    -------
    List[int]
        Indices of other keywords with ``score >= threshold``, ascending
    """
    scores = overlap_matrix[keyword_index]
    return [
        int(i)
        for i in np.flatnonzero(scores >= threshold)
        if i != keyword_index
    ]
