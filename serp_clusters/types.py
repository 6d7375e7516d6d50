"""
Data model for SERP keyword clustering.

Keyword
    Input record: text, optional id, top-10 SERP URLs/titles, search volume
    and difficulty.
ClusteringParams
    Validated thresholds and the semantic provider selection.
ClusterMember, Cluster
    Output of the cluster engine and input/output of the cluster editor.
    Members are frozen; editing a cluster builds new member values.
ClusteringResult
    Clusters, the params used and the keywords left unclustered.

Invariants of a result produced by the engine
---------------------------------------------
- every non-empty cluster has exactly one representative member
- every input keyword is either in exactly one cluster or in ``unclustered``
- no cluster has fewer members than ``params.min_cluster_size``
"""

import logging
import math
import numbers
from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from serp_clusters.DEFAULT_CONSTS import DEFAULT_PARAMS, SELF_OVERLAP_SCORE
from serp_clusters.exceptions import ValidationError

LOGGER = logging.getLogger(__name__)


class SemanticProviderKind(str, Enum):
    """Closed set of semantic similarity backends."""

    DISABLED = "none"
    EMBEDDING = "openai"

    @classmethod
    def parse(cls, value: Any) -> "SemanticProviderKind":
        """
        Resolve an enum member from the enum itself or a string alias.

        Accepted strings are ``"none"``/``"disabled"`` and
        ``"openai"``/``"embedding"``/``"embeddings"`` (case insensitive).

        Raises
        ------
        ValidationError
            If the value names no known provider
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            if key in _PROVIDER_ALIASES:
                return cls(_PROVIDER_ALIASES[key])
        raise ValidationError(
            f"Unknown semantic provider: {value!r}. "
            "Choose 'none' or 'openai'"
        )


_PROVIDER_ALIASES = {
    "none": "none",
    "disabled": "none",
    "openai": "openai",
    "embedding": "openai",
    "embeddings": "openai",
}


def _as_str_list(value: Any, field_name: str, text: str) -> List[str]:
    """Coerce SERP data to a list; malformed data becomes an empty list."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    LOGGER.debug(
        f"Ignoring malformed {field_name} for keyword '{text}': "
        f"expected a list, got {type(value).__name__}"
    )
    return []


def _optional_number(value: Any, field_name: str, text: str) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ValidationError(
            f"{field_name} for keyword '{text}' must be a number, "
            f"got {type(value).__name__}"
        )
    if math.isnan(value):
        return None
    return value


@dataclass
class Keyword:
    """
    A keyword to cluster.

    Parameters
    ----------
    text : str
        Keyword text
    id : Optional[str]
        Caller-owned identifier, copied to cluster members
    serp_urls : List[str]
        Ordered SERP result URLs; only the first 10 are scored
    serp_titles : List[str]
        SERP result titles, carried to cluster members for display
    search_volume : Optional[float]
        Monthly search volume; absent counts as 0 when ranking
    difficulty : Optional[float]
        Keyword difficulty; absent counts as 0
    """

    text: str
    id: Optional[str] = None
    serp_urls: List[str] = field(default_factory=list)
    serp_titles: List[str] = field(default_factory=list)
    search_volume: Optional[float] = None
    difficulty: Optional[float] = None

    def __post_init__(self):
        if not isinstance(self.text, str):
            raise ValidationError(
                f"Keyword text must be a string, got {type(self.text).__name__}"
            )
        self.serp_urls = _as_str_list(self.serp_urls, "serp_urls", self.text)
        self.serp_titles = _as_str_list(self.serp_titles, "serp_titles", self.text)
        self.search_volume = _optional_number(
            self.search_volume, "search_volume", self.text
        )
        self.difficulty = _optional_number(self.difficulty, "difficulty", self.text)

    @property
    def volume(self) -> float:
        """Search volume used for ranking (0 when absent)."""
        return self.search_volume or 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Keyword":
        """
        Build a keyword from a mapping.

        ``"keyword"`` is accepted as an alias of ``"text"``. Unknown keys are
        ignored.

        Raises
        ------
        ValidationError
            If no keyword text is present
        """
        text = data.get("text", data.get("keyword"))
        if text is None:
            raise ValidationError(f"Keyword record has no text: {data!r}")
        return cls(
            text=text,
            id=data.get("id"),
            serp_urls=data.get("serp_urls"),
            serp_titles=data.get("serp_titles"),
            search_volume=data.get("search_volume"),
            difficulty=data.get("difficulty"),
        )


def _check_number(name: str, value: Any, low: float, high: float):
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value) or value < low or value > high:
        raise ValidationError(f"{name} must be in range [{low}, {high}], got {value}")


@dataclass
class ClusteringParams:
    """
    Parameters of one clustering run.

    Parameters
    ----------
    overlap_threshold : float
        Minimum overlap score (0-10) for a pair to merge
    distance_threshold : float
        Maximum semantic distance (0-1) for a pair to merge; only applies
        when the semantic provider is enabled
    min_cluster_size : int
        Minimum number of members a group needs to be reported as a cluster
    semantic_provider : SemanticProviderKind or str
        ``"none"`` (overlap only) or ``"openai"`` (overlap and embeddings)

    Raises
    ------
    ValidationError
        If any value is out of range

    Examples
    --------
    >>> params = ClusteringParams(overlap_threshold=4, semantic_provider="openai")
    >>> params.semantic_enabled
    True
    """

    overlap_threshold: float = DEFAULT_PARAMS.overlap_threshold
    distance_threshold: float = DEFAULT_PARAMS.distance_threshold
    min_cluster_size: int = DEFAULT_PARAMS.min_cluster_size
    semantic_provider: SemanticProviderKind = SemanticProviderKind(
        DEFAULT_PARAMS.semantic_provider
    )

    def __post_init__(self):
        """Validate configuration values."""
        _check_number("overlap_threshold", self.overlap_threshold, 0, SELF_OVERLAP_SCORE)
        _check_number("distance_threshold", self.distance_threshold, 0.0, 1.0)

        if isinstance(self.min_cluster_size, bool) or not isinstance(
            self.min_cluster_size, numbers.Integral
        ):
            raise ValidationError(
                f"min_cluster_size must be an integer, got {self.min_cluster_size!r}"
            )
        if self.min_cluster_size < 1:
            raise ValidationError(
                f"min_cluster_size must be at least 1, got {self.min_cluster_size}"
            )
        self.min_cluster_size = int(self.min_cluster_size)

        self.semantic_provider = SemanticProviderKind.parse(self.semantic_provider)

    @property
    def semantic_enabled(self) -> bool:
        return self.semantic_provider is not SemanticProviderKind.DISABLED

    def to_dict(self) -> Dict[str, Any]:
        """Convert parameters to a plain dictionary."""
        data = asdict(self)
        data["semantic_provider"] = self.semantic_provider.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClusteringParams":
        """
        Build parameters from a mapping, e.g. a parsed YAML file.

        Raises
        ------
        ValidationError
            On unknown keys or invalid values
        """
        known = {"overlap_threshold", "distance_threshold", "min_cluster_size",
                 "semantic_provider"}
        unknown = set(data) - known
        if unknown:
            raise ValidationError(f"Unknown clustering params: {sorted(unknown)}")
        return cls(**data)


@dataclass(frozen=True)
class ClusterMember:
    """
    A keyword inside a cluster.

    SERP titles and URLs are copied from the keyword for display. Members are
    immutable: use :meth:`with_representative` to get a re-flagged copy.
    """

    keyword_text: str
    is_representative: bool = False
    keyword_id: Optional[str] = None
    serp_titles: Tuple[str, ...] = ()
    serp_urls: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "serp_titles", tuple(self.serp_titles or ()))
        object.__setattr__(self, "serp_urls", tuple(self.serp_urls or ()))

    @classmethod
    def from_keyword(cls, keyword: Keyword, is_representative: bool = False) -> "ClusterMember":
        return cls(
            keyword_text=keyword.text,
            is_representative=is_representative,
            keyword_id=keyword.id,
            serp_titles=tuple(keyword.serp_titles),
            serp_urls=tuple(keyword.serp_urls),
        )

    def with_representative(self, is_representative: bool) -> "ClusterMember":
        if self.is_representative == is_representative:
            return self
        return replace(self, is_representative=is_representative)


@dataclass
class Cluster:
    """A named group of keywords with (at most) one representative member."""

    name: str
    members: List[ClusterMember] = field(default_factory=list)
    id: Optional[str] = None

    def __len__(self) -> int:
        return len(self.members)

    @property
    def representative(self) -> Optional[str]:
        """Text of the representative member, or None for an empty cluster."""
        for member in self.members:
            if member.is_representative:
                return member.keyword_text
        return None

    @property
    def keyword_texts(self) -> List[str]:
        return [member.keyword_text for member in self.members]


@dataclass
class ClusteringResult:
    """Output of one clustering run."""

    clusters: List[Cluster]
    params: ClusteringParams
    unclustered: List[Keyword] = field(default_factory=list)

    def summary(self) -> Dict[str, int]:
        """Counts of clusters, clustered keywords and unclustered keywords."""
        return {
            "n_clusters": len(self.clusters),
            "n_clustered": sum(len(cluster) for cluster in self.clusters),
            "n_unclustered": len(self.unclustered),
        }


def members_from_keywords(
    keywords: Sequence[Keyword], representative_index: Optional[int] = None
) -> List[ClusterMember]:
    """Build cluster members, flagging the member at ``representative_index``."""
    return [
        ClusterMember.from_keyword(keyword, is_representative=i == representative_index)
        for i, keyword in enumerate(keywords)
    ]
