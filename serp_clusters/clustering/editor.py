"""
Manual cluster editing: merge several clusters, or split one by keyword selection.

Both operations return new :class:`~serp_clusters.types.Cluster` values and
never modify their inputs. They assign representatives with
:func:`~serp_clusters.clustering.representatives.first_member_representative`,
which ignores search volume, unlike the automatic cluster engine.
"""

import logging
from typing import Iterable, List, Sequence, Tuple

from serp_clusters.clustering.representatives import (
    first_member_representative,
    reassign_representative,
)
from serp_clusters.types import Cluster, ClusterMember

LOGGER = logging.getLogger(__name__)


def _check_cluster(cluster, position: str):
    if not isinstance(cluster, Cluster):
        raise TypeError(f"{position} must be a Cluster, got {type(cluster).__name__}")


def _with_first_representative(members: Sequence[ClusterMember]) -> List[ClusterMember]:
    return reassign_representative(members, first_member_representative(members))


def merge_clusters(clusters: Sequence[Cluster], new_name: str) -> Cluster:
    """
    Merge clusters into one.

    Members are concatenated in input order and the first one becomes the
    representative.

    Parameters
    ----------
    clusters : Sequence[Cluster]
        Clusters to merge; may be empty
    new_name : str
        Name of the merged cluster

    Returns
    -------
    Cluster
        New cluster without an id

    Examples
    --------
    >>> merged = merge_clusters([cluster_a, cluster_b], "Running shoes")
    >>> merged.representative == cluster_a.members[0].keyword_text
    True
    """
    for i, cluster in enumerate(clusters):
        _check_cluster(cluster, f"clusters[{i}]")

    members = [member for cluster in clusters for member in cluster.members]
    LOGGER.debug(f"Merging {len(clusters)} clusters into '{new_name}' ({len(members)} members)")
    return Cluster(name=new_name, members=_with_first_representative(members))


def split_cluster(
    cluster: Cluster, selected_keywords: Iterable[str], new_name: str
) -> Tuple[Cluster, Cluster]:
    """
    Split a cluster by moving the selected keywords to a new cluster.

    Members are matched by exact keyword text. Each side keeps member order
    and gets its first member as representative; a side left without members
    has no representative.

    Parameters
    ----------
    cluster : Cluster
        Cluster to split
    selected_keywords : Iterable[str]
        Texts of the members to move
    new_name : str
        Name of the new cluster

    Returns
    -------
    Tuple[Cluster, Cluster]
        ``(remaining, new)``; ``remaining`` keeps the original name and id
    """
    _check_cluster(cluster, "cluster")
    if isinstance(selected_keywords, str):
        raise TypeError("selected_keywords must be a collection of texts, not a string")

    selected = set(selected_keywords)
    remaining = [m for m in cluster.members if m.keyword_text not in selected]
    moved = [m for m in cluster.members if m.keyword_text in selected]

    LOGGER.debug(
        f"Split '{cluster.name}': {len(remaining)} remaining, "
        f"{len(moved)} moved to '{new_name}'"
    )
    return (
        Cluster(name=cluster.name, members=_with_first_representative(remaining), id=cluster.id),
        Cluster(name=new_name, members=_with_first_representative(moved)),
    )
