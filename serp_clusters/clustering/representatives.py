"""
Representative selection strategies.

The automatic cluster engine and the manual cluster editor use
different rules:

highest_volume_representative
    Engine rule. Highest search volume wins (absent volume counts as 0); ties
    go to the lowest input position.
first_member_representative
    Editor rule (merge and split). The first member in order wins, volume is
    not considered.
"""

from typing import List, Optional, Sequence

from serp_clusters.types import ClusterMember, Keyword


def highest_volume_representative(keywords: Sequence[Keyword], indices: Sequence[int]) -> int:
    """
    Pick the representative of a group by search volume.

    Parameters
    ----------
    keywords : Sequence[Keyword]
        All keywords of the run
    indices : Sequence[int]
        Input positions of the group members

    Returns
    -------
    int
        Input position of the representative
    """
    if not indices:
        raise ValueError("Cannot pick a representative of an empty group")
    # max() keeps the first maximum, so order by position to break ties
    return max(sorted(indices), key=lambda i: keywords[i].volume)


def first_member_representative(members: Sequence[ClusterMember]) -> Optional[int]:
    """Position of the first member, or None when there are no members."""
    return 0 if members else None


def reassign_representative(
    members: Sequence[ClusterMember], representative: Optional[int]
) -> List[ClusterMember]:
    """Return new members where only position ``representative`` is flagged."""
    return [
        member.with_representative(i == representative)
        for i, member in enumerate(members)
    ]
