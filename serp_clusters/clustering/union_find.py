"""Disjoint-set forest over keyword positions, built fresh for every clustering run."""

from typing import Dict, List


class DisjointSet:
    """
    Union-find with path compression and union by rank.

    Elements are the integers ``0 .. size - 1`` (positions in the input
    keyword list); every element starts in its own set.

    Parameters
    ----------
    size : int
        Number of elements
    """

    def __init__(self, size: int):
        if size < 0:
            raise ValueError(f"size must be non-negative, got {size}")
        self.parent = list(range(size))
        self.rank = [0] * size

    def __len__(self) -> int:
        return len(self.parent)

    def find(self, i: int) -> int:
        """Return the root of ``i``'s set, compressing the path on the way."""
        root = i
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[i] != root:
            self.parent[i], i = root, self.parent[i]
        return root

    def union(self, i: int, j: int) -> bool:
        """
        Merge the sets of ``i`` and ``j``.

        Returns
        -------
        bool
            False if they already shared a set
        """
        root_i = self.find(i)
        root_j = self.find(j)
        if root_i == root_j:
            return False

        if self.rank[root_i] < self.rank[root_j]:
            self.parent[root_i] = root_j
        elif self.rank[root_i] > self.rank[root_j]:
            self.parent[root_j] = root_i
        else:
            self.parent[root_j] = root_i
            self.rank[root_i] += 1
        return True

    def groups(self) -> List[List[int]]:
        """
        Group elements by root.

        Groups are ordered by their smallest element and each group lists its
        elements in ascending order, so the result only depends on which
        unions were made.
        """
        by_root: Dict[int, List[int]] = {}
        for i in range(len(self.parent)):
            by_root.setdefault(self.find(i), []).append(i)
        return list(by_root.values())
