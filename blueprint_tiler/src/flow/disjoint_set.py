"""Disjoint-set union with path compression."""

from typing import Dict, Generic, Hashable, Iterable, List, TypeVar

T = TypeVar("T", bound=Hashable)


class DisjointSet(Generic[T]):
    """Union-find over hashable items.

    Items are added lazily by :meth:`find`. Unions are by size; callers that
    need a stable ordering of groups sort them themselves.
    """

    def __init__(self, items: Iterable[T] = ()) -> None:
        self._parent: Dict[T, T] = {}
        self._size: Dict[T, int] = {}
        for item in items:
            self.add(item)

    def __contains__(self, item: object) -> bool:
        return item in self._parent

    def __len__(self) -> int:
        return len(self._parent)

    def add(self, item: T) -> None:
        if item not in self._parent:
            self._parent[item] = item
            self._size[item] = 1

    def find(self, item: T) -> T:
        self.add(item)
        root = item
        while self._parent[root] != root:
            root = self._parent[root]
        # Path compression
        while self._parent[item] != root:
            self._parent[item], item = root, self._parent[item]
        return root

    def union(self, first: T, second: T) -> T:
        """Merge the sets containing ``first`` and ``second``; return the new root."""
        root_a = self.find(first)
        root_b = self.find(second)
        if root_a == root_b:
            return root_a
        if self._size[root_a] < self._size[root_b]:
            root_a, root_b = root_b, root_a
        self._parent[root_b] = root_a
        self._size[root_a] += self._size[root_b]
        return root_a

    def connected(self, first: T, second: T) -> bool:
        return self.find(first) == self.find(second)

    def groups(self) -> List[List[T]]:
        """All sets, as lists in insertion order of their members."""
        by_root: Dict[T, List[T]] = {}
        for item in list(self._parent):
            by_root.setdefault(self.find(item), []).append(item)
        return list(by_root.values())
