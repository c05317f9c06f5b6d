"""Artifact size aggregation over dependency trees."""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Tuple

from .models import DependencyNode

logger = logging.getLogger(__name__)


class SizeResolver(ABC):
    """Looks up the byte size of an artifact. Implementations live outside depview."""

    @abstractmethod
    def size_of(self, group_id: str, artifact_id: str, version: str) -> int:
        """Return the artifact size in bytes, or 0 if it cannot be determined."""
        pass


class CachingSizeResolver(SizeResolver):
    """
    Memoizes another resolver by (groupId, artifactId, version).

    The cache is a plain dict and may be shared between threads analyzing
    different trees; two threads missing the same key both ask the delegate and
    store the same value.
    """

    def __init__(self, delegate: SizeResolver):
        self.delegate = delegate
        self._cache: Dict[Tuple[str, str, str], int] = {}

    def size_of(self, group_id: str, artifact_id: str, version: str) -> int:
        key = (group_id, artifact_id, version)
        size = self._cache.get(key)
        if size is None:
            size = max(0, int(self.delegate.size_of(group_id, artifact_id, version) or 0))
            self._cache[key] = size
            logger.debug(f"Resolved size of {group_id}:{artifact_id}:{version}: {size} bytes")
        return size

    def __len__(self) -> int:
        return len(self._cache)

    def clear(self) -> None:
        self._cache.clear()


class SizeAggregator:
    """Sums artifact sizes over a tree, leaving out omitted (rejected) dependencies."""

    def __init__(self, resolver: SizeResolver):
        if not isinstance(resolver, CachingSizeResolver):
            resolver = CachingSizeResolver(resolver)
        self.resolver = resolver

    def size_of(self, node: DependencyNode) -> int:
        return self.resolver.size_of(node.group_id, node.artifact_id, node.version)

    def total_size(self, node: DependencyNode) -> int:
        """
        Size of a node plus the total sizes of its non-omitted children.

        Computed post-order with an explicit stack so deep trees do not recurse.
        """
        totals: Dict[int, int] = {}
        stack: List[Tuple[DependencyNode, bool]] = [(node, False)]
        while stack:
            current, expanded = stack.pop()
            included = [child for child in current.children if not child.omitted]
            if expanded:
                total = self.size_of(current)
                for child in included:
                    total += totals.pop(id(child))
                totals[id(current)] = total
            else:
                stack.append((current, True))
                stack.extend((child, False) for child in included)
        return totals[id(node)]

    def size_by_scope(self, node: DependencyNode, scope: str) -> int:
        """Sum the sizes of descendants in the given scope, skipping omitted subtrees."""
        size = 0
        stack = [child for child in node.children if not child.omitted]
        while stack:
            current = stack.pop()
            if current.scope == scope:
                size += self.size_of(current)
            stack.extend(child for child in current.children if not child.omitted)
        return size


def format_size(size: int) -> str:
    """Format a size in bytes as a human-readable string (B, KB, MB, GB)."""
    if size == 0:
        return "-"
    elif size < 1024:
        return f"{size} B"
    elif size < 1024 * 1024:
        return f"{size / 1024.0:.1f} KB"
    elif size < 1024 * 1024 * 1024:
        return f"{size / (1024.0 * 1024.0):.1f} MB"
    else:
        return f"{size / (1024.0 * 1024.0 * 1024.0):.2f} GB"
