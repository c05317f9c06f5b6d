"""Stats command for summarizing a parsed dependency tree."""

import logging
from collections import Counter
from typing import Dict, Optional

from ..models import DependencyNode
from ..sizes import SizeAggregator, format_size

logger = logging.getLogger(__name__)

SCOPES = ("compile", "runtime", "test", "provided", "system")
ALWAYS_SHOWN_SCOPES = ("compile", "runtime", "test")


def tree_stats(root: DependencyNode) -> Dict[str, object]:
    """Count the dependencies below the root by scope, optionality and omission."""
    by_scope: Counter = Counter()
    total = 0
    optional = 0
    omitted = 0
    max_depth = 0

    stack = [(child, 1) for child in root.children]
    while stack:
        node, depth = stack.pop()
        total += 1
        max_depth = max(max_depth, depth)
        if node.omitted:
            omitted += 1
        else:
            by_scope[node.scope] += 1
            if node.optional:
                optional += 1
        stack.extend((child, depth + 1) for child in node.children)

    return {
        "root": root.coordinates,
        "total": total,
        "direct": len(root.children),
        "included": total - omitted,
        "omitted": omitted,
        "optional": optional,
        "max_depth": max_depth,
        "by_scope": dict(by_scope),
    }


def show_stats(root: DependencyNode, aggregator: Optional[SizeAggregator] = None) -> Dict[str, object]:
    """Print statistics about a dependency tree.

    Args:
        root: Parsed tree root
        aggregator: Optional size aggregator; when given, total and per-scope sizes are shown
    """
    stats = tree_stats(root)
    by_scope = stats["by_scope"]

    print("Dependency Tree Statistics:")
    print(f"  Project: {stats['root']}")
    print(f"  Total Dependencies: {stats['total']}")
    print(f"  Direct Dependencies: {stats['direct']}")
    print(f"  Included: {stats['included']}")
    print(f"  Omitted: {stats['omitted']}")
    print(f"  Optional: {stats['optional']}")
    print(f"  Max Depth: {stats['max_depth']}")

    for scope in SCOPES:
        count = by_scope.get(scope, 0)
        if count or scope in ALWAYS_SHOWN_SCOPES:
            print(f"  {scope.capitalize()}: {count}")
    for scope in sorted(set(by_scope) - set(SCOPES)):
        print(f"  {scope}: {by_scope[scope]}")

    if aggregator is not None:
        print(f"  Total Size: {format_size(aggregator.total_size(root))}")
        for scope in SCOPES:
            size = aggregator.size_by_scope(root, scope)
            if size:
                print(f"  {scope.capitalize()} Size: {format_size(size)}")

    return stats
