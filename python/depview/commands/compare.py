"""Compare command for comparing two dependency trees."""

import logging
from typing import Dict, List, Set, Tuple

from ..models import DependencyNode

logger = logging.getLogger(__name__)


def collect_coordinates(root: DependencyNode, include_omitted: bool = False) -> Set[str]:
    """Collect groupId:artifactId:version of every node in the tree."""
    return {node.coordinates for node in root.walk() if include_omitted or not node.omitted}


def _versions_by_name(coordinates: Set[str]) -> Dict[str, List[str]]:
    """Group groupId:artifactId:version strings by name, versions in sorted order."""
    names: Dict[str, List[str]] = {}
    for coords in sorted(coordinates):
        name, version = coords.rsplit(':', 1)
        names.setdefault(name, []).append(version)
    return names


def compare_trees(tree1: DependencyNode, tree2: DependencyNode,
                  include_omitted: bool = False) -> Dict[str, object]:
    """Compare two trees by coordinates.

    Returns:
        Dict with 'same', 'only_in_1', 'only_in_2' coordinate lists and
        'version_diffs' mapping groupId:artifactId to (versions1, versions2),
        each a comma-separated list of the versions found only in that tree
    """
    coords1 = collect_coordinates(tree1, include_omitted)
    coords2 = collect_coordinates(tree2, include_omitted)

    only_in1 = _versions_by_name(coords1 - coords2)
    only_in2 = _versions_by_name(coords2 - coords1)

    # Same artifact, different version
    version_diffs: Dict[str, Tuple[str, str]] = {}
    for name in sorted(only_in1.keys() & only_in2.keys()):
        version_diffs[name] = (", ".join(only_in1.pop(name)), ", ".join(only_in2.pop(name)))

    return {
        "same": sorted(coords1 & coords2),
        "only_in_1": [f"{name}:{v}" for name, versions in sorted(only_in1.items()) for v in versions],
        "only_in_2": [f"{name}:{v}" for name, versions in sorted(only_in2.items()) for v in versions],
        "version_diffs": version_diffs,
    }


def _print_limited(title: str, items: List[str], limit: int = 10) -> None:
    print()
    print(title)
    for i, item in enumerate(items):
        if i >= limit:
            print(f"  ... and {len(items) - limit} more")
            break
        print(f"  - {item}")


def show_comparison(tree1: DependencyNode, tree2: DependencyNode,
                    label1: str = "tree 1", label2: str = "tree 2",
                    include_omitted: bool = False) -> Dict[str, object]:
    """Compare two trees and print the differences."""
    result = compare_trees(tree1, tree2, include_omitted)
    version_diffs = result["version_diffs"]

    print("Dependency Tree Comparison:")
    print(f"  Same version: {len(result['same'])}")
    print(f"  Version differences: {len(version_diffs)}")
    print(f"  Only in {label1}: {len(result['only_in_1'])}")
    print(f"  Only in {label2}: {len(result['only_in_2'])}")

    if version_diffs:
        print()
        print("Version differences:")
        name_width = max(max(len(name) for name in version_diffs), len("Library"))
        v1_width = max(max(len(v1) for v1, _ in version_diffs.values()), len(label1))
        print(f"  {'Library':<{name_width}}  {label1:<{v1_width}}  {label2}")
        print(f"  {'-' * name_width}  {'-' * v1_width}  {'-' * len(label2)}")
        for i, (name, (version1, version2)) in enumerate(version_diffs.items()):
            if i >= 10:
                print(f"  ... and {len(version_diffs) - 10} more")
                break
            print(f"  {name:<{name_width}}  {version1:<{v1_width}}  {version2}")

    if result["only_in_1"]:
        _print_limited(f"Dependencies only in {label1}:", result["only_in_1"])
    if result["only_in_2"]:
        _print_limited(f"Dependencies only in {label2}:", result["only_in_2"])

    return result
