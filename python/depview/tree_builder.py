"""Builds dependency trees from parsed report lines or from declared coordinates."""

import logging
from typing import Callable, Dict, List, Optional, Tuple

from .errors import BrokenHierarchy
from .models import AnnotationKind, DEFAULT_SCOPE, DependencyNode
from .pom import DeclaredDependency, PomDeclarations

logger = logging.getLogger(__name__)

# Scopes that override every transitive scope beneath them
FORCING_SCOPES = ("test", "provided")

# Resolves one declared dependency to its own subtree: (groupId, artifactId, version, scope) -> node
DependencyResolver = Callable[[str, str, str, str], DependencyNode]


class TreeAssembler:
    """
    Turns an ordered stream of (depth, node) pairs into a tree.

    The assembler keeps an explicit stack of (node, depth) ancestors instead of
    recursing, so tree depth never grows the Python call stack. Depths on the
    stack always increase strictly from bottom to top.
    """

    def __init__(self, root: DependencyNode):
        self.root = root
        self._stack: List[Tuple[DependencyNode, int]] = [(root, 0)]
        self.node_count = 1

    def add(self, depth: int, node: DependencyNode, line_number: int = 0, text: str = "") -> DependencyNode:
        """
        Attach a node under the nearest strictly shallower ancestor.

        Raises:
            BrokenHierarchy: If no ancestor is shallower than the node
        """
        stack = self._stack
        while stack and stack[-1][1] >= depth:
            stack.pop()

        if not stack:
            raise BrokenHierarchy(line_number, text or node.coordinates)

        parent = stack[-1][0]
        parent.add_child(node)
        stack.append((node, depth))
        self.node_count += 1
        return parent

    @property
    def current_depth(self) -> int:
        return self._stack[-1][1] if self._stack else -1


def propagate_scope(node: DependencyNode, scope: str) -> int:
    """
    Apply Maven's scope inheritance to a declared dependency's subtree.

    test and provided override every descendant scope, runtime only replaces
    compile (or unset) scopes, and compile changes nothing below the root.
    Traversal does not continue below a descendant whose scope was left alone.

    Returns:
        Number of descendants whose scope was changed
    """
    node.scope = scope
    if scope not in FORCING_SCOPES and scope != "runtime":
        return 0

    changed = 0
    stack = list(reversed(node.children))
    while stack:
        child = stack.pop()
        if scope in FORCING_SCOPES or child.scope in (None, "", DEFAULT_SCOPE):
            if child.scope != scope:
                changed += 1
            child.scope = scope
            stack.extend(reversed(child.children))
    logger.debug(f"Propagated scope '{scope}' from {node.coordinates} to {changed} descendants")
    return changed


class DeclaredTreeBuilder:
    """
    Builds a project tree by resolving each declared dependency on its own.

    Unlike a verbose report, individually resolved subtrees do not carry the
    effective scope of their root declaration, so the builder propagates scopes
    and dependency management notes itself.
    """

    def __init__(self, resolver: DependencyResolver):
        self.resolver = resolver
        self.dependency_management: Dict[str, str] = {}  # groupId:artifactId -> version, overrides the POM's
        self.failures: List[DeclaredDependency] = []

    def set_dependency_management(self, management: Dict[str, str]) -> None:
        """Set dependency management versions."""
        self.dependency_management = management or {}
        logger.info(f"DependencyManagement set with {len(self.dependency_management)} entries")

    def build(self, declarations: PomDeclarations) -> DependencyNode:
        """Resolve every declared dependency and attach it under the project root."""
        management = dict(declarations.managed_versions)
        management.update(self.dependency_management)
        self.failures = []

        root = DependencyNode(
            group_id=declarations.group_id,
            artifact_id=declarations.artifact_id,
            version=declarations.version,
            packaging=declarations.packaging,
        )
        logger.info(f"Resolving {len(declarations.dependencies)} declared dependencies of {root.coordinates}")

        for dep in declarations.dependencies:
            root.add_child(self._resolve_declared(dep, management))

        if self.failures:
            logger.warning(f"{len(self.failures)} declared dependencies could not be resolved")
        return root

    def _resolve_declared(self, dep: DeclaredDependency, management: Dict[str, str]) -> DependencyNode:
        managed_version = management.get(dep.management_key)
        version = dep.version or managed_version
        scope = dep.scope or DEFAULT_SCOPE

        try:
            if not version:
                raise ValueError(f"No version declared or managed for {dep.management_key}")
            node = self.resolver(dep.group_id, dep.artifact_id, version, scope)
        except Exception as e:
            logger.warning(f"Failed to resolve {dep.management_key}:{version}: {e}")
            self.failures.append(dep)
            return DependencyNode(
                group_id=dep.group_id,
                artifact_id=dep.artifact_id,
                version=dep.version or "UNKNOWN",
                scope=scope,
                optional=dep.optional,
            )

        node.parent = None
        node.optional = dep.optional
        if dep.version is None and managed_version:
            node.add_annotation(AnnotationKind.VERSION_MANAGED, managed_version)

        if scope != DEFAULT_SCOPE:
            propagate_scope(node, scope)
        else:
            node.scope = scope

        self._add_managed_version_notes(node, management)
        return node

    @staticmethod
    def _add_managed_version_notes(node: DependencyNode, management: Dict[str, str]) -> None:
        """Note every descendant whose version differs from a managed one."""
        if not management:
            return
        walker = node.walk()
        next(walker)  # the declared dependency itself was handled by the caller
        for child in walker:
            managed: Optional[str] = management.get(f"{child.group_id}:{child.artifact_id}")
            if managed and managed != child.version:
                child.add_annotation(AnnotationKind.VERSION_MANAGED, managed)
