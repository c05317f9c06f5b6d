"""Core data models for depview."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

DEFAULT_SCOPE = "compile"
DEFAULT_PACKAGING = "jar"
UNKNOWN = "unknown"


class AnnotationKind(Enum):
    """Management notes Maven attaches to a resolved dependency."""

    VERSION_MANAGED = "version managed from"
    SCOPE_MANAGED = "scope managed from"


@dataclass(frozen=True)
class Annotation:
    """A typed note on a node, e.g. the version it was managed away from."""

    kind: AnnotationKind
    payload: str

    def __str__(self) -> str:
        return f"{self.kind.value} {self.payload}"


@dataclass
class DependencyNode:
    """One artifact line of a dependency tree report."""

    group_id: str
    artifact_id: str
    version: str
    scope: str = DEFAULT_SCOPE  # compile, runtime, test, provided, system
    packaging: str = DEFAULT_PACKAGING
    classifier: Optional[str] = None
    optional: bool = False
    omitted: bool = False
    omitted_reason: Optional[str] = None  # Only set when omitted
    annotations: List[Annotation] = field(default_factory=list)
    children: List['DependencyNode'] = field(default_factory=list, repr=False)
    parent: Optional['DependencyNode'] = field(default=None, repr=False)

    def __post_init__(self):
        if not self.scope:
            self.scope = DEFAULT_SCOPE
        if not self.packaging:
            self.packaging = DEFAULT_PACKAGING

    def __eq__(self, other) -> bool:
        """Equality is identity; use to_dict() to compare structure."""
        return self is other

    def __hash__(self) -> int:
        return id(self)

    @property
    def coordinates(self) -> str:
        """Return the display coordinates in groupId:artifactId:version format."""
        return f"{self.group_id}:{self.artifact_id}:{self.version}"

    @property
    def key(self) -> Tuple[str, str, str]:
        return (self.group_id, self.artifact_id, self.version)

    @property
    def notes(self) -> Optional[str]:
        """Annotations joined the way Maven prints them, or None when there are none."""
        if not self.annotations:
            return None
        return "; ".join(str(a) for a in self.annotations)

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def depth(self) -> int:
        """Number of ancestors above this node."""
        depth = 0
        node = self.parent
        while node is not None:
            depth += 1
            node = node.parent
        return depth

    def add_child(self, child: 'DependencyNode') -> None:
        """Append a child and point its parent reference at this node."""
        child.parent = self
        self.children.append(child)

    def add_annotation(self, kind: AnnotationKind, payload: str) -> bool:
        """Record a note unless an identical one is already present."""
        annotation = Annotation(kind, payload)
        if annotation in self.annotations:
            return False
        self.annotations.append(annotation)
        return True

    def walk(self) -> Iterator['DependencyNode']:
        """Yield this node and every descendant in pre-order (document order)."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def to_dict(self) -> Dict[str, Any]:
        """Nested plain-data view of this subtree, used for export and comparison."""
        result = self._fields_dict()
        pending = [(self, result)]
        while pending:
            node, data = pending.pop()
            for child in node.children:
                child_data = child._fields_dict()
                data["children"].append(child_data)
                pending.append((child, child_data))
        return result

    def _fields_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "groupId": self.group_id,
            "artifactId": self.artifact_id,
            "version": self.version,
            "type": self.packaging,
            "scope": self.scope,
            "optional": self.optional,
            "omitted": self.omitted,
        }
        if self.classifier:
            data["classifier"] = self.classifier
        if self.omitted:
            data["omittedReason"] = self.omitted_reason
        if self.annotations:
            data["notes"] = self.notes
        data["children"] = []
        return data

    def __str__(self) -> str:
        text = self.coordinates
        if self.packaging != DEFAULT_PACKAGING:
            text += f":{self.packaging}"
        if self.scope != DEFAULT_SCOPE:
            text += f" ({self.scope})"
        if self.optional:
            text += " (optional)"
        return text


@dataclass(frozen=True)
class MalformedLine:
    """A tree line whose coordinates could not be read; a placeholder node stands in for it."""

    line_number: int
    text: str


@dataclass
class TreeParseResult:
    """Outcome of parsing one report: the tree plus any locally recovered problems."""

    root: DependencyNode
    malformed_lines: List[MalformedLine] = field(default_factory=list)
    line_count: int = 0

    @property
    def is_complete(self) -> bool:
        return not self.malformed_lines
