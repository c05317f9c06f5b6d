"""depview - decode Maven verbose dependency:tree reports into annotated trees."""

__version__ = "1.0.0"

from .errors import (
    DepviewError,
    NoTreeFound,
    BrokenHierarchy,
    UpstreamCommandFailure,
    InvalidCoordinates,
    InvalidPom,
)
from .models import Annotation, AnnotationKind, DependencyNode, MalformedLine, TreeParseResult
from .parsers import MavenTreeParser, parse_coordinates
from .pom import DeclaredDependency, PomDeclarations, parse_pom
from .sizes import CachingSizeResolver, SizeAggregator, SizeResolver, format_size
from .tree_builder import DeclaredTreeBuilder, TreeAssembler, propagate_scope

__all__ = [
    "__version__",
    "Annotation",
    "AnnotationKind",
    "BrokenHierarchy",
    "CachingSizeResolver",
    "DeclaredDependency",
    "DeclaredTreeBuilder",
    "DependencyNode",
    "DepviewError",
    "InvalidCoordinates",
    "InvalidPom",
    "MalformedLine",
    "MavenTreeParser",
    "NoTreeFound",
    "PomDeclarations",
    "SizeAggregator",
    "SizeResolver",
    "TreeAssembler",
    "TreeParseResult",
    "UpstreamCommandFailure",
    "format_size",
    "parse_coordinates",
    "parse_pom",
    "propagate_scope",
]
