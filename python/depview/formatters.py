"""Output formatters for parsed dependency trees."""

import json
import logging
from typing import Dict, List, Optional, Tuple

from packageurl import PackageURL
from cyclonedx.model import ExternalReference, ExternalReferenceType, Property, XsUri
from cyclonedx.model.bom import Bom
from cyclonedx.model.component import Component, ComponentType, ComponentScope
from cyclonedx.output.json import JsonV1Dot6

from .models import DEFAULT_PACKAGING, DependencyNode

logger = logging.getLogger(__name__)

OMITTED_REASON_PROPERTY = "depview:omitted-reason"
NOTES_PROPERTY = "depview:notes"


def maven_coordinates(node: DependencyNode, include_scope: bool = True) -> str:
    """Coordinates as Maven prints them: groupId:artifactId:type[:classifier]:version[:scope]."""
    parts = [node.group_id, node.artifact_id, node.packaging]
    if node.classifier:
        parts.append(node.classifier)
    parts.append(node.version)
    if include_scope:
        parts.append(node.scope)
    return ":".join(parts)


class OutputFormatter:
    """Formatter for various output formats."""

    @staticmethod
    def format_as_list(root: DependencyNode) -> str:
        """Format the included artifacts as a flat list (one per line, first occurrence order)."""
        seen = set()
        lines = []
        for node in root.walk():
            if node.omitted or node.coordinates in seen:
                continue
            seen.add(node.coordinates)
            lines.append(node.coordinates)
        return '\n'.join(lines) + '\n'

    @staticmethod
    def format_as_json(root: DependencyNode) -> str:
        """Format the tree as nested JSON."""
        return json.dumps(root.to_dict(), indent=2) + '\n'

    @staticmethod
    def format_as_tree(root: DependencyNode) -> str:
        """Format as a unicode tree visualization with omission details."""
        lines = ["Dependency Tree:", ""]

        stack: List[Tuple[DependencyNode, str, bool]] = [(root, "", True)]
        while stack:
            node, prefix, is_last = stack.pop()
            label = str(node)
            if node.omitted:
                label += f" [omitted: {node.omitted_reason}]"
            if node.notes:
                label += f" [{node.notes}]"

            if node is root:
                lines.append(label)
                child_prefix = ""
            else:
                connector = "└── " if is_last else "├── "
                lines.append(f"{prefix}{connector}{label}")
                child_prefix = prefix + ("    " if is_last else "│   ")

            count = len(node.children)
            for i in range(count - 1, -1, -1):
                stack.append((node.children[i], child_prefix, i == count - 1))

        return '\n'.join(lines) + '\n'

    @staticmethod
    def format_as_maven_tree(root: DependencyNode) -> str:
        """Format as Maven verbose dependency:tree output."""
        lines = [f"[INFO] {maven_coordinates(root, include_scope=False)}"]

        stack: List[Tuple[DependencyNode, str, bool]] = []
        count = len(root.children)
        for i in range(count - 1, -1, -1):
            stack.append((root.children[i], "", i == count - 1))

        while stack:
            node, prefix, is_last = stack.pop()
            connector = "\\- " if is_last else "+- "
            lines.append(f"[INFO] {prefix}{connector}{OutputFormatter._format_maven_line(node)}")

            child_prefix = prefix + ("   " if is_last else "|  ")
            count = len(node.children)
            for i in range(count - 1, -1, -1):
                stack.append((node.children[i], child_prefix, i == count - 1))

        return '\n'.join(lines) + '\n'

    @staticmethod
    def _format_maven_line(node: DependencyNode) -> str:
        annotations = [str(a) for a in node.annotations]
        if node.optional:
            annotations.append("optional")
        coords = maven_coordinates(node)

        if node.omitted:
            reason = f"omitted for {node.omitted_reason}" if node.omitted_reason else "omitted for"
            annotations.append(reason)
            return f"({coords} - {'; '.join(annotations)})"
        if annotations:
            return f"{coords} ({'; '.join(annotations)})"
        return coords

    @staticmethod
    def format_as_sbom(root: DependencyNode) -> str:
        """
        Generate a CycloneDX SBOM in JSON format.

        Included artifacts become components with their dependency edges.
        Artifacts that only ever appear as omitted candidates are listed as
        excluded components carrying the omission reason.
        """
        from . import __version__

        bom = Bom()

        tool_component = Component(
            name="depview",
            version=__version__,
            type=ComponentType.APPLICATION,
            bom_ref=f"depview@{__version__}",
            external_references=[ExternalReference(
                type=ExternalReferenceType.DOCUMENTATION,
                url=XsUri("https://maven.apache.org/plugins/maven-dependency-plugin/tree-mojo.html")
            )]
        )
        bom.metadata.tools.components.add(tool_component)

        root_component = OutputFormatter._node_to_component(root, ComponentType.APPLICATION)
        bom.metadata.component = root_component

        components: Dict[str, Component] = {}
        omitted_only: Dict[str, DependencyNode] = {}
        edges: Dict[str, List[Component]] = {OutputFormatter._build_purl(root): []}

        walker = root.walk()
        next(walker)
        for node in walker:
            purl = OutputFormatter._build_purl(node)
            if node.omitted:
                omitted_only.setdefault(purl, node)
                continue
            if purl not in components:
                components[purl] = OutputFormatter._node_to_component(node)
                edges.setdefault(purl, [])

        for purl, node in omitted_only.items():
            if purl in components:
                continue
            component = OutputFormatter._node_to_component(node)
            component.scope = ComponentScope.EXCLUDED
            component.properties.add(Property(name=OMITTED_REASON_PROPERTY, value=node.omitted_reason or ""))
            components[purl] = component

        for component in components.values():
            bom.components.add(component)

        # Edges between included nodes only; omitted children are not in the closure
        for node in root.walk():
            if node.omitted:
                continue
            parent_purl = OutputFormatter._build_purl(node)
            for child in node.children:
                if child.omitted:
                    continue
                child_component = components[OutputFormatter._build_purl(child)]
                if child_component not in edges[parent_purl]:
                    edges[parent_purl].append(child_component)

        bom.register_dependency(root_component, edges.pop(OutputFormatter._build_purl(root)))
        for purl, depends_on in edges.items():
            bom.register_dependency(components[purl], depends_on)

        logger.info(f"Generated SBOM with {len(components)} components ({len(omitted_only)} omitted candidates seen)")
        return JsonV1Dot6(bom).output_as_string(indent=2)

    @staticmethod
    def _maven_scope_to_cyclonedx(maven_scope: Optional[str], optional: bool = False) -> ComponentScope:
        """
        Map Maven scope to CycloneDX ComponentScope.

        Maven scopes:
          compile, runtime -> REQUIRED (needed at runtime)
          test, provided, system -> EXCLUDED (not needed at runtime)
          optional dependencies -> OPTIONAL
        """
        if optional:
            return ComponentScope.OPTIONAL
        if (maven_scope or "compile").lower() in ("test", "provided", "system"):
            return ComponentScope.EXCLUDED
        return ComponentScope.REQUIRED

    @staticmethod
    def _node_to_component(node: DependencyNode, component_type: ComponentType = ComponentType.LIBRARY) -> Component:
        """Convert a DependencyNode to a CycloneDX Component."""
        purl_str = OutputFormatter._build_purl(node)

        properties = []
        if node.notes:
            properties.append(Property(name=NOTES_PROPERTY, value=node.notes))

        component = Component(
            name=node.artifact_id,
            version=node.version,
            type=component_type,
            group=node.group_id,
            purl=PackageURL.from_string(purl_str),
            bom_ref=purl_str,
            properties=properties,
        )
        if component_type == ComponentType.LIBRARY:
            component.scope = OutputFormatter._maven_scope_to_cyclonedx(node.scope, node.optional)
        return component

    @staticmethod
    def _build_purl(node: DependencyNode) -> str:
        """Build a Package URL (purl) string for a node."""
        qualifiers = {}
        if node.classifier:
            qualifiers['classifier'] = node.classifier
        if node.packaging != DEFAULT_PACKAGING:
            qualifiers['type'] = node.packaging
        return PackageURL(
            type='maven',
            namespace=node.group_id,
            name=node.artifact_id,
            version=node.version,
            qualifiers=qualifiers or None,
        ).to_string()
