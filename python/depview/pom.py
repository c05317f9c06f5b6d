"""Reads declared dependencies and dependency management out of a pom.xml."""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .errors import InvalidPom
from .models import DEFAULT_PACKAGING, UNKNOWN

logger = logging.getLogger(__name__)


@dataclass
class DeclaredDependency:
    """A <dependency> element of the project's own <dependencies> section."""

    group_id: str
    artifact_id: str
    version: Optional[str] = None  # None when left to dependency management
    scope: Optional[str] = None
    optional: bool = False

    @property
    def management_key(self) -> str:
        return f"{self.group_id}:{self.artifact_id}"


@dataclass
class PomDeclarations:
    """Project coordinates plus what the POM declares directly."""

    group_id: str
    artifact_id: str
    version: str
    packaging: str = DEFAULT_PACKAGING
    dependencies: List[DeclaredDependency] = field(default_factory=list)
    managed_versions: Dict[str, str] = field(default_factory=dict)  # groupId:artifactId -> version


def _namespaces(root: ET.Element) -> Dict[str, str]:
    # POMs without xmlns still parse; '{}' then matches un-namespaced tags
    if root.tag.startswith('{'):
        return {'m': root.tag[1:root.tag.index('}')]}
    return {'m': ''}


def get_element_text(parent: ET.Element, tag_name: str, ns: Dict[str, str]) -> Optional[str]:
    """Get text content of a child element."""
    elem = parent.find(f'm:{tag_name}', ns)
    if elem is not None and elem.text:
        return elem.text.strip()
    return None


def resolve_property(value: Optional[str], properties: Dict[str, str], max_iterations: int = 10) -> Optional[str]:
    """
    Resolve ${property} references in a string with nesting support.
    Returns None if unresolvable.
    """
    if not value or '${' not in value:
        return value

    resolved = value
    iterations = 0

    while '${' in resolved and iterations < max_iterations:
        start_idx = resolved.find('${')
        end_idx = resolved.find('}', start_idx)

        if end_idx == -1:
            break

        prop_value = properties.get(resolved[start_idx + 2:end_idx])
        if prop_value is None:
            return None

        resolved = resolved[:start_idx] + prop_value + resolved[end_idx + 1:]
        iterations += 1

    if '${' in resolved:
        return None

    return resolved


def parse_properties(root: ET.Element, ns: Dict[str, str]) -> Dict[str, str]:
    """Parse all properties from <properties> section."""
    properties = {}

    props_elem = root.find('m:properties', ns)
    if props_elem is not None:
        for prop in props_elem:
            tag = prop.tag.split('}')[-1]
            if prop.text:
                properties[tag] = prop.text.strip()

    return properties


def _parse_dependency_elements(container: Optional[ET.Element], ns: Dict[str, str],
                               properties: Dict[str, str]) -> List[DeclaredDependency]:
    if container is None:
        return []

    declared = []
    for dep in container.findall('m:dependency', ns):
        group_id = resolve_property(get_element_text(dep, 'groupId', ns), properties)
        artifact_id = resolve_property(get_element_text(dep, 'artifactId', ns), properties)
        if not group_id or not artifact_id:
            logger.warning("Skipping <dependency> without resolvable groupId/artifactId")
            continue

        raw_version = get_element_text(dep, 'version', ns)
        version = resolve_property(raw_version, properties)
        if raw_version and version is None:
            logger.warning(f"Unresolvable version {raw_version} for {group_id}:{artifact_id}")

        declared.append(DeclaredDependency(
            group_id=group_id,
            artifact_id=artifact_id,
            version=version,
            scope=get_element_text(dep, 'scope', ns),
            optional=get_element_text(dep, 'optional', ns) == 'true',
        ))
    return declared


def parse_pom(pom_content: str) -> PomDeclarations:
    """
    Parse pom.xml content into project coordinates, declared dependencies and
    dependency management. Parent POMs are not fetched; only the <parent>
    coordinates are used to fill in an inherited groupId or version.

    Raises:
        InvalidPom: If the content is not well-formed XML or lacks an artifactId
    """
    try:
        root = ET.fromstring(pom_content)
    except ET.ParseError as e:
        raise InvalidPom(f"Failed to parse POM file: {e}") from e

    ns = _namespaces(root)
    properties = parse_properties(root, ns)

    group_id = get_element_text(root, 'groupId', ns)
    artifact_id = get_element_text(root, 'artifactId', ns)
    version = get_element_text(root, 'version', ns)

    parent_elem = root.find('m:parent', ns)
    if parent_elem is not None:
        if not group_id:
            group_id = get_element_text(parent_elem, 'groupId', ns)
        if not version:
            version = get_element_text(parent_elem, 'version', ns)

    if not artifact_id:
        raise InvalidPom("Failed to parse POM file: missing <artifactId>")

    properties.setdefault('project.groupId', group_id or UNKNOWN)
    properties.setdefault('project.artifactId', artifact_id)
    properties.setdefault('project.version', version or UNKNOWN)

    managed = {}
    management_elem = root.find('m:dependencyManagement', ns)
    if management_elem is not None:
        for dep in _parse_dependency_elements(management_elem.find('m:dependencies', ns), ns, properties):
            if dep.version:
                managed[dep.management_key] = dep.version

    declarations = PomDeclarations(
        group_id=resolve_property(group_id, properties) or UNKNOWN,
        artifact_id=artifact_id,
        version=resolve_property(version, properties) or UNKNOWN,
        packaging=get_element_text(root, 'packaging', ns) or DEFAULT_PACKAGING,
        dependencies=_parse_dependency_elements(root.find('m:dependencies', ns), ns, properties),
        managed_versions=managed,
    )
    logger.info(
        f"Parsed {len(declarations.dependencies)} declared dependencies and "
        f"{len(managed)} managed versions from pom.xml"
    )
    return declarations
