"""Parser for Maven's verbose dependency:tree text output."""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .errors import InvalidCoordinates, NoTreeFound, UpstreamCommandFailure
from .models import (
    AnnotationKind,
    DEFAULT_PACKAGING,
    DEFAULT_SCOPE,
    DependencyNode,
    MalformedLine,
    TreeParseResult,
    UNKNOWN,
)
from .tree_builder import TreeAssembler

logger = logging.getLogger(__name__)

LINE_MARKER = "[INFO]"
PACKAGING_MARKERS = (":jar:", ":war:", ":pom:", ":ear:", ":ejb:", ":rar:", ":bundle:", ":maven-plugin:", ":aar:")
SEPARATOR = "---"
TERMINAL_MARKERS = ("BUILD SUCCESS", "BUILD FAILURE", SEPARATOR)

CONTINUATION_GLYPH = "|"
BRANCH_GLYPHS = "+\\-"
BLANK_COLUMN = "   "  # Maven draws this instead of '|' below an ancestor that was a last child

TREE_PREFIX_PATTERN = re.compile(r'^[\s|+\\-]+')
ANSI_PATTERN = re.compile(r'\x1b\[[0-9;]*m')

OMITTED_PATTERN = re.compile(r'omitted for([^;]*)')
MANAGED_PATTERNS = (
    (AnnotationKind.VERSION_MANAGED, re.compile(r'version managed from ([^;]+)')),
    (AnnotationKind.SCOPE_MANAGED, re.compile(r'scope managed from ([^;]+)')),
)


@dataclass
class TreeWindow:
    """Location of the tree region inside captured output."""

    lines: List[str]
    root_index: int
    end_index: int  # exclusive
    marker_required: bool = True

    @property
    def root_line(self) -> str:
        return self.lines[self.root_index]


def strip_marker(line: str) -> Optional[str]:
    """Return the text after the [INFO] marker, or None if the line does not carry it."""
    idx = line.find(LINE_MARKER)
    if idx == -1:
        return None
    return line[idx + len(LINE_MARKER):]


def _content(line: str, marker_required: bool) -> Optional[str]:
    line = ANSI_PATTERN.sub('', line)
    content = strip_marker(line)
    if content is None and not marker_required:
        return line
    return content


def is_root_candidate(content: str) -> bool:
    """A root line is coordinate shaped, names a packaging and is not a separator."""
    cleaned = content.strip()
    if not cleaned or SEPARATOR in cleaned:
        return False
    if not any(marker in cleaned for marker in PACKAGING_MARKERS):
        return False
    return len(cleaned.split(':')) >= 3


def is_terminal(line: str) -> bool:
    return any(marker in line for marker in TERMINAL_MARKERS)


def locate_tree_window(text: str) -> TreeWindow:
    """
    Find the dependency tree region in captured Maven output.

    Lines carrying the [INFO] marker are searched first. Output written without
    log prefixes (dependency:tree -DoutputFile=...) has no marker anywhere, so
    when no marked root exists the search is repeated over bare lines.

    Raises:
        NoTreeFound: If no line looks like a tree root
    """
    lines = text.splitlines()

    for marker_required in (True, False):
        root_index = -1
        for i, line in enumerate(lines):
            content = _content(line, marker_required)
            if content is not None and is_root_candidate(content):
                root_index = i
                break

        if root_index == -1:
            continue

        end_index = len(lines)
        for i in range(root_index + 1, len(lines)):
            if is_terminal(ANSI_PATTERN.sub('', lines[i])):
                end_index = i
                break

        logger.debug(
            f"Dependency tree spans lines {root_index + 1}-{end_index} "
            f"({'marked' if marker_required else 'unmarked'} output)"
        )
        return TreeWindow(lines, root_index, end_index, marker_required)

    raise NoTreeFound(text)


def calculate_depth(line: str) -> int:
    """
    Calculate tree depth from the drawing characters in front of a dependency.

    '|' and blank ancestor columns count one level each; the branch glyph
    ('+-' or '\\-') counts one more and ends the scan. A line without any
    glyphs (the root) has depth 0.
    """
    depth = 0
    i = 0
    length = len(line)
    while i < length:
        c = line[i]
        if c in BRANCH_GLYPHS:
            return depth + 1
        if c == CONTINUATION_GLYPH:
            depth += 1
            i += 1
        elif c == ' ':
            if line.startswith(BLANK_COLUMN, i):
                depth += 1
                i += len(BLANK_COLUMN)
            else:
                i += 1
        else:
            break
    return depth


def strip_tree_glyphs(line: str) -> str:
    """Remove the leading tree drawing characters."""
    return TREE_PREFIX_PATTERN.sub('', line).strip()


def split_tree_line(line: str) -> Tuple[str, str]:
    """
    Split a dependency line into coordinate text and annotation text.

    Two formats:
      1. groupId:artifactId:packaging:version:scope (annotation text)
      2. (groupId:artifactId:packaging:version:scope - omitted for ...)
    """
    line = line.strip()

    if line.startswith('(') and ')' in line:
        content = line[1:line.rfind(')')]
        dash_idx = content.find(' - ')
        if dash_idx > 0:
            return content[:dash_idx].strip(), content[dash_idx + 3:].strip()
        return content.strip(), ""

    paren_idx = line.find(' (')
    if paren_idx > 0:
        close_idx = line.rfind(')')
        if close_idx > paren_idx:
            return line[:paren_idx].strip(), line[paren_idx + 2:close_idx].strip()
    return line, ""


def parse_coordinate_fields(coords: str) -> Optional[dict]:
    """
    Read groupId:artifactId:packaging[:classifier]:version:scope.

    Returns None when fewer than three fields are present.
    """
    parts = coords.split(':')
    if len(parts) < 3:
        return None

    fields = {
        'group_id': parts[0],
        'artifact_id': parts[1],
        'packaging': parts[2] or DEFAULT_PACKAGING,
        'classifier': None,
        'version': UNKNOWN,
        'scope': DEFAULT_SCOPE,
    }
    if len(parts) >= 6:
        fields['classifier'] = parts[3] or None
        fields['version'] = parts[4] or UNKNOWN
        fields['scope'] = parts[5] or DEFAULT_SCOPE
    else:
        if len(parts) > 3:
            fields['version'] = parts[3] or UNKNOWN
        if len(parts) > 4:
            fields['scope'] = parts[4] or DEFAULT_SCOPE
    return fields


def interpret_annotations(node: DependencyNode, annotations: str) -> DependencyNode:
    """Apply optional/omitted flags and management notes found in annotation text."""
    if not annotations:
        return node

    if "optional" in annotations:
        node.optional = True

    if "omitted for" in annotations:
        node.omitted = True
        match = OMITTED_PATTERN.search(annotations)
        node.omitted_reason = match.group(1).strip() if match else ""

    for kind, pattern in MANAGED_PATTERNS:
        if kind.value in annotations:
            match = pattern.search(annotations)
            if match:
                node.add_annotation(kind, match.group(1).strip())

    return node


def parse_tree_line(line: str) -> Tuple[DependencyNode, bool]:
    """
    Build a node from a cleaned dependency line.

    Returns:
        Tuple of (node, well_formed); a line with fewer than three coordinate
        fields yields an unknown:unknown:unknown placeholder
    """
    coords, annotations = split_tree_line(line)
    fields = parse_coordinate_fields(coords)
    if fields is None:
        return DependencyNode(UNKNOWN, UNKNOWN, UNKNOWN), False

    node = DependencyNode(**fields)
    interpret_annotations(node, annotations)
    return node, True


def parse_coordinates(coordinates: str) -> Tuple[str, str, str]:
    """
    Split user supplied groupId:artifactId:version coordinates.

    Raises:
        InvalidCoordinates: If fewer than three fields are present
    """
    parts = [p.strip() for p in coordinates.strip().split(':')]
    if len(parts) < 3 or not all(parts[:3]):
        raise InvalidCoordinates(
            f"Invalid coordinates format: {coordinates!r}. Expected groupId:artifactId:version"
        )
    return parts[0], parts[1], parts[2]


class MavenTreeParser:
    """Parser for `mvn dependency:tree -Dverbose=true` output."""

    @staticmethod
    def parse(text: str) -> TreeParseResult:
        """
        Parse captured Maven output into a dependency tree.

        Malformed lines become placeholder nodes and are reported on the result;
        structural problems abort the parse.

        Raises:
            NoTreeFound: If the output contains no dependency tree
            BrokenHierarchy: If a line has no ancestor in the tree
        """
        window = locate_tree_window(text)

        root_content = _content(window.root_line, window.marker_required).strip()
        root, well_formed = parse_tree_line(root_content)
        result = TreeParseResult(root=root)
        if not well_formed:
            result.malformed_lines.append(MalformedLine(window.root_index + 1, root_content))

        assembler = TreeAssembler(root)
        for i in range(window.root_index + 1, window.end_index):
            content = _content(window.lines[i], window.marker_required)
            if content is None:
                continue

            cleaned = strip_tree_glyphs(content)
            if not cleaned or ':' not in cleaned:
                continue

            depth = calculate_depth(content)
            node, well_formed = parse_tree_line(cleaned)
            if not well_formed:
                logger.warning(f"Malformed dependency line {i + 1}: {cleaned!r}")
                result.malformed_lines.append(MalformedLine(i + 1, cleaned))

            assembler.add(depth, node, line_number=i + 1, text=cleaned)
            result.line_count += 1

        logger.info(
            f"Parsed dependency tree for {root.coordinates}: {assembler.node_count} nodes, "
            f"{len(result.malformed_lines)} malformed lines"
        )
        return result

    @staticmethod
    def parse_command_output(output: str, exit_code: int = 0) -> TreeParseResult:
        """
        Parse the output of a finished Maven invocation.

        Raises:
            UpstreamCommandFailure: If Maven exited with a non-zero status
        """
        if exit_code != 0:
            logger.error(f"Maven command failed with exit code {exit_code}")
            raise UpstreamCommandFailure(exit_code, output)
        return MavenTreeParser.parse(output)

    @staticmethod
    def parse_file(file_path: str, exit_code: int = 0) -> TreeParseResult:
        """Read captured output from a file and parse it."""
        logger.info(f"Reading Maven output from file: {file_path}")
        with open(file_path, 'r', encoding='utf-8') as f:
            return MavenTreeParser.parse_command_output(f.read(), exit_code)
