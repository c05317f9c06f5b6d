"""Validate command for checking that a captured report decodes cleanly."""

import logging
from typing import List

from ..errors import BrokenHierarchy, NoTreeFound, UpstreamCommandFailure
from ..parsers import MavenTreeParser

logger = logging.getLogger(__name__)


def validate_report(text: str, source: str = "-", exit_code: int = 0) -> bool:
    """Parse a report and print what was found.

    Returns:
        True when a tree was assembled without malformed lines
    """
    errors: List[str] = []
    warnings: List[str] = []
    checks: List[str] = []

    try:
        result = MavenTreeParser.parse_command_output(text, exit_code)
    except UpstreamCommandFailure as e:
        errors.append(f"Maven exited with status {e.exit_code}; output was not parsed")
        result = None
    except NoTreeFound:
        errors.append("No dependency tree root line found")
        result = None
    except BrokenHierarchy as e:
        errors.append(f"Tree structure broken at line {e.line_number}: {e.text}")
        result = None

    if result is not None:
        root = result.root
        omitted = sum(1 for node in root.walk() if node.omitted)
        checks.append(f"root: {root.coordinates}")
        checks.append(f"dependency lines: {result.line_count}")
        checks.append(f"omitted candidates: {omitted}")
        for malformed in result.malformed_lines:
            warnings.append(f"line {malformed.line_number} has unreadable coordinates: {malformed.text}")
    valid = not errors

    print("Dependency Tree Validation Results:")
    print(f"  Source: {source}")
    print()

    if checks:
        print("Validation Checks:")
        for check in checks:
            print(f"  ✓ {check}")

    if errors:
        print()
        print("Errors:")
        for err in errors:
            print(f"  ✗ {err}")
    if warnings:
        print()
        print("Warnings:")
        for warn in warnings:
            print(f"  ⚠ {warn}")

    print()
    if valid and not warnings:
        print("Result: ✓ Complete dependency tree with no issues")
    elif valid:
        print(f"Result: ✓ Partial dependency tree with {len(warnings)} warning(s)")
    else:
        print(f"Result: ✗ Invalid report - {len(errors)} error(s)")

    return valid and not warnings
