"""Exception types raised while decoding dependency tree reports."""

from typing import Optional


class DepviewError(Exception):
    """Base class for all depview errors."""


class NoTreeFound(DepviewError):
    """The captured output contains no dependency tree root line."""

    def __init__(self, raw_text: str, message: Optional[str] = None):
        self.raw_text = raw_text
        super().__init__(message or "Could not find dependency tree in Maven output")


class BrokenHierarchy(DepviewError):
    """A tree line has no eligible ancestor; the report is truncated or corrupted."""

    def __init__(self, line_number: int, text: str):
        self.line_number = line_number
        self.text = text
        super().__init__(f"Line {line_number} has no parent in the dependency tree: {text!r}")


class UpstreamCommandFailure(DepviewError):
    """The build tool exited with a non-zero status; its output is not parsed."""

    def __init__(self, exit_code: int, output: str):
        self.exit_code = exit_code
        self.output = output
        super().__init__(f"Maven command failed with exit code {exit_code}:\n{output}")


class InvalidCoordinates(DepviewError, ValueError):
    """Coordinates string does not have the groupId:artifactId:version shape."""


class InvalidPom(DepviewError):
    """pom.xml content could not be read."""
