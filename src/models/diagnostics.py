"""
Diagnostic data models

Editor-independent positions, ranges and diagnostics produced by the
scanner, the typed-declaration checker and the external parser check.
The language server converts these to protocol objects at its boundary.
"""

from enum import Enum
from dataclasses import dataclass


class Severity(Enum):
    """
    Diagnostic severity

    Values match the Language Server Protocol numbering so the server can
    convert without a lookup table.
    """
    ERROR = 1
    WARNING = 2
    INFORMATION = 3
    HINT = 4


class DiagnosticCategory(Enum):
    """
    Error taxonomy for zen-nix diagnostics
    """
    STRUCTURAL = "structural"   # unexpected / unclosed bracket
    STATEMENT = "statement"     # missing '=' or ';'
    TYPE = "type"               # declared type vs value mismatch
    EXTERNAL = "external"       # reported by the host-language parser


@dataclass(frozen=True)
class Position:
    """
    Zero-based line/character position

    Attributes:
        line: Line index (0 = first line)
        character: Column index within the line
    """
    line: int
    character: int

    @classmethod
    def fromOffset(cls, text: str, offset: int) -> "Position":
        """
        Convert a character offset in text to a line/character position

        Args:
            text: Full document text
            offset: Character offset (clamped to the text bounds)

        Returns:
            Position of the offset

        Example:
            >>> Position.fromOffset("ab\\ncd", 4)
            Position(line=1, character=1)
        """
        offset = max(0, min(offset, len(text)))
        line = text.count("\n", 0, offset)
        line_start = text.rfind("\n", 0, offset) + 1
        return cls(line=line, character=offset - line_start)


@dataclass(frozen=True)
class Range:
    """
    Half-open range between two positions
    """
    start: Position
    end: Position

    @classmethod
    def fromCoords(cls, start_line: int, start_char: int, end_line: int, end_char: int) -> "Range":
        """Build a Range from four integers"""
        return cls(Position(start_line, start_char), Position(end_line, end_char))

    @classmethod
    def fromOffsets(cls, text: str, start: int, end: int) -> "Range":
        """Build a Range from two character offsets into text"""
        return cls(Position.fromOffset(text, start), Position.fromOffset(text, end))


@dataclass(frozen=True)
class Diagnostic:
    """
    A single problem report anchored to a source range

    Attributes:
        range: Source span the problem applies to
        message: Human-readable description
        severity: Severity level (always ERROR for built-in rules)
        category: Taxonomy class of the problem
        code: Stable short identifier of the rule that fired
              (e.g., "missing-terminator", "unclosed-bracket")
        source: Producer name shown by editors

    Example:
        Diagnostic(
            range=Range.fromCoords(0, 0, 0, 7),
            message="Missing ';' at the end of the statement.",
            category=DiagnosticCategory.STATEMENT,
            code="missing-terminator",
        )
    """
    range: Range
    message: str
    severity: Severity = Severity.ERROR
    category: DiagnosticCategory = DiagnosticCategory.STATEMENT
    code: str = ""
    source: str = "zennix"
