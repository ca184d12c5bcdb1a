"""
Scanner and checker models

Per-pass state of the bracket/statement heuristic scanner and the typed
declarations extracted by the checker. A fresh ScanState is created for
every scan; nothing survives between runs.
"""

from dataclasses import dataclass, field
from typing import List


@dataclass
class BracketEntry:
    """
    An opening bracket awaiting its close

    Attributes:
        character: One of "(", "{", "["
        line: Zero-based line of the bracket
        column: Zero-based column of the bracket
    """
    character: str
    line: int
    column: int


@dataclass
class ScanState:
    """
    Mutable state carried across lines during one scan

    Attributes:
        stack: Open brackets, innermost last
        array_depth: Number of currently open "[" (never negative)
        in_multiline: True while inside a '' raw string
        inside_action_block: True while inside an action hook body
        action_block_depth: Stack depth recorded when the action block opened
    """
    stack: List[BracketEntry] = field(default_factory=list)
    array_depth: int = 0
    in_multiline: bool = False
    inside_action_block: bool = False
    action_block_depth: int = 0

    @property
    def suppressed(self) -> bool:
        """Statement-shape checks are off inside raw strings and action bodies"""
        return self.in_multiline or self.inside_action_block


@dataclass
class TypedDeclaration:
    """
    A typed variable declaration found by the checker

    Attributes:
        name: Declared variable name
        declared_type: Type name with any "$type." prefix removed
        enum_options: Quoted options from the bracketed list (enum only)
        value: Trimmed value text up to the terminating ";"
        value_start: Offset of the first character of value
        value_end: Offset one past the last character of value

    Example:
        For `_let mode : $type.enum [ "a" "b" ] = "a";`
        TypedDeclaration(name="mode", declared_type="enum",
                         enum_options=["a", "b"], value='"a"', ...)
    """
    name: str
    declared_type: str
    enum_options: List[str]
    value: str
    value_start: int
    value_end: int
