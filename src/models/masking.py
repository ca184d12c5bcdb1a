"""
Masking-specific data models

Type-safe structures for the syntax masking engine and the external tools
that consume its output.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Iterator, List, Optional


class PlaceholderKind(Enum):
    """
    Kinds of masked dialect constructs

    LET_S and LET_E are the linked pair produced for a typed declaration
    with an inline option list; they are always restored together.
    """
    VAR = "VAR"         # $name, $v.port
    NODE = "NODE"       # (zmdl target)
    LET = "LET"         # _let x : $type.int
    LET_S = "LET_S"     # declaration head preceding an option list
    LET_E = "LET_E"     # continuation marker standing for the real "="
    BANG = "BANG"       # ! {


@dataclass(frozen=True)
class Placeholder:
    """
    One recorded substitution

    Attributes:
        token: Synthesized unique identifier inserted into the masked text
        original: Source text the token stands for
        kind: Construct kind, selects the restoration rule
    """
    token: str
    original: str
    kind: PlaceholderKind


@dataclass
class PlaceholderMap:
    """
    Insertion-ordered association list of placeholders

    A plain list rather than a dict so restoration order is explicit:
    entries are restored newest first, because a later placeholder's
    original text may contain an earlier one's token (a structural node
    that wraps a masked context variable).

    Example:
        >>> pmap = PlaceholderMap()
        >>> pmap.add("__ZEN_VAR_0__", "$m", PlaceholderKind.VAR)
        >>> [p.token for p in pmap.restoreOrder()]
        ['__ZEN_VAR_0__']
    """
    entries: List[Placeholder] = field(default_factory=list)

    def add(self, token: str, original: str, kind: PlaceholderKind) -> None:
        """Record a placeholder; tokens must be unique"""
        if self.get(token) is not None:
            raise ValueError(f"Duplicate placeholder token '{token}'")
        self.entries.append(Placeholder(token=token, original=original, kind=kind))

    def get(self, token: str) -> Optional[Placeholder]:
        """Look up a placeholder by token"""
        for entry in self.entries:
            if entry.token == token:
                return entry
        return None

    def restoreOrder(self) -> Iterator[Placeholder]:
        """Iterate entries in reverse insertion order"""
        return reversed(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


@dataclass
class FormatMask:
    """
    Result of masking for the (length-agnostic) formatter

    Attributes:
        text: Masked text, valid host-language input
        placeholders: Substitutions to undo after formatting
        wrapped: True if the text was wrapped in synthetic braces
    """
    text: str
    placeholders: PlaceholderMap
    wrapped: bool = False


@dataclass
class ParseMask:
    """
    Result of masking for the (length-preserving) parser check

    Every character outside masked spans keeps its line and column; a
    wrap adds exactly one leading line, recorded in line_offset.

    Attributes:
        text: Masked text
        wrapped: True if the text was wrapped in synthetic braces
        line_offset: Lines to subtract from reported positions
    """
    text: str
    wrapped: bool = False
    line_offset: int = 0


@dataclass
class ToolResult:
    """
    Outcome of one external tool invocation

    Attributes:
        returncode: Process exit status
        stdout: Decoded standard output
        stderr: Decoded standard error
    """
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0
