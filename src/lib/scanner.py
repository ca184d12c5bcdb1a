"""
Bracket/statement heuristic scanner for zen-nix source

There is no grammar for the dialect, so structural problems are found by
a line-oriented approximation of a lexer:

1. Comment stripping: text after the first unescaped '#' is ignored
2. Raw-string tracking: an odd number of '' on a line toggles multiline mode
3. Bracket matching: a stack of open (, {, [ with their positions
4. Action-block tracking: bodies of _action/_saction/_uaction and the
   shorthand "! {" hold arbitrary Nix expressions and are exempt from
   statement-shape checks
5. Closing-brace checks: "}" must be followed by ";" or a continuation
   keyword (in, then, else)
6. Statement-shape checks: attribute lines need "=" and must end in ";"
   unless they open a nested block

The approximation accepts false positives and negatives. Callers only
depend on scan(text) -> diagnostics, so a real grammar can replace it.

Example:
    >>> [d.message for d in scan("foo = 1")]
    ["Missing ';' at the end of the statement."]
"""

import re
from typing import List, Optional

from ..models.diagnostics import Diagnostic, DiagnosticCategory, Range
from ..models.scan import BracketEntry, ScanState
from .log import LOG


OPENERS = "({["
CLOSERS = ")}]"
PAIRS = {")": "(", "}": "{", "]": "["}

RAW_STRING_DELIMITER = "''"
CONTINUATION_KEYWORDS = ("in", "then", "else")

_COMMENT_RE = re.compile(r"(?<!\\)#")
_ACTION_ASSIGN_RE = re.compile(r"_(?:u|s)?action\s*=")
_BANG_BLOCK_RE = re.compile(r"^!(\s*\{|$)")
_INLINE_CLOSE_RE = re.compile(r"\}\s*([a-zA-Z_][a-zA-Z0-9_-]*)")
_UNESCAPED_QUOTE_RE = re.compile(r'(?<!\\)"')
_NEXT_LINE_OK_RE = re.compile(r"^[;\])}]|^(?:in|then|else)\b")
_EXEMPT_LINE_RE = re.compile(r"^(?:let|in|with|inherit|if|then|else|_let)\b")
_IDENTIFIER_CHAR_RE = re.compile(r"[a-zA-Z0-9_-]")

_OPENING_ENDINGS = ("{", "[", "(", RAW_STRING_DELIMITER)
_STATEMENT_ENDINGS = (";", "{", "[", "(", RAW_STRING_DELIMITER, "=")


def comment_strip(line: str) -> str:
    """
    Remove a trailing '#' comment from a line

    A '#' preceded by a backslash does not start a comment.

    Example:
        >>> comment_strip("a = 1; # note")
        'a = 1; '
    """
    match = _COMMENT_RE.search(line)
    return line[:match.start()] if match else line


class Scanner:
    """
    Line-oriented approximate lexer producing structural diagnostics

    A Scanner is bound to one text; scan() resets its state so the same
    instance can be re-run, but it keeps no memory between texts.
    """

    def __init__(self, text: str):
        """
        Initialize scanner with document text

        Args:
            text: Full zen-nix document text

        Attributes:
            lines: Physical lines of text (split on newline)
            state: Per-pass ScanState
            diagnostics: Diagnostics accumulated by the current pass
        """
        self.text = text
        self.lines = text.split("\n")
        self.state = ScanState()
        self.diagnostics: List[Diagnostic] = []

    def scan(self) -> List[Diagnostic]:
        """
        Run a full pass over the document

        Returns:
            Diagnostics in discovery order, followed by one "unclosed"
            diagnostic per bracket still open at end of document
        """
        self.state = ScanState()
        self.diagnostics = []

        for index, line in enumerate(self.lines):
            self.line_scan(index, line)

        self.unclosed_report()
        LOG(f"Scanner: {len(self.lines)} lines, {len(self.diagnostics)} diagnostics", level=3)
        return self.diagnostics

    def line_scan(self, index: int, line: str) -> None:
        """
        Analyze one physical line, updating scan state

        Args:
            index: Zero-based line number
            line: Raw line text
        """
        state = self.state
        clean = comment_strip(line)
        trimmed = clean.strip()
        if not trimmed:
            return

        start = clean.index(trimmed)
        end = start + len(trimmed)

        if clean.count(RAW_STRING_DELIMITER) % 2 != 0:
            state.in_multiline = not state.in_multiline

        # Decided before this line can open an action block
        suppressed = state.suppressed

        self.brackets_track(index, clean)
        self.actionBlock_track(trimmed)

        self.closingBrace_check(index, clean, trimmed)

        if suppressed or state.array_depth != 0:
            return
        if _EXEMPT_LINE_RE.match(trimmed) or trimmed.startswith("}"):
            return
        if not _IDENTIFIER_CHAR_RE.search(trimmed):
            return

        self.statement_check(index, clean, trimmed, start, end)

    def brackets_track(self, index: int, clean: str) -> None:
        """
        Push openers and match closers on one comment-stripped line

        A closer with no opener, or with the wrong opener on top of the
        stack, is reported as unexpected; the top entry is consumed either
        way.
        """
        state = self.state
        for column, char in enumerate(clean):
            if char in OPENERS:
                state.stack.append(BracketEntry(character=char, line=index, column=column))
                if char == "[":
                    state.array_depth += 1
            elif char in CLOSERS:
                if char == "]":
                    state.array_depth = max(0, state.array_depth - 1)
                last = state.stack.pop() if state.stack else None
                if last is None or last.character != PAIRS[char]:
                    self.report(
                        index, column, index, column + 1,
                        f"Unexpected closing character '{char}'.",
                        DiagnosticCategory.STRUCTURAL, "unexpected-closing",
                    )

    def actionBlock_track(self, trimmed: str) -> None:
        """
        Enter or leave an action block

        Entry is recorded after the line's brackets were pushed, so the
        block lasts until its own opening brace is closed.
        """
        state = self.state
        if _ACTION_ASSIGN_RE.search(trimmed) or _BANG_BLOCK_RE.match(trimmed):
            state.inside_action_block = True
            state.action_block_depth = len(state.stack)
            LOG(f"Entering action block at depth {state.action_block_depth}", level=3)

        if state.inside_action_block and len(state.stack) < state.action_block_depth:
            state.inside_action_block = False

    def closingBrace_check(self, index: int, clean: str, trimmed: str) -> None:
        """
        Check that every "}" is terminated

        Runs regardless of suppression: a brace followed by an identifier
        other than in/then/else, or a line ending in "}" whose next content
        line does not start with a terminator or continuation keyword.
        """
        for match in _INLINE_CLOSE_RE.finditer(clean):
            if match.group(1) in CONTINUATION_KEYWORDS:
                continue
            # "${name}suffix" inside a string literal
            if len(_UNESCAPED_QUOTE_RE.findall(clean, 0, match.start())) % 2:
                continue
            column = match.start()
            self.report(
                index, column, index, column + 1,
                "Expected ';' after '}'.",
                DiagnosticCategory.STATEMENT, "expected-terminator",
            )

        if not trimmed.endswith("}"):
            return

        next_line = self.nextContentLine_find(index)
        if next_line is not None and not _NEXT_LINE_OK_RE.match(next_line):
            column = clean.rfind("}")
            self.report(
                index, column, index, column + 1,
                "Missing ';' after '}'.",
                DiagnosticCategory.STATEMENT, "missing-brace-terminator",
            )

    def nextContentLine_find(self, index: int) -> Optional[str]:
        """
        Find the next line after index with non-comment content

        Returns:
            The trimmed, comment-stripped line, or None at end of document
        """
        for line in self.lines[index + 1:]:
            content = comment_strip(line).strip()
            if content:
                return content
        return None

    def statement_check(self, index: int, clean: str, trimmed: str, start: int, end: int) -> None:
        """
        Check the flat attribute-statement shape "name = value;"
        """
        if "=" not in clean:
            if not trimmed.endswith(_OPENING_ENDINGS):
                self.report(
                    index, start, index, end,
                    "Missing '=' assignment.",
                    DiagnosticCategory.STATEMENT, "missing-assignment",
                )
            return

        if not trimmed.endswith(_STATEMENT_ENDINGS):
            self.report(
                index, start, index, end,
                "Missing ';' at the end of the statement.",
                DiagnosticCategory.STATEMENT, "missing-terminator",
            )

    def unclosed_report(self) -> None:
        """Report every bracket left on the stack, innermost first"""
        while self.state.stack:
            entry = self.state.stack.pop()
            self.report(
                entry.line, entry.column, entry.line, entry.column + 1,
                f"Unclosed character '{entry.character}'.",
                DiagnosticCategory.STRUCTURAL, "unclosed-bracket",
            )

    def report(
        self,
        start_line: int,
        start_char: int,
        end_line: int,
        end_char: int,
        message: str,
        category: DiagnosticCategory,
        code: str,
    ) -> None:
        self.diagnostics.append(Diagnostic(
            range=Range.fromCoords(start_line, start_char, end_line, end_char),
            message=message,
            category=category,
            code=code,
        ))


def scan(text: str) -> List[Diagnostic]:
    """
    Produce structural and statement-shape diagnostics for a document

    Args:
        text: Full document text

    Returns:
        List of diagnostics (empty for a clean document)
    """
    return Scanner(text).scan()
