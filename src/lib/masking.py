r"""
Syntax masking engine

Hides zen-nix-only syntax from tools that only understand Nix, then
reverses the substitution on their output.

Masked constructs:
    typed declarations   _let port : $type.int = ...
    context variables    $name, $v.port
    structural nodes     (zmdl target), (import ./x.nix { a = 1; })
    shorthand actions    ! { ... }

Two modes share the same construct patterns:

Formatting mode (length-agnostic)
    Each construct becomes an identifier placeholder (__ZEN_VAR_0__) that
    the formatter treats as an ordinary name. A declaration with an inline
    option list is split into two linked placeholders so the list stays a
    legal statement the formatter can lay out:

        _let m : $type.enum [ "a" "b" ] = "a";
    ->  __ZEN_LET_S_0__ = [ "a" "b" ];
        __ZEN_LET_E_0__ = "a";

    After formatting the placeholders are restored newest first.

Parse-check mode (length-preserving)
    Each construct is overwritten in place by filler of exactly the same
    length (newlines kept), so a line/column reported by the parser points
    at the same character in the original document.

Both modes wrap text that is a bare attribute list in synthetic braces.
"""

import re
from typing import List, Optional

from ..config import appsettings
from ..models.diagnostics import Diagnostic, DiagnosticCategory, Range
from ..models.masking import FormatMask, ParseMask, PlaceholderKind, PlaceholderMap
from .log import LOG
from .scanner import comment_strip


STRUCTURAL_KEYWORDS = ("zmdl", "alias", "programs", "packages", "freeform", "group", "import", "needs")

# Declaration head up to (not including) the option list and "="
DECLARATION_HEAD_RE = re.compile(
    r"_let\s+[a-zA-Z0-9_-]+\s*:\s*(?:\$type\.[a-zA-Z0-9_-]+|[a-zA-Z0-9_-]+)"
)
# Declaration head including option list and "=" (parse-check mode)
DECLARATION_FULL_RE = re.compile(
    r"_let\s+[a-zA-Z0-9_-]+\s*:\s*(?:\$type\.[a-zA-Z0-9_-]+|[a-zA-Z0-9_-]+)(?:\s*\[[\s\S]*?\])?\s*="
)
# Formatting mode keeps ".path" visible: $v.port -> __ZEN_VAR_0__.port
VARIABLE_RE = re.compile(r"\$[a-zA-Z0-9_-]+")
VARIABLE_PATH_RE = re.compile(r"\$[a-zA-Z0-9_.-]+")
# Up to one level of nested parentheses, e.g. (zmdl ($f.user))
NODE_RE = re.compile(
    r"\(\s*(?:" + "|".join(STRUCTURAL_KEYWORDS) + r")(?:[^)(]|\([^)(]*\))*\)"
)
BANG_RE = re.compile(r"!(\s*)\{")
TOP_LEVEL_FORM_RE = re.compile(
    r"""^\s*(\{|let\b|with\b|rec\b|\[|\(|"[^"]*"|'[^']*'|[a-zA-Z0-9_-]+\s*:)"""
)
ERROR_LINE_RE = re.compile(
    r"error:\s*(?P<message>.*?)\s+at\s+(?P<source>\S+?):(?P<line>\d+):(?P<column>\d+)",
    re.DOTALL,
)

WRAP_INDENT = "  "


def filler_make(original: str, lead: str, tail: str = "") -> str:
    """
    Build same-length filler for a masked span

    Newlines in original are kept where they are so every following line
    keeps its number; all other characters become spaces, except the first
    (lead) and last (tail) characters.

    Example:
        >>> filler_make("$v.port", "v")
        'v      '
        >>> filler_make("_let x : int =", "_", "=")
        '_            ='
    """
    chars = ["\n" if char == "\n" else " " for char in original]
    if chars:
        chars[0] = lead
    if tail and len(chars) > 1:
        chars[-1] = tail
    return "".join(chars)


def wrap_isNeeded(text: str) -> bool:
    """True if text does not start with a recognizable top-level Nix form"""
    return TOP_LEVEL_FORM_RE.match(text) is None


class Masker:
    """
    Reversible substitution of dialect syntax

    One Masker handles one text; its PlaceholderMap records every
    formatting-mode substitution so format_restore() can undo them.
    """

    def __init__(self, prefix: Optional[str] = None):
        """
        Initialize masker

        Args:
            prefix: Placeholder prefix; defaults to the configured prefix

        Attributes:
            placeholders: Ordered record of formatting-mode substitutions
            mask_id: Running placeholder index
        """
        self.prefix = prefix or appsettings.placeholder_prefix
        self.placeholders = PlaceholderMap()
        self.mask_id = 0

    def prefix_choose(self, text: str) -> str:
        """
        Pick a placeholder prefix that does not occur in text

        Extends the prefix until it is absent, so no placeholder token can
        collide with source text.
        """
        prefix = self.prefix
        while prefix in text:
            prefix = prefix.rstrip("_") + "Z_"
        if prefix != self.prefix:
            LOG(f"Placeholder prefix occurs in source, using '{prefix}'", level=2)
        self.prefix = prefix
        return prefix

    def placeholder_add(self, kind: PlaceholderKind, original: str, index: Optional[int] = None) -> str:
        """
        Synthesize a placeholder token and record its mapping

        Args:
            kind: Construct kind (selects the restoration rule)
            original: Text the token stands for
            index: Explicit index (linked pairs share one); defaults to the
                   next running index

        Returns:
            The new placeholder token
        """
        if index is None:
            index = self.mask_id
            self.mask_id += 1
        token = appsettings.placeHolder_make(kind.value, index, prefix=self.prefix)
        self.placeholders.add(token, original, kind)
        return token

    # ------------------------------------------------------------------
    # Formatting mode
    # ------------------------------------------------------------------

    def format_mask(self, text: str) -> FormatMask:
        """
        Mask dialect syntax for the formatter

        Args:
            text: Original document text

        Returns:
            FormatMask with masked text, placeholder record and wrap flag
        """
        self.prefix_choose(text)

        masked = self.declarations_mask(text)
        masked = VARIABLE_RE.sub(
            lambda m: self.placeholder_add(PlaceholderKind.VAR, m.group(0)), masked
        )
        masked = NODE_RE.sub(
            lambda m: self.placeholder_add(PlaceholderKind.NODE, m.group(0)), masked
        )
        masked = BANG_RE.sub(
            lambda m: self.placeholder_add(PlaceholderKind.BANG, m.group(0)) + " = {", masked
        )

        wrapped = wrap_isNeeded(masked)
        if wrapped:
            masked = "{\n" + masked + "\n}"

        LOG(f"Format mask: {len(self.placeholders)} placeholders, wrapped={wrapped}", level=2)
        return FormatMask(text=masked, placeholders=self.placeholders, wrapped=wrapped)

    def declarations_mask(self, text: str) -> str:
        """
        Mask typed declaration heads, leaving "=" and the value exposed

        From the end of the type annotation the text is scanned forward,
        tracking bracket depth and double-quoted strings, to the top-level
        "=" that starts the value. Any content in between (an option list)
        is kept visible as its own statement between two linked
        placeholders. Heads inside a "#" comment are left alone.
        """
        parts: List[str] = []
        current = 0

        for match in DECLARATION_HEAD_RE.finditer(text):
            if match.start() < current:
                continue
            line_start = text.rfind("\n", 0, match.start()) + 1
            line_prefix = text[line_start:match.start()]
            if comment_strip(line_prefix) != line_prefix:
                continue
            parts.append(text[current:match.start()])

            equals = self.assignment_find(text, match.end())
            if equals == -1:
                parts.append(match.group(0))
                current = match.end()
                continue

            middle = text[match.end():equals].strip()
            if middle:
                index = self.mask_id
                self.mask_id += 1
                start = self.placeholder_add(PlaceholderKind.LET_S, match.group(0), index)
                end = self.placeholder_add(PlaceholderKind.LET_E, "=", index)
                parts.append(f"{start} = {middle};\n{end} =")
            else:
                head = text[match.start():equals].rstrip()
                parts.append(self.placeholder_add(PlaceholderKind.LET, head) + " =")
            current = equals + 1

        parts.append(text[current:])
        return "".join(parts)

    @staticmethod
    def assignment_find(text: str, start: int) -> int:
        """
        Find the top-level "=" at or after start

        Returns:
            Offset of "=", or -1 if a top-level ";" or the end of the text
            comes first
        """
        depth = 0
        in_string = False
        for pos in range(start, len(text)):
            char = text[pos]
            if char == '"' and text[pos - 1] != "\\":
                in_string = not in_string
            if in_string:
                continue
            if char in "[{(":
                depth += 1
            elif char in "]})":
                depth -= 1
            elif char == "=" and depth == 0:
                return pos
            elif char == ";" and depth == 0:
                return -1
        return -1

    def format_restore(self, formatted: str, mask: FormatMask) -> str:
        """
        Undo wrapping and placeholders on formatter output

        Args:
            formatted: Formatter output for mask.text
            mask: The FormatMask the formatter was given

        Returns:
            Formatted dialect text
        """
        result = formatted
        if mask.wrapped:
            result = self.unwrap(result)

        for placeholder in mask.placeholders.restoreOrder():
            token = re.escape(placeholder.token)
            original = placeholder.original
            if placeholder.kind is PlaceholderKind.LET_S:
                # Eats the "=" that made the option list a statement
                result = re.sub(token + r"\s*=", lambda m: original, result, count=1)
            elif placeholder.kind is PlaceholderKind.LET_E:
                # Eats the ";" closing the option list statement
                result = re.sub(r";\s*" + token + r"\s*=", lambda m: " =", result, count=1)
            elif placeholder.kind is PlaceholderKind.BANG:
                result = re.sub(token + r"\s*=\s*\{", lambda m: original, result)
            else:
                result = result.replace(placeholder.token, original)

        return result

    @staticmethod
    def unwrap(text: str) -> str:
        """
        Remove synthetic outer braces and the indentation they caused
        """
        text = text.strip()
        if text.startswith("{"):
            text = text[1:]
        if text.endswith("}"):
            text = text[:-1]
        text = re.sub(r"^" + WRAP_INDENT, "", text, flags=re.MULTILINE)
        return text.strip() + "\n"

    # ------------------------------------------------------------------
    # Parse-check mode
    # ------------------------------------------------------------------

    def parse_mask(self, text: str) -> ParseMask:
        """
        Mask dialect syntax for the parser without moving any character

        Args:
            text: Original document text

        Returns:
            ParseMask whose text has the same length as text (plus the two
            wrapper lines if wrapped)
        """
        masked = DECLARATION_FULL_RE.sub(lambda m: filler_make(m.group(0), "_", "="), text)
        masked = VARIABLE_PATH_RE.sub(lambda m: filler_make(m.group(0), "v"), masked)
        masked = NODE_RE.sub(lambda m: filler_make(m.group(0), "n"), masked)
        masked = self.bangs_fill(masked)

        wrapped = wrap_isNeeded(masked)
        if wrapped:
            masked = "{\n" + masked + "\n}"

        return ParseMask(text=masked, wrapped=wrapped, line_offset=1 if wrapped else 0)

    @staticmethod
    def bangs_fill(text: str) -> str:
        """
        Turn "! {" into "_={" (or "_ ={" etc.) in place

        The "=" goes into the first non-newline whitespace between marker
        and brace. For "!{" it takes the whitespace character just before
        the marker instead; at the start of a line the marker is left alone.
        """
        chars = list(text)
        for match in BANG_RE.finditer(text):
            bang = match.start()
            spaces = match.group(1)
            slot = next(
                (bang + 1 + i for i, char in enumerate(spaces) if char not in "\r\n"),
                None,
            )
            if slot is not None:
                chars[bang] = "_"
                chars[slot] = "="
            elif bang > 0 and text[bang - 1] in " \t":
                chars[bang - 1] = "_"
                chars[bang] = "="
        return "".join(chars)

    @staticmethod
    def error_remap(stderr: str, mask: ParseMask, line_count: int) -> Optional[Diagnostic]:
        """
        Map a parser error back onto the original document

        Args:
            stderr: Parser error output
                    ("error: <message> at <source>:<line>:<column>")
            mask: The ParseMask the parser was given
            line_count: Number of lines in the original document

        Returns:
            One-character syntax error diagnostic, or None if the output
            does not contain a recognizable error position
        """
        match = ERROR_LINE_RE.search(stderr)
        if not match:
            return None

        message = " ".join(match.group("message").split())
        line = int(match.group("line")) - 1 - mask.line_offset
        column = max(0, int(match.group("column")) - 1)
        line = min(max(0, line), max(0, line_count - 1))

        return Diagnostic(
            range=Range.fromCoords(line, column, line, column + 1),
            message=f"Syntax Error: {message}",
            category=DiagnosticCategory.EXTERNAL,
            code="syntax-error",
            source="nix",
        )
