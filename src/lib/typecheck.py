"""
Typed-declaration checker for zen-nix source

Finds declarations of the form

    _let NAME : $type.TYPE [ "opt" ... ] = VALUE;

(the "$type." prefix and the option list are optional) and validates the
literal VALUE against TYPE. The check is shallow: VALUE is not parsed as
an expression, only matched against the literal shape of its type.

Supported types:
    string          VALUE starts with " or ''
    int / integer   optional sign followed by digits
    float           digits with an optional decimal part
    boolean         true or false
    enum            quoted VALUE is one of the declared options

Other declared types (array, set, null, function, color, ...) are accepted
without checking.
"""

import re
from typing import Iterator, List, Optional

from ..models.diagnostics import Diagnostic, DiagnosticCategory, Range
from ..models.scan import TypedDeclaration
from .log import LOG


DECLARATION_RE = re.compile(
    r"_let\s+([a-zA-Z0-9_-]+)\s*:\s*(?:\$type\.)?([a-zA-Z0-9_-]+)(?:\s*\[([\s\S]*?)\])?\s*="
)
ENUM_OPTION_RE = re.compile(r'"([^"]+)"')

_INTEGER_RE = re.compile(r"^[-+]?\d+$")
_FLOAT_RE = re.compile(r"^-?\d+(\.\d+)?$")
_BOOLEAN_VALUES = ("true", "false")


def statementEnd_find(text: str, start: int) -> int:
    """
    Find the first top-level ";" at or after start

    Semicolons nested inside brackets, double-quoted strings or ''
    raw strings do not end the statement.

    Args:
        text: Full document text
        start: Offset to start scanning from (just after "=")

    Returns:
        Offset of the terminating ";", or -1 if there is none

    Example:
        >>> statementEnd_find('{ a = 1; }; rest', 0)
        10
    """
    depth = 0
    in_string = False
    in_raw = False
    pos = start

    while pos < len(text):
        char = text[pos]
        if in_raw:
            if text.startswith("''", pos):
                in_raw = False
                pos += 1
        elif in_string:
            if char == "\\":
                pos += 1
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif text.startswith("''", pos):
            in_raw = True
            pos += 1
        elif char in "([{":
            depth += 1
        elif char in ")]}":
            depth = max(0, depth - 1)
        elif char == ";" and depth == 0:
            return pos
        pos += 1

    return -1


class TypeChecker:
    """
    Whole-document declared-type/value consistency checker
    """

    def __init__(self, text: str):
        self.text = text

    def declarations_find(self) -> Iterator[TypedDeclaration]:
        """
        Yield every typed declaration whose value is bounded by a ";"

        Declarations without a terminating ";" are skipped (the scanner
        reports the missing terminator) as are declarations with an empty
        value.
        """
        for match in DECLARATION_RE.finditer(self.text):
            name, declared_type, enum_content = match.group(1), match.group(2), match.group(3)

            value_start = match.end()
            value_end = statementEnd_find(self.text, value_start)
            if value_end == -1:
                continue

            raw = self.text[value_start:value_end]
            value = raw.strip()
            if not value:
                continue

            start = value_start + raw.index(value)
            options = ENUM_OPTION_RE.findall(enum_content) if enum_content else []

            yield TypedDeclaration(
                name=name,
                declared_type=declared_type,
                enum_options=options,
                value=value,
                value_start=start,
                value_end=start + len(value),
            )

    def check(self) -> List[Diagnostic]:
        """
        Validate all declarations

        Returns:
            One diagnostic per declaration whose value does not fit its type
        """
        diagnostics = []
        for declaration in self.declarations_find():
            diagnostic = self.declaration_validate(declaration)
            if diagnostic is not None:
                diagnostics.append(diagnostic)

        LOG(f"TypeChecker: {len(diagnostics)} type errors", level=3)
        return diagnostics

    def declaration_validate(self, declaration: TypedDeclaration) -> Optional[Diagnostic]:
        """
        Check one declaration's value against its declared type

        Returns:
            A diagnostic spanning the trimmed value, or None if it fits
        """
        name = declaration.name
        value = declaration.value
        declared_type = declaration.declared_type
        code = "type-mismatch"

        if declared_type == "string":
            if value.startswith('"') or value.startswith("''"):
                return None
            message = f"Type Error: Expected a string for '{name}'."
        elif declared_type in ("int", "integer"):
            if _INTEGER_RE.match(value):
                return None
            message = f"Type Error: Expected an integer for '{name}'."
        elif declared_type == "float":
            if _FLOAT_RE.match(value):
                return None
            message = f"Type Error: Expected a float for '{name}'."
        elif declared_type == "boolean":
            if value in _BOOLEAN_VALUES:
                return None
            message = f"Type Error: Expected boolean (true/false) for '{name}'."
        elif declared_type == "enum":
            clean = re.sub(r'^"|"$', "", value)
            if clean in declaration.enum_options:
                return None
            options = ", ".join(declaration.enum_options)
            message = (
                f"Type Error: Value \"{clean}\" is not a valid option for enum '{name}'. "
                f"Valid options: [{options}]"
            )
            code = "invalid-enum"
        else:
            return None

        return Diagnostic(
            range=Range.fromOffsets(self.text, declaration.value_start, declaration.value_end),
            message=message,
            category=DiagnosticCategory.TYPE,
            code=code,
        )


def typecheck(text: str) -> List[Diagnostic]:
    """
    Produce type-mismatch diagnostics for a document

    Args:
        text: Full document text

    Returns:
        List of diagnostics (empty if every declaration fits its type)
    """
    return TypeChecker(text).check()
