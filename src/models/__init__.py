"""
Models package for zennix

Contains data structures and type definitions for diagnostics, masking,
completion and the batch pipeline.
"""

from .state import ProgramState, pipeline
from .diagnostics import Diagnostic, DiagnosticCategory, Position, Range, Severity
from .scan import BracketEntry, ScanState, TypedDeclaration
from .masking import (
    FormatMask,
    ParseMask,
    Placeholder,
    PlaceholderKind,
    PlaceholderMap,
    ToolResult,
)
from .completions import CompletionCategory, CompletionItem, CompletionKind, CompletionSpec

__all__ = [
    "ProgramState",
    "pipeline",
    "Diagnostic",
    "DiagnosticCategory",
    "Position",
    "Range",
    "Severity",
    "BracketEntry",
    "ScanState",
    "TypedDeclaration",
    "FormatMask",
    "ParseMask",
    "Placeholder",
    "PlaceholderKind",
    "PlaceholderMap",
    "ToolResult",
    "CompletionCategory",
    "CompletionItem",
    "CompletionKind",
    "CompletionSpec",
]
