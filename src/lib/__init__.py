"""
zennix - Editor tooling for the zen-nix dialect

Scanner, type checker, masking engine, external tool runners, diagnostic
orchestration, completion and highlighting.
"""

__version__ = "1.0.0"
__author__ = "Rudolph Pienaar"
__email__ = "rudolph.pienaar@gmail.com"

from .scanner import Scanner, scan
from .typecheck import TypeChecker, typecheck
from .masking import Masker
from .external import ExternalTool, ExternalToolError, FormatError, document_format, syntax_check
from .orchestrator import DiagnosticOrchestrator, DiagnosticScheduler
from .completions import CatalogError, CompletionRegistry
from .lexer import ZenNixLexer
from .log import LOG, state_connectToLogger

__all__ = [
    "Scanner",
    "scan",
    "TypeChecker",
    "typecheck",
    "Masker",
    "ExternalTool",
    "ExternalToolError",
    "FormatError",
    "document_format",
    "syntax_check",
    "DiagnosticOrchestrator",
    "DiagnosticScheduler",
    "CatalogError",
    "CompletionRegistry",
    "ZenNixLexer",
    "LOG",
    "state_connectToLogger",
    "__version__",
]
