"""
zennix - Editor tooling for the zen-nix dialect

Heuristic diagnostics, typed-declaration checks, formatting and parse
checks through the host Nix tools, and completion for zen-nix sources.
"""

__version__ = "1.0.0"
__author__ = "Rudolph Pienaar"
__email__ = "rudolph.pienaar@gmail.com"

from .lib import Masker, Scanner, TypeChecker, DiagnosticOrchestrator, LOG, state_connectToLogger

__all__ = ["Masker", "Scanner", "TypeChecker", "DiagnosticOrchestrator", "LOG", "state_connectToLogger", "__version__"]
