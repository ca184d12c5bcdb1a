"""
Centralized logging using Loguru with context-aware verbosity.

This module provides a LOG() function that respects the verbosity of the
currently connected state (the CLI ProgramState or the language server's
session state) without requiring explicit state passing.

Features:
- Context-aware logging tied to state verbosity
- Rich formatting with timestamps, colors, and metadata
- Works in synchronous code and asyncio tasks alike (contextvars)
- Logs to stderr, leaving stdout free for the language server protocol

Usage:
    from zennix.lib.log import LOG, state_connectToLogger

    # At start of a pipeline function or at server startup:
    state_connectToLogger(state)

    # Anywhere in that context:
    LOG("Formatter failed", level=1)
    LOG("Masked 4 placeholders", level=2)
    LOG("Scanner line 12: arrayDepth=1", level=3)
"""

from loguru import logger
from typing import Any, Optional
from contextvars import ContextVar
import sys

# Context variable to hold the current state object
_program_state: ContextVar[Optional[Any]] = ContextVar('program_state', default=None)

# Configure loguru with zennix-specific format
logger_format = (
    "<green>{time:HH:mm:ss}</green> │ "
    "<level>{level: <5}</level> │ "
    "<cyan>{function: <20}</cyan> @ "
    "<cyan>{line: <4}</cyan> ║ "
    "<level>{message}</level>"
)

logger.remove()  # Remove default handler
logger.add(sys.stderr, format=logger_format, level="DEBUG")


def state_connectToLogger(state: Any) -> None:
    """
    Connect a state object to the logging context.

    Call this at the start of each pipeline function (CLI) or once before
    the event loop starts (language server) so LOG() calls made in that
    context, including asyncio tasks created from it, see the verbosity.

    Args:
        state: Any object with an integer verbosity attribute

    Example:
        def sources_analyze(inputstate: ProgramState) -> ProgramState:
            state = inputstate.copy()
            state_connectToLogger(state)
            LOG("Analyzing sources...", level=1)
    """
    _program_state.set(state)


def LOG(message: str, level: int = 1, **kwargs: Any) -> None:
    """
    Log message if current state's verbosity allows.

    Args:
        message: Log message to display
        level: Minimum verbosity level required (1=normal, 2=verbose, 3=debug)
        **kwargs: Additional loguru metadata

    Verbosity levels:
        1 = Normal output (default)
        2 = Verbose (-v)
        3 = Debug (-vv or higher)
    """
    state = _program_state.get()

    if state and hasattr(state, 'verbosity') and state.verbosity >= level:
        logger.opt(depth=1).debug(message, **kwargs)
