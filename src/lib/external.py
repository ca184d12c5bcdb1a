"""
External host-language tools

Runs the Nix formatter and parser as asynchronous subprocesses on masked
dialect text. Nothing here blocks the event loop: input goes to the
process's stdin, output is collected when the process exits.

Contracts:
    formatter   exit 0 with non-empty stdout = success; anything else is
                a failure and no edit is produced
    parser      exit 0 = no syntax error; otherwise stderr carries one
                "error: <message> at <source>:<line>:<column>" report
"""

import asyncio
from typing import List, Optional, Sequence

from ..config import appsettings
from ..models.diagnostics import Diagnostic
from ..models.masking import ToolResult
from .log import LOG
from .masking import Masker


class ExternalToolError(Exception):
    """Raised when an external tool cannot be run or reports failure"""
    pass


class FormatError(ExternalToolError):
    """
    Raised when the formatter rejects its input

    Attributes:
        stderr: Formatter diagnostic text, shown to the user
    """

    def __init__(self, message: str, stderr: str = ""):
        super().__init__(message)
        self.stderr = stderr


class ExternalTool:
    """
    A command run once per request with text on stdin

    Example:
        tool = ExternalTool(["nixfmt"])
        result = await tool.run("{a=1;}")
        # result.returncode == 0, result.stdout == "{ a = 1; }\\n"
    """

    def __init__(self, command: Sequence[str]):
        """
        Args:
            command: Executable followed by its arguments
        """
        if not command:
            raise ValueError("External tool command must not be empty")
        self.command: List[str] = list(command)

    @property
    def name(self) -> str:
        return self.command[0]

    async def run(self, stdin_text: str) -> ToolResult:
        """
        Spawn the tool, feed stdin_text and wait for it to exit

        Args:
            stdin_text: Text written to the process's standard input

        Returns:
            ToolResult with exit status and decoded output streams

        Raises:
            ExternalToolError: If the executable cannot be started
        """
        LOG(f"Running {' '.join(self.command)}", level=2)
        try:
            process = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ExternalToolError(f"Cannot run '{self.name}': {e}") from e

        stdout, stderr = await process.communicate(stdin_text.encode("utf-8"))
        result = ToolResult(
            returncode=process.returncode if process.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )
        LOG(f"{self.name} exited with status {result.returncode}", level=3)
        return result


def formatter_make() -> ExternalTool:
    """Formatter built from the configured command"""
    return ExternalTool(appsettings.formatter_command)


def parser_make() -> ExternalTool:
    """Parser built from the configured command"""
    return ExternalTool(appsettings.parser_command)


async def document_format(text: str, formatter: Optional[ExternalTool] = None) -> str:
    """
    Format a whole dialect document through the host formatter

    Masks the text, runs the formatter, unwraps and restores its output.
    Formatting is all-or-nothing: any failure raises and no text is
    returned.

    Args:
        text: Original document text
        formatter: Tool to use; defaults to the configured formatter

    Returns:
        The formatted document text

    Raises:
        FormatError: If the formatter cannot run, exits non-zero, or
                     produces no output
    """
    formatter = formatter or formatter_make()
    masker = Masker()
    mask = masker.format_mask(text)

    try:
        result = await formatter.run(mask.text)
    except ExternalToolError as e:
        raise FormatError(str(e), stderr=str(e)) from e

    if not result.ok or not result.stdout:
        LOG(f"{formatter.name} failed: {result.stderr.strip()}", level=1)
        raise FormatError(f"{formatter.name} failed: {result.stderr}", stderr=result.stderr)

    return masker.format_restore(result.stdout, mask)


async def syntax_check(text: str, parser: Optional[ExternalTool] = None) -> List[Diagnostic]:
    """
    Check a dialect document with the host parser

    Positions reported by the parser are mapped back to the original
    document. A parser that cannot be started, or whose error output is
    not in the expected shape, contributes no diagnostics.

    Args:
        text: Original document text
        parser: Tool to use; defaults to the configured parser

    Returns:
        Zero or one syntax error diagnostics
    """
    parser = parser or parser_make()
    mask = Masker().parse_mask(text)

    try:
        result = await parser.run(mask.text)
    except ExternalToolError as e:
        LOG(f"Syntax check skipped: {e}", level=1)
        return []

    if result.ok or not result.stderr:
        return []

    diagnostic = Masker.error_remap(result.stderr, mask, line_count=len(text.split("\n")))
    if diagnostic is None:
        LOG(f"Unrecognized {parser.name} output: {result.stderr.strip()}", level=2)
        return []
    return [diagnostic]
