#!/usr/bin/env python3
"""
zennix - Editor tooling for the zen-nix dialect

Batch front end to the zen-nix checks: lints every dialect source file
under an input directory, optionally formats them through the host Nix
formatter, and writes the results to an output directory.

As an aside, this codebase leverages the ChRIS "plugin" concept/pattern as
general purpose python app development framework.

Checks:
    - Bracket/statement heuristics (unbalanced brackets, missing ';' or '=')
    - Typed declarations (_let NAME : $type.TYPE = VALUE;)
    - Host parser syntax check on the masked source (--check)

Usage:
    zennix inputdir/ outputdir/ [--pattern GLOB] [--no-format] [--check]

    Formatted copies are written to outputdir/ under the same relative
    paths; all diagnostics go to outputdir/diagnostics.yaml.

Examples:
    # Lint and format every *.zen.nix file
    zennix modules/ out/

    # Lint only, including the nix-instantiate syntax check
    zennix modules/ out/ --no-format --check

    # Verbose output with highlighted offending lines
    zennix modules/ out/ -vv
"""

import asyncio
import sys
from argparse import ArgumentParser, Namespace, ArgumentDefaultsHelpFormatter, BooleanOptionalAction
from pathlib import Path
from typing import Any, Dict, List

import yaml
from chris_plugin import chris_plugin
from pygments import highlight
from pygments.formatters import TerminalFormatter

from .config import appsettings
from .lib import (
    DiagnosticOrchestrator,
    FormatError,
    ZenNixLexer,
    LOG,
    __version__,
    document_format,
    state_connectToLogger,
    syntax_check,
)
from .models import Diagnostic, ProgramState, pipeline


REPORT_FILENAME = "diagnostics.yaml"

# Define CLI arguments
parser = ArgumentParser(
    description="zennix - lint and format zen-nix dialect sources",
    formatter_class=ArgumentDefaultsHelpFormatter,
)

parser.add_argument(
    "--pattern",
    default="**/*.zen.nix",
    type=str,
    help="Glob (relative to inputdir) selecting the dialect source files",
)

parser.add_argument(
    "--format",
    default=True,
    action=BooleanOptionalAction,
    help="Write formatted copies of the sources to outputdir",
)

parser.add_argument(
    "--check",
    default=False,
    action="store_true",
    help="Also run the host parser syntax check on every file",
)

parser.add_argument(
    "-v",
    "--verbosity",
    action="count",
    default=1,
    help="Increase output verbosity (can be repeated: -v, -vv)",
)

parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")


def diagnostic_toDict(diagnostic: Diagnostic) -> Dict[str, Any]:
    """Report entry for one diagnostic (1-based line and column)"""
    return {
        "line": diagnostic.range.start.line + 1,
        "column": diagnostic.range.start.character + 1,
        "endLine": diagnostic.range.end.line + 1,
        "endColumn": diagnostic.range.end.character + 1,
        "code": diagnostic.code,
        "source": diagnostic.source,
        "message": diagnostic.message,
    }


def env_check(inputstate: ProgramState) -> ProgramState:
    """
    Validate the input directory and create the output directory.

    Args:
        inputstate: Initial program state with CLI options

    Returns:
        ProgramState with envOK set

    Exits:
        1 if the input directory does not exist
    """
    state = inputstate.copy()

    LOG("Checking environment...", level=2)

    if not state.inputdir.is_dir():
        print(f"Error: Input directory not found: {state.inputdir}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)

    state.outputdir.mkdir(parents=True, exist_ok=True)
    LOG(f"Input directory: {state.inputdir}", level=2)
    LOG(f"Output directory: {state.outputdir}", level=2)
    if state.format:
        LOG(f"Formatter: {' '.join(appsettings.formatter_command)}", level=2)
    if state.check:
        LOG(f"Parser: {' '.join(appsettings.parser_command)}", level=2)

    state.envOK = True
    return state


def sources_find(inputstate: ProgramState) -> ProgramState:
    """
    Collect the dialect source files matching the pattern.

    Returns:
        ProgramState with sourceFiles (sorted) set
    """
    state = inputstate.copy()

    state.sourceFiles = sorted(p for p in state.inputdir.glob(state.pattern) if p.is_file())
    LOG(f"Found {len(state.sourceFiles)} source files matching '{state.pattern}'", level=1)
    return state


def sources_analyze(inputstate: ProgramState) -> ProgramState:
    """
    Run the heuristic checks (and optionally the parser) on every file.

    Returns:
        ProgramState with diagnostics keyed by relative path

    Exits:
        1 if a source file cannot be read
    """
    state = inputstate.copy()
    state.diagnostics = {}

    LOG("Analyzing sources...", level=1)

    for path in state.sourceFiles:
        relative = path.relative_to(state.inputdir).as_posix()
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            print(f"Error reading {path}: {e}", file=sys.stderr)
            sys.exit(1)

        found: List[Diagnostic] = DiagnosticOrchestrator.diagnostics_compute(text)
        if state.check:
            found = found + asyncio.run(syntax_check(text))

        state.diagnostics[relative] = found
        LOG(f"{relative}: {len(found)} diagnostics", level=2)

    return state


def sources_format(inputstate: ProgramState) -> ProgramState:
    """
    Format every file through the host formatter and write the result.

    A file the formatter rejects is recorded in formatResults and not
    written; the remaining files are still processed.

    Returns:
        ProgramState with formatResults keyed by relative path
    """
    state = inputstate.copy()
    state.formatResults = {}

    if not state.format:
        LOG("Formatting disabled", level=2)
        return state

    LOG("Formatting sources...", level=1)

    for path in state.sourceFiles:
        relative = path.relative_to(state.inputdir).as_posix()
        text = path.read_text(encoding="utf-8")
        try:
            formatted = asyncio.run(document_format(text))
        except FormatError as e:
            LOG(f"{relative}: formatting failed: {e.stderr.strip() or e}", level=1)
            state.formatResults[relative] = f"error: {e.stderr.strip() or e}"
            continue

        target = state.outputdir / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(formatted, encoding="utf-8")
        state.formatResults[relative] = "formatted"
        LOG(f"{relative}: formatted -> {target}", level=2)

    return state


def results_report(inputstate: ProgramState) -> ProgramState:
    """
    Write diagnostics.yaml and display a summary.

    At verbosity 2 and above each offending source line is shown with
    zen-nix syntax highlighting.

    Returns:
        ProgramState with reportFile set

    Exits:
        1 in strict mode when any diagnostic was found
    """
    state = inputstate.copy()

    report = {
        "version": __version__,
        "files": {
            relative: [diagnostic_toDict(d) for d in found]
            for relative, found in state.diagnostics.items()
        },
        "formatting": dict(state.formatResults),
        "summary": {
            "files": len(state.sourceFiles),
            "diagnostics": state.diagnosticCount,
        },
    }

    state.reportFile = state.outputdir / REPORT_FILENAME
    with open(state.reportFile, "w", encoding="utf-8") as f:
        yaml.safe_dump(report, f, sort_keys=False, allow_unicode=True)

    for relative, found in state.diagnostics.items():
        if not found:
            continue
        lines = (state.inputdir / relative).read_text(encoding="utf-8").split("\n")
        for diagnostic in found:
            start = diagnostic.range.start
            LOG(f"{relative}:{start.line + 1}:{start.character + 1}: {diagnostic.message}", level=1)
            if state.verbosity >= 2 and start.line < len(lines):
                LOG(highlight(lines[start.line], ZenNixLexer(), TerminalFormatter()).rstrip("\n"), level=2)

    LOG(f"\n{state.diagnosticCount} diagnostics in {len(state.sourceFiles)} files", level=1)
    LOG(f"  Report: {state.reportFile}", level=1)

    if appsettings.strict_mode and state.diagnosticCount:
        print(f"Strict mode: {state.diagnosticCount} diagnostics found", file=sys.stderr)
        sys.exit(1)

    return state


@chris_plugin(
    parser=parser,
    title="zennix - zen-nix lint and format",
    category="Utility",
    min_memory_limit="100Mi",
    min_cpu_limit="500m",
)
def main(options: Namespace, inputdir: Path, outputdir: Path):
    """
    Main entry point - lint and format the zen-nix sources in inputdir.

    Orchestrates the full pipeline:
        1. env_check: Validate directories
        2. sources_find: Glob the dialect source files
        3. sources_analyze: Heuristic checks (and parser check with --check)
        4. sources_format: Formatted copies into outputdir
        5. results_report: diagnostics.yaml and summary

    Args:
        options: CLI arguments from argparse
            - pattern: str - Source glob relative to inputdir
            - format: bool - Write formatted copies
            - check: bool - Run the host parser check
            - verbosity: int - Logging verbosity level (1-3)
        inputdir: Directory containing zen-nix sources
        outputdir: Directory receiving formatted files and the report

    Note:
        This function is wrapped by @chris_plugin which handles CLI
        argument parsing and invokes this function with parsed values.
    """

    state: ProgramState = ProgramState.state_createFromNamespace(
        options=options, inputdir=inputdir, outputdir=outputdir
    )

    # Connect state to logger for entire pipeline
    state_connectToLogger(state)

    pipeline(state, env_check, sources_find, sources_analyze, sources_format, results_report)


if __name__ == "__main__":
    main()  # type: ignore  # @chris_plugin decorator transforms signature
