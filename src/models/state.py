"""
Program state model and pipeline helper

Defines ProgramState dataclass for the functional pipeline pattern and
the pipeline() helper for composing the batch lint/format stages.
"""

from pathlib import Path
from argparse import Namespace
from typing import Any, Type, TypeVar, List, Dict, Callable
from dataclasses import dataclass, field


PS = TypeVar("PS", bound="ProgramState")


@dataclass
class ProgramState:
    """
    Central state container for the batch pipeline (state bus pattern).

    This dataclass carries all program state through the functional pipeline,
    with each stage adding new fields as processing progresses.

    Pipeline stages and their state additions:
        - Initial: inputdir, outputdir, verbosity, pattern, format, check
        - env_check: envOK
        - sources_find: sourceFiles
        - sources_analyze: diagnostics
        - sources_format: formatResults
        - results_report: reportFile

    Attributes:
        inputdir: Directory searched for dialect source files
        outputdir: Directory receiving formatted files and the report
        verbosity: Logging verbosity level (1-3)
        pattern: Glob (relative to inputdir) selecting source files
        format: Write formatted copies of each source file
        check: Run the external host-language parser on each file
        envOK: Environment validation passed
        sourceFiles: Matched source files, sorted
        diagnostics: Relative path -> diagnostics found in that file
        formatResults: Relative path -> "formatted" or the formatter error
        reportFile: Path of the written diagnostics report
    """

    # CLI arguments
    inputdir: Path = field(default=Path("."))
    outputdir: Path = field(default=Path("."))
    verbosity: int = field(default=1)
    pattern: str = field(default="**/*.zen.nix")
    format: bool = field(default=True)
    check: bool = field(default=False)

    # Pipeline state
    envOK: bool = field(default=False)
    sourceFiles: List[Path] = field(default_factory=list)
    diagnostics: Dict[str, List[Any]] = field(default_factory=dict)  # List[Diagnostic] at runtime
    formatResults: Dict[str, str] = field(default_factory=dict)
    reportFile: Path = field(default=Path("/"))

    @classmethod
    def state_createFromNamespace(
        cls: Type["ProgramState"], options: Namespace, inputdir: Path, outputdir: Path
    ) -> "ProgramState":
        """
        Create ProgramState from argparse Namespace and directory paths.

        Args:
            options: Parsed CLI arguments (pattern, format, check, verbosity)
            inputdir: Directory containing source files
            outputdir: Directory for pipeline output

        Returns:
            ProgramState instance with all CLI options as attributes
        """
        options_dict = vars(options)

        import dataclasses
        valid_fields = {f.name for f in dataclasses.fields(cls)}

        # Filter options_dict to only include fields that exist in ProgramState
        filtered_options = {k: v for k, v in options_dict.items() if k in valid_fields}

        merged_args = {**filtered_options, "inputdir": inputdir, "outputdir": outputdir}
        return cls(**merged_args)

    def copy(self: PS) -> PS:
        """
        Creates a shallow copy of the ProgramState instance.

        Returns:
            A new ProgramState instance.
        """
        return type(self)(**self.__dict__)

    @property
    def diagnosticCount(self) -> int:
        """Total number of diagnostics across all files"""
        return sum(len(found) for found in self.diagnostics.values())


def pipeline(
    initial_state: ProgramState, *stages: Callable[[ProgramState], ProgramState]
) -> ProgramState:
    """
    Execute a functional pipeline of state transformations.

    Each stage is a function (ProgramState) -> ProgramState that receives
    the output of the previous stage and returns a new state.

    Example:
        final_state = pipeline(
            initial_state,
            env_check,
            sources_find,
            sources_analyze,
            sources_format,
            results_report
        )
    """
    from functools import reduce
    return reduce(lambda state, stage: stage(state), stages, initial_state)
