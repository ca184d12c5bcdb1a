"""
Batch pipeline tests - lint and format a small source tree

The pipeline stages are called directly with a ProgramState; a Python
script stands in for the formatter.
"""

import sys

import pytest
import yaml

from zennix.__main__ import (
    env_check,
    results_report,
    sources_analyze,
    sources_find,
    sources_format,
)
from zennix.config import appsettings
from zennix.models import ProgramState, pipeline


IDENTITY_FORMATTER = [sys.executable, "-c", "import sys; sys.stdout.write(sys.stdin.read())"]
REJECTING_FORMATTER = [
    sys.executable, "-c",
    "import sys; sys.stdin.read(); sys.stderr.write('bad input'); sys.exit(1)",
]


@pytest.fixture
def sources(tmp_path):
    inputdir = tmp_path / "in"
    (inputdir / "hosts").mkdir(parents=True)
    (inputdir / "clean.zen.nix").write_text("a = $v.port;\n")
    (inputdir / "hosts" / "broken.zen.nix").write_text('_let x : int = "5";\nfoo = 1\n')
    (inputdir / "plain.nix").write_text("{ }\n")
    return inputdir


def state_make(inputdir, outputdir, **overrides):
    return ProgramState(inputdir=inputdir, outputdir=outputdir, verbosity=0, **overrides)


class TestStages:
    """Individual pipeline stages"""

    def test_missing_inputdir(self, tmp_path):
        with pytest.raises(SystemExit):
            env_check(state_make(tmp_path / "absent", tmp_path / "out"))

    def test_outputdir_created(self, sources, tmp_path):
        state = env_check(state_make(sources, tmp_path / "out" / "nested"))
        assert state.envOK
        assert (tmp_path / "out" / "nested").is_dir()

    def test_find_uses_pattern(self, sources, tmp_path):
        state = sources_find(state_make(sources, tmp_path / "out"))
        assert [p.relative_to(sources).as_posix() for p in state.sourceFiles] == [
            "clean.zen.nix",
            "hosts/broken.zen.nix",
        ]

    def test_analyze(self, sources, tmp_path):
        state = sources_analyze(sources_find(state_make(sources, tmp_path / "out")))
        assert state.diagnostics["clean.zen.nix"] == []
        assert [d.code for d in state.diagnostics["hosts/broken.zen.nix"]] == [
            "missing-terminator",
            "type-mismatch",
        ]
        assert state.diagnosticCount == 2

    def test_format_writes_mirrored_paths(self, sources, tmp_path, monkeypatch):
        monkeypatch.setattr(appsettings, "formatter_command", IDENTITY_FORMATTER)
        outputdir = tmp_path / "out"
        state = sources_format(sources_find(env_check(state_make(sources, outputdir))))
        assert state.formatResults == {
            "clean.zen.nix": "formatted",
            "hosts/broken.zen.nix": "formatted",
        }
        assert (outputdir / "clean.zen.nix").read_text() == "a = $v.port;\n"
        assert (outputdir / "hosts" / "broken.zen.nix").exists()

    def test_format_failure_recorded(self, sources, tmp_path, monkeypatch):
        monkeypatch.setattr(appsettings, "formatter_command", REJECTING_FORMATTER)
        outputdir = tmp_path / "out"
        state = sources_format(sources_find(env_check(state_make(sources, outputdir))))
        assert state.formatResults["clean.zen.nix"] == "error: bad input"
        assert not (outputdir / "clean.zen.nix").exists()

    def test_format_disabled(self, sources, tmp_path):
        state = sources_format(sources_find(state_make(sources, tmp_path / "out", format=False)))
        assert state.formatResults == {}


class TestPipeline:
    """Full pipeline and report"""

    def test_report_written(self, sources, tmp_path, monkeypatch):
        monkeypatch.setattr(appsettings, "formatter_command", IDENTITY_FORMATTER)
        outputdir = tmp_path / "out"
        state = pipeline(
            state_make(sources, outputdir),
            env_check,
            sources_find,
            sources_analyze,
            sources_format,
            results_report,
        )
        report = yaml.safe_load(state.reportFile.read_text())
        assert report["summary"] == {"files": 2, "diagnostics": 2}
        broken = report["files"]["hosts/broken.zen.nix"]
        assert broken[0]["code"] == "missing-terminator"
        assert broken[0]["line"] == 2
        assert broken[0]["column"] == 1
        assert report["formatting"]["clean.zen.nix"] == "formatted"

    def test_strict_mode_exits(self, sources, tmp_path, monkeypatch):
        monkeypatch.setattr(appsettings, "strict_mode", True)
        with pytest.raises(SystemExit):
            pipeline(
                state_make(sources, tmp_path / "out", format=False),
                env_check,
                sources_find,
                sources_analyze,
                sources_format,
                results_report,
            )
