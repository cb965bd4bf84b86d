"""Tests for the command-line entry point."""

import json
import sys
from collections.abc import Callable
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from surge_diagnostics.__main__ import (
    EXIT_ERROR,
    EXIT_FINDINGS,
    EXIT_OK,
    format_text_report,
    main,
    parse_args,
    run_check,
    run_entrypoints,
)

SPAWN = "asyncio.create_subprocess_exec"


def error_payload(severity: str = "error") -> str:
    return json.dumps(
        {
            "diagnostics": [
                {
                    "severity": severity,
                    "message": "unknown name `undefined_name`",
                    "code": "E0425",
                    "location": {"start_line": 3, "start_col": 13, "end_col": 27},
                    "notes": [
                        {
                            "message": "did you mean `x`?",
                            "location": {"start_line": 2, "start_col": 9},
                        }
                    ],
                    "fixes": [
                        {
                            "title": "Replace with `x`",
                            "is_preferred": True,
                            "edits": [
                                {
                                    "location": {"start_line": 3, "start_col": 13, "end_col": 27},
                                    "new_text": "x",
                                }
                            ],
                        }
                    ],
                }
            ]
        }
    )


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(f"analyzer:\n  temp_dir: {tmp_path / 'scratch'}\nlogging:\n  level: ERROR\n")
    return path


class TestParseArgs:
    """Test argument parsing."""

    def test_check_defaults(self) -> None:
        args = parse_args(["check", "a.sg", "b.sg"])
        assert args.command == "check"
        assert args.files == [Path("a.sg"), Path("b.sg")]
        assert args.output == "text"
        assert args.workspace is None
        assert args.timeout == 120.0
        assert not args.fixes
        assert not args.metrics

    def test_check_options(self) -> None:
        args = parse_args(
            [
                "--debug",
                "-c",
                "surge.yaml",
                "check",
                "a.sg",
                "--output",
                "json",
                "--workspace",
                "/ws1",
                "--workspace",
                "/ws2",
                "--fixes",
            ]
        )
        assert args.debug
        assert args.config == Path("surge.yaml")
        assert args.output == "json"
        assert args.workspace == [Path("/ws1"), Path("/ws2")]
        assert args.fixes

    def test_entrypoints(self) -> None:
        args = parse_args(["entrypoints", "main.sg"])
        assert args.command == "entrypoints"
        assert args.file == Path("main.sg")


class TestFormatTextReport:
    """Test the human-readable report."""

    def test_one_based_positions(self) -> None:
        results = [
            {
                "path": "/src/main.sg",
                "diagnostics": [
                    {
                        "range": {
                            "start": {"line": 2, "character": 4},
                            "end": {"line": 2, "character": 5},
                        },
                        "severity": "error",
                        "message": "boom",
                        "code": "E1",
                        "relatedInformation": [
                            {
                                "range": {
                                    "start": {"line": 0, "character": 0},
                                    "end": {"line": 0, "character": 1},
                                },
                                "message": "see here",
                            }
                        ],
                        "fixes": [{"title": "Do it", "preferred": None}],
                    }
                ],
            }
        ]

        assert format_text_report(results).splitlines() == [
            "/src/main.sg:3:5: error: boom [E1]",
            "    note 1:1: see here",
            "    fix: Do it",
        ]

    def test_empty(self) -> None:
        assert format_text_report([{"path": "/a.sg", "diagnostics": []}]) == ""


class TestRunCheck:
    """Test the one-shot pipeline run."""

    async def test_json_report_with_fixes(
        self,
        source_file: Path,
        config_file: Path,
        capsys: pytest.CaptureFixture[str],
        process_factory: Callable[..., MagicMock],
    ) -> None:
        with patch(SPAWN, AsyncMock(return_value=process_factory(stdout=error_payload()))):
            code = await run_check(
                config_file, [source_file], output="json", include_fixes=True
            )

        assert code == EXIT_FINDINGS
        report = json.loads(capsys.readouterr().out)
        result = report["results"][0]
        assert result["path"] == str(source_file.resolve())
        diag = result["diagnostics"][0]
        assert diag["code"] == "E0425"
        assert diag["range"]["start"] == {"line": 2, "character": 12}
        assert diag["relatedInformation"][0]["message"] == "did you mean `x`?"
        assert diag["fixes"] == [{"title": "Replace with `x`", "preferred": True}]

    async def test_warnings_only_exit_ok(
        self,
        source_file: Path,
        config_file: Path,
        capsys: pytest.CaptureFixture[str],
        process_factory: Callable[..., MagicMock],
    ) -> None:
        proc = process_factory(stdout=error_payload(severity="warning"))
        with patch(SPAWN, AsyncMock(return_value=proc)):
            code = await run_check(config_file, [source_file])

        assert code == EXIT_OK
        assert ":3:13: warning: unknown name" in capsys.readouterr().out

    async def test_missing_executable(
        self,
        source_file: Path,
        config_file: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        error = FileNotFoundError(2, "No such file or directory", "surge")
        with patch(SPAWN, AsyncMock(side_effect=error)):
            code = await run_check(config_file, [source_file])

        assert code == EXIT_ERROR
        assert "Surge executable not found" in capsys.readouterr().err

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permission bits")
    async def test_non_executable_analyzer(
        self,
        source_file: Path,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        analyzer = tmp_path / "surge"
        analyzer.write_text("#!/bin/sh\necho '{}'\n")
        analyzer.chmod(0o644)
        config_file = tmp_path / "noexec.yaml"
        config_file.write_text(
            f"analyzer:\n  executable_path: {analyzer}\n"
            f"  temp_dir: {tmp_path / 'scratch'}\nlogging:\n  level: ERROR\n"
        )

        code = await run_check(config_file, [source_file])

        assert code == EXIT_ERROR
        captured = capsys.readouterr()
        assert f"{source_file.resolve()}: analyzer produced no result" in captured.err
        assert captured.out == ""

    async def test_spawn_failure_for_one_file(
        self,
        source_file: Path,
        tmp_path: Path,
        config_file: Path,
        capsys: pytest.CaptureFixture[str],
        process_factory: Callable[..., MagicMock],
    ) -> None:
        other = tmp_path / "other.sg"
        other.write_text("fn other() {}\n")
        spawn = AsyncMock(
            side_effect=[
                process_factory(stdout=error_payload(severity="warning")),
                PermissionError(13, "Permission denied"),
            ]
        )
        with patch(SPAWN, spawn):
            code = await run_check(config_file, [source_file, other], output="json")

        assert code == EXIT_ERROR
        captured = capsys.readouterr()
        report = json.loads(captured.out)
        assert len(report["results"]) == 1
        assert "analyzer produced no result" in captured.err

    async def test_metrics_to_stderr(
        self,
        source_file: Path,
        config_file: Path,
        capsys: pytest.CaptureFixture[str],
        process_factory: Callable[..., MagicMock],
    ) -> None:
        with patch(SPAWN, AsyncMock(return_value=process_factory(stdout=""))):
            code = await run_check(config_file, [source_file], show_metrics=True)

        assert code == EXIT_OK
        err = capsys.readouterr().err
        metrics = json.loads(err[err.index("{") :])
        assert metrics["analysis"]["runs"] == 1
        assert metrics["analysis"]["discarded"] == 0

    async def test_unreadable_file(self, tmp_path: Path, config_file: Path) -> None:
        assert await run_check(config_file, [tmp_path / "missing.sg"]) == EXIT_ERROR

    async def test_bad_config(self, source_file: Path, tmp_path: Path) -> None:
        assert await run_check(tmp_path / "nope.yaml", [source_file]) == EXIT_ERROR


class TestRunEntrypoints:
    """Test the entrypoints command."""

    def test_lists_lenses(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        source = tmp_path / "app.sg"
        source.write_text("@entrypoint\nfn main() {}\n")

        assert run_entrypoints(source) == EXIT_OK

        out = capsys.readouterr().out.splitlines()
        assert out == [
            f"{source}:2: Run main (surge.runEntryPoint)",
            f"{source}:2: Build main (surge.buildEntryPoint)",
        ]

    def test_missing_file(self, tmp_path: Path) -> None:
        assert run_entrypoints(tmp_path / "missing.sg") == EXIT_ERROR


class TestMain:
    """Test the main entry point."""

    def test_dry_run_prints_config(
        self, config_file: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main(["-c", str(config_file), "--dry-run"]) == EXIT_OK
        config = json.loads(capsys.readouterr().out)
        assert config["analyzer"]["executable_path"] == "surge"
        assert config["logging"]["level"] == "ERROR"

    def test_dry_run_invalid_config(self, tmp_path: Path) -> None:
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("analyzer:\n  debounce_ms: -5\n")
        assert main(["-c", str(config_file), "--dry-run"]) == EXIT_ERROR

    def test_no_command(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([]) == EXIT_ERROR
        assert "usage" in capsys.readouterr().err

    def test_check_command(
        self,
        source_file: Path,
        config_file: Path,
        capsys: pytest.CaptureFixture[str],
        process_factory: Callable[..., MagicMock],
    ) -> None:
        with patch(SPAWN, AsyncMock(return_value=process_factory(stdout=error_payload()))):
            code = main(["-c", str(config_file), "check", str(source_file)])

        assert code == EXIT_FINDINGS
        assert "error: unknown name `undefined_name` [E0425]" in capsys.readouterr().out
