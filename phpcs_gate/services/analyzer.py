"""
Analyzer Service
================
Runs phpcs against a set of targets and a named ruleset, returning a
BatchReport or raising InvocationError.

CONTRACT:
  check(targets, ruleset) -> BatchReport
  - All targets go to ONE phpcs invocation (one consolidated report).
  - Empty target set → trivial clean report, phpcs is never started.
  - exit 0 → clean report.
  - non-zero + JSON on stdout → parsed report.
  - non-zero + no JSON, or JSON that does not parse → InvocationError.
"""
import logging
from typing import Callable, List, Optional, Sequence

from phpcs_gate.core.errors import InputError
from phpcs_gate.executor.command_runner import (
    CommandOutcome,
    CommandResult,
    classify_check,
    run_command,
)
from phpcs_gate.models.violation import BatchReport, clean_report
from phpcs_gate.parser.report_parser import parse_report
from phpcs_gate.services.toolchain import ToolchainConfig

logger = logging.getLogger(__name__)

_EXPECTED = "exit 0, or a JSON report on stdout"

Runner = Callable[..., CommandResult]


def unique_paths(paths: Sequence[str]) -> List[str]:
    """Drop duplicates by path equality, first occurrence wins."""
    seen: set[str] = set()
    out: List[str] = []
    for p in paths:
        if p not in seen:
            seen.add(p)
            out.append(p)
    return out


def _as_target(path: str) -> str:
    # Keep paths that start with "-" from being read as options.
    return f"./{path}" if path.startswith("-") else path


class Analyzer:
    """
    Analyzer Invoker.

    Parameters
    ----------
    toolchain : ToolchainConfig
        Resolved phpcs path, default ruleset and timeout.
    runner : callable
        ``run_command``-compatible callable; injectable for tests.
    """

    def __init__(self, toolchain: ToolchainConfig, runner: Runner = run_command) -> None:
        self.toolchain = toolchain
        self.runner = runner

    def check(
        self,
        targets: Sequence[str],
        ruleset: Optional[str] = None,
        working_dir: Optional[str] = None,
        extra_args: Sequence[str] = (),
    ) -> BatchReport:
        """Check ``targets`` against ``ruleset`` (default: the configured standard)."""
        targets = unique_paths(targets)
        if not targets:
            return clean_report(0)

        standard = ruleset or self.toolchain.standard
        argv = [
            self.toolchain.phpcs_path,
            f"--standard={standard}",
            "--report=json",
            *extra_args,
            *(_as_target(t) for t in targets),
        ]
        result = self.runner(argv, cwd=working_dir, timeout=self.toolchain.check_timeout)
        classified = classify_check(result)

        if classified.outcome is CommandOutcome.CLEAN:
            logger.info("phpcs: %d target(s) clean against %s", len(targets), standard)
            return clean_report(len(targets))

        if classified.outcome is CommandOutcome.FAILED:
            logger.error("phpcs invocation failed: %s", classified.reason)
            raise classified.to_error(expected=_EXPECTED)

        report = parse_report(result.stdout, len(targets), command=result.argv)
        logger.info(
            "phpcs: %d error(s), %d warning(s), %d fixable across %d file(s)",
            report.total_errors, report.total_warnings, report.total_fixable, len(report.files),
        )
        return report

    def check_file(self, file_path: str, working_dir: Optional[str] = None) -> BatchReport:
        if not file_path:
            raise InputError("file_path")
        return self.check([file_path], working_dir=working_dir)

    def check_directory(self, directory: str, working_dir: Optional[str] = None) -> BatchReport:
        if not directory:
            raise InputError("directory")
        return self.check([directory], working_dir=working_dir)
