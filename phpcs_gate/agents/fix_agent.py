"""
Fix Agent
=========
Runs phpcbf against a single file and reports what is left.

Algorithm:
    1. Check the file. No findings → attempted=False; phpcbf never runs.
    2. Hash the file, run phpcbf, hash again.
    3. Check the file again to obtain ``remaining``.
    4. changed = (hash before != hash after).

Core Philosophy:
    - phpcbf's exit code says whether phpcbf worked, not whether the file
      changed. Only the content hash decides ``changed``.
    - Exit 0 and 1 are normal runs; anything else is a fixer failure.
    - Fixer failures (and a failing re-check) are reported on the outcome,
      never raised, so one bad file cannot abort a batch.

The FixAgent does NOT:
    - Re-stage files (that's git_agent's job)
    - Decide whether a commit may proceed (that's the orchestrator's job)
    - Format output strings (that's output_formatter's job)
"""
import logging
import os
from typing import Optional

from phpcs_gate.core.errors import InputError, InvocationError
from phpcs_gate.executor.command_runner import CommandOutcome, classify_fix, run_command
from phpcs_gate.models.fix_outcome import FixOutcome
from phpcs_gate.services.analyzer import Analyzer
from phpcs_gate.utils.content_hash import compute_content_hash

logger = logging.getLogger(__name__)


class FixAgent:
    """
    Fixer Invoker.

    Parameters
    ----------
    analyzer : Analyzer
        Used for the pre- and post-fix checks; also supplies the toolchain.
    runner : callable
        ``run_command``-compatible callable; injectable for tests.
    """

    def __init__(self, analyzer: Analyzer, runner=run_command) -> None:
        self.analyzer = analyzer
        self.toolchain = analyzer.toolchain
        self.runner = runner

    def fix(self, path: str, working_dir: Optional[str] = None) -> FixOutcome:
        """
        Fix one file.

        Raises
        ------
        InputError
            ``path`` is empty.
        InvocationError
            The pre-fix check itself failed (nothing was attempted).
        """
        if not path:
            raise InputError("file_path")

        before = self.analyzer.check([path], working_dir=working_dir)
        if not before.has_findings:
            logger.info("%s: clean, fixer not invoked", path)
            return FixOutcome(path=path, attempted=False, changed=False, remaining=before)

        abs_path = os.path.join(working_dir or os.getcwd(), path)
        hash_before = compute_content_hash(abs_path)

        failure: Optional[str] = None
        try:
            self._run_fixer(path, working_dir)
        except InvocationError as exc:
            logger.warning("%s: fixer failed: %s", path, exc.reason)
            failure = exc.describe()

        changed = compute_content_hash(abs_path) != hash_before

        if failure is not None:
            return FixOutcome(
                path=path, attempted=True, changed=changed, remaining=before, failure=failure,
            )

        try:
            remaining = self.analyzer.check([path], working_dir=working_dir)
        except InvocationError as exc:
            logger.warning("%s: re-check after fixing failed: %s", path, exc.reason)
            return FixOutcome(
                path=path, attempted=True, changed=changed, remaining=before, failure=exc.describe(),
            )

        logger.info(
            "%s: changed=%s, %d error(s) and %d warning(s) remain",
            path, changed, remaining.total_errors, remaining.total_warnings,
        )
        return FixOutcome(path=path, attempted=True, changed=changed, remaining=remaining)

    def _run_fixer(self, path: str, working_dir: Optional[str]) -> None:
        argv = [
            self.toolchain.phpcbf_path,
            f"--standard={self.toolchain.standard}",
            f"./{path}" if path.startswith("-") else path,
        ]
        result = self.runner(argv, cwd=working_dir, timeout=self.toolchain.check_timeout)
        classified = classify_fix(result)
        if classified.outcome is CommandOutcome.FAILED:
            raise classified.to_error(expected="exit code 0 (nothing to fix) or 1 (fixes applied)")
